# app/domains/srch/__init__.py

"""
'srch' 도메인 패키지입니다. 상단 검색창에서 사용하는 통합 검색(용기, 거래처, 사용자, 지점, 회사)을 제공합니다.
자체 테이블이 없으므로 models.py를 두지 않습니다.
"""

__title__ = "GCMS Search Domain"
__all__ = []
