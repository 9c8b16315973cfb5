# app/domains/mst/__init__.py

"""
'mst' 도메인 패키지입니다.

가스 종류, 용기 계열(cylinder family), 단위, 국가/주/도시 등 기준정보(master data)를 관리합니다.
"""

__title__ = "GCMS Master Data Domain"
__all__ = []
