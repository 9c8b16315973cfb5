# app/domains/pty/__init__.py

"""
'pty' 도메인 패키지입니다. 회사/지점별 거래처(고객, 공급업체)를 관리하며
CSV 일괄 업로드 시 (company_id, branch_id, party_code) 기준으로 upsert 합니다.
"""

__title__ = "GCMS Party Domain"
__all__ = []
