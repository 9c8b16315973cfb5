# app/domains/prc/__init__.py

"""
'prc' 도메인 패키지입니다. 회사별 가스 단가(party_gas_rates)를 관리합니다.

- party_id가 NULL인 단가는 회사 기본 단가입니다.
- 단가는 유효 기간(effective_from ~ effective_to)으로 이력을 관리하며, 가격 변경은 새 행으로 등록합니다.
  기존 행의 수정은 기간 종료(effective_to)와 비활성화(is_active)만 허용합니다.
"""

__title__ = "GCMS Pricing Domain"
__all__ = []
