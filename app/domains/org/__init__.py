# app/domains/org/__init__.py

"""
'org' 도메인 패키지입니다. 멀티테넌시의 기준이 되는 회사(companies)와 지점(branches)을 관리합니다.
"""

__title__ = "GCMS Organization Domain"
__all__ = []
