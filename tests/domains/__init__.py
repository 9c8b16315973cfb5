# tests/domains/__init__.py

"""
GCMS FastAPI 애플리케이션의 도메인별 테스트 패키지입니다.

- `test_org_n.py`: 'org' 도메인 (회사/지점).
- `test_usr_n.py`: 'usr' 도메인 (인증, 사용자 관리, 환경설정).
- `test_mst_n.py`: 'mst' 도메인 (가스 종류, 용기 계열, 단위, 지역 정보).
- `test_pty_n.py`: 'pty' 도메인 (거래처, CSV upsert).
- `test_cyl_n.py`: 'cyl' 도메인 (용기, 검사 이력, 검사일 동기화, CSV 업로드, 공개 조회).
- `test_cyl_services_n.py`: 'cyl' 도메인의 정규화/검증 순수 함수 단위 테스트.
"""

__title__ = "GCMS Domain Tests"
__description__ = "Categorized tests for each business domain in GCMS FastAPI application."
__version__ = "0.1.0"
__all__ = []
