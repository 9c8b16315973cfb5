# tests/__init__.py

"""
GCMS FastAPI 애플리케이션의 테스트 스위트 패키지입니다.

테스트 코드는 `pytest`, `pytest-asyncio`, `httpx.AsyncClient`를 기반으로 작성되며,
각 비즈니스 도메인에 따라 하위 디렉토리로 구조화됩니다.

주요 구성:
- `domains/`: 각 비즈니스 도메인(org, usr, mst, pty, cyl)에 대한 테스트 모듈.
- `conftest.py`: 테스트마다 새로 만드는 인메모리 SQLite DB, 회사/지점/사용자 데이터,
                 역할별로 로그인된 테스트 클라이언트 등 공용 fixture.
- `test_main.py`: 루트/헬스 체크 엔드포인트와 공통 오류 응답 형식 테스트.
"""

__title__ = "GCMS API Tests"
__description__ = "Test suite for GCMS FastAPI application."
__version__ = "0.1.0"  # 테스트 스위트의 내부 버전
__all__ = []
