# app/core/__init__.py

"""
FastAPI 애플리케이션의 핵심 구성 요소 패키지입니다.

- `config.py`: 애플리케이션의 설정 및 환경 변수 관리 (Pydantic Settings).
- `database.py`: 데이터베이스 연결, 세션 관리 (SQLModel 및 AsyncSQLAlchemy).
- `crud_base.py`: 도메인 CRUD 클래스가 상속하는 공통 비동기 CRUD.
- `security.py`: 사용자 인증, 권한 부여, 비밀번호 해싱 등 보안 관련 유틸리티.
- `dependencies.py`: 세션, 현재 사용자, 회사/지점 스코프 의존성 함수들.
- `exceptions.py` / `responses.py`: 공통 예외와 {status, message, data} 응답 봉투.
"""

__title__ = "GCMS Core"
__description__ = "Core components for GCMS FastAPI application."
__version__ = "0.1.0"
__all__ = []
