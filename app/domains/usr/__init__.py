# app/domains/usr/__init__.py

"""
FastAPI 애플리케이션의 'usr' 도메인 패키지입니다.

시스템 사용자, 로그인(JWT 발급), 사용자/역할별 환경설정(preferences)을 관리합니다.

주요 서브모듈:
- `models.py`: users, user_preferences, role_preferences 테이블에 매핑되는 SQLModel 정의.
- `schemas.py`: 요청/응답 유효성 검사 및 인증 스키마.
- `crud.py`: 사용자 인증 로직과 환경설정 조회(지점 → 회사 → 역할 순 폴백) 로직.
- `routers.py`: 로그인, 사용자 관리, 환경설정 API 엔드포인트.
"""

__title__ = "GCMS User Domain"
__description__ = "Manages users, authentication and preferences."
__version__ = "0.1.0"
__all__ = []
