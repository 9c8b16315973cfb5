# app/__init__.py

"""
GCMS(Gas Cylinder Management System) FastAPI 애플리케이션의 메인 패키지입니다.

core 서브패키지에는 설정, 데이터베이스 연결, 보안, 공통 예외/응답 유틸리티가 있고,
domains 서브패키지에는 각 비즈니스 도메인(org, usr, mst, pty, cyl, prc, srch)이 있습니다.
"""

APP_NAME = "GCMS FastAPI API"
APP_VERSION = "0.1.0"
API_PREFIX = "/api/v1"  # API 라우트의 공통 접두사 (main.py에서 적용)

__version__ = APP_VERSION
__title__ = APP_NAME
__description__ = "Gas Cylinder Management System (GCMS) API backend."
__all__ = []
