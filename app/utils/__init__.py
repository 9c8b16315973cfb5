# app/utils/__init__.py

"""
FastAPI 애플리케이션의 'utils' 패키지입니다.

특정 비즈니스 도메인에 속하지 않는 범용 유틸리티 함수들을 포함합니다.

주요 서브모듈:
- `csv_upload.py`: CSV 업로드 파일 디코딩, 헤더 정규화, 셀 값(문자열/숫자/날짜) 파싱.
"""

# flake8: noqa
from . import csv_upload

__title__ = "GCMS Application Utilities"
__description__ = "Provides common, reusable utility functions for the application."
__version__ = "0.1.0"
__all__ = ["csv_upload"]
