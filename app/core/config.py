# app/core/config.py

from typing import Any, List
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
import os

# 프로젝트의 루트 디렉토리 경로를 계산합니다.
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class Settings(BaseSettings):
    """
    애플리케이션의 모든 설정을 정의하는 Pydantic BaseSettings 모델입니다.
    환경 변수 및 .env 파일에서 값을 자동으로 로드합니다.
    """

    # --- Pydantic Settings 설정 ---
    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, '.env'),  # 프로젝트 루트의 .env 파일을 명시적으로 지정
        env_file_encoding='utf-8',           # .env 파일 인코딩
        extra='ignore',                      # .env 파일에 정의되었지만 모델에 없는 변수는 무시
        case_sensitive=True                  # 환경 변수 이름 대소문자 구분
    )

    # --- 애플리케이션 기본 설정 ---
    APP_NAME: str = "GCMS FastAPI API"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Gas Cylinder Management System (GCMS) API"
    # 애플리케이션 환경 (예: "development", "production", "testing")
    APP_ENV: str = Field("development", description="Application environment (e.g., development, production, testing)")
    # 디버그 모드 활성화 여부
    DEBUG_MODE: bool = Field(False, description="Enable debug mode for detailed logging and SQL echo")
    LOG_LEVEL: str = Field("INFO", description="Root log level (DEBUG, INFO, WARNING, ...)")
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")

    # --- 데이터베이스 설정 ---
    DATABASE_URL: SecretStr = Field(..., description="Async database connection URL (postgresql+asyncpg://...)")
    DB_CREATE_TABLES_ON_STARTUP: bool = Field(False, description="Run metadata.create_all in lifespan (development only)")

    # --- JWT (JSON Web Token) 설정 ---
    SECRET_KEY: SecretStr = Field(..., description="Secret key for JWT token signing. Keep this highly secure!")
    ALGORITHM: str = Field("HS256", description="Algorithm used for JWT signing (e.g., HS256)")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24, description="Access token expiration time in minutes")

    # --- 목록/보고서 설정 ---
    DEFAULT_PAGE_SIZE: int = Field(10, description="Default page size for paginated lists")
    MAX_PAGE_SIZE: int = Field(500, description="Upper bound for page_size query parameter")
    DUE_FOR_TEST_DAYS_AHEAD: int = Field(30, description="Default look-ahead window for due-for-test report")
    UPLOAD_ERROR_PREVIEW_LIMIT: int = Field(10, description="Number of CSV row errors returned in upload responses")
    SEARCH_DEFAULT_LIMIT: int = Field(10, description="Default number of rows per section in global search")
    SEARCH_MAX_LIMIT: int = Field(50, description="Upper bound for the global search limit parameter")
    DEFAULT_CURRENCY: str = Field("INR", description="Currency applied to gas rates when none is given")

    def model_post_init(self, __context: Any) -> None:  # noqa: ANN001
        # 테스트 환경에서는 시작 시 테이블 자동 생성을 끕니다 (픽스처가 직접 관리).
        if self.APP_ENV == "testing":
            self.DB_CREATE_TABLES_ON_STARTUP = False

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.get_secret_value().startswith("sqlite")


settings = Settings()
