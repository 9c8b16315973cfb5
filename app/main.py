# app/main.py

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware

# 핵심 설정 및 데이터베이스 모듈 임포트
from app.core.config import settings
from app.core.database import engine, create_db_and_tables, get_session
from app.core.exceptions import register_exception_handlers

from app import API_PREFIX

# 각 도메인의 라우터 임포트
from app.domains.org.routers import router as org_router
from app.domains.usr.routers import router as usr_router
from app.domains.mst.routers import router as mst_router
from app.domains.pty.routers import router as pty_router
from app.domains.cyl.routers import router as cyl_router
from app.domains.cyl.routers import public_router as cyl_public_router
from app.domains.prc.routers import router as prc_router
from app.domains.srch.routers import router as srch_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# -- 애플리케이션 수명 주기 이벤트 핸들러 --
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 시작 시 (설정에 따라) 테이블을 생성하고, 종료 시 DB 연결 풀을 정리합니다.
    """
    logger.info("Starting %s (%s)", settings.APP_NAME, settings.APP_ENV)
    if settings.DB_CREATE_TABLES_ON_STARTUP:
        await create_db_and_tables()

    yield  # 애플리케이션 실행

    logger.info("Shutting down %s", settings.APP_NAME)
    await engine.dispose()


# -- FastAPI 애플리케이션 인스턴스 생성 --
app = FastAPI(
    title="GCMS API",
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# -- CORS 미들웨어 설정 --
# 운영 환경에서는 CORS_ORIGINS를 실제 프론트엔드 도메인으로 제한해야 합니다.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -- 예외 → {status, message, data} 오류 응답 변환 --
register_exception_handlers(app)

# -- 도메인 라우터 포함 --
app.include_router(usr_router, prefix=API_PREFIX)
app.include_router(org_router, prefix=API_PREFIX)
app.include_router(mst_router, prefix=API_PREFIX)
app.include_router(pty_router, prefix=API_PREFIX)
app.include_router(cyl_router, prefix=API_PREFIX)
app.include_router(cyl_public_router, prefix=API_PREFIX)
app.include_router(prc_router, prefix=API_PREFIX)
app.include_router(srch_router, prefix=API_PREFIX)


# -- 루트 엔드포인트 --
@app.get("/", summary="API Root", response_description="Welcome message and documentation link.")
async def read_root():
    """
    GCMS API의 루트 엔드포인트입니다.
    API의 시작점을 알리고 문서 링크를 제공합니다.
    """
    return {"message": "Welcome to GCMS API. Visit /docs for interactive API documentation."}


# -- 헬스 체크 엔드포인트 --
@app.get("/health-check", summary="Health Check", response_description="Status of the application and database connection.")
async def health_check(session: AsyncSession = Depends(get_session)):
    """
    데이터베이스에 SELECT 1을 실행하여 서비스의 정상 작동 여부를 확인합니다.
    연결 오류는 공통 예외 처리기가 500 응답으로 변환합니다.
    """
    result = await session.exec(select(1))
    return {"status": "ok", "database_connection": "successful" if result.first() else "no result"}


# -- Uvicorn 서버 직접 실행 (개발용) --
# if __name__ == "__main__":
#     import uvicorn
#     uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
