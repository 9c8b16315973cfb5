# tests/conftest.py

import os
from typing import AsyncGenerator, Awaitable, Callable, NamedTuple
from contextlib import asynccontextmanager

# app 설정(Settings)이 로드되기 전에 테스트용 환경 변수를 지정합니다.
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-gcms")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# app.main을 임포트하여 FastAPI 앱 인스턴스에 접근합니다.
from app.main import app as main_app
from app.core import dependencies as deps
from app.core.database import get_session
from app.core.security import get_password_hash

# --- 모든 모델 임포트 ---
#  SQLModel.metadata.create_all()이 모든 테이블을 인식하도록 전체 모델을 한 번 임포트합니다.
from app.domains.models import *    # noqa: F401, F403

from app.domains.org import models as org_models
from app.domains.usr import models as usr_models
from app.domains.pty import models as pty_models


# --- 테스트용 데이터베이스 설정 ---
# 테스트마다 새 인메모리 SQLite DB를 만들어 완전히 격리합니다.
# (API가 내부에서 commit/rollback을 수행하므로 바깥 트랜잭션 롤백 방식은 사용하지 않습니다.)
TEST_DATABASE_URL = "sqlite+aiosqlite://"


class ScopeIds(NamedTuple):
    company_id: int
    branch_id: int
    other_branch_id: int


# --- 데이터베이스 픽스처 ---
@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,  # 인메모리 DB를 모든 세션이 공유하도록 단일 연결 사용
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    테스트 함수마다 독립된 데이터베이스의 비동기 세션을 제공합니다.
    애플리케이션의 AsyncSessionLocal과 같은 옵션(autoflush=False, expire_on_commit=False)을 사용합니다.
    """
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with TestingSessionLocal() as session:
        yield session


# --- 회사/지점 픽스처 ---
@pytest_asyncio.fixture(scope="function")
async def test_company(db_session: AsyncSession) -> org_models.Company:
    """테스트용 회사를 생성합니다."""
    company = org_models.Company(company_code="ACME", company_name="Acme Gases")
    db_session.add(company)
    await db_session.commit()
    await db_session.refresh(company)
    return company


@pytest_asyncio.fixture(scope="function")
async def test_branch(db_session: AsyncSession, test_company: org_models.Company) -> org_models.Branch:
    """테스트용 기본 지점을 생성합니다."""
    branch = org_models.Branch(company_id=test_company.id, branch_code="MAIN", branch_name="Main Plant")
    db_session.add(branch)
    await db_session.commit()
    await db_session.refresh(branch)
    return branch


@pytest_asyncio.fixture(scope="function")
async def test_other_branch(db_session: AsyncSession, test_company: org_models.Company) -> org_models.Branch:
    """같은 회사의 다른 지점을 생성합니다. (스코프 격리 테스트용)"""
    branch = org_models.Branch(company_id=test_company.id, branch_code="WEST", branch_name="West Depot")
    db_session.add(branch)
    await db_session.commit()
    await db_session.refresh(branch)
    return branch


@pytest.fixture(scope="function")
def scope_ids(
    test_company: org_models.Company,
    test_branch: org_models.Branch,
    test_other_branch: org_models.Branch,
) -> ScopeIds:
    """
    회사/지점 ID만 담은 값 객체입니다.
    API 오류 응답은 세션을 롤백하여 ORM 객체를 만료시키므로, 테스트는 이 ID 값을 사용합니다.
    """
    return ScopeIds(
        company_id=test_company.id,
        branch_id=test_branch.id,
        other_branch_id=test_other_branch.id,
    )


# --- 역할별 사용자 픽스처 ---
@pytest_asyncio.fixture(scope="function")
def user_factory(db_session: AsyncSession) -> Callable[..., Awaitable[usr_models.User]]:
    """
    역할과 소속(회사/지점)을 지정하여 테스트 사용자를 생성하는 팩토리 함수를 반환합니다.
    """
    async def _create_user(
        login_id: str,
        password: str,
        role: usr_models.UserRole,
        company_id: int,
        branch_id: int,
        is_active: bool = True,
        **kwargs,
    ) -> usr_models.User:
        user = usr_models.User(
            login_id=login_id,
            password_hash=get_password_hash(password),
            email=f"{login_id}@example.com",
            role=role,
            company_id=company_id,
            branch_id=branch_id,
            is_active=is_active,
            **kwargs,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _create_user


@pytest_asyncio.fixture(scope="function")
async def test_admin_user(user_factory: Callable, scope_ids: ScopeIds) -> usr_models.User:
    """관리자(ADMIN) 사용자를 생성합니다."""
    return await user_factory(
        "sysadm", "sysadmpass123",
        role=usr_models.UserRole.ADMIN,
        company_id=scope_ids.company_id,
        branch_id=scope_ids.branch_id,
        full_name="System Admin",
    )


@pytest_asyncio.fixture(scope="function")
async def test_user(user_factory: Callable, scope_ids: ScopeIds) -> usr_models.User:
    """기본 지점의 작업자(OPERATOR)를 생성합니다."""
    return await user_factory(
        "operator", "operatorpass123",
        role=usr_models.UserRole.OPERATOR,
        company_id=scope_ids.company_id,
        branch_id=scope_ids.branch_id,
        full_name="Plant Operator",
    )


@pytest_asyncio.fixture(scope="function")
async def test_other_branch_user(user_factory: Callable, scope_ids: ScopeIds) -> usr_models.User:
    """다른 지점의 작업자(OPERATOR)를 생성합니다."""
    return await user_factory(
        "westop", "westoppass123",
        role=usr_models.UserRole.OPERATOR,
        company_id=scope_ids.company_id,
        branch_id=scope_ids.other_branch_id,
        full_name="West Operator",
    )


# --- 인증 클라이언트 픽스처 ---
@pytest_asyncio.fixture(scope="function")
def authorized_client_factory(
    db_session: AsyncSession,
) -> Callable[[usr_models.User, str], AsyncGenerator[AsyncClient, None]]:
    """
    특정 사용자로 로그인된 AsyncClient를 생성하는 팩토리 함수를 반환합니다.
    실제 /auth/token 로그인 후 Bearer 토큰으로 인증하므로, 현재 사용자는 매 요청마다 DB에서 다시 조회됩니다.
    """
    @asynccontextmanager
    async def _create_client_context(user: usr_models.User, password: str) -> AsyncGenerator[AsyncClient, None]:
        def override_get_session():
            yield db_session

        login_id = user.login_id
        original_overrides = main_app.dependency_overrides.copy()
        try:
            main_app.dependency_overrides.update({
                get_session: override_get_session,
                deps.get_db_session: override_get_session,
            })

            transport = ASGITransport(app=main_app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                login_data = {"username": login_id, "password": password}
                res = await client.post("/api/v1/auth/token", data=login_data)

                if res.status_code != 200:
                    pytest.fail(f"Login failed for {login_id}: {res.text}")

                token = res.json()["access_token"]
                client.headers["Authorization"] = f"Bearer {token}"
                yield client

        finally:
            main_app.dependency_overrides.clear()
            main_app.dependency_overrides.update(original_overrides)

    return _create_client_context


@pytest_asyncio.fixture(scope="function")
async def admin_client(
    authorized_client_factory: Callable[..., AsyncGenerator[AsyncClient, None]],
    test_admin_user: usr_models.User,
) -> AsyncGenerator[AsyncClient, None]:
    """관리자로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_admin_user, "sysadmpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def authorized_client(
    authorized_client_factory: Callable[..., AsyncGenerator[AsyncClient, None]],
    test_user: usr_models.User,
) -> AsyncGenerator[AsyncClient, None]:
    """기본 지점 작업자로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_user, "operatorpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def other_branch_client(
    authorized_client_factory: Callable[..., AsyncGenerator[AsyncClient, None]],
    test_other_branch_user: usr_models.User,
) -> AsyncGenerator[AsyncClient, None]:
    """다른 지점 작업자로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_other_branch_user, "westoppass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    인증되지 않은 사용자를 위한 AsyncClient 인스턴스를 생성하고,
    테스트용 비동기 DB 세션을 주입합니다.
    """
    def override_get_session_and_dependency():
        yield db_session

    original_overrides = main_app.dependency_overrides.copy()
    try:
        main_app.dependency_overrides[get_session] = override_get_session_and_dependency
        main_app.dependency_overrides[deps.get_db_session] = override_get_session_and_dependency

        async with AsyncClient(transport=ASGITransport(app=main_app), base_url="http://test") as async_client:
            yield async_client

    finally:
        main_app.dependency_overrides.clear()
        main_app.dependency_overrides.update(original_overrides)


# --- 거래처 픽스처 ---
@pytest_asyncio.fixture(scope="function")
async def test_party_id(db_session: AsyncSession, scope_ids: ScopeIds) -> int:
    """기본 지점의 활성 거래처를 생성하고 ID를 반환합니다."""
    party = pty_models.Party(
        company_id=scope_ids.company_id,
        branch_id=scope_ids.branch_id,
        party_code="CUST-001",
        party_name="Blue Sky Welding",
        party_type="CUSTOMER",
    )
    db_session.add(party)
    await db_session.commit()
    await db_session.refresh(party)
    return party.id


@pytest_asyncio.fixture(scope="function")
async def test_second_party_id(db_session: AsyncSession, scope_ids: ScopeIds) -> int:
    """기본 지점의 두 번째 활성 거래처를 생성하고 ID를 반환합니다."""
    party = pty_models.Party(
        company_id=scope_ids.company_id,
        branch_id=scope_ids.branch_id,
        party_code="CUST-002",
        party_name="Harbor Fabrication",
        party_type="CUSTOMER",
    )
    db_session.add(party)
    await db_session.commit()
    await db_session.refresh(party)
    return party.id
