# app/core/dependencies.py

"""
FastAPI 애플리케이션의 의존성 주입(Dependency Injection)을 정의하는 모듈입니다.

- 데이터베이스 세션 관리 (get_db_session).
- 현재 인증된 사용자 정보 획득 (security 모듈 재노출).
- 회사/지점 스코프 해석 (resolve_scope, get_scope).
"""

from typing import AsyncGenerator, NamedTuple, Optional

from fastapi import Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.database import get_session as get_main_app_session
from app.core.exceptions import ForbiddenError, ValidationError
# flake8: noqa
from app.core.security import (
    create_access_token,
    build_token_claims,
    get_password_hash,
    verify_password,
    oauth2_scheme,
    get_current_user_from_token,
    get_current_active_user,
    get_current_admin_user,
)
from app.domains.usr.models import User as UsrUser


# --- 데이터베이스 세션 의존성 주입 ---
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI 의존성 주입을 위한 비동기 데이터베이스 세션 제너레이터입니다.
    app.core.database.get_session을 래핑하여 사용합니다.
    """
    async for session in get_main_app_session():
        yield session


# --- 회사/지점 스코프 ---
class Scope(NamedTuple):
    company_id: int
    branch_id: int


def resolve_scope(
    current_user: UsrUser,
    company_id: Optional[int] = None,
    branch_id: Optional[int] = None,
) -> Scope:
    """
    요청이 명시한 company_id/branch_id를 우선 사용하고, 없으면 토큰 사용자의 스코프를 사용합니다.
    관리자가 아닌 사용자는 자신의 스코프 밖을 지정할 수 없습니다.
    """
    effective_company = company_id if company_id is not None else current_user.company_id
    effective_branch = branch_id if branch_id is not None else current_user.branch_id

    if effective_company is None or effective_branch is None:
        raise ValidationError("company_id and branch_id are required")

    if not current_user.is_admin and (
        effective_company != current_user.company_id or effective_branch != current_user.branch_id
    ):
        raise ForbiddenError("Not allowed to access another company-branch")

    return Scope(company_id=effective_company, branch_id=effective_branch)


def get_scope(
    company_id: Optional[int] = Query(None, description="회사 ID (생략 시 토큰 사용자의 회사)"),
    branch_id: Optional[int] = Query(None, description="지점 ID (생략 시 토큰 사용자의 지점)"),
    current_user: UsrUser = Depends(get_current_active_user),
) -> Scope:
    """쿼리 파라미터 기반 스코프 의존성"""
    return resolve_scope(current_user, company_id, branch_id)


class Pagination(NamedTuple):
    page: int
    page_size: int


def get_pagination(
    page: int = Query(1, ge=1, description="1부터 시작하는 페이지 번호"),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> Pagination:
    return Pagination(page=page, page_size=page_size)


def get_active_filter(
    active: str = Query("1", description="1 = 활성, 0 = 비활성, all = 전체"),
) -> Optional[bool]:
    """active 쿼리 파라미터를 is_active 필터 값으로 변환합니다. all이면 None(필터 없음)."""
    value = active.strip().lower()
    if value == "all":
        return None
    if value in ("1", "true"):
        return True
    if value in ("0", "false"):
        return False
    raise ValidationError("active must be 1, 0 or all")


def get_company_id(current_user: UsrUser = Depends(get_current_active_user)) -> int:
    """회사 단위 기준정보(단가, 매핑)가 사용하는 토큰 사용자의 회사 ID"""
    if current_user.company_id is None:
        raise ValidationError("Company context missing in token")
    return current_user.company_id
