# app/domains/srch/crud.py

"""
통합 검색 쿼리 모듈입니다.

검색 범위 규칙:
- 관리자가 아닌 사용자는 다른 회사를 검색할 수 없습니다.
- 지점 관리자(MANAGER)보다 낮은 역할은 다른 지점을 검색할 수 없고, branch_id를 생략해도 자신의 지점으로 제한됩니다.
- 지점 관리자 이상이 branch_id를 생략하면 회사 전체를 검색합니다.
- 지점/회사 섹션은 지점 범위와 무관합니다. 회사 섹션은 관리자만 전체 회사를 검색합니다.
"""

from typing import Any, Dict, List, NamedTuple, Optional

from sqlalchemy import or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.exceptions import ForbiddenError, ValidationError
from app.domains.cyl import models as cyl_models
from app.domains.org import models as org_models
from app.domains.pty import models as pty_models
from app.domains.usr import models as usr_models


class SearchScope(NamedTuple):
    company_id: int
    branch_id: Optional[int]


def resolve_search_scope(
    current_user: usr_models.User,
    company_id: Optional[int] = None,
    branch_id: Optional[int] = None,
) -> SearchScope:
    if company_id is not None and company_id != current_user.company_id and not current_user.is_admin:
        raise ForbiddenError("Forbidden (cross-company search not allowed)")

    branch_scoped = current_user.role > usr_models.UserRole.MANAGER
    if branch_id is not None and branch_id != current_user.branch_id and branch_scoped:
        raise ForbiddenError("Forbidden (cross-branch search not allowed)")

    effective_company = company_id if company_id is not None else current_user.company_id
    if effective_company is None:
        raise ValidationError("company_id is required (or must be present in token)")

    if branch_id is None and branch_scoped:
        branch_id = current_user.branch_id
    return SearchScope(company_id=effective_company, branch_id=branch_id)


async def search_cylinders(db: AsyncSession, *, scope: SearchScope, pattern: str, limit: int) -> List[cyl_models.Cylinder]:
    model = cyl_models.Cylinder
    statement = select(model).where(
        model.company_id == scope.company_id,
        model.is_active == True,  # noqa: E712
        or_(
            model.cylinder_code.ilike(pattern),
            model.serial_number.ilike(pattern),
            model.barcode_number.ilike(pattern),
        ),
    )
    if scope.branch_id is not None:
        statement = statement.where(model.branch_id == scope.branch_id)
    statement = statement.order_by(model.created_at.desc(), model.id.desc()).limit(limit)
    result = await db.execute(statement)
    return result.scalars().all()


async def search_parties(db: AsyncSession, *, scope: SearchScope, pattern: str, limit: int) -> List[pty_models.Party]:
    model = pty_models.Party
    statement = select(model).where(
        model.company_id == scope.company_id,
        model.is_active == True,  # noqa: E712
        or_(
            model.party_code.ilike(pattern),
            model.party_name.ilike(pattern),
            model.phone.ilike(pattern),
        ),
    )
    if scope.branch_id is not None:
        statement = statement.where(model.branch_id == scope.branch_id)
    statement = statement.order_by(model.party_name, model.id).limit(limit)
    result = await db.execute(statement)
    return result.scalars().all()


async def search_users(db: AsyncSession, *, scope: SearchScope, pattern: str, limit: int) -> List[usr_models.User]:
    model = usr_models.User
    statement = select(model).where(
        model.company_id == scope.company_id,
        model.is_active == True,  # noqa: E712
        or_(
            model.login_id.ilike(pattern),
            model.email.ilike(pattern),
            model.full_name.ilike(pattern),
        ),
    )
    if scope.branch_id is not None:
        statement = statement.where(model.branch_id == scope.branch_id)
    statement = statement.order_by(model.created_at.desc(), model.id.desc()).limit(limit)
    result = await db.execute(statement)
    return result.scalars().all()


async def search_branches(db: AsyncSession, *, company_id: int, pattern: str, limit: int) -> List[org_models.Branch]:
    model = org_models.Branch
    statement = (
        select(model)
        .where(
            model.company_id == company_id,
            model.is_active == True,  # noqa: E712
            or_(model.branch_name.ilike(pattern), model.branch_code.ilike(pattern)),
        )
        .order_by(model.branch_name)
        .limit(limit)
    )
    result = await db.execute(statement)
    return result.scalars().all()


async def search_companies(
    db: AsyncSession, *, current_user: usr_models.User, company_id: int, pattern: str, limit: int
) -> List[org_models.Company]:
    """관리자는 전체 회사를, 그 외 사용자는 검색 대상 회사 한 곳만 조회합니다."""
    model = org_models.Company
    statement = select(model).where(
        model.is_active == True,  # noqa: E712
        or_(model.company_name.ilike(pattern), model.company_code.ilike(pattern)),
    )
    if not current_user.is_admin:
        statement = statement.where(model.id == company_id)
    statement = statement.order_by(model.company_name).limit(limit)
    result = await db.execute(statement)
    return result.scalars().all()


async def global_search(
    db: AsyncSession,
    *,
    current_user: usr_models.User,
    q: str,
    limit: int,
    company_id: Optional[int] = None,
    branch_id: Optional[int] = None,
) -> Dict[str, Any]:
    term = (q or "").strip()
    if not term:
        raise ValidationError("q is required")
    scope = resolve_search_scope(current_user, company_id, branch_id)
    pattern = f"%{term}%"

    return {
        "cylinders": await search_cylinders(db, scope=scope, pattern=pattern, limit=limit),
        "parties": await search_parties(db, scope=scope, pattern=pattern, limit=limit),
        "users": await search_users(db, scope=scope, pattern=pattern, limit=limit),
        "branches": await search_branches(db, company_id=scope.company_id, pattern=pattern, limit=limit),
        "companies": await search_companies(
            db, current_user=current_user, company_id=scope.company_id, pattern=pattern, limit=limit
        ),
    }


def clamp_limit(limit: Optional[int]) -> int:
    """섹션별 최대 건수. 생략 시 기본값, 범위를 벗어나면 1 ~ SEARCH_MAX_LIMIT로 맞춥니다."""
    if limit is None:
        return settings.SEARCH_DEFAULT_LIMIT
    return max(1, min(settings.SEARCH_MAX_LIMIT, limit))
