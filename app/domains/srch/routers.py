# app/domains/srch/routers.py

"""
'srch' 도메인 (통합 검색) API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.core.responses import ApiResponse, success
from app.domains.usr import models as usr_models

from . import crud as srch_crud
from . import schemas as srch_schemas

router = APIRouter(
    tags=["Search (통합 검색)"],
)


@router.get("/search", response_model=ApiResponse[srch_schemas.SearchResult], summary="통합 검색")
async def global_search(
    q: Optional[str] = Query(None, description="검색어 (용기 코드/일련번호/바코드, 거래처, 사용자, 지점, 회사)"),
    limit: Optional[int] = Query(None, description="섹션별 최대 건수 (1~50, 기본 10)"),
    company_id: Optional[int] = Query(None),
    branch_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    result = await srch_crud.global_search(
        db,
        current_user=current_user,
        q=q,
        limit=srch_crud.clamp_limit(limit),
        company_id=company_id,
        branch_id=branch_id,
    )
    return success(result, "Search completed successfully")
