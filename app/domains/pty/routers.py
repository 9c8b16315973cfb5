# app/domains/pty/routers.py

"""
'pty' 도메인 (거래처 관리)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.core.responses import ApiResponse, Page, success
from app.domains.usr import models as usr_models
from app.utils import csv_upload

from . import crud as pty_crud
from . import schemas as pty_schemas

router = APIRouter(
    tags=["Party Management (거래처 관리)"],
    responses={404: {"description": "Not found"}},
)


async def _get_party_or_404(db: AsyncSession, party_id: int, scope: deps.Scope):
    party = await pty_crud.party.get_in_scope(
        db, id=party_id, company_id=scope.company_id, branch_id=scope.branch_id
    )
    if not party:
        raise NotFoundError("Party not found for this company-branch")
    return party


@router.get("/parties", response_model=ApiResponse[Page[pty_schemas.PartyRead]], summary="거래처 목록 조회")
async def read_parties(
    search: Optional[str] = Query(None, description="거래처명/코드/전화번호/GST 검색어"),
    party_type: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    scope: deps.Scope = Depends(deps.get_scope),
    pagination: deps.Pagination = Depends(deps.get_pagination),
    db: AsyncSession = Depends(deps.get_db_session),
):
    items, total = await pty_crud.party.search(
        db,
        company_id=scope.company_id,
        branch_id=scope.branch_id,
        search=search,
        party_type=party_type,
        is_active=is_active,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    page = {"items": items, "total_count": total, "page": pagination.page, "page_size": pagination.page_size}
    return success(page, "Parties fetched successfully")


@router.post("/parties", response_model=ApiResponse[pty_schemas.PartyRead], status_code=status.HTTP_201_CREATED, summary="거래처 등록")
async def create_party(
    party_in: pty_schemas.PartyCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    scope = deps.resolve_scope(current_user, party_in.company_id, party_in.branch_id)
    party = await pty_crud.party.create_in_scope(
        db, obj_in=party_in, company_id=scope.company_id, branch_id=scope.branch_id
    )
    return success(party, "Party created successfully")


@router.post("/parties/upload", response_model=ApiResponse[pty_schemas.PartyUploadResult], summary="거래처 CSV 일괄 업로드")
async def upload_parties(
    file: UploadFile = File(..., description="CSV 파일 (party_code, party_name, ...)"),
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    rows = await csv_upload.read_upload_rows(file)
    result = await pty_crud.party.upsert_rows(
        db, rows=rows, company_id=scope.company_id, branch_id=scope.branch_id
    )
    result["errors"] = result["errors"][:settings.UPLOAD_ERROR_PREVIEW_LIMIT]
    message = f"{result['inserted']} inserted, {result['updated']} updated, {result['failed']} failed"
    return success(result, message)


@router.get("/parties/{party_id}", response_model=ApiResponse[pty_schemas.PartyRead], summary="거래처 상세 조회")
async def read_party(
    party_id: int,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    party = await _get_party_or_404(db, party_id, scope)
    return success(party, "Party fetched successfully")


@router.put("/parties/{party_id}", response_model=ApiResponse[pty_schemas.PartyRead], summary="거래처 정보 수정")
async def update_party(
    party_id: int,
    party_in: pty_schemas.PartyUpdate,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    party = await _get_party_or_404(db, party_id, scope)
    party = await pty_crud.party.update(db, db_obj=party, obj_in=party_in)
    return success(party, "Party updated successfully")


@router.delete("/parties/{party_id}", response_model=ApiResponse[pty_schemas.PartyRead], summary="거래처 삭제 (비활성화)")
async def delete_party(
    party_id: int,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    party = await _get_party_or_404(db, party_id, scope)
    party = await pty_crud.party.soft_delete(db, db_obj=party)
    return success(party, "Party deleted successfully")


# =============================================================================
# 거래처 주소
# =============================================================================
@router.get("/parties/{party_id}/addresses", response_model=ApiResponse[List[pty_schemas.PartyAddressRead]], summary="거래처 주소 목록 조회")
async def read_party_addresses(
    party_id: int,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    addresses = await pty_crud.party_address.list_for_party(
        db, party_id=party_id, company_id=scope.company_id, branch_id=scope.branch_id
    )
    return success(addresses, "Addresses fetched successfully")


@router.post("/parties/{party_id}/addresses", response_model=ApiResponse[pty_schemas.PartyAddressRead], status_code=status.HTTP_201_CREATED, summary="거래처 주소 등록")
async def create_party_address(
    party_id: int,
    address_in: pty_schemas.PartyAddressCreate,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    address = await pty_crud.party_address.create_for_party(
        db, party_id=party_id, company_id=scope.company_id, branch_id=scope.branch_id, obj_in=address_in
    )
    return success(address, "Address created successfully")


@router.put("/party-addresses/{address_id}", response_model=ApiResponse[pty_schemas.PartyAddressRead], summary="거래처 주소 수정")
async def update_party_address(
    address_id: int,
    address_in: pty_schemas.PartyAddressUpdate,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    address = await pty_crud.party_address.update_in_scope(
        db, address_id=address_id, company_id=scope.company_id, branch_id=scope.branch_id, obj_in=address_in
    )
    return success(address, "Address updated successfully")


@router.delete("/party-addresses/{address_id}", response_model=ApiResponse[pty_schemas.PartyAddressRead], summary="거래처 주소 삭제 (비활성화)")
async def delete_party_address(
    address_id: int,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    address = await pty_crud.party_address.soft_delete(
        db, address_id=address_id, company_id=scope.company_id, branch_id=scope.branch_id
    )
    return success(address, "Address deleted successfully")


# =============================================================================
# 거래처 유형 (드롭다운)
# =============================================================================
@router.get("/party-types", response_model=ApiResponse[List[pty_schemas.PartyTypeOption]], summary="거래처 유형 목록 조회")
async def read_party_types(
    is_active: Optional[bool] = Depends(deps.get_active_filter),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return success(await pty_crud.list_party_type_options(db, is_active=is_active), "Party types fetched successfully")
