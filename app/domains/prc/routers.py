# app/domains/prc/routers.py

"""
'prc' 도메인 (가스 단가 관리)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
회사 스코프는 토큰 사용자의 company_id를 사용합니다.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.core.config import settings
from app.core.responses import ApiResponse, success
from app.domains.usr import models as usr_models
from app.utils import csv_upload

from . import crud as prc_crud
from . import schemas as prc_schemas

router = APIRouter(
    tags=["Gas Rates (가스 단가 관리)"],
    responses={404: {"description": "Not found"}},
)


@router.get("/party-gas-rates", response_model=ApiResponse[List[prc_schemas.PartyGasRateRead]], summary="가스 단가 목록 조회")
async def read_gas_rates(
    party_id: Optional[int] = Query(None, description="거래처 ID (생략 시 회사 기본 단가)"),
    gas_type_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Depends(deps.get_active_filter),
    company_id: int = Depends(deps.get_company_id),
    db: AsyncSession = Depends(deps.get_db_session),
):
    rates = await prc_crud.party_gas_rate.list_rates(
        db, company_id=company_id, party_id=party_id, gas_type_id=gas_type_id, is_active=is_active
    )
    return success(rates, "Gas rates fetched successfully")


@router.post("/party-gas-rates/upload", response_model=ApiResponse[prc_schemas.PartyGasRateUploadResult], summary="가스 단가 CSV 일괄 업로드")
async def upload_gas_rates(
    file: UploadFile = File(..., description="CSV 파일 (gas_code, uom_code, ownership_type, rate, effective_from, ...)"),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    company_id = deps.get_company_id(current_user)
    rows = await csv_upload.read_upload_rows(file)
    result = await prc_crud.party_gas_rate.upload_rows(
        db, rows=rows, company_id=company_id, branch_id=current_user.branch_id, created_by=current_user.id
    )
    result["errors"] = result["errors"][:settings.UPLOAD_ERROR_PREVIEW_LIMIT]
    message = f"Upload complete. {result['inserted']} row(s) inserted successfully, {result['failed']} failed."
    return success(result, message)


@router.get("/party-gas-rates/{rate_id}", response_model=ApiResponse[prc_schemas.PartyGasRateRead], summary="가스 단가 상세 조회")
async def read_gas_rate(
    rate_id: int,
    company_id: int = Depends(deps.get_company_id),
    db: AsyncSession = Depends(deps.get_db_session),
):
    rate = await prc_crud.party_gas_rate.get_read(db, company_id=company_id, rate_id=rate_id)
    return success(rate, "Gas rate fetched successfully")


@router.post("/party-gas-rates", response_model=ApiResponse[prc_schemas.PartyGasRateRead], status_code=status.HTTP_201_CREATED, summary="가스 단가 등록")
async def create_gas_rate(
    rate_in: prc_schemas.PartyGasRateCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    company_id = deps.get_company_id(current_user)
    rate = await prc_crud.party_gas_rate.create_rate(
        db, company_id=company_id, obj_in=rate_in, created_by=current_user.id
    )
    data = await prc_crud.party_gas_rate.get_read(db, company_id=company_id, rate_id=rate.id)
    return success(data, "Gas rate created successfully")


@router.put("/party-gas-rates/{rate_id}", response_model=ApiResponse[prc_schemas.PartyGasRateRead], summary="가스 단가 기간 종료/비활성화")
async def update_gas_rate(
    rate_id: int,
    rate_in: prc_schemas.PartyGasRateUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    company_id = deps.get_company_id(current_user)
    await prc_crud.party_gas_rate.close_rate(
        db, company_id=company_id, rate_id=rate_id, obj_in=rate_in, updated_by=current_user.id
    )
    data = await prc_crud.party_gas_rate.get_read(db, company_id=company_id, rate_id=rate_id)
    return success(data, "Gas rate updated successfully")


@router.delete("/party-gas-rates/{rate_id}", response_model=ApiResponse[prc_schemas.PartyGasRateRead], summary="가스 단가 비활성화")
async def delete_gas_rate(
    rate_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    company_id = deps.get_company_id(current_user)
    await prc_crud.party_gas_rate.deactivate(db, company_id=company_id, rate_id=rate_id, updated_by=current_user.id)
    data = await prc_crud.party_gas_rate.get_read(db, company_id=company_id, rate_id=rate_id)
    return success(data, "Gas rate deactivated")
