# app/domains/org/routers.py

"""
'org' 도메인 (회사 및 지점 관리)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
조회는 모든 활성 사용자, 등록/수정은 관리자만 가능합니다.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.core.exceptions import NotFoundError
from app.core.responses import ApiResponse, success
from app.domains.usr import models as usr_models

from . import crud as org_crud
from . import schemas as org_schemas

router = APIRouter(
    tags=["Organization (회사 및 지점 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 회사 (Company)
# =============================================================================
@router.get("/companies", response_model=ApiResponse[List[org_schemas.CompanyRead]], summary="회사 목록 조회")
async def read_companies(
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    companies = await org_crud.company.get_multi(db, limit=1000)
    return success(companies, "Companies fetched successfully")


@router.post("/companies", response_model=ApiResponse[org_schemas.CompanyRead], status_code=status.HTTP_201_CREATED, summary="회사 등록")
async def create_company(
    company_in: org_schemas.CompanyCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    company = await org_crud.company.create(db, obj_in=company_in)
    return success(company, "Company created successfully")


@router.get("/companies/{company_id}", response_model=ApiResponse[org_schemas.CompanyRead], summary="회사 상세 조회")
async def read_company(
    company_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    company = await org_crud.company.get(db, id=company_id)
    if not company:
        raise NotFoundError("Company not found")
    return success(company, "Company fetched successfully")


@router.put("/companies/{company_id}", response_model=ApiResponse[org_schemas.CompanyRead], summary="회사 정보 수정")
async def update_company(
    company_id: int,
    company_in: org_schemas.CompanyUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    company = await org_crud.company.get(db, id=company_id)
    if not company:
        raise NotFoundError("Company not found")
    company = await org_crud.company.update(db, db_obj=company, obj_in=company_in)
    return success(company, "Company updated successfully")


# =============================================================================
# 2. 지점 (Branch)
# =============================================================================
@router.get("/companies/{company_id}/branches", response_model=ApiResponse[List[org_schemas.BranchRead]], summary="회사별 지점 목록 조회")
async def read_branches(
    company_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    branches = await org_crud.branch.get_by_company(db, company_id=company_id)
    return success(branches, "Branches fetched successfully")


@router.post("/companies/{company_id}/branches", response_model=ApiResponse[org_schemas.BranchRead], status_code=status.HTTP_201_CREATED, summary="지점 등록")
async def create_branch(
    company_id: int,
    branch_in: org_schemas.BranchCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    branch = await org_crud.branch.create_for_company(db, company_id=company_id, obj_in=branch_in)
    return success(branch, "Branch created successfully")


@router.put("/branches/{branch_id}", response_model=ApiResponse[org_schemas.BranchRead], summary="지점 정보 수정")
async def update_branch(
    branch_id: int,
    branch_in: org_schemas.BranchUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    branch = await org_crud.branch.get(db, id=branch_id)
    if not branch:
        raise NotFoundError("Branch not found")
    branch = await org_crud.branch.update(db, db_obj=branch, obj_in=branch_in)
    return success(branch, "Branch updated successfully")
