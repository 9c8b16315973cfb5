# app/domains/cyl/routers.py

"""
'cyl' 도메인 (가스 용기 및 검사 이력)과 관련된 API 엔드포인트를 정의하는 모듈입니다.

- router: 인증이 필요한 용기/검사 이력 API
- public_router: 바코드 공개 조회 (인증 없음)

고정 경로(/cylinders/stats 등)는 /cylinders/{cylinder_id}보다 먼저 선언해야 합니다.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.core.config import settings
from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.responses import ApiResponse, Page, success
from app.domains.usr import models as usr_models
from app.utils import csv_upload

from . import crud as cyl_crud
from . import schemas as cyl_schemas

router = APIRouter(
    tags=["Cylinder Management (용기 관리)"],
    responses={404: {"description": "Not found"}},
)

public_router = APIRouter(
    tags=["Public (공개 조회)"],
)


# =============================================================================
# 1. 용기 등록 / 목록 / 통계
# =============================================================================
@router.post(
    "/cylinders",
    response_model=ApiResponse[cyl_schemas.CylinderCreateResult],
    status_code=status.HTTP_201_CREATED,
    summary="용기 등록 (첫 검사 이력 포함 가능)",
)
async def create_cylinder(
    cylinder_in: cyl_schemas.CylinderCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    scope = deps.resolve_scope(current_user, cylinder_in.company_id, cylinder_in.branch_id)
    cylinder, test = await cyl_crud.cylinder_crud.create_with_test(
        db, obj_in=cylinder_in, company_id=scope.company_id, branch_id=scope.branch_id, created_by=current_user.id
    )
    message = "Cylinder and test record created successfully" if test else "Cylinder created successfully"
    return success({"cylinder_id": cylinder.id, "test_id": test.id if test else None}, message)


@router.get("/cylinders", response_model=ApiResponse[Page[cyl_schemas.CylinderRead]], summary="용기 목록 조회")
async def read_cylinders(
    search: Optional[str] = Query(None, description="용기 코드/일련번호/바코드/제조사 검색어"),
    cylinder_status: Optional[str] = Query(None, alias="status", description="운영 상태 필터"),
    is_active: Optional[bool] = Query(None),
    scope: deps.Scope = Depends(deps.get_scope),
    pagination: deps.Pagination = Depends(deps.get_pagination),
    db: AsyncSession = Depends(deps.get_db_session),
):
    items, total = await cyl_crud.cylinder_crud.search(
        db,
        company_id=scope.company_id,
        branch_id=scope.branch_id,
        search=search,
        status=cylinder_status,
        is_active=is_active,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    page = {"items": items, "total_count": total, "page": pagination.page, "page_size": pagination.page_size}
    return success(page, "Cylinders fetched successfully")


@router.get("/cylinders/stats", response_model=ApiResponse[List[cyl_schemas.CylinderStatusCount]], summary="상태별 용기 수")
async def read_cylinder_stats(
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    stats = await cyl_crud.cylinder_crud.count_by_status(db, company_id=scope.company_id, branch_id=scope.branch_id)
    return success(stats, "Cylinder statistics fetched successfully")


@router.get("/cylinders/due-for-test", response_model=ApiResponse[List[cyl_schemas.CylinderRead]], summary="검사 예정 용기 조회")
async def read_cylinders_due_for_test(
    days_ahead: int = Query(settings.DUE_FOR_TEST_DAYS_AHEAD, ge=0, le=3650, description="오늘부터 며칠 이내"),
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    cylinders = await cyl_crud.cylinder_crud.due_for_test(
        db, company_id=scope.company_id, branch_id=scope.branch_id, days_ahead=days_ahead
    )
    return success(cylinders, "Cylinders due for test fetched successfully")


@router.get("/cylinders/code/{cylinder_code}", response_model=ApiResponse[cyl_schemas.CylinderRead], summary="용기 코드로 조회")
async def read_cylinder_by_code(
    cylinder_code: str,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    cylinder = await cyl_crud.cylinder_crud.get_by_code(
        db, company_id=scope.company_id, branch_id=scope.branch_id, cylinder_code=cylinder_code
    )
    if not cylinder:
        raise NotFoundError(cyl_crud.CYLINDER_NOT_FOUND)
    return success(cylinder, "Cylinder fetched successfully")


@router.get("/cylinders/serial/{serial_number}", response_model=ApiResponse[cyl_schemas.CylinderRead], summary="일련번호로 조회")
async def read_cylinder_by_serial(
    serial_number: str,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    cylinder = await cyl_crud.cylinder_crud.get_by_serial(
        db, company_id=scope.company_id, branch_id=scope.branch_id, serial_number=serial_number
    )
    if not cylinder:
        raise NotFoundError(cyl_crud.CYLINDER_NOT_FOUND)
    return success(cylinder, "Cylinder fetched successfully")


@router.post("/cylinders/upload", response_model=ApiResponse[cyl_schemas.CylinderUploadResult], summary="용기 CSV 일괄 등록")
async def upload_cylinders(
    file: UploadFile = File(..., description="CSV 파일 (cylinder_code, cylinder_family_code, owner_type, ...)"),
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    created_by = current_user.id
    rows = await csv_upload.read_upload_rows(file)
    result = await cyl_crud.cylinder_crud.bulk_upload(
        db, rows=rows, company_id=scope.company_id, branch_id=scope.branch_id, created_by=created_by
    )
    result["errors"] = result["errors"][:settings.UPLOAD_ERROR_PREVIEW_LIMIT]
    message = (
        f"Upload complete. {result['inserted']} cylinder(s) inserted successfully, {result['failed']} failed."
    )
    return success(result, message)


# =============================================================================
# 2. 용기 단건 조회 / 수정 / 삭제
# =============================================================================
@router.get("/cylinders/{cylinder_id}", response_model=ApiResponse[cyl_schemas.CylinderRead], summary="용기 상세 조회")
async def read_cylinder(
    cylinder_id: int,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    cylinder = await cyl_crud.cylinder_crud.get_in_scope_or_404(
        db, id=cylinder_id, company_id=scope.company_id, branch_id=scope.branch_id
    )
    return success(cylinder, "Cylinder fetched successfully")


@router.put("/cylinders/{cylinder_id}", response_model=ApiResponse[cyl_schemas.CylinderRead], summary="용기 정보 수정")
async def update_cylinder(
    cylinder_id: int,
    cylinder_in: cyl_schemas.CylinderUpdate,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    cylinder = await cyl_crud.cylinder_crud.update_in_scope(
        db, cylinder_id=cylinder_id, company_id=scope.company_id, branch_id=scope.branch_id, obj_in=cylinder_in
    )
    return success(cylinder, "Cylinder updated successfully")


@router.delete("/cylinders/{cylinder_id}", response_model=ApiResponse[cyl_schemas.CylinderRead], summary="용기 삭제 (비활성화)")
async def delete_cylinder(
    cylinder_id: int,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    cylinder = await cyl_crud.cylinder_crud.soft_delete(
        db, cylinder_id=cylinder_id, company_id=scope.company_id, branch_id=scope.branch_id
    )
    return success(cylinder, "Cylinder deleted successfully")


# =============================================================================
# 3. 검사 이력
# =============================================================================
@router.get("/cylinders/{cylinder_id}/tests", response_model=ApiResponse[List[cyl_schemas.CylinderTestRead]], summary="용기별 검사 이력 조회")
async def read_cylinder_tests(
    cylinder_id: int,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    await cyl_crud.cylinder_crud.get_in_scope_or_404(
        db, id=cylinder_id, company_id=scope.company_id, branch_id=scope.branch_id
    )
    tests = await cyl_crud.cylinder_test_crud.list_tests(
        db, company_id=scope.company_id, branch_id=scope.branch_id, cylinder_id=cylinder_id
    )
    return success(tests, "Cylinder tests fetched successfully")


@router.post(
    "/cylinders/{cylinder_id}/tests",
    response_model=ApiResponse[cyl_schemas.CylinderTestCreateResult],
    status_code=status.HTTP_201_CREATED,
    summary="검사 이력 등록",
)
async def create_cylinder_test(
    cylinder_id: int,
    test_in: cyl_schemas.CylinderTestCreate,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    test = await cyl_crud.cylinder_test_crud.create_test(
        db,
        cylinder_id=cylinder_id,
        company_id=scope.company_id,
        branch_id=scope.branch_id,
        obj_in=test_in,
        tested_by=current_user.id,
    )
    return success({"test_id": test.id}, "Test record created successfully")


@router.get("/cylinder-tests", response_model=ApiResponse[List[cyl_schemas.CylinderTestRead]], summary="검사 이력 검색")
async def read_tests(
    company_id: Optional[int] = Query(None, description="회사 ID (생략 시 토큰 사용자의 회사)"),
    branch_id: Optional[int] = Query(None, description="지점 ID (관리자는 생략 시 회사 전체)"),
    cylinder_id: Optional[int] = Query(None),
    test_type: Optional[str] = Query(None),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    effective_company = company_id if company_id is not None else current_user.company_id
    effective_branch = branch_id
    if not current_user.is_admin:
        if effective_company != current_user.company_id or (
            effective_branch is not None and effective_branch != current_user.branch_id
        ):
            raise ForbiddenError("Not allowed to access another company-branch")
        effective_branch = current_user.branch_id

    tests = await cyl_crud.cylinder_test_crud.list_tests(
        db, company_id=effective_company, branch_id=effective_branch, cylinder_id=cylinder_id, test_type=test_type
    )
    return success(tests, "Cylinder tests fetched successfully")


@router.put("/cylinder-tests/{test_id}", response_model=ApiResponse[cyl_schemas.CylinderTestRead], summary="검사 이력 수정")
async def update_cylinder_test(
    test_id: int,
    test_in: cyl_schemas.CylinderTestUpdate,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    test = await cyl_crud.cylinder_test_crud.update_test(
        db, test_id=test_id, company_id=scope.company_id, branch_id=scope.branch_id, obj_in=test_in
    )
    return success(test, "Test record updated successfully")


@router.delete("/cylinder-tests/{test_id}", response_model=ApiResponse[None], summary="검사 이력 삭제")
async def delete_cylinder_test(
    test_id: int,
    scope: deps.Scope = Depends(deps.get_scope),
    db: AsyncSession = Depends(deps.get_db_session),
):
    await cyl_crud.cylinder_test_crud.delete_test(
        db, test_id=test_id, company_id=scope.company_id, branch_id=scope.branch_id
    )
    return success(None, "Test record deleted successfully")


# =============================================================================
# 4. 공개 바코드 조회
# =============================================================================
@public_router.get(
    "/public/cylinders/barcode/{barcode}",
    response_model=ApiResponse[cyl_schemas.CylinderWithLatestTest],
    summary="바코드로 용기 공개 조회",
)
async def read_cylinder_by_barcode(barcode: str, db: AsyncSession = Depends(deps.get_db_session)):
    found = await cyl_crud.cylinder_crud.get_by_barcode_public(db, barcode=barcode.strip())
    if not found:
        raise NotFoundError("Cylinder not found")
    return success(found, "Cylinder fetched successfully")
