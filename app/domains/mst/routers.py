# app/domains/mst/routers.py

"""
'mst' 도메인 (기준정보 관리)과 관련된 API 엔드포인트를 정의하는 모듈입니다.

가스 종류, 용기 계열, 단위, 가스 분류는 동일한 형태(목록/등록/조회/수정/비활성화/활성화)의
엔드포인트를 가지므로 _register_master_routes()로 한 번에 등록합니다.
"""

from typing import List, Optional, Type

from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.core.responses import ApiResponse, success
from app.domains.usr import models as usr_models

from . import crud as mst_crud
from . import schemas as mst_schemas

router = APIRouter(
    tags=["Master Data (기준정보 관리)"],
    responses={404: {"description": "Not found"}},
)


def _register_master_routes(
    path: str,
    crud: mst_crud.CRUDMaster,
    create_schema: Type[SQLModel],
    update_schema: Type[SQLModel],
    read_schema: Type[SQLModel],
) -> None:
    label = crud.label

    @router.get(f"/{path}", response_model=ApiResponse[List[read_schema]], summary=f"{label} 목록 조회")
    async def read_items(
        is_active: Optional[bool] = Query(None, description="사용 여부 필터"),
        db: AsyncSession = Depends(deps.get_db_session),
        current_user: usr_models.User = Depends(deps.get_current_active_user),
    ):
        return success(await crud.get_list(db, is_active=is_active), f"{label} list fetched successfully")

    @router.post(f"/{path}", response_model=ApiResponse[read_schema], status_code=status.HTTP_201_CREATED, summary=f"{label} 등록")
    async def create_item(
        item_in: create_schema,
        db: AsyncSession = Depends(deps.get_db_session),
        current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
    ):
        return success(await crud.create(db, obj_in=item_in), f"{label} created successfully")

    @router.get(f"/{path}/{{item_id}}", response_model=ApiResponse[read_schema], summary=f"{label} 상세 조회")
    async def read_item(
        item_id: int,
        db: AsyncSession = Depends(deps.get_db_session),
        current_user: usr_models.User = Depends(deps.get_current_active_user),
    ):
        return success(await crud.get_or_404(db, id=item_id), f"{label} fetched successfully")

    @router.put(f"/{path}/{{item_id}}", response_model=ApiResponse[read_schema], summary=f"{label} 수정")
    async def update_item(
        item_id: int,
        item_in: update_schema,
        db: AsyncSession = Depends(deps.get_db_session),
        current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
    ):
        db_obj = await crud.get_or_404(db, id=item_id)
        return success(await crud.update(db, db_obj=db_obj, obj_in=item_in), f"{label} updated successfully")

    @router.delete(f"/{path}/{{item_id}}", response_model=ApiResponse[read_schema], summary=f"{label} 비활성화")
    async def deactivate_item(
        item_id: int,
        db: AsyncSession = Depends(deps.get_db_session),
        current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
    ):
        return success(await crud.set_active(db, id=item_id, is_active=False), f"{label} deactivated successfully")

    @router.patch(f"/{path}/{{item_id}}/activate", response_model=ApiResponse[read_schema], summary=f"{label} 활성화")
    async def activate_item(
        item_id: int,
        db: AsyncSession = Depends(deps.get_db_session),
        current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
    ):
        return success(await crud.set_active(db, id=item_id, is_active=True), f"{label} activated successfully")


_register_master_routes(
    "gas-types", mst_crud.gas_type,
    mst_schemas.GasTypeCreate, mst_schemas.GasTypeUpdate, mst_schemas.GasTypeRead,
)
_register_master_routes(
    "cylinder-families", mst_crud.cylinder_family,
    mst_schemas.CylinderFamilyCreate, mst_schemas.CylinderFamilyUpdate, mst_schemas.CylinderFamilyRead,
)
_register_master_routes(
    "units-of-measure", mst_crud.unit_of_measure,
    mst_schemas.UnitOfMeasureCreate, mst_schemas.UnitOfMeasureUpdate, mst_schemas.UnitOfMeasureRead,
)
_register_master_routes(
    "gas-categories", mst_crud.gas_category,
    mst_schemas.GasCategoryCreate, mst_schemas.GasCategoryUpdate, mst_schemas.GasCategoryRead,
)


# =============================================================================
# 지역 정보 (국가/주/도시)
# =============================================================================
@router.get("/countries", response_model=ApiResponse[List[mst_schemas.CountryRead]], summary="국가 목록 조회")
async def read_countries(
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return success(await mst_crud.country.get_multi(db, limit=1000), "Countries fetched successfully")


@router.post("/countries", response_model=ApiResponse[mst_schemas.CountryRead], status_code=status.HTTP_201_CREATED, summary="국가 등록")
async def create_country(
    country_in: mst_schemas.CountryCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    return success(await mst_crud.country.create(db, obj_in=country_in), "Country created successfully")


@router.get("/states", response_model=ApiResponse[List[mst_schemas.StateRead]], summary="주(State) 목록 조회")
async def read_states(
    country_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return success(await mst_crud.state.get_multi(db, limit=1000, country_id=country_id), "States fetched successfully")


@router.post("/states", response_model=ApiResponse[mst_schemas.StateRead], status_code=status.HTTP_201_CREATED, summary="주(State) 등록")
async def create_state(
    state_in: mst_schemas.StateCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    return success(await mst_crud.state.create(db, obj_in=state_in), "State created successfully")


@router.get("/cities", response_model=ApiResponse[List[mst_schemas.CityRead]], summary="도시 목록 조회")
async def read_cities(
    state_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return success(await mst_crud.city.get_multi(db, limit=1000, state_id=state_id), "Cities fetched successfully")


@router.post("/cities", response_model=ApiResponse[mst_schemas.CityRead], status_code=status.HTTP_201_CREATED, summary="도시 등록")
async def create_city(
    city_in: mst_schemas.CityCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    return success(await mst_crud.city.create(db, obj_in=city_in), "City created successfully")


# =============================================================================
# 가스 종류 ↔ 용기 계열 매핑 (토큰 사용자의 회사 기준)
# =============================================================================
@router.get("/gas-type-cylinder-family-maps", response_model=ApiResponse[List[mst_schemas.GasFamilyMapRead]], summary="가스-용기 계열 매핑 목록 조회")
async def read_gas_family_maps(
    gas_type_id: Optional[int] = Query(None),
    cylinder_family_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Depends(deps.get_active_filter),
    company_id: int = Depends(deps.get_company_id),
    db: AsyncSession = Depends(deps.get_db_session),
):
    maps = await mst_crud.gas_family_map.list_for_company(
        db,
        company_id=company_id,
        gas_type_id=gas_type_id,
        cylinder_family_id=cylinder_family_id,
        is_active=is_active,
    )
    return success(maps, "Mappings fetched successfully")


@router.post("/gas-type-cylinder-family-maps", response_model=ApiResponse[mst_schemas.GasFamilyMapRead], status_code=status.HTTP_201_CREATED, summary="가스-용기 계열 매핑 등록/갱신")
async def upsert_gas_family_map(
    map_in: mst_schemas.GasFamilyMapUpsert,
    response: Response,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    company_id = deps.get_company_id(current_admin_user)
    mapping, created = await mst_crud.gas_family_map.upsert(
        db, company_id=company_id, obj_in=map_in, created_by=current_admin_user.id
    )
    if not created:
        response.status_code = status.HTTP_200_OK
        return success(mapping, "Mapping updated successfully")
    return success(mapping, "Mapping created successfully")
