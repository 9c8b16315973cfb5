# app/domains/mst/crud.py

"""
'mst' 도메인의 CRUD 작업을 담당하는 모듈입니다.
코드 컬럼 중복 검사와 활성/비활성 전환을 공통 클래스에서 처리합니다.
"""

from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase, ModelType, CreateSchemaType, UpdateSchemaType
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from . import models as mst_models
from . import schemas as mst_schemas


class CRUDMaster(CRUDBase[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    고유 코드 컬럼과 is_active 플래그를 갖는 기준정보 테이블용 CRUD.
    """
    def __init__(self, model: Type[ModelType], *, code_field: str, label: str):
        super().__init__(model=model)
        self.code_field = code_field
        self.label = label

    async def get_by_code(self, db: AsyncSession, *, code: str) -> Optional[ModelType]:
        return await self.get_by_attribute(db, attribute=self.code_field, value=code)

    async def get_active_by_code(self, db: AsyncSession, *, code: str) -> Optional[ModelType]:
        """CSV 업로드용: 대소문자를 무시하고 활성 코드만 찾습니다."""
        code_column = getattr(self.model, self.code_field)
        query = select(self.model).where(
            func.upper(code_column) == code.strip().upper(),
            self.model.is_active == True,  # noqa: E712
        )
        result = await db.execute(query)
        return result.scalars().first()

    async def get_list(self, db: AsyncSession, *, is_active: Optional[bool] = None) -> List[ModelType]:
        query = select(self.model)
        if is_active is not None:
            query = query.where(self.model.is_active == is_active)
        query = query.order_by(getattr(self.model, self.code_field))
        result = await db.execute(query)
        return result.scalars().all()

    async def get_or_404(self, db: AsyncSession, *, id: int) -> ModelType:
        db_obj = await self.get(db, id=id)
        if not db_obj:
            raise NotFoundError(f"{self.label} not found")
        return db_obj

    async def create(self, db: AsyncSession, *, obj_in: CreateSchemaType) -> ModelType:
        if await self.get_by_code(db, code=getattr(obj_in, self.code_field)):
            raise ConflictError(f"{self.label} with this code already exists")
        return await super().create(db, obj_in=obj_in)

    async def update(self, db: AsyncSession, *, db_obj: ModelType, obj_in: UpdateSchemaType | Dict[str, Any]) -> ModelType:
        update_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        new_code = update_data.get(self.code_field)
        if new_code and new_code != getattr(db_obj, self.code_field):
            if await self.get_by_code(db, code=new_code):
                raise ConflictError(f"{self.label} with this code already exists")
        return await super().update(db, db_obj=db_obj, obj_in=update_data)

    async def set_active(self, db: AsyncSession, *, id: int, is_active: bool) -> ModelType:
        db_obj = await self.get_or_404(db, id=id)
        return await super().update(db, db_obj=db_obj, obj_in={"is_active": is_active})


gas_type = CRUDMaster[mst_models.GasType, mst_schemas.GasTypeCreate, mst_schemas.GasTypeUpdate](
    mst_models.GasType, code_field="gas_code", label="Gas type"
)
cylinder_family = CRUDMaster[mst_models.CylinderFamily, mst_schemas.CylinderFamilyCreate, mst_schemas.CylinderFamilyUpdate](
    mst_models.CylinderFamily, code_field="family_code", label="Cylinder family"
)
unit_of_measure = CRUDMaster[mst_models.UnitOfMeasure, mst_schemas.UnitOfMeasureCreate, mst_schemas.UnitOfMeasureUpdate](
    mst_models.UnitOfMeasure, code_field="uom_code", label="Unit of measure"
)
gas_category = CRUDMaster[mst_models.GasCategory, mst_schemas.GasCategoryCreate, mst_schemas.GasCategoryUpdate](
    mst_models.GasCategory, code_field="gas_category_code", label="Gas category"
)


# =============================================================================
# 지역 정보 (countries, states, cities) CRUD
# =============================================================================
class CRUDCountry(CRUDBase[mst_models.Country, mst_schemas.CountryCreate, mst_schemas.CountryCreate]):
    def __init__(self):
        super().__init__(model=mst_models.Country)

    async def create(self, db: AsyncSession, *, obj_in: mst_schemas.CountryCreate) -> mst_models.Country:
        if await self.get_by_attribute(db, attribute="country_code", value=obj_in.country_code):
            raise ConflictError("Country with this code already exists")
        return await super().create(db, obj_in=obj_in)


class CRUDState(CRUDBase[mst_models.State, mst_schemas.StateCreate, mst_schemas.StateCreate]):
    def __init__(self):
        super().__init__(model=mst_models.State)

    async def create(self, db: AsyncSession, *, obj_in: mst_schemas.StateCreate) -> mst_models.State:
        if not await country.get(db, id=obj_in.country_id):
            raise NotFoundError("Country not found")
        if await self.get_one_filtered(db, filters={"country_id": obj_in.country_id, "state_code": obj_in.state_code}):
            raise ConflictError("State with this code already exists in this country")
        return await super().create(db, obj_in=obj_in)


class CRUDCity(CRUDBase[mst_models.City, mst_schemas.CityCreate, mst_schemas.CityCreate]):
    def __init__(self):
        super().__init__(model=mst_models.City)

    async def create(self, db: AsyncSession, *, obj_in: mst_schemas.CityCreate) -> mst_models.City:
        if not await state.get(db, id=obj_in.state_id):
            raise NotFoundError("State not found")
        return await super().create(db, obj_in=obj_in)


country = CRUDCountry()
state = CRUDState()
city = CRUDCity()


# =============================================================================
# 가스 종류 ↔ 용기 계열 매핑 (회사 단위)
# =============================================================================
class CRUDGasFamilyMap(CRUDBase[mst_models.GasTypeCylinderFamilyMap, mst_schemas.GasFamilyMapUpsert, mst_schemas.GasFamilyMapUpsert]):
    def __init__(self):
        super().__init__(model=mst_models.GasTypeCylinderFamilyMap)

    @staticmethod
    def _to_read(row: mst_models.GasTypeCylinderFamilyMap, gas: mst_models.GasType, family: mst_models.CylinderFamily) -> Dict[str, Any]:
        data = row.model_dump()
        data.update(
            gas_code=gas.gas_code,
            gas_name=gas.gas_name,
            cylinder_family_code=family.family_code,
            cylinder_family_name=family.family_name,
        )
        return data

    async def list_for_company(
        self,
        db: AsyncSession,
        *,
        company_id: int,
        gas_type_id: Optional[int] = None,
        cylinder_family_id: Optional[int] = None,
        is_active: Optional[bool] = True,
    ) -> List[Dict[str, Any]]:
        """가스/계열 코드와 이름을 함께 반환합니다. 정렬: 계열명, 가스명."""
        model, gas, family = self.model, mst_models.GasType, mst_models.CylinderFamily
        query = (
            select(model, gas, family)
            .join(gas, gas.id == model.gas_type_id)
            .join(family, family.id == model.cylinder_family_id)
            .where(model.company_id == company_id)
        )
        if gas_type_id is not None:
            query = query.where(model.gas_type_id == gas_type_id)
        if cylinder_family_id is not None:
            query = query.where(model.cylinder_family_id == cylinder_family_id)
        if is_active is not None:
            query = query.where(model.is_active == is_active)
        query = query.order_by(family.family_name, gas.gas_name, model.id)
        result = await db.execute(query)
        return [self._to_read(row, g, f) for row, g, f in result.all()]

    async def upsert(
        self,
        db: AsyncSession,
        *,
        company_id: int,
        obj_in: mst_schemas.GasFamilyMapUpsert,
        created_by: Optional[int] = None,
    ) -> Tuple[Dict[str, Any], bool]:
        """
        (company_id, gas_type_id, cylinder_family_id)가 이미 있으면 is_allowed/remarks/is_active를 갱신합니다.
        반환값의 두 번째 요소는 새로 생성되었는지 여부입니다.
        """
        if not obj_in.gas_type_id or not obj_in.cylinder_family_id:
            raise ValidationError("gas_type_id and cylinder_family_id are required")
        gas = await gas_type.get_or_404(db, id=obj_in.gas_type_id)
        family = await cylinder_family.get_or_404(db, id=obj_in.cylinder_family_id)

        values = {"is_allowed": obj_in.is_allowed, "remarks": obj_in.remarks, "is_active": obj_in.is_active}
        existing = await self.get_one_filtered(
            db,
            filters={
                "company_id": company_id,
                "gas_type_id": obj_in.gas_type_id,
                "cylinder_family_id": obj_in.cylinder_family_id,
            },
        )
        if existing:
            row = await super().update(db, db_obj=existing, obj_in=values)
            return self._to_read(row, gas, family), False

        row = await super().create(
            db,
            obj_in=values,
            company_id=company_id,
            gas_type_id=obj_in.gas_type_id,
            cylinder_family_id=obj_in.cylinder_family_id,
            created_by=created_by,
        )
        return self._to_read(row, gas, family), True


gas_family_map = CRUDGasFamilyMap()
