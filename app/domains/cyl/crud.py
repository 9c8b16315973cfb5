# app/domains/cyl/crud.py

"""
'cyl' 도메인 (가스 용기 및 검사 이력)의 CRUD 작업을 담당하는 모듈입니다.

트랜잭션 규칙:
- 검사 이력의 등록/수정/삭제는 '스코프 확인 → 변경 → 검사일 재계산 → 커밋'을 하나의 unit_of_work로 처리합니다.
- 어느 단계에서든 예외가 발생하면 전체를 롤백하고 원래 예외를 그대로 다시 발생시킵니다.
- 용기의 last_test_date/next_test_date는 recalculate_cylinder_dates()만 기록합니다.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from app.core.database import unit_of_work
from app.core.exceptions import AppError, ConflictError, NotFoundError, ValidationError
from app.domains.org import models as org_models
from app.domains.pty import crud as pty_crud
from app.utils import csv_upload

from . import models as cyl_models
from . import schemas as cyl_schemas
from . import services as cyl_services

logger = logging.getLogger(__name__)

CYLINDER_NOT_FOUND = "Cylinder not found for this company-branch"
TEST_NOT_FOUND = "Test record not found for this company-branch"
DUPLICATE_CODE = "Cylinder with this code already exists in this company-branch"

# 용기 등록 시 Cylinder 행으로 옮기는 컬럼 (첫 검사 이력 필드 제외)
CYLINDER_COLUMNS = {
    "cylinder_code", "serial_number", "barcode_number", "cylinder_type", "cylinder_family_code",
    "gas_content", "manufacture_no", "challan_no", "capacity", "capacity_unit", "manufacturer",
    "manufacture_date", "status", "is_active", "ownership_remarks",
}
OWNERSHIP_KEYS = ("owner_type", "owner_party_id", "current_holder_party_id")


# =============================================================================
# 1. 검사일 재계산
# =============================================================================
def _latest_test_query(cylinder_id: int):
    model = cyl_models.CylinderTest
    return (
        select(model)
        .where(model.cylinder_id == cylinder_id)
        .order_by(model.test_date.desc(), model.created_at.desc(), model.id.desc())
        .limit(1)
    )


async def get_latest_test(db: AsyncSession, cylinder_id: int) -> Optional[cyl_models.CylinderTest]:
    result = await db.execute(_latest_test_query(cylinder_id))
    return result.scalars().first()


async def recalculate_cylinder_dates(db: AsyncSession, cylinder_id: int) -> Optional[cyl_models.Cylinder]:
    """
    최신 검사 이력(test_date DESC, created_at DESC, id DESC 기준 1건)의 날짜를 용기에 기록합니다.
    검사 이력이 없으면 두 날짜 모두 NULL이 됩니다.
    커밋하지 않으며, 호출한 트랜잭션 안에서 flush만 수행합니다.
    """
    await db.flush()
    cylinder = await db.get(cyl_models.Cylinder, cylinder_id)
    if cylinder is None:
        return None

    latest = await get_latest_test(db, cylinder_id)
    last_test_date = latest.test_date if latest else None
    next_test_date = latest.next_test_date if latest else None

    if cylinder.last_test_date != last_test_date or cylinder.next_test_date != next_test_date:
        cylinder.last_test_date = last_test_date
        cylinder.next_test_date = next_test_date
        db.add(cylinder)
        await db.flush()
    return cylinder


def _normalized_test_result(value: Any, *, default: Optional[str] = None) -> str:
    result = cyl_services.normalize_test_result(value)
    if result is None:
        if default is None:
            raise ValidationError("test_result cannot be empty")
        return default
    return result


def _normalized_test_type(value: Any) -> str:
    text = value.strip() if isinstance(value, str) else value
    return text or cyl_services.DEFAULT_TEST_TYPE


# =============================================================================
# 2. 검사 이력 (cylinder_tests)
# =============================================================================
class CRUDCylinderTest(
    CRUDBase[cyl_models.CylinderTest, cyl_schemas.CylinderTestCreate, cyl_schemas.CylinderTestUpdate]
):
    def __init__(self):
        super().__init__(model=cyl_models.CylinderTest)

    async def get_in_scope(
        self, db: AsyncSession, *, id: int, company_id: int, branch_id: int
    ) -> Optional[cyl_models.CylinderTest]:
        test = await self.get(db, id=id)
        if test is None or test.company_id != company_id or test.branch_id != branch_id:
            return None
        return test

    async def create_test(
        self,
        db: AsyncSession,
        *,
        cylinder_id: int,
        company_id: int,
        branch_id: int,
        obj_in: cyl_schemas.CylinderTestCreate,
        tested_by: Optional[int] = None,
    ) -> cyl_models.CylinderTest:
        """검사 이력을 등록하고 용기의 검사일을 재계산합니다."""
        async with unit_of_work(db, "create_test", cylinder_id=cylinder_id, company_id=company_id, branch_id=branch_id):
            cylinder = await cylinder_crud.get_in_scope(db, id=cylinder_id, company_id=company_id, branch_id=branch_id)
            if cylinder is None:
                raise NotFoundError(CYLINDER_NOT_FOUND)

            data = obj_in.model_dump()
            data["test_type"] = _normalized_test_type(data.get("test_type"))
            data["test_result"] = _normalized_test_result(
                data.get("test_result"), default=cyl_services.DEFAULT_TEST_RESULT
            )
            test = cyl_models.CylinderTest(
                cylinder_id=cylinder.id,
                company_id=cylinder.company_id,
                branch_id=cylinder.branch_id,
                tested_by=tested_by,
                **data,
            )
            db.add(test)
            await db.flush()
            await recalculate_cylinder_dates(db, cylinder.id)

        await db.refresh(test)
        return test

    async def update_test(
        self,
        db: AsyncSession,
        *,
        test_id: int,
        company_id: int,
        branch_id: int,
        obj_in: cyl_schemas.CylinderTestUpdate | Dict[str, Any],
    ) -> cyl_models.CylinderTest:
        """
        요청에 포함된 컬럼을 모두 덮어쓰고 용기의 검사일을 재계산합니다.
        (명시적 null은 NULL로 기록, test_type null은 Hydrostatic으로 복원)
        """
        changes = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)

        async with unit_of_work(db, "update_test", test_id=test_id, company_id=company_id, branch_id=branch_id):
            test = await self.get_in_scope(db, id=test_id, company_id=company_id, branch_id=branch_id)
            if test is None:
                raise NotFoundError(TEST_NOT_FOUND)

            if "test_result" in changes:
                changes["test_result"] = _normalized_test_result(changes["test_result"])
            if "test_type" in changes:
                changes["test_type"] = _normalized_test_type(changes["test_type"])
            if "test_date" in changes and changes["test_date"] is None:
                raise ValidationError("test_date cannot be null")

            for key, value in changes.items():
                setattr(test, key, value)
            db.add(test)
            await db.flush()
            await recalculate_cylinder_dates(db, test.cylinder_id)

        await db.refresh(test)
        return test

    async def delete_test(self, db: AsyncSession, *, test_id: int, company_id: int, branch_id: int) -> None:
        """검사 이력을 물리 삭제하고 용기의 검사일을 재계산합니다."""
        async with unit_of_work(db, "delete_test", test_id=test_id, company_id=company_id, branch_id=branch_id):
            test = await self.get_in_scope(db, id=test_id, company_id=company_id, branch_id=branch_id)
            if test is None:
                raise NotFoundError(TEST_NOT_FOUND)
            cylinder_id = test.cylinder_id
            await db.delete(test)
            await db.flush()
            await recalculate_cylinder_dates(db, cylinder_id)

    async def list_tests(
        self,
        db: AsyncSession,
        *,
        company_id: int,
        branch_id: Optional[int] = None,
        cylinder_id: Optional[int] = None,
        test_type: Optional[str] = None,
    ) -> List[cyl_models.CylinderTest]:
        """최신순(test_date DESC, created_at DESC) 검사 이력 목록. None인 조건은 필터하지 않습니다."""
        model = self.model
        query = select(model).where(model.company_id == company_id)
        if branch_id is not None:
            query = query.where(model.branch_id == branch_id)
        if cylinder_id is not None:
            query = query.where(model.cylinder_id == cylinder_id)
        if test_type:
            query = query.where(model.test_type == test_type)
        query = query.order_by(model.test_date.desc(), model.created_at.desc(), model.id.desc())
        result = await db.execute(query)
        return result.scalars().all()


# =============================================================================
# 3. 용기 (cylinders)
# =============================================================================
class CRUDCylinder(CRUDBase[cyl_models.Cylinder, cyl_schemas.CylinderCreate, cyl_schemas.CylinderUpdate]):
    def __init__(self):
        super().__init__(model=cyl_models.Cylinder)

    async def get_in_scope(
        self, db: AsyncSession, *, id: int, company_id: int, branch_id: int
    ) -> Optional[cyl_models.Cylinder]:
        cylinder = await self.get(db, id=id)
        if cylinder is None or cylinder.company_id != company_id or cylinder.branch_id != branch_id:
            return None
        return cylinder

    async def get_in_scope_or_404(
        self, db: AsyncSession, *, id: int, company_id: int, branch_id: int
    ) -> cyl_models.Cylinder:
        cylinder = await self.get_in_scope(db, id=id, company_id=company_id, branch_id=branch_id)
        if cylinder is None:
            raise NotFoundError(CYLINDER_NOT_FOUND)
        return cylinder

    async def get_by_code(
        self, db: AsyncSession, *, company_id: int, branch_id: int, cylinder_code: str
    ) -> Optional[cyl_models.Cylinder]:
        return await self.get_one_filtered(
            db, filters={"company_id": company_id, "branch_id": branch_id, "cylinder_code": cylinder_code}
        )

    async def get_by_serial(
        self, db: AsyncSession, *, company_id: int, branch_id: int, serial_number: str
    ) -> Optional[cyl_models.Cylinder]:
        return await self.get_one_filtered(
            db, filters={"company_id": company_id, "branch_id": branch_id, "serial_number": serial_number}
        )

    async def _ensure_parties_exist(
        self, db: AsyncSession, *, company_id: int, branch_id: int, party_ids: Iterable[Optional[int]]
    ) -> None:
        for party_id in {p for p in party_ids if p is not None}:
            if not await pty_crud.party.exists_active(db, id=party_id, company_id=company_id, branch_id=branch_id):
                raise ValidationError(f"Party {party_id} not found in this company-branch")

    async def create_with_test(
        self,
        db: AsyncSession,
        *,
        obj_in: cyl_schemas.CylinderCreate,
        company_id: int,
        branch_id: int,
        created_by: Optional[int] = None,
    ) -> Tuple[cyl_models.Cylinder, Optional[cyl_models.CylinderTest]]:
        """
        용기를 등록하고, test_date/test_type/test_result가 모두 있으면 첫 검사 이력도 함께 등록합니다.
        첫 검사 이력 등록이 실패하면 용기 등록도 함께 롤백됩니다.
        """
        ownership = cyl_services.validate_ownership_for_create(
            obj_in.owner_type, obj_in.owner_party_id, obj_in.current_holder_party_id
        )
        values = obj_in.model_dump(include=CYLINDER_COLUMNS)
        values.update(ownership)
        values["status"] = values.get("status") or cyl_services.DEFAULT_STATUS

        test = None
        async with unit_of_work(
            db, "create_cylinder", company_id=company_id, branch_id=branch_id, cylinder_code=obj_in.cylinder_code
        ):
            if await self.get_by_code(db, company_id=company_id, branch_id=branch_id, cylinder_code=obj_in.cylinder_code):
                raise ConflictError(DUPLICATE_CODE)
            await self._ensure_parties_exist(
                db,
                company_id=company_id,
                branch_id=branch_id,
                party_ids=(ownership["owner_party_id"], ownership["current_holder_party_id"]),
            )

            cylinder = cyl_models.Cylinder(company_id=company_id, branch_id=branch_id, created_by=created_by, **values)
            db.add(cylinder)
            await db.flush()

            if obj_in.has_first_test():
                test = cyl_models.CylinderTest(
                    cylinder_id=cylinder.id,
                    company_id=company_id,
                    branch_id=branch_id,
                    test_date=obj_in.test_date,
                    test_type=_normalized_test_type(obj_in.test_type),
                    test_result=_normalized_test_result(obj_in.test_result, default=cyl_services.DEFAULT_TEST_RESULT),
                    test_pressure=obj_in.test_pressure,
                    inspector_name=obj_in.inspector_name,
                    next_test_date=obj_in.next_test_date,
                    notes=obj_in.test_notes,
                    tested_by=created_by,
                )
                db.add(test)
                await db.flush()

            await recalculate_cylinder_dates(db, cylinder.id)

        await db.refresh(cylinder)
        if test is not None:
            await db.refresh(test)
        return cylinder, test

    async def update_in_scope(
        self,
        db: AsyncSession,
        *,
        cylinder_id: int,
        company_id: int,
        branch_id: int,
        obj_in: cyl_schemas.CylinderUpdate | Dict[str, Any],
    ) -> cyl_models.Cylinder:
        """
        요청에 포함된 필드만 수정합니다. 소유 정보는 기존 값과 합쳐 검증합니다.
        """
        changes = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)

        async with unit_of_work(db, "update_cylinder", cylinder_id=cylinder_id, company_id=company_id, branch_id=branch_id):
            cylinder = await self.get_in_scope_or_404(db, id=cylinder_id, company_id=company_id, branch_id=branch_id)

            ownership_changes = {key: changes[key] for key in OWNERSHIP_KEYS if key in changes}
            changes.update(
                cyl_services.validate_ownership_for_update(
                    cylinder.owner_type, cylinder.owner_party_id, ownership_changes
                )
            )
            if "status" in changes and not changes["status"]:
                changes["status"] = cyl_services.DEFAULT_STATUS

            new_code = changes.get("cylinder_code")
            if new_code and new_code != cylinder.cylinder_code:
                if await self.get_by_code(db, company_id=company_id, branch_id=branch_id, cylinder_code=new_code):
                    raise ConflictError(DUPLICATE_CODE)
            await self._ensure_parties_exist(
                db,
                company_id=company_id,
                branch_id=branch_id,
                party_ids=(changes.get("owner_party_id"), changes.get("current_holder_party_id")),
            )

            for key, value in changes.items():
                setattr(cylinder, key, value)
            db.add(cylinder)

        await db.refresh(cylinder)
        return cylinder

    async def soft_delete(
        self, db: AsyncSession, *, cylinder_id: int, company_id: int, branch_id: int
    ) -> cyl_models.Cylinder:
        """is_active=False로 비활성화합니다. 검사 이력은 보존됩니다."""
        async with unit_of_work(db, "delete_cylinder", cylinder_id=cylinder_id, company_id=company_id, branch_id=branch_id):
            cylinder = await self.get_in_scope_or_404(db, id=cylinder_id, company_id=company_id, branch_id=branch_id)
            cylinder.is_active = False
            db.add(cylinder)

        await db.refresh(cylinder)
        return cylinder

    # =========================================================================
    # 조회
    # =========================================================================
    async def search(
        self,
        db: AsyncSession,
        *,
        company_id: int,
        branch_id: int,
        search: Optional[str] = None,
        status: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[cyl_models.Cylinder], int]:
        model = self.model
        conditions = [model.company_id == company_id, model.branch_id == branch_id]
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(or_(
                model.cylinder_code.ilike(pattern),
                model.serial_number.ilike(pattern),
                model.barcode_number.ilike(pattern),
                model.manufacturer.ilike(pattern),
            ))
        if status:
            conditions.append(model.status == status)
        if is_active is not None:
            conditions.append(model.is_active == is_active)
        return await self.paginate(
            db, conditions=conditions, order_by=(model.cylinder_code, model.id), page=page, page_size=page_size
        )

    async def count_by_status(self, db: AsyncSession, *, company_id: int, branch_id: int) -> List[Dict[str, Any]]:
        """활성 용기의 상태별 건수"""
        model = self.model
        query = (
            select(model.status, func.count(model.id))
            .where(model.company_id == company_id, model.branch_id == branch_id, model.is_active == True)  # noqa: E712
            .group_by(model.status)
            .order_by(model.status)
        )
        result = await db.execute(query)
        return [{"status": status, "count": count} for status, count in result.all()]

    async def due_for_test(
        self, db: AsyncSession, *, company_id: int, branch_id: int, days_ahead: int = 30, today: Optional[date] = None
    ) -> List[cyl_models.Cylinder]:
        """next_test_date가 (오늘 + days_ahead) 이전인 활성 용기. 이미 기한이 지난 용기도 포함됩니다."""
        model = self.model
        cutoff = (today or date.today()) + timedelta(days=days_ahead)
        query = (
            select(model)
            .where(
                model.company_id == company_id,
                model.branch_id == branch_id,
                model.is_active == True,  # noqa: E712
                model.next_test_date.is_not(None),
                model.next_test_date <= cutoff,
            )
            .order_by(model.next_test_date, model.id)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def get_by_barcode_public(self, db: AsyncSession, *, barcode: str) -> Optional[Dict[str, Any]]:
        """
        바코드로 활성 용기와 최신 검사 이력을 조회합니다. (인증 없는 공개 조회용)
        """
        model = self.model
        query = (
            select(model, org_models.Company.company_name, org_models.Branch.branch_name)
            .join(org_models.Company, org_models.Company.id == model.company_id)
            .join(org_models.Branch, org_models.Branch.id == model.branch_id)
            .where(model.barcode_number == barcode, model.is_active == True)  # noqa: E712
            .order_by(model.id)
            .limit(1)
        )
        row = (await db.execute(query)).first()
        if row is None:
            return None
        cylinder, company_name, branch_name = row
        cylinder_data = cyl_schemas.CylinderRead.model_validate(cylinder).model_dump()
        cylinder_data.update(company_name=company_name, branch_name=branch_name)
        return {"cylinder": cylinder_data, "latest_test": await get_latest_test(db, cylinder.id)}

    # =========================================================================
    # CSV 일괄 등록
    # =========================================================================
    async def bulk_upload(
        self,
        db: AsyncSession,
        *,
        rows: List[Dict[str, Any]],
        company_id: int,
        branch_id: int,
        created_by: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        CSV 행마다 용기(및 첫 검사 이력) 등록을 별도 트랜잭션으로 수행합니다.
        실패한 행은 오류 목록에 기록하고 다음 행을 계속 처리합니다.
        """
        result: Dict[str, Any] = {"total": 0, "inserted": 0, "failed": 0, "errors": [], "inserted_records": []}
        for index, row in enumerate(rows):
            if csv_upload.is_empty_row(row):
                continue
            cylinder_code = csv_upload.safe_text(row.get("cylinder_code"))
            if not cylinder_code and not csv_upload.safe_text(row.get("cylinder_family_code")):
                continue
            result["total"] += 1
            row_number = index + 2
            try:
                payload = cyl_services.cylinder_payload_from_row(row)
                obj_in = cyl_schemas.CylinderCreate.model_validate(payload)
                cylinder, test = await self.create_with_test(
                    db, obj_in=obj_in, company_id=company_id, branch_id=branch_id, created_by=created_by
                )
                result["inserted"] += 1
                result["inserted_records"].append({
                    "cylinder_id": cylinder.id,
                    "cylinder_code": cylinder.cylinder_code,
                    "test_id": test.id if test else None,
                })
            except (AppError, ValueError, SQLAlchemyError) as e:
                logger.warning("Cylinder upload row %d (%s) failed: %s", row_number, cylinder_code, e)
                result["failed"] += 1
                result["errors"].append({
                    "row": row_number,
                    "cylinder_code": cylinder_code or "N/A",
                    "error": csv_upload.row_error_message(e),
                })
        return result


cylinder_crud = CRUDCylinder()
cylinder_test_crud = CRUDCylinderTest()
