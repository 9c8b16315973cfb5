# app/domains/pty/crud.py

"""
'pty' 도메인의 CRUD 작업을 담당하는 모듈입니다.
모든 조회/수정은 (company_id, branch_id) 스코프로 제한됩니다.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from app.core.database import unit_of_work
from app.core.exceptions import AppError, ConflictError, NotFoundError, ValidationError
from app.utils import csv_upload
from . import models as pty_models
from . import schemas as pty_schemas

logger = logging.getLogger(__name__)

# CSV 헤더 별칭 (기존 고객 마스터 양식 호환)
PARTY_HEADER_ALIASES = {
    "cust_code": "party_code",
    "customer_code": "party_code",
    "cust_name": "party_name",
    "customer_name": "party_name",
    "gst": "gst_num",
    "gst_no": "gst_num",
    "pan": "pan_no",
    "mobile": "phone",
    "phone_no": "phone",
}

PARTY_TEXT_FIELDS = (
    "party_name", "party_type", "gst_num", "pan_no", "contact_person", "phone", "email", "address",
)


class CRUDParty(CRUDBase[pty_models.Party, pty_schemas.PartyCreate, pty_schemas.PartyUpdate]):
    def __init__(self):
        super().__init__(model=pty_models.Party)

    async def get_in_scope(
        self, db: AsyncSession, *, id: int, company_id: int, branch_id: int
    ) -> Optional[pty_models.Party]:
        party = await self.get(db, id=id)
        if party is None or party.company_id != company_id or party.branch_id != branch_id:
            return None
        return party

    async def get_by_code(
        self, db: AsyncSession, *, company_id: int, branch_id: int, party_code: str
    ) -> Optional[pty_models.Party]:
        return await self.get_one_filtered(
            db, filters={"company_id": company_id, "branch_id": branch_id, "party_code": party_code}
        )

    async def search(
        self,
        db: AsyncSession,
        *,
        company_id: int,
        branch_id: int,
        search: Optional[str] = None,
        party_type: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[pty_models.Party], int]:
        model = self.model
        conditions = [model.company_id == company_id, model.branch_id == branch_id]
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(or_(
                model.party_name.ilike(pattern),
                model.party_code.ilike(pattern),
                model.phone.ilike(pattern),
                model.gst_num.ilike(pattern),
            ))
        if party_type:
            conditions.append(model.party_type == party_type)
        if is_active is not None:
            conditions.append(model.is_active == is_active)
        return await self.paginate(
            db, conditions=conditions, order_by=(model.party_name, model.id), page=page, page_size=page_size
        )

    async def create_in_scope(
        self, db: AsyncSession, *, obj_in: pty_schemas.PartyCreate, company_id: int, branch_id: int
    ) -> pty_models.Party:
        if await self.get_by_code(db, company_id=company_id, branch_id=branch_id, party_code=obj_in.party_code):
            raise ConflictError("Party with this code already exists in this company-branch")
        return await super().create(db, obj_in=obj_in, company_id=company_id, branch_id=branch_id)

    async def update(
        self, db: AsyncSession, *, db_obj: pty_models.Party, obj_in: pty_schemas.PartyUpdate | Dict[str, Any]
    ) -> pty_models.Party:
        update_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        new_code = update_data.get("party_code")
        if new_code and new_code != db_obj.party_code:
            if await self.get_by_code(db, company_id=db_obj.company_id, branch_id=db_obj.branch_id, party_code=new_code):
                raise ConflictError("Party with this code already exists in this company-branch")
        return await super().update(db, db_obj=db_obj, obj_in=update_data)

    async def soft_delete(self, db: AsyncSession, *, db_obj: pty_models.Party) -> pty_models.Party:
        return await super().update(db, db_obj=db_obj, obj_in={"is_active": False})

    async def exists_active(self, db: AsyncSession, *, id: int, company_id: int, branch_id: int) -> bool:
        party = await self.get_in_scope(db, id=id, company_id=company_id, branch_id=branch_id)
        return party is not None and party.is_active

    # =========================================================================
    # CSV 업로드 (party_code 기준 upsert)
    # =========================================================================
    @staticmethod
    def _row_to_values(row: Dict[str, Any]) -> Dict[str, Any]:
        row = {PARTY_HEADER_ALIASES.get(k, k): v for k, v in row.items()}
        party_code = csv_upload.safe_text(row.get("party_code"))
        if not party_code:
            raise ValidationError("party_code is required")
        values: Dict[str, Any] = {"party_code": party_code}
        for field in PARTY_TEXT_FIELDS:
            if field in row:
                values[field] = csv_upload.safe_text(row.get(field))
        if "is_active" in row:
            is_active = csv_upload.parse_bool(row.get("is_active"))
            if is_active is not None:
                values["is_active"] = is_active
        return values

    async def upsert_rows(
        self, db: AsyncSession, *, rows: List[Dict[str, Any]], company_id: int, branch_id: int
    ) -> Dict[str, Any]:
        """
        CSV 행 목록을 (company_id, branch_id, party_code) 기준으로 등록하거나 갱신합니다.
        행 단위로 커밋하며, 실패한 행은 오류 목록에 기록하고 다음 행을 계속 처리합니다.
        """
        result: Dict[str, Any] = {"total": 0, "inserted": 0, "updated": 0, "failed": 0, "errors": []}
        for index, row in enumerate(rows):
            if csv_upload.is_empty_row(row):
                continue
            result["total"] += 1
            row_number = index + 2
            party_code = csv_upload.safe_text(row.get("party_code") or row.get("cust_code"))
            try:
                values = self._row_to_values(row)
                existing = await self.get_by_code(
                    db, company_id=company_id, branch_id=branch_id, party_code=values["party_code"]
                )
                if existing:
                    for key, value in values.items():
                        if value is not None:
                            setattr(existing, key, value)
                    db.add(existing)
                    await db.commit()
                    result["updated"] += 1
                else:
                    if not values.get("party_name"):
                        raise ValidationError("party_name is required for new parties")
                    db.add(pty_models.Party(company_id=company_id, branch_id=branch_id, **values))
                    await db.commit()
                    result["inserted"] += 1
            except (AppError, ValueError, SQLAlchemyError) as e:
                await db.rollback()
                message = csv_upload.row_error_message(e)
                logger.warning("Party upload row %d (%s) failed: %s", row_number, party_code, e)
                result["failed"] += 1
                result["errors"].append({"row": row_number, "party_code": party_code, "error": message})
        return result


party = CRUDParty()


# =============================================================================
# 거래처 주소 (party_addresses)
# =============================================================================
class CRUDPartyAddress(CRUDBase[pty_models.PartyAddress, pty_schemas.PartyAddressCreate, pty_schemas.PartyAddressUpdate]):
    """
    주소는 자체 스코프 컬럼이 없으므로 항상 활성 상위 거래처의 company_id/branch_id로 범위를 확인합니다.
    """
    def __init__(self):
        super().__init__(model=pty_models.PartyAddress)

    @staticmethod
    def _scoped_query(company_id: int, branch_id: int):
        address, parent = pty_models.PartyAddress, pty_models.Party
        return (
            select(address)
            .join(parent, parent.id == address.party_id)
            .where(
                address.is_active == True,  # noqa: E712
                parent.is_active == True,  # noqa: E712
                parent.company_id == company_id,
                parent.branch_id == branch_id,
            )
        )

    async def list_for_party(
        self, db: AsyncSession, *, party_id: int, company_id: int, branch_id: int
    ) -> List[pty_models.PartyAddress]:
        model = self.model
        query = (
            self._scoped_query(company_id, branch_id)
            .where(model.party_id == party_id)
            .order_by(model.address_type, model.is_default.desc(), model.id)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def get_in_scope_or_404(
        self, db: AsyncSession, *, id: int, company_id: int, branch_id: int
    ) -> pty_models.PartyAddress:
        query = self._scoped_query(company_id, branch_id).where(self.model.id == id)
        address = (await db.execute(query)).scalars().first()
        if address is None:
            raise NotFoundError("Address not found")
        return address

    async def _clear_other_defaults(
        self, db: AsyncSession, *, party_id: int, address_type: str, keep_id: int
    ) -> None:
        model = self.model
        await db.execute(
            update(model)
            .where(
                model.party_id == party_id,
                model.address_type == address_type,
                model.is_active == True,  # noqa: E712
                model.id != keep_id,
            )
            .values(is_default=False)
        )

    async def create_for_party(
        self,
        db: AsyncSession,
        *,
        party_id: int,
        company_id: int,
        branch_id: int,
        obj_in: pty_schemas.PartyAddressCreate,
    ) -> pty_models.PartyAddress:
        """
        주소를 등록합니다. 기본 주소로 등록하면 같은 유형의 기존 기본 주소를 해제합니다.
        """
        if not (obj_in.address_type or "").strip() or not (obj_in.address1 or "").strip():
            raise ValidationError("address_type and address1 are required")

        async with unit_of_work(db, "create_party_address", party_id=party_id, company_id=company_id, branch_id=branch_id):
            if not await party.exists_active(db, id=party_id, company_id=company_id, branch_id=branch_id):
                raise NotFoundError("Party not found")
            address = pty_models.PartyAddress(party_id=party_id, is_active=True, **obj_in.model_dump())
            db.add(address)
            await db.flush()
            if address.is_default:
                await self._clear_other_defaults(
                    db, party_id=party_id, address_type=address.address_type, keep_id=address.id
                )

        await db.refresh(address)
        return address

    async def update_in_scope(
        self,
        db: AsyncSession,
        *,
        address_id: int,
        company_id: int,
        branch_id: int,
        obj_in: pty_schemas.PartyAddressUpdate,
    ) -> pty_models.PartyAddress:
        changes = {k: v for k, v in obj_in.model_dump(exclude_unset=True).items() if v is not None}

        async with unit_of_work(db, "update_party_address", address_id=address_id, company_id=company_id, branch_id=branch_id):
            address = await self.get_in_scope_or_404(db, id=address_id, company_id=company_id, branch_id=branch_id)
            for key, value in changes.items():
                setattr(address, key, value)
            db.add(address)
            await db.flush()
            if changes.get("is_default") is True:
                await self._clear_other_defaults(
                    db, party_id=address.party_id, address_type=address.address_type, keep_id=address.id
                )

        await db.refresh(address)
        return address

    async def soft_delete(
        self, db: AsyncSession, *, address_id: int, company_id: int, branch_id: int
    ) -> pty_models.PartyAddress:
        """is_active와 is_default를 함께 해제합니다."""
        address = await self.get_in_scope_or_404(db, id=address_id, company_id=company_id, branch_id=branch_id)
        return await super().update(db, db_obj=address, obj_in={"is_active": False, "is_default": False})


party_address = CRUDPartyAddress()


# =============================================================================
# 거래처 유형 (party_types)
# =============================================================================
async def list_party_type_options(db: AsyncSession, *, is_active: Optional[bool] = True) -> List[Dict[str, str]]:
    """드롭다운용 {label, value} 목록을 type_name, type_code 순으로 반환합니다."""
    model = pty_models.PartyType
    query = select(model)
    if is_active is not None:
        query = query.where(model.is_active == is_active)
    query = query.order_by(model.type_name, model.type_code)
    result = await db.execute(query)
    return [{"label": row.type_name, "value": row.type_code} for row in result.scalars().all()]
