# app/domains/prc/crud.py

"""
'prc' 도메인 (가스 단가)의 CRUD 작업을 담당하는 모듈입니다.

- 모든 조회/변경은 토큰 사용자의 company_id로 제한됩니다.
- 같은 조건(거래처, 가스, 용기 계열, 단위, 소유 형태)의 활성 단가끼리 기간이 겹치면 ConflictError(409)를 발생시킵니다.
  effective_to가 NULL이면 종료일이 없는 것으로 봅니다.
- CSV 업로드는 행 단위로 커밋하며, 실패한 행은 오류 목록에 기록하고 다음 행을 계속 처리합니다.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.crud_base import CRUDBase
from app.core.exceptions import AppError, ConflictError, NotFoundError, ValidationError
from app.domains.mst import crud as mst_crud
from app.domains.mst import models as mst_models
from app.domains.pty import crud as pty_crud
from app.domains.pty import models as pty_models
from app.utils import csv_upload

from . import models as prc_models
from . import schemas as prc_schemas

logger = logging.getLogger(__name__)

OWNERSHIP_TYPES = ("OWN", "PARTY")

RATE_NOT_FOUND = "Gas rate not found"
CREATE_REQUIRED = (
    "gas_type_id, unit_of_measure_id, ownership_type, rate, effective_from are required (effective_to optional)"
)
UPLOAD_REQUIRED = "gas_code, uom_code, ownership_type, rate, effective_from are required"
OWNERSHIP_INVALID = "ownership_type must be OWN or PARTY"
BAD_CLOSE = "effective_to cannot be earlier than effective_from"
OVERLAP = "Overlapping gas rate already exists"
UPDATE_ONLY_CLOSE = (
    "Update is only for closing/deactivating a rate (effective_to, is_active). For price change, create a new row."
)
IS_ACTIVE_REQUIRED = "is_active is required (effective_to optional)"

# 수정 요청에 포함되면 거부하는 키 (차원/가격 이력 변경 금지)
FORBIDDEN_UPDATE_KEYS = {
    "gas_type_id", "cylinder_family_id", "party_id", "ownership_type", "company_id",
    "rate", "currency", "effective_from", "unit_of_measure_id",
}

UPLOAD_HEADER_ALIASES = {"cust_code": "party_code"}


def normalize_ownership_type(raw: Optional[str]) -> str:
    value = (raw or "").strip().upper()
    if value not in OWNERSHIP_TYPES:
        raise ValidationError(OWNERSHIP_INVALID)
    return value


def check_period(effective_from: date, effective_to: Optional[date]) -> None:
    if effective_to is not None and effective_to < effective_from:
        raise ValidationError(BAD_CLOSE)


class CRUDPartyGasRate(CRUDBase[prc_models.PartyGasRate, prc_schemas.PartyGasRateCreate, prc_schemas.PartyGasRateUpdate]):
    def __init__(self):
        super().__init__(model=prc_models.PartyGasRate)

    # =========================================================================
    # 조회
    # =========================================================================
    def _read_query(self, company_id: int):
        rate, gas, family = self.model, mst_models.GasType, mst_models.CylinderFamily
        uom, party = mst_models.UnitOfMeasure, pty_models.Party
        return (
            select(
                rate,
                gas.gas_code, gas.gas_name,
                family.family_code,
                uom.uom_code,
                party.party_code, party.party_name,
            )
            .join(gas, gas.id == rate.gas_type_id)
            .join(uom, uom.id == rate.unit_of_measure_id)
            .outerjoin(family, family.id == rate.cylinder_family_id)
            .outerjoin(party, party.id == rate.party_id)
            .where(rate.company_id == company_id)
        )

    @staticmethod
    def _to_read(row) -> Dict[str, Any]:
        rate, gas_code, gas_name, family_code, uom_code, party_code, party_name = row
        data = rate.model_dump()
        data.update(
            gas_code=gas_code,
            gas_name=gas_name,
            cylinder_family_code=family_code,
            uom_code=uom_code,
            party_code=party_code,
            party_name=party_name,
        )
        return data

    async def list_rates(
        self,
        db: AsyncSession,
        *,
        company_id: int,
        party_id: Optional[int] = None,
        gas_type_id: Optional[int] = None,
        is_active: Optional[bool] = True,
    ) -> List[Dict[str, Any]]:
        """party_id를 생략하면 회사 기본 단가(party_id IS NULL)만 반환합니다."""
        model = self.model
        query = self._read_query(company_id)
        if party_id is None:
            query = query.where(model.party_id.is_(None))
        else:
            query = query.where(model.party_id == party_id)
        if gas_type_id is not None:
            query = query.where(model.gas_type_id == gas_type_id)
        if is_active is not None:
            query = query.where(model.is_active == is_active)
        query = query.order_by(model.gas_type_id, model.effective_from.desc(), model.id.desc())
        result = await db.execute(query)
        return [self._to_read(row) for row in result.all()]

    async def get_read(self, db: AsyncSession, *, company_id: int, rate_id: int) -> Dict[str, Any]:
        query = self._read_query(company_id).where(self.model.id == rate_id)
        row = (await db.execute(query)).first()
        if row is None:
            raise NotFoundError(RATE_NOT_FOUND)
        return self._to_read(row)

    async def get_in_company_or_404(self, db: AsyncSession, *, company_id: int, rate_id: int) -> prc_models.PartyGasRate:
        rate = await self.get(db, id=rate_id)
        if rate is None or rate.company_id != company_id:
            raise NotFoundError(RATE_NOT_FOUND)
        return rate

    # =========================================================================
    # 기간 중복 검사
    # =========================================================================
    async def find_overlap(
        self,
        db: AsyncSession,
        *,
        company_id: int,
        party_id: Optional[int],
        gas_type_id: int,
        cylinder_family_id: Optional[int],
        unit_of_measure_id: int,
        ownership_type: str,
        effective_from: date,
        effective_to: Optional[date],
        exclude_id: Optional[int] = None,
    ) -> Optional[prc_models.PartyGasRate]:
        model = self.model
        conditions = [
            model.company_id == company_id,
            model.gas_type_id == gas_type_id,
            model.unit_of_measure_id == unit_of_measure_id,
            model.ownership_type == ownership_type,
            model.is_active == True,  # noqa: E712
            model.party_id.is_(None) if party_id is None else model.party_id == party_id,
            model.cylinder_family_id.is_(None) if cylinder_family_id is None
            else model.cylinder_family_id == cylinder_family_id,
            or_(model.effective_to.is_(None), model.effective_to >= effective_from),
        ]
        if effective_to is not None:
            conditions.append(model.effective_from <= effective_to)
        if exclude_id is not None:
            conditions.append(model.id != exclude_id)
        result = await db.execute(select(model).where(*conditions))
        return result.scalars().first()

    async def _insert(self, db: AsyncSession, *, values: Dict[str, Any]) -> prc_models.PartyGasRate:
        """검증이 끝난 값으로 기간 중복을 확인한 뒤 등록합니다."""
        check_period(values["effective_from"], values.get("effective_to"))
        overlap = await self.find_overlap(
            db,
            company_id=values["company_id"],
            party_id=values.get("party_id"),
            gas_type_id=values["gas_type_id"],
            cylinder_family_id=values.get("cylinder_family_id"),
            unit_of_measure_id=values["unit_of_measure_id"],
            ownership_type=values["ownership_type"],
            effective_from=values["effective_from"],
            effective_to=values.get("effective_to"),
        )
        if overlap is not None:
            raise ConflictError(OVERLAP)
        return await super().create(db, obj_in=values)

    async def _ensure_party_in_company(self, db: AsyncSession, *, party_id: int, company_id: int) -> None:
        party = await pty_crud.party.get(db, id=party_id)
        if party is None or party.company_id != company_id or not party.is_active:
            raise NotFoundError("Party not found")

    # =========================================================================
    # 등록 / 기간 종료 / 비활성화
    # =========================================================================
    async def create_rate(
        self,
        db: AsyncSession,
        *,
        company_id: int,
        obj_in: prc_schemas.PartyGasRateCreate,
        created_by: Optional[int] = None,
    ) -> prc_models.PartyGasRate:
        if (
            not obj_in.gas_type_id
            or not obj_in.unit_of_measure_id
            or not (obj_in.ownership_type or "").strip()
            or obj_in.rate is None
            or obj_in.effective_from is None
        ):
            raise ValidationError(CREATE_REQUIRED)

        ownership_type = normalize_ownership_type(obj_in.ownership_type)
        check_period(obj_in.effective_from, obj_in.effective_to)

        await mst_crud.gas_type.get_or_404(db, id=obj_in.gas_type_id)
        await mst_crud.unit_of_measure.get_or_404(db, id=obj_in.unit_of_measure_id)
        if obj_in.cylinder_family_id:
            await mst_crud.cylinder_family.get_or_404(db, id=obj_in.cylinder_family_id)
        if obj_in.party_id:
            await self._ensure_party_in_company(db, party_id=obj_in.party_id, company_id=company_id)

        values = {
            "company_id": company_id,
            "party_id": obj_in.party_id or None,
            "gas_type_id": obj_in.gas_type_id,
            "cylinder_family_id": obj_in.cylinder_family_id or None,
            "unit_of_measure_id": obj_in.unit_of_measure_id,
            "ownership_type": ownership_type,
            "rate": obj_in.rate,
            "currency": (obj_in.currency or "").strip() or settings.DEFAULT_CURRENCY,
            "effective_from": obj_in.effective_from,
            "effective_to": obj_in.effective_to,
            "is_active": True,
            "created_by": created_by,
        }
        return await self._insert(db, values=values)

    async def close_rate(
        self,
        db: AsyncSession,
        *,
        company_id: int,
        rate_id: int,
        obj_in: prc_schemas.PartyGasRateUpdate,
        updated_by: Optional[int] = None,
    ) -> prc_models.PartyGasRate:
        """
        effective_to와 is_active만 변경합니다. 가격/조건 변경은 새 단가로 등록해야 합니다.
        """
        if FORBIDDEN_UPDATE_KEYS & set(obj_in.model_extra or {}):
            raise ValidationError(UPDATE_ONLY_CLOSE)
        if obj_in.is_active is None:
            raise ValidationError(IS_ACTIVE_REQUIRED)

        rate = await self.get_in_company_or_404(db, company_id=company_id, rate_id=rate_id)
        effective_to = obj_in.effective_to if "effective_to" in obj_in.model_fields_set else rate.effective_to
        check_period(rate.effective_from, effective_to)

        if obj_in.is_active:
            overlap = await self.find_overlap(
                db,
                company_id=company_id,
                party_id=rate.party_id,
                gas_type_id=rate.gas_type_id,
                cylinder_family_id=rate.cylinder_family_id,
                unit_of_measure_id=rate.unit_of_measure_id,
                ownership_type=rate.ownership_type,
                effective_from=rate.effective_from,
                effective_to=effective_to,
                exclude_id=rate.id,
            )
            if overlap is not None:
                raise ConflictError(OVERLAP)

        changes = {"effective_to": effective_to, "is_active": obj_in.is_active, "updated_by": updated_by}
        return await super().update(db, db_obj=rate, obj_in=changes)

    async def deactivate(
        self, db: AsyncSession, *, company_id: int, rate_id: int, updated_by: Optional[int] = None
    ) -> prc_models.PartyGasRate:
        rate = await self.get_in_company_or_404(db, company_id=company_id, rate_id=rate_id)
        return await super().update(db, db_obj=rate, obj_in={"is_active": False, "updated_by": updated_by})

    # =========================================================================
    # CSV 업로드 (코드 → ID 변환 후 행 단위 등록)
    # =========================================================================
    async def upload_rows(
        self,
        db: AsyncSession,
        *,
        rows: List[Dict[str, Any]],
        company_id: int,
        branch_id: Optional[int],
        created_by: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        party_code는 branch_id 스코프의 활성 거래처로 찾습니다.
        가스/단위/용기 계열 코드는 대소문자를 무시하고 활성 코드만 허용합니다.
        """
        result: Dict[str, Any] = {"total": 0, "inserted": 0, "failed": 0, "errors": [], "inserted_records": []}
        cache: Dict[tuple, Optional[int]] = {}

        async def resolve(kind: str, code: str) -> Optional[int]:
            key = (kind, code.upper())
            if key not in cache:
                if kind == "party":
                    party = await pty_crud.party.get_by_code(
                        db, company_id=company_id, branch_id=branch_id, party_code=code
                    )
                    cache[key] = party.id if party is not None and party.is_active else None
                else:
                    crud = {
                        "gas": mst_crud.gas_type,
                        "uom": mst_crud.unit_of_measure,
                        "family": mst_crud.cylinder_family,
                    }[kind]
                    found = await crud.get_active_by_code(db, code=code)
                    cache[key] = found.id if found is not None else None
            return cache[key]

        for index, raw_row in enumerate(rows):
            row = {UPLOAD_HEADER_ALIASES.get(k, k): v for k, v in raw_row.items()}
            if csv_upload.is_empty_row(row):
                continue
            result["total"] += 1
            row_number = index + 2

            party_code = csv_upload.safe_text(row.get("party_code"))
            gas_code = csv_upload.safe_text(row.get("gas_code"))
            family_code = csv_upload.safe_text(row.get("cylinder_family_code"))
            uom_code = csv_upload.safe_text(row.get("uom_code"))
            try:
                ownership_raw = csv_upload.safe_text(row.get("ownership_type"))
                rate_raw = csv_upload.safe_text(row.get("rate"))
                from_raw = csv_upload.safe_text(row.get("effective_from"))
                if not (gas_code and uom_code and ownership_raw and rate_raw and from_raw):
                    raise ValidationError(UPLOAD_REQUIRED)

                ownership_type = normalize_ownership_type(ownership_raw)
                try:
                    rate_value: Optional[Decimal] = csv_upload.parse_decimal(rate_raw)
                except ValueError:
                    raise ValidationError("rate must be a valid number") from None
                try:
                    effective_from = csv_upload.parse_date(from_raw)
                except ValueError:
                    raise ValidationError("effective_from must be a valid date (YYYY-MM-DD recommended)") from None
                effective_to = csv_upload.parse_date(row.get("effective_to"))
                check_period(effective_from, effective_to)

                if party_code and branch_id is None:
                    raise ValidationError("branch_id is required when party_code is provided")

                gas_type_id = await resolve("gas", gas_code)
                if not gas_type_id:
                    raise ValidationError(f"Invalid gas_code: {gas_code}")
                unit_of_measure_id = await resolve("uom", uom_code)
                if not unit_of_measure_id:
                    raise ValidationError(f"Invalid uom_code: {uom_code}")
                cylinder_family_id = await resolve("family", family_code) if family_code else None
                if family_code and not cylinder_family_id:
                    raise ValidationError(f"Invalid cylinder_family_code: {family_code}")
                party_id = await resolve("party", party_code) if party_code else None
                if party_code and not party_id:
                    raise ValidationError(f"Invalid party_code: {party_code}")

                rate = await self._insert(
                    db,
                    values={
                        "company_id": company_id,
                        "party_id": party_id,
                        "gas_type_id": gas_type_id,
                        "cylinder_family_id": cylinder_family_id,
                        "unit_of_measure_id": unit_of_measure_id,
                        "ownership_type": ownership_type,
                        "rate": rate_value,
                        "currency": csv_upload.safe_text(row.get("currency")) or settings.DEFAULT_CURRENCY,
                        "effective_from": effective_from,
                        "effective_to": effective_to,
                        "is_active": True,
                        "created_by": created_by,
                    },
                )
                result["inserted"] += 1
                result["inserted_records"].append({
                    "id": rate.id,
                    "party_code": party_code,
                    "gas_code": gas_code,
                    "cylinder_family_code": family_code,
                    "uom_code": uom_code,
                    "ownership_type": ownership_type,
                    "effective_from": effective_from,
                    "effective_to": effective_to,
                })
            except (AppError, ValueError, SQLAlchemyError) as e:
                await db.rollback()
                message = csv_upload.row_error_message(e)
                logger.warning("Gas rate upload row %d (%s/%s) failed: %s", row_number, gas_code, uom_code, e)
                result["failed"] += 1
                result["errors"].append({
                    "row": row_number,
                    "party_code": party_code,
                    "gas_code": gas_code,
                    "cylinder_family_code": family_code,
                    "uom_code": uom_code,
                    "error": message,
                })
        return result


party_gas_rate = CRUDPartyGasRate()
