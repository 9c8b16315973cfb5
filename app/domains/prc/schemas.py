# app/domains/prc/schemas.py

"""
'prc' 도메인 (가스 단가)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
필수값은 스키마에서 Optional로 받고, 누락 시 crud에서 하나의 400 메시지로 응답합니다.
"""

from typing import Any, Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class PartyGasRateCreate(BaseModel):
    party_id: Optional[int] = None
    gas_type_id: Optional[int] = None
    cylinder_family_id: Optional[int] = None
    unit_of_measure_id: Optional[int] = None
    ownership_type: Optional[str] = Field(None, description="OWN 또는 PARTY (대소문자 무시)")
    rate: Optional[Decimal] = None
    currency: Optional[str] = Field(None, max_length=10)
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None


class PartyGasRateUpdate(BaseModel):
    """
    기간 종료/비활성화 전용 수정 스키마.
    다른 키는 model_extra로 받아 crud에서 거부합니다.
    """
    model_config = ConfigDict(extra="allow")

    effective_to: Optional[date] = None
    is_active: Optional[bool] = None


class PartyGasRateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    party_id: Optional[int] = None
    party_code: Optional[str] = None
    party_name: Optional[str] = None
    gas_type_id: int
    gas_code: Optional[str] = None
    gas_name: Optional[str] = None
    cylinder_family_id: Optional[int] = None
    cylinder_family_code: Optional[str] = None
    unit_of_measure_id: int
    uom_code: Optional[str] = None
    ownership_type: str
    rate: float
    currency: str
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UploadedGasRate(BaseModel):
    id: int
    party_code: Optional[str] = None
    gas_code: str
    cylinder_family_code: Optional[str] = None
    uom_code: str
    ownership_type: str
    effective_from: date
    effective_to: Optional[date] = None


class PartyGasRateUploadResult(BaseModel):
    total: int
    inserted: int
    failed: int
    errors: List[Dict[str, Any]]
    inserted_records: List[UploadedGasRate]
