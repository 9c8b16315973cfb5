# app/domains/pty/schemas.py

"""
'pty' 도메인 (거래처)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from pydantic import BaseModel


class PartyBase(SQLModel):
    party_code: str = Field(..., max_length=30)
    party_name: str = Field(..., max_length=200)
    party_type: Optional[str] = Field(None, max_length=20)
    gst_num: Optional[str] = Field(None, max_length=20)
    pan_no: Optional[str] = Field(None, max_length=20)
    contact_person: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = None
    country_id: Optional[int] = None
    state_id: Optional[int] = None
    city_id: Optional[int] = None
    is_active: bool = True


class PartyCreate(PartyBase):
    """거래처 등록 스키마. company_id/branch_id를 생략하면 로그인 사용자의 스코프가 사용됩니다."""
    company_id: Optional[int] = None
    branch_id: Optional[int] = None


class PartyUpdate(SQLModel):
    party_code: Optional[str] = Field(None, max_length=30)
    party_name: Optional[str] = Field(None, max_length=200)
    party_type: Optional[str] = Field(None, max_length=20)
    gst_num: Optional[str] = Field(None, max_length=20)
    pan_no: Optional[str] = Field(None, max_length=20)
    contact_person: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = None
    country_id: Optional[int] = None
    state_id: Optional[int] = None
    city_id: Optional[int] = None
    is_active: Optional[bool] = None


class PartyRead(PartyBase):
    id: int
    company_id: int
    branch_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PartyUploadResult(BaseModel):
    total: int
    inserted: int
    updated: int
    failed: int
    errors: List[Dict[str, Any]]


# =============================================================================
# 거래처 주소 (PartyAddress)
# =============================================================================
class PartyAddressFields(SQLModel):
    address2: Optional[str] = Field(None, max_length=200)
    address3: Optional[str] = Field(None, max_length=200)
    city_id: Optional[int] = None
    state_id: Optional[int] = None
    country_id: Optional[int] = None
    pincode: Optional[str] = Field(None, max_length=10)


class PartyAddressCreate(PartyAddressFields):
    """address_type, address1은 필수입니다. 누락 시 400 메시지는 crud에서 만듭니다."""
    address_type: Optional[str] = Field(None, max_length=20)
    address1: Optional[str] = Field(None, max_length=200)
    is_default: bool = False


class PartyAddressUpdate(PartyAddressFields):
    """보낸 값만 반영합니다. null은 '변경 없음'으로 취급합니다."""
    address_type: Optional[str] = Field(None, max_length=20)
    address1: Optional[str] = Field(None, max_length=200)
    is_default: Optional[bool] = None


class PartyAddressRead(PartyAddressFields):
    id: int
    party_id: int
    address_type: str
    address1: str
    is_default: bool
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# 거래처 유형 (드롭다운)
# =============================================================================
class PartyTypeOption(BaseModel):
    label: str
    value: str
