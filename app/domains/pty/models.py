# app/domains/pty/models.py

"""
'pty' 도메인 (거래처)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.
거래처 코드는 (company_id, branch_id) 스코프 안에서 고유합니다.
"""

from typing import Optional
from datetime import datetime, UTC
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


# =============================================================================
# 1. parties 테이블 모델
# =============================================================================
class PartyBase(SQLModel):
    """
    parties 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    """
    id: Optional[int] = Field(default=None, primary_key=True, description="거래처 고유 ID")
    company_id: int = Field(foreign_key="companies.id", index=True, description="회사 ID (FK)")
    branch_id: int = Field(foreign_key="branches.id", index=True, description="지점 ID (FK)")
    party_code: str = Field(max_length=30, description="거래처 코드")
    party_name: str = Field(max_length=200, description="거래처명")
    party_type: Optional[str] = Field(default=None, max_length=20, description="거래처 유형 (CUSTOMER, VENDOR, BOTH)")
    gst_num: Optional[str] = Field(default=None, max_length=20, description="GST 번호")
    pan_no: Optional[str] = Field(default=None, max_length=20, description="PAN 번호")
    contact_person: Optional[str] = Field(default=None, max_length=100, description="담당자")
    phone: Optional[str] = Field(default=None, max_length=30, description="전화번호")
    email: Optional[str] = Field(default=None, max_length=100, description="이메일")
    address: Optional[str] = Field(default=None, description="주소")
    country_id: Optional[int] = Field(default=None, foreign_key="countries.id", description="국가 ID (FK)")
    state_id: Optional[int] = Field(default=None, foreign_key="states.id", description="주 ID (FK)")
    city_id: Optional[int] = Field(default=None, foreign_key="cities.id", description="도시 ID (FK)")
    is_active: bool = Field(default=True, description="사용 여부 (False = 소프트 삭제)")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )


class Party(PartyBase, table=True):
    __tablename__ = "parties"
    __table_args__ = (
        UniqueConstraint("company_id", "branch_id", "party_code", name="uq_parties_scope_code"),
    )


# =============================================================================
# 2. party_addresses 테이블 모델
# =============================================================================
class PartyAddress(SQLModel, table=True):
    """
    거래처 주소. 스코프는 상위 거래처(parties)의 company_id/branch_id를 따릅니다.
    같은 거래처 + address_type 안에서 기본 주소(is_default)는 하나만 유지됩니다.
    """
    __tablename__ = "party_addresses"

    id: Optional[int] = Field(default=None, primary_key=True, description="주소 고유 ID")
    party_id: int = Field(foreign_key="parties.id", index=True, description="거래처 ID (FK)")
    address_type: str = Field(max_length=20, description="주소 유형 (예: Billing, Shipping)")
    address1: str = Field(max_length=200, description="주소 1")
    address2: Optional[str] = Field(default=None, max_length=200, description="주소 2")
    address3: Optional[str] = Field(default=None, max_length=200, description="주소 3")
    city_id: Optional[int] = Field(default=None, foreign_key="cities.id", description="도시 ID (FK)")
    state_id: Optional[int] = Field(default=None, foreign_key="states.id", description="주 ID (FK)")
    country_id: Optional[int] = Field(default=None, foreign_key="countries.id", description="국가 ID (FK)")
    pincode: Optional[str] = Field(default=None, max_length=10, description="우편번호")
    is_default: bool = Field(default=False, description="기본 주소 여부")
    is_active: bool = Field(default=True, description="사용 여부 (False = 소프트 삭제)")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
    )


# =============================================================================
# 3. party_types 테이블 모델 (드롭다운용 조회 테이블)
# =============================================================================
class PartyType(SQLModel, table=True):
    __tablename__ = "party_types"

    id: Optional[int] = Field(default=None, primary_key=True)
    type_code: str = Field(max_length=20, sa_column_kwargs={"unique": True}, description="유형 코드 (예: CUSTOMER)")
    type_name: str = Field(max_length=100, description="유형명")
    is_active: bool = Field(default=True)
