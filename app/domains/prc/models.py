# app/domains/prc/models.py

"""
'prc' 도메인 (가스 단가)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.
"""

from typing import Optional
from datetime import date, datetime, UTC
from decimal import Decimal

from sqlmodel import Field, SQLModel, Column
from sqlalchemy import Index, Numeric
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


class PartyGasRate(SQLModel, table=True):
    """
    거래처별(또는 회사 기본) 가스 단가.
    같은 조건(거래처, 가스, 용기 계열, 단위, 소유 형태)의 활성 단가는 기간이 겹칠 수 없습니다.
    """
    __tablename__ = "party_gas_rates"
    __table_args__ = (
        Index("ix_party_gas_rates_lookup", "company_id", "party_id", "gas_type_id", "is_active"),
    )

    id: Optional[int] = Field(default=None, primary_key=True, description="단가 고유 ID")
    company_id: int = Field(foreign_key="companies.id", index=True, description="회사 ID (FK)")
    party_id: Optional[int] = Field(default=None, foreign_key="parties.id", description="거래처 ID (NULL = 기본 단가)")
    gas_type_id: int = Field(foreign_key="gas_types.id", description="가스 종류 ID (FK)")
    cylinder_family_id: Optional[int] = Field(default=None, foreign_key="cylinder_families.id", description="용기 계열 ID (NULL = 전체)")
    unit_of_measure_id: int = Field(foreign_key="units_of_measure.id", description="단위 ID (FK)")
    ownership_type: str = Field(max_length=10, description="용기 소유 형태 (OWN, PARTY)")
    rate: Decimal = Field(sa_column=Column(Numeric(12, 2), nullable=False), description="단가")
    currency: str = Field(default="INR", max_length=10, description="통화")
    effective_from: date = Field(description="적용 시작일")
    effective_to: Optional[date] = Field(default=None, description="적용 종료일 (NULL = 종료일 없음)")
    is_active: bool = Field(default=True, description="사용 여부")
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    updated_by: Optional[int] = Field(default=None, foreign_key="users.id")

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
