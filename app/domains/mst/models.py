# app/domains/mst/models.py

"""
'mst' 도메인 (기준정보)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

가스 종류, 용기 계열, 단위, 가스 분류는 회사와 무관한 공용 코드 테이블이며
비활성화(is_active=False)로 삭제를 대신합니다.
가스 종류 ↔ 용기 계열 매핑만 회사(company_id) 단위로 관리합니다.
"""

from typing import Optional
from datetime import datetime, UTC
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


# =============================================================================
# 1. gas_types 테이블 모델
# =============================================================================
class GasTypeBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="가스 종류 고유 ID")
    gas_code: str = Field(max_length=20, sa_column_kwargs={"unique": True}, description="가스 코드 (예: O2, CO2)")
    gas_name: str = Field(max_length=100, description="가스명")
    chemical_formula: Optional[str] = Field(default=None, max_length=50, description="화학식")
    category: Optional[str] = Field(default=None, max_length=50, description="가스 분류 (예: Industrial, Medical)")
    is_active: bool = Field(default=True, description="사용 여부")

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


class GasType(GasTypeBase, table=True):
    __tablename__ = "gas_types"


# =============================================================================
# 2. cylinder_families 테이블 모델
# =============================================================================
class CylinderFamilyBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="용기 계열 고유 ID")
    family_code: str = Field(max_length=30, sa_column_kwargs={"unique": True}, description="용기 계열 코드")
    family_name: str = Field(max_length=100, description="용기 계열명")
    description: Optional[str] = Field(default=None, description="설명")
    is_active: bool = Field(default=True, description="사용 여부")

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


class CylinderFamily(CylinderFamilyBase, table=True):
    __tablename__ = "cylinder_families"


# =============================================================================
# 3. units_of_measure 테이블 모델
# =============================================================================
class UnitOfMeasureBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="단위 고유 ID")
    uom_code: str = Field(max_length=20, sa_column_kwargs={"unique": True}, description="단위 코드 (예: L, KG, M3)")
    uom_name: str = Field(max_length=100, description="단위명")
    uom_type: Optional[str] = Field(default=None, max_length=30, description="단위 유형 (예: VOLUME, WEIGHT)")
    is_active: bool = Field(default=True, description="사용 여부")

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


class UnitOfMeasure(UnitOfMeasureBase, table=True):
    __tablename__ = "units_of_measure"


# =============================================================================
# 4. 지역 정보 (countries, states, cities) 테이블 모델
# =============================================================================
class Country(SQLModel, table=True):
    __tablename__ = "countries"

    id: Optional[int] = Field(default=None, primary_key=True)
    country_code: str = Field(max_length=3, sa_column_kwargs={"unique": True}, description="ISO 국가 코드")
    country_name: str = Field(max_length=100)


class State(SQLModel, table=True):
    __tablename__ = "states"
    __table_args__ = (
        UniqueConstraint("country_id", "state_code", name="uq_states_country_code"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    country_id: int = Field(foreign_key="countries.id", index=True)
    state_code: str = Field(max_length=10)
    state_name: str = Field(max_length=100)


class City(SQLModel, table=True):
    __tablename__ = "cities"

    id: Optional[int] = Field(default=None, primary_key=True)
    state_id: int = Field(foreign_key="states.id", index=True)
    city_name: str = Field(max_length=100)


# =============================================================================
# 5. gas_categories 테이블 모델
# =============================================================================
class GasCategoryBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="가스 분류 고유 ID")
    gas_category_code: str = Field(max_length=30, sa_column_kwargs={"unique": True}, description="가스 분류 코드")
    gas_category_name: str = Field(max_length=100, description="가스 분류명")
    description: Optional[str] = Field(default=None, max_length=255, description="설명")
    is_active: bool = Field(default=True, description="사용 여부")

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


class GasCategory(GasCategoryBase, table=True):
    __tablename__ = "gas_categories"


# =============================================================================
# 6. gas_type_cylinder_family_maps 테이블 모델
# =============================================================================
class GasTypeCylinderFamilyMap(SQLModel, table=True):
    """
    회사별로 어떤 가스를 어떤 용기 계열에 충전할 수 있는지 정의합니다.
    (company_id, gas_type_id, cylinder_family_id) 조합은 하나만 존재하며 등록 요청은 upsert로 처리됩니다.
    """
    __tablename__ = "gas_type_cylinder_family_maps"
    __table_args__ = (
        UniqueConstraint("company_id", "gas_type_id", "cylinder_family_id", name="uq_gas_family_map"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="companies.id", index=True)
    gas_type_id: int = Field(foreign_key="gas_types.id", index=True)
    cylinder_family_id: int = Field(foreign_key="cylinder_families.id", index=True)
    is_allowed: bool = Field(default=True, description="충전 허용 여부")
    remarks: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = Field(default=True)
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
    )
