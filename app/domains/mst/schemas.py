# app/domains/mst/schemas.py

"""
'mst' 도메인 (기준정보)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field


# =============================================================================
# 1. 가스 종류 (GasType) 스키마
# =============================================================================
class GasTypeBase(SQLModel):
    gas_code: str = Field(..., max_length=20)
    gas_name: str = Field(..., max_length=100)
    chemical_formula: Optional[str] = Field(None, max_length=50)
    category: Optional[str] = Field(None, max_length=50)
    is_active: bool = True


class GasTypeCreate(GasTypeBase):
    pass


class GasTypeUpdate(SQLModel):
    gas_code: Optional[str] = Field(None, max_length=20)
    gas_name: Optional[str] = Field(None, max_length=100)
    chemical_formula: Optional[str] = Field(None, max_length=50)
    category: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None


class GasTypeRead(GasTypeBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# 2. 용기 계열 (CylinderFamily) 스키마
# =============================================================================
class CylinderFamilyBase(SQLModel):
    family_code: str = Field(..., max_length=30)
    family_name: str = Field(..., max_length=100)
    description: Optional[str] = None
    is_active: bool = True


class CylinderFamilyCreate(CylinderFamilyBase):
    pass


class CylinderFamilyUpdate(SQLModel):
    family_code: Optional[str] = Field(None, max_length=30)
    family_name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class CylinderFamilyRead(CylinderFamilyBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# 3. 단위 (UnitOfMeasure) 스키마
# =============================================================================
class UnitOfMeasureBase(SQLModel):
    uom_code: str = Field(..., max_length=20)
    uom_name: str = Field(..., max_length=100)
    uom_type: Optional[str] = Field(None, max_length=30)
    is_active: bool = True


class UnitOfMeasureCreate(UnitOfMeasureBase):
    pass


class UnitOfMeasureUpdate(SQLModel):
    uom_code: Optional[str] = Field(None, max_length=20)
    uom_name: Optional[str] = Field(None, max_length=100)
    uom_type: Optional[str] = Field(None, max_length=30)
    is_active: Optional[bool] = None


class UnitOfMeasureRead(UnitOfMeasureBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# 4. 지역 정보 스키마
# =============================================================================
class CountryCreate(SQLModel):
    country_code: str = Field(..., max_length=3)
    country_name: str = Field(..., max_length=100)


class CountryRead(CountryCreate):
    id: int


class StateCreate(SQLModel):
    country_id: int
    state_code: str = Field(..., max_length=10)
    state_name: str = Field(..., max_length=100)


class StateRead(StateCreate):
    id: int


class CityCreate(SQLModel):
    state_id: int
    city_name: str = Field(..., max_length=100)


class CityRead(CityCreate):
    id: int


# =============================================================================
# 5. 가스 분류 (GasCategory) 스키마
# =============================================================================
class GasCategoryBase(SQLModel):
    gas_category_code: str = Field(..., max_length=30)
    gas_category_name: str = Field(..., max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    is_active: bool = True


class GasCategoryCreate(GasCategoryBase):
    pass


class GasCategoryUpdate(SQLModel):
    gas_category_code: Optional[str] = Field(None, max_length=30)
    gas_category_name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None


class GasCategoryRead(GasCategoryBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# 6. 가스 종류 ↔ 용기 계열 매핑 스키마
# =============================================================================
class GasFamilyMapUpsert(SQLModel):
    """company_id는 토큰에서 가져옵니다. 두 ID 누락 시 400 메시지는 crud에서 만듭니다."""
    gas_type_id: Optional[int] = None
    cylinder_family_id: Optional[int] = None
    is_allowed: bool = True
    remarks: Optional[str] = Field(None, max_length=255)
    is_active: bool = True


class GasFamilyMapRead(SQLModel):
    id: int
    company_id: int
    gas_type_id: int
    gas_code: Optional[str] = None
    gas_name: Optional[str] = None
    cylinder_family_id: int
    cylinder_family_code: Optional[str] = None
    cylinder_family_name: Optional[str] = None
    is_allowed: bool
    remarks: Optional[str] = None
    is_active: bool
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
