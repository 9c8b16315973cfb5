# app/domains/cyl/schemas.py

"""
'cyl' 도메인 (가스 용기 및 검사 이력)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.

- 부분 수정 스키마(CylinderUpdate, CylinderTestUpdate)는 model_dump(exclude_unset=True)로 사용합니다.
  요청에 없는 키는 변경하지 않고, 명시적 null은 컬럼을 NULL로 만듭니다.
- 현장 양식 호환을 위해 일부 필드는 별칭 입력을 허용합니다.
  (test_status → test_result, tester_name → inspector_name, notes → test_notes)
"""

from typing import Any, Dict, List, Optional
from datetime import date, datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, ValidationInfo


# =============================================================================
# 1. 용기 (Cylinder)
# =============================================================================
class CylinderFields(BaseModel):
    serial_number: Optional[str] = Field(None, max_length=100)
    barcode_number: Optional[str] = Field(None, max_length=100)
    cylinder_type: Optional[str] = Field(None, max_length=50)
    gas_content: Optional[str] = Field(None, max_length=50)
    manufacture_no: Optional[str] = Field(None, max_length=100)
    challan_no: Optional[str] = Field(None, max_length=100)
    capacity: Optional[float] = None
    capacity_unit: Optional[str] = Field(None, max_length=20)
    manufacturer: Optional[str] = Field(None, max_length=100)
    manufacture_date: Optional[date] = None
    owner_party_id: Optional[int] = None
    current_holder_party_id: Optional[int] = None
    ownership_remarks: Optional[str] = None


class CylinderCreate(CylinderFields):
    """
    용기 등록 스키마.
    test_date, test_type, test_result가 모두 있으면 첫 검사 이력을 함께 등록합니다.
    """
    model_config = ConfigDict(populate_by_name=True)

    company_id: Optional[int] = None
    branch_id: Optional[int] = None

    cylinder_code: str = Field(..., min_length=1, max_length=50)
    cylinder_family_code: str = Field(..., min_length=1, max_length=30)
    status: Optional[str] = Field("available", max_length=30)
    is_active: bool = True
    owner_type: Optional[str] = Field(None, description="SELF 또는 PARTY (대소문자 무시)")

    # 첫 검사 이력 (선택)
    test_date: Optional[date] = None
    test_type: Optional[str] = Field(None, max_length=50)
    test_result: Optional[str] = Field(None, validation_alias=AliasChoices("test_result", "test_status"))
    test_pressure: Optional[float] = None
    inspector_name: Optional[str] = Field(None, validation_alias=AliasChoices("inspector_name", "tester_name"))
    test_notes: Optional[str] = Field(None, validation_alias=AliasChoices("test_notes", "notes"))
    next_test_date: Optional[date] = None

    def has_first_test(self) -> bool:
        """공백만 있는 test_type/test_result는 값이 없는 것으로 봅니다."""
        return bool(
            self.test_date
            and (self.test_type or "").strip()
            and (self.test_result or "").strip()
        )


class CylinderUpdate(CylinderFields):
    """용기 수정 스키마. 스코프(company_id, branch_id)와 검사일 캐시 필드는 수정할 수 없습니다."""
    cylinder_code: Optional[str] = Field(None, min_length=1, max_length=50)
    cylinder_family_code: Optional[str] = Field(None, min_length=1, max_length=30)
    status: Optional[str] = Field(None, max_length=30)
    is_active: Optional[bool] = None
    owner_type: Optional[str] = None

    @field_validator("cylinder_code", "cylinder_family_code", "is_active")
    @classmethod
    def reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        """필수 컬럼에 명시적 null이 들어오면 거부합니다. (생략은 허용)"""
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class CylinderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    branch_id: int
    cylinder_code: str
    serial_number: Optional[str] = None
    barcode_number: Optional[str] = None
    cylinder_type: Optional[str] = None
    cylinder_family_code: str
    gas_content: Optional[str] = None
    manufacture_no: Optional[str] = None
    challan_no: Optional[str] = None
    capacity: Optional[float] = None
    capacity_unit: Optional[str] = None
    manufacturer: Optional[str] = None
    manufacture_date: Optional[date] = None
    status: str
    is_active: bool
    last_test_date: Optional[date] = None
    next_test_date: Optional[date] = None
    owner_type: str
    owner_party_id: Optional[int] = None
    current_holder_party_id: Optional[int] = None
    ownership_remarks: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CylinderCreateResult(BaseModel):
    cylinder_id: int
    test_id: Optional[int] = None


class CylinderStatusCount(BaseModel):
    status: str
    count: int


class UploadedCylinder(BaseModel):
    cylinder_id: int
    cylinder_code: str
    test_id: Optional[int] = None


class CylinderUploadResult(BaseModel):
    total: int
    inserted: int
    failed: int
    errors: List[Dict[str, Any]]
    inserted_records: List[UploadedCylinder]


# =============================================================================
# 2. 검사 이력 (CylinderTest)
# =============================================================================
class CylinderTestFields(BaseModel):
    test_pressure: Optional[float] = None
    inspector_name: Optional[str] = Field(
        None, max_length=100, validation_alias=AliasChoices("inspector_name", "tester_name")
    )
    next_test_date: Optional[date] = None
    notes: Optional[str] = Field(None, validation_alias=AliasChoices("notes", "test_notes"))
    tare_weight: Optional[float] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    permission_number: Optional[str] = Field(None, max_length=100)
    permission_date: Optional[date] = None
    water_filling_capacity: Optional[float] = None
    remarks: Optional[str] = None


class CylinderTestCreate(CylinderTestFields):
    """검사 이력 등록 스키마. test_type/test_result 생략 시 Hydrostatic/Pass가 사용됩니다."""
    model_config = ConfigDict(populate_by_name=True)

    test_date: date
    test_type: Optional[str] = Field(None, max_length=50)
    test_result: Optional[str] = Field(None, validation_alias=AliasChoices("test_result", "test_status"))


class CylinderTestUpdate(CylinderTestFields):
    """
    검사 이력 수정 스키마.
    요청에 포함된 컬럼은 모두 덮어씁니다. test_type을 null로 보내면 Hydrostatic으로 되돌립니다.
    """
    model_config = ConfigDict(populate_by_name=True)

    test_date: Optional[date] = None
    test_type: Optional[str] = Field(None, max_length=50)
    test_result: Optional[str] = Field(None, validation_alias=AliasChoices("test_result", "test_status"))

    @field_validator("test_date", "test_result")
    @classmethod
    def reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class CylinderTestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    cylinder_id: int
    company_id: int
    branch_id: int
    test_date: date
    test_type: str
    test_pressure: Optional[float] = None
    test_result: str
    inspector_name: Optional[str] = None
    next_test_date: Optional[date] = None
    notes: Optional[str] = None
    tare_weight: Optional[float] = None
    reference_number: Optional[str] = None
    permission_number: Optional[str] = None
    permission_date: Optional[date] = None
    water_filling_capacity: Optional[float] = None
    remarks: Optional[str] = None
    tested_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CylinderTestCreateResult(BaseModel):
    test_id: int


# =============================================================================
# 3. 공개 바코드 조회
# =============================================================================
class PublicCylinderRead(CylinderRead):
    company_name: Optional[str] = None
    branch_name: Optional[str] = None


class CylinderWithLatestTest(BaseModel):
    cylinder: PublicCylinderRead
    latest_test: Optional[CylinderTestRead] = None
