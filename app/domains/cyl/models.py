# app/domains/cyl/models.py

"""
'cyl' 도메인 (가스 용기 및 검사 이력)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- cylinders: 용기 자산. (company_id, branch_id) 스코프는 생성 후 변경되지 않습니다.
  last_test_date/next_test_date는 검사 이력에서 계산되는 캐시 값이며,
  검사 이력 변경 시 crud.recalculate_cylinder_dates()만 이 값을 기록합니다.
- cylinder_tests: 용기별 검사(내압 시험 등) 이력.
"""

from typing import Optional
from datetime import date, datetime, UTC
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import Index, Numeric, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


# =============================================================================
# 1. cylinders 테이블 모델
# =============================================================================
class CylinderBase(SQLModel):
    """
    cylinders 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    """
    id: Optional[int] = Field(default=None, primary_key=True, description="용기 고유 ID (cylinder_id)")
    company_id: int = Field(foreign_key="companies.id", description="회사 ID (FK)")
    branch_id: int = Field(foreign_key="branches.id", description="지점 ID (FK)")

    cylinder_code: str = Field(max_length=50, description="용기 코드 (스코프 내 고유)")
    serial_number: Optional[str] = Field(default=None, max_length=100, description="제조 일련번호")
    barcode_number: Optional[str] = Field(default=None, max_length=100, index=True, description="바코드 번호")
    cylinder_type: Optional[str] = Field(default=None, max_length=50, description="용기 유형")
    cylinder_family_code: str = Field(max_length=30, description="용기 계열 코드")
    gas_content: Optional[str] = Field(default=None, max_length=50, description="충전 가스")
    manufacture_no: Optional[str] = Field(default=None, max_length=100, description="제조 번호")
    challan_no: Optional[str] = Field(default=None, max_length=100, description="입고 전표(Challan) 번호")
    capacity: Optional[float] = Field(default=None, sa_column=Column(Numeric(10, 2)), description="용량")
    capacity_unit: Optional[str] = Field(default=None, max_length=20, description="용량 단위")
    manufacturer: Optional[str] = Field(default=None, max_length=100, description="제조사")
    manufacture_date: Optional[date] = Field(default=None, description="제조일")
    status: str = Field(default="available", max_length=30, description="운영 상태 (available, in_use, testing, maintenance, retired)")
    is_active: bool = Field(default=True, description="사용 여부 (False = 소프트 삭제)")

    # 검사 이력에서 계산되는 캐시 값
    last_test_date: Optional[date] = Field(default=None, description="최근 검사일")
    next_test_date: Optional[date] = Field(default=None, description="차기 검사 예정일")

    # 소유 정보
    owner_type: str = Field(max_length=10, description="소유 형태 (SELF, PARTY)")
    owner_party_id: Optional[int] = Field(default=None, foreign_key="parties.id", description="소유 거래처 ID (PARTY일 때 필수)")
    current_holder_party_id: Optional[int] = Field(default=None, foreign_key="parties.id", description="현재 보유 거래처 ID")
    ownership_remarks: Optional[str] = Field(default=None, sa_column=Column(Text), description="소유 관련 비고")

    created_by: Optional[int] = Field(default=None, foreign_key="users.id", description="등록 사용자 ID")
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


class Cylinder(CylinderBase, table=True):
    __tablename__ = "cylinders"
    __table_args__ = (
        UniqueConstraint("company_id", "branch_id", "cylinder_code", name="uq_cylinders_scope_code"),
        Index("ix_cylinders_scope_status", "company_id", "branch_id", "status"),
    )


# =============================================================================
# 2. cylinder_tests 테이블 모델
# =============================================================================
class CylinderTestBase(SQLModel):
    """
    cylinder_tests 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    company_id/branch_id는 기록 시점의 용기 스코프를 그대로 복사합니다.
    """
    id: Optional[int] = Field(default=None, primary_key=True, description="검사 이력 고유 ID (test_id)")
    cylinder_id: int = Field(foreign_key="cylinders.id", description="용기 ID (FK)")
    company_id: int = Field(foreign_key="companies.id", description="회사 ID (FK)")
    branch_id: int = Field(foreign_key="branches.id", description="지점 ID (FK)")

    test_date: date = Field(description="검사일")
    test_type: str = Field(default="Hydrostatic", max_length=50, description="검사 유형")
    test_pressure: Optional[float] = Field(default=None, sa_column=Column(Numeric(10, 2)), description="시험 압력")
    test_result: str = Field(default="Pass", max_length=50, description="검사 결과 (Pass, Fail, Conditional 또는 원문)")
    inspector_name: Optional[str] = Field(default=None, max_length=100, description="검사자")
    next_test_date: Optional[date] = Field(default=None, description="차기 검사 예정일")
    notes: Optional[str] = Field(default=None, sa_column=Column(Text), description="검사 메모")

    tare_weight: Optional[float] = Field(default=None, sa_column=Column(Numeric(10, 3)), description="용기 자체 중량")
    reference_number: Optional[str] = Field(default=None, max_length=100, description="참조 번호")
    permission_number: Optional[str] = Field(default=None, max_length=100, description="허가 번호")
    permission_date: Optional[date] = Field(default=None, description="허가일")
    water_filling_capacity: Optional[float] = Field(default=None, sa_column=Column(Numeric(10, 3)), description="수(水) 충전 용량")
    remarks: Optional[str] = Field(default=None, sa_column=Column(Text), description="비고")
    tested_by: Optional[int] = Field(default=None, foreign_key="users.id", description="기록 사용자 ID")

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


class CylinderTest(CylinderTestBase, table=True):
    __tablename__ = "cylinder_tests"
    __table_args__ = (
        Index("ix_cylinder_tests_cylinder_date", "cylinder_id", "test_date"),
        Index("ix_cylinder_tests_scope", "company_id", "branch_id"),
    )
