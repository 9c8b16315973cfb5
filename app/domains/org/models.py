# app/domains/org/models.py

"""
'org' 도메인의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

회사(companies)와 지점(branches)은 모든 용기/검사 이력/거래처 데이터의
(company_id, branch_id) 스코프를 구성합니다.
"""

from typing import Optional
from datetime import datetime, UTC
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


# =============================================================================
# 1. companies 테이블 모델
# =============================================================================
class CompanyBase(SQLModel):
    """
    companies 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    """
    id: Optional[int] = Field(default=None, primary_key=True, description="회사 고유 ID")
    company_code: str = Field(max_length=20, sa_column_kwargs={"unique": True}, description="회사 코드")
    company_name: str = Field(max_length=200, description="회사명")
    gst_num: Optional[str] = Field(default=None, max_length=20, description="GST 번호")
    address: Optional[str] = Field(default=None, description="주소")
    phone: Optional[str] = Field(default=None, max_length=30, description="대표 전화번호")
    email: Optional[str] = Field(default=None, max_length=100, description="대표 이메일")
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


class Company(CompanyBase, table=True):
    __tablename__ = "companies"


# =============================================================================
# 2. branches 테이블 모델
# =============================================================================
class BranchBase(SQLModel):
    """
    branches 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    지점 코드는 회사 내에서만 고유합니다.
    """
    id: Optional[int] = Field(default=None, primary_key=True, description="지점 고유 ID")
    company_id: int = Field(foreign_key="companies.id", index=True, description="소속 회사 ID (FK)")
    branch_code: str = Field(max_length=20, description="지점 코드")
    branch_name: str = Field(max_length=200, description="지점명")
    address: Optional[str] = Field(default=None, description="주소")
    phone: Optional[str] = Field(default=None, max_length=30, description="전화번호")
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


class Branch(BranchBase, table=True):
    __tablename__ = "branches"
    __table_args__ = (
        UniqueConstraint("company_id", "branch_code", name="uq_branches_company_code"),
    )
