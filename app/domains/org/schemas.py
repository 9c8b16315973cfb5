# app/domains/org/schemas.py

"""
'org' 도메인 (회사 및 지점)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field


# =============================================================================
# 1. 회사 (Company) 스키마
# =============================================================================
class CompanyBase(SQLModel):
    company_code: str = Field(..., max_length=20)
    company_name: str = Field(..., max_length=200)
    gst_num: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=100)
    is_active: bool = True


class CompanyCreate(CompanyBase):
    pass


class CompanyUpdate(SQLModel):
    company_name: Optional[str] = Field(None, max_length=200)
    gst_num: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None


class CompanyRead(CompanyBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# 2. 지점 (Branch) 스키마
# =============================================================================
class BranchBase(SQLModel):
    branch_code: str = Field(..., max_length=20)
    branch_name: str = Field(..., max_length=200)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    is_active: bool = True


class BranchCreate(BranchBase):
    pass


class BranchUpdate(SQLModel):
    branch_name: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    is_active: Optional[bool] = None


class BranchRead(BranchBase):
    id: int
    company_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
