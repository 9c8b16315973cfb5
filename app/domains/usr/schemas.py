# app/domains/usr/schemas.py

"""
'usr' 도메인 (사용자, 인증, 환경설정)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Any, Literal, Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from pydantic import BaseModel, EmailStr

from . import models as usr_models


# =============================================================================
# 1. 사용자 (User) 스키마
# =============================================================================
class UserBase(SQLModel):
    """사용자 정보의 기본 필드를 정의하는 스키마"""
    login_id: str = Field(..., max_length=50)
    email: Optional[EmailStr] = Field(None, max_length=100)
    full_name: Optional[str] = Field(None, max_length=100)
    company_id: Optional[int] = None
    branch_id: Optional[int] = None
    role: usr_models.UserRole = Field(default=usr_models.UserRole.GENERAL_USER, description="사용자 역할")
    is_active: bool = True


class UserCreate(UserBase):
    """사용자 생성을 위한 스키마"""
    password: str = Field(..., min_length=8)


class UserUpdate(SQLModel):
    """사용자 정보 수정을 위한 스키마"""
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None
    company_id: Optional[int] = None
    branch_id: Optional[int] = None
    role: Optional[usr_models.UserRole] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=8)


class UserRead(UserBase):
    """
    사용자 정보 조회를 위한 스키마.
    비밀번호 해시값 등 민감한 정보는 제외됩니다.
    """
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# 2. 인증 (Token) 스키마
# =============================================================================
class Token(BaseModel):
    access_token: str
    token_type: str


# =============================================================================
# 3. 환경설정 (Preference) 스키마
# =============================================================================
class PreferenceSet(BaseModel):
    """환경설정 저장 요청. branch_specific=False면 회사 전체(branch_id NULL) 설정으로 저장합니다."""
    value: Any = None
    branch_specific: bool = True


class PreferenceRead(BaseModel):
    pref_key: str
    value: Any = None
    source: Literal["branch", "company", "role"]
    company_id: Optional[int] = None
    branch_id: Optional[int] = None


# =============================================================================
# 4. 역할 (Role) 조회 스키마
# =============================================================================
class RoleRead(BaseModel):
    role_id: int
    role_name: str
    permission_level: int
