# app/domains/usr/models.py

"""
'usr' 도메인의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

이 모듈은 users, user_preferences, role_preferences 테이블에 대한 SQLModel 클래스를 포함합니다.
사용자는 하나의 회사/지점에 소속되며, 이 값이 토큰의 기본 스코프가 됩니다.
"""

from typing import Optional
from datetime import datetime, UTC
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP
from enum import IntEnum


# =============================================================================
# 사용자 역할(RBAC)을 Enum으로 정의합니다. 값이 작을수록 권한이 높습니다.
# =============================================================================
class UserRole(IntEnum):
    """
    사용자 역할을 정의하는 정수형 Enum 클래스입니다.
    토큰의 permission_level 값으로도 사용됩니다.
    """
    SUPERUSER = 1       # 최고 관리자
    ADMIN = 10          # 시스템 관리자 (회사/지점 간 접근 허용)
    MANAGER = 50        # 지점 관리자
    OPERATOR = 80       # 충전/검사 작업자
    GENERAL_USER = 100  # 일반 사용자 (조회 위주)


# =============================================================================
# 1. users 테이블 모델
# =============================================================================
class UserBase(SQLModel):
    """
    users 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    """
    id: Optional[int] = Field(default=None, primary_key=True, description="사용자 고유 ID")
    login_id: str = Field(max_length=50, sa_column_kwargs={"unique": True}, description="로그인 ID")
    password_hash: str = Field(max_length=255, description="해싱된 비밀번호")
    email: Optional[str] = Field(default=None, max_length=100, sa_column_kwargs={"unique": True}, description="사용자 이메일")
    full_name: Optional[str] = Field(default=None, max_length=100, description="사용자 전체 이름")
    company_id: Optional[int] = Field(default=None, foreign_key="companies.id", description="소속 회사 ID (FK)")
    branch_id: Optional[int] = Field(default=None, foreign_key="branches.id", description="소속 지점 ID (FK)")
    role: UserRole = Field(default=UserRole.GENERAL_USER, description="사용자 역할 (권한)")
    is_active: bool = Field(default=True, description="계정 활성 여부")

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


class User(UserBase, table=True):
    __tablename__ = "users"

    @property
    def is_admin(self) -> bool:
        return self.role <= UserRole.ADMIN


# =============================================================================
# 2. user_preferences 테이블 모델
# =============================================================================
class UserPreference(SQLModel, table=True):
    """
    사용자별 환경설정 키-값 저장소입니다.
    branch_id가 NULL이면 회사 전체에 적용되는 설정입니다. 값은 JSON 텍스트로 저장합니다.
    """
    __tablename__ = "user_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "company_id", "branch_id", "pref_key", name="uq_user_preferences_scope_key"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    company_id: int = Field(foreign_key="companies.id")
    branch_id: Optional[int] = Field(default=None, foreign_key="branches.id")
    pref_key: str = Field(max_length=100)
    pref_value: Optional[str] = Field(default=None, sa_column=Column(Text))
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
    )


# =============================================================================
# 3. role_preferences 테이블 모델
# =============================================================================
class RolePreference(SQLModel, table=True):
    """역할별 기본 환경설정 (사용자 설정이 없을 때의 폴백 값)"""
    __tablename__ = "role_preferences"
    __table_args__ = (
        UniqueConstraint("role", "pref_key", name="uq_role_preferences_role_key"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    role: UserRole = Field(description="대상 역할")
    pref_key: str = Field(max_length=100)
    pref_value: Optional[str] = Field(default=None, sa_column=Column(Text))
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
    )
