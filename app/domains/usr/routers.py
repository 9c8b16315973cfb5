# app/domains/usr/routers.py

"""
'usr' 도메인 (인증, 사용자 관리, 환경설정)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core import dependencies as deps
from app.core.exceptions import NotFoundError, ValidationError
from app.core.responses import ApiResponse, success

from . import crud as usr_crud
from . import models as usr_models
from . import schemas as usr_schemas


router = APIRouter(
    tags=["User & Authentication (사용자 및 인증 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 인증 (Authentication) 엔드포인트
# =============================================================================

@router.post("/auth/token", response_model=usr_schemas.Token, summary="Access Token 획득")
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(deps.get_db_session),
):
    user = await usr_crud.user.authenticate(
        db, login_id=form_data.username, password=form_data.password
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = deps.create_access_token(data=deps.build_token_claims(user), expires_delta=access_token_expires)
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/auth/me", response_model=ApiResponse[usr_schemas.UserRead], summary="현재 사용자 정보 조회")
async def read_users_me(current_user: usr_models.User = Depends(deps.get_current_active_user)):
    return success(current_user, "Current user fetched successfully")


# =============================================================================
# 2. 사용자 (User) 관리 엔드포인트 - 관리자 전용
# =============================================================================

@router.get("/users", response_model=ApiResponse[List[usr_schemas.UserRead]], summary="사용자 목록 조회")
async def read_users(
    company_id: int | None = Query(None),
    branch_id: int | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1),
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    users = await usr_crud.user.get_multi(db, skip=skip, limit=limit, company_id=company_id, branch_id=branch_id)
    return success(users, "Users fetched successfully")


@router.post("/users", response_model=ApiResponse[usr_schemas.UserRead], status_code=status.HTTP_201_CREATED, summary="사용자 생성")
async def create_user(
    user_in: usr_schemas.UserCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    user = await usr_crud.user.create(db, obj_in=user_in)
    return success(user, "User created successfully")


@router.get("/users/{user_id}", response_model=ApiResponse[usr_schemas.UserRead], summary="사용자 상세 조회")
async def read_user(
    user_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    user = await usr_crud.user.get(db, id=user_id)
    if not user:
        raise NotFoundError("User not found")
    return success(user, "User fetched successfully")


@router.put("/users/{user_id}", response_model=ApiResponse[usr_schemas.UserRead], summary="사용자 정보 수정")
async def update_user(
    user_id: int,
    user_in: usr_schemas.UserUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    user = await usr_crud.user.get(db, id=user_id)
    if not user:
        raise NotFoundError("User not found")
    user = await usr_crud.user.update(db, db_obj=user, obj_in=user_in)
    return success(user, "User updated successfully")


@router.delete("/users/{user_id}", response_model=ApiResponse[None], summary="사용자 삭제")
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    await usr_crud.user.remove(db, id=user_id, current_user_id=current_admin_user.id)
    return success(None, "User deleted successfully")


# =============================================================================
# 3. 환경설정 (Preference) 엔드포인트
# =============================================================================

@router.get("/preferences", response_model=ApiResponse[List[usr_schemas.PreferenceRead]], summary="내 환경설정 목록")
async def read_my_preferences(
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    prefs = await usr_crud.preference.list_for_user(db, user_id=current_user.id)
    data = [
        usr_schemas.PreferenceRead(
            pref_key=p.pref_key,
            value=usr_crud.decode_pref_value(p.pref_value),
            source="branch" if p.branch_id is not None else "company",
            company_id=p.company_id,
            branch_id=p.branch_id,
        )
        for p in prefs
    ]
    return success(data, "Preferences fetched successfully")


@router.get("/preferences/{pref_key}", response_model=ApiResponse[usr_schemas.PreferenceRead], summary="적용 중인 환경설정 값 조회")
async def read_effective_preference(
    pref_key: str,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    value, source, company_id, branch_id = await usr_crud.preference.get_effective(
        db, current_user=current_user, pref_key=pref_key
    )
    data = usr_schemas.PreferenceRead(
        pref_key=pref_key, value=value, source=source, company_id=company_id, branch_id=branch_id
    )
    return success(data, "Preference fetched successfully")


@router.put("/preferences/{pref_key}", response_model=ApiResponse[usr_schemas.PreferenceRead], summary="환경설정 저장")
async def save_preference(
    pref_key: str,
    pref_in: usr_schemas.PreferenceSet,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    pref = await usr_crud.preference.upsert(db, current_user=current_user, pref_key=pref_key, obj_in=pref_in)
    data = usr_schemas.PreferenceRead(
        pref_key=pref.pref_key,
        value=usr_crud.decode_pref_value(pref.pref_value),
        source="branch" if pref.branch_id is not None else "company",
        company_id=pref.company_id,
        branch_id=pref.branch_id,
    )
    return success(data, "Preference saved successfully")


@router.delete("/preferences/{pref_key}", response_model=ApiResponse[dict], summary="환경설정 삭제")
async def delete_preference(
    pref_key: str,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    deleted = await usr_crud.preference.remove_for_user(db, current_user=current_user, pref_key=pref_key)
    return success({"deleted": deleted}, "Preference deleted successfully")


@router.put("/role-preferences/{role}/{pref_key}", response_model=ApiResponse[usr_schemas.PreferenceRead], summary="역할 기본 환경설정 저장")
async def save_role_preference(
    role: int,
    pref_key: str,
    pref_in: usr_schemas.PreferenceSet,
    db: AsyncSession = Depends(deps.get_db_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    try:
        user_role = usr_models.UserRole(role)
    except ValueError:
        raise ValidationError(f"Unknown role: {role}")
    pref = await usr_crud.role_preference.upsert(db, role=user_role, pref_key=pref_key, value=pref_in.value)
    data = usr_schemas.PreferenceRead(
        pref_key=pref.pref_key, value=usr_crud.decode_pref_value(pref.pref_value), source="role"
    )
    return success(data, "Role preference saved successfully")


# =============================================================================
# 4. 역할 (Role) 조회 엔드포인트 - 인증 불필요 (가입/로그인 화면 드롭다운용)
# =============================================================================

@router.get("/roles", response_model=ApiResponse[List[usr_schemas.RoleRead]], summary="역할 목록 조회")
async def read_roles():
    roles = [
        {"role_id": role.value, "role_name": role.name, "permission_level": role.value}
        for role in sorted(usr_models.UserRole)
    ]
    return success(roles, "Roles fetched successfully")
