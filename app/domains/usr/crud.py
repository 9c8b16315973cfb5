# app/domains/usr/crud.py

"""
'usr' 도메인의 CRUD 작업을 담당하는 모듈입니다.
사용자 인증과 환경설정(지점 → 회사 → 역할 순 폴백) 조회 로직을 포함합니다.
"""

import json
from typing import Any, List, Optional, Tuple
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.security import get_password_hash, verify_password
from . import models as usr_models
from . import schemas as usr_schemas


def encode_pref_value(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def decode_pref_value(raw: Optional[str]) -> Any:
    """저장된 값을 JSON으로 해석하고, JSON이 아니면 원문 문자열을 그대로 반환합니다."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw


# =============================================================================
# 1. users 테이블 CRUD
# =============================================================================
class CRUDUser(CRUDBase[usr_models.User, usr_schemas.UserCreate, usr_schemas.UserUpdate]):
    def __init__(self):
        super().__init__(model=usr_models.User)

    async def get_by_login_id(self, db: AsyncSession, *, login_id: str) -> Optional[usr_models.User]:
        """로그인 ID로 사용자를 조회합니다."""
        return await self.get_by_attribute(db, attribute="login_id", value=login_id)

    async def get_by_email(self, db: AsyncSession, *, email: str) -> Optional[usr_models.User]:
        """이메일로 사용자를 조회합니다."""
        return await self.get_by_attribute(db, attribute="email", value=email)

    async def create(self, db: AsyncSession, *, obj_in: usr_schemas.UserCreate) -> usr_models.User:
        """새로운 사용자를 생성하며 비밀번호를 해싱하고 중복을 검사합니다."""
        if await self.get_by_login_id(db, login_id=obj_in.login_id):
            raise ConflictError("Login ID already registered")
        if obj_in.email and await self.get_by_email(db, email=obj_in.email):
            raise ConflictError("Email already registered")

        user_data = obj_in.model_dump(exclude={"password"})
        db_user = usr_models.User(**user_data, password_hash=get_password_hash(obj_in.password))

        db.add(db_user)
        await db.commit()
        await db.refresh(db_user)
        return db_user

    async def authenticate(self, db: AsyncSession, *, login_id: str, password: str) -> Optional[usr_models.User]:
        """로그인 ID와 비밀번호를 사용하여 사용자를 인증합니다."""
        user = await self.get_by_login_id(db, login_id=login_id)
        if not user:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    async def update(self, db: AsyncSession, *, db_obj: usr_models.User, obj_in: usr_schemas.UserUpdate) -> usr_models.User:
        """
        사용자 정보를 업데이트합니다. 비밀번호가 포함되면 해싱하여 저장합니다.
        """
        update_data = obj_in.model_dump(exclude_unset=True)
        if obj_in.email and obj_in.email != db_obj.email:
            if await self.get_by_email(db, email=obj_in.email):
                raise ConflictError("Email already registered")
        password = update_data.pop("password", None)
        if password:
            update_data["password_hash"] = get_password_hash(password)
        return await super().update(db, db_obj=db_obj, obj_in=update_data)

    async def remove(self, db: AsyncSession, *, id: int, current_user_id: int) -> usr_models.User:
        """
        사용자를 삭제합니다. 자기 자신은 삭제할 수 없습니다.
        """
        if id == current_user_id:
            raise ValidationError("Cannot delete your own account")
        user_to_delete = await self.get(db, id=id)
        if not user_to_delete:
            raise NotFoundError("User not found")
        return await super().delete(db, id=id)


user = CRUDUser()


# =============================================================================
# 2. user_preferences / role_preferences CRUD
# =============================================================================
class CRUDPreference(CRUDBase[usr_models.UserPreference, usr_schemas.PreferenceSet, usr_schemas.PreferenceSet]):
    def __init__(self):
        super().__init__(model=usr_models.UserPreference)

    async def _get_exact(
        self, db: AsyncSession, *, user_id: int, company_id: int, branch_id: Optional[int], pref_key: str
    ) -> Optional[usr_models.UserPreference]:
        query = select(self.model).where(
            self.model.user_id == user_id,
            self.model.company_id == company_id,
            self.model.pref_key == pref_key,
        )
        if branch_id is None:
            query = query.where(self.model.branch_id.is_(None))
        else:
            query = query.where(self.model.branch_id == branch_id)
        result = await db.execute(query)
        return result.scalars().first()

    async def list_for_user(self, db: AsyncSession, *, user_id: int) -> List[usr_models.UserPreference]:
        result = await db.execute(
            select(self.model).where(self.model.user_id == user_id).order_by(self.model.pref_key, self.model.id)
        )
        return result.scalars().all()

    async def get_effective(
        self, db: AsyncSession, *, current_user: usr_models.User, pref_key: str
    ) -> Tuple[Any, str, Optional[int], Optional[int]]:
        """
        적용될 환경설정 값을 (value, source, company_id, branch_id)로 반환합니다.
        조회 순서: 지점 전용 설정 → 회사 공통 설정(branch_id NULL) → 역할 기본값.
        """
        company_id, branch_id = current_user.company_id, current_user.branch_id
        if company_id is not None:
            if branch_id is not None:
                pref = await self._get_exact(
                    db, user_id=current_user.id, company_id=company_id, branch_id=branch_id, pref_key=pref_key
                )
                if pref:
                    return decode_pref_value(pref.pref_value), "branch", company_id, branch_id
            pref = await self._get_exact(
                db, user_id=current_user.id, company_id=company_id, branch_id=None, pref_key=pref_key
            )
            if pref:
                return decode_pref_value(pref.pref_value), "company", company_id, None

        role_pref = await role_preference.get_one_filtered(
            db, filters={"role": current_user.role, "pref_key": pref_key}
        )
        if role_pref:
            return decode_pref_value(role_pref.pref_value), "role", None, None
        raise NotFoundError(f"Preference '{pref_key}' not found")

    async def upsert(
        self, db: AsyncSession, *, current_user: usr_models.User, pref_key: str, obj_in: usr_schemas.PreferenceSet
    ) -> usr_models.UserPreference:
        if current_user.company_id is None:
            raise ValidationError("User is not assigned to a company")
        branch_id = current_user.branch_id if obj_in.branch_specific else None
        pref = await self._get_exact(
            db, user_id=current_user.id, company_id=current_user.company_id, branch_id=branch_id, pref_key=pref_key
        )
        if pref is None:
            pref = usr_models.UserPreference(
                user_id=current_user.id,
                company_id=current_user.company_id,
                branch_id=branch_id,
                pref_key=pref_key,
            )
        pref.pref_value = encode_pref_value(obj_in.value)
        db.add(pref)
        await db.commit()
        await db.refresh(pref)
        return pref

    async def remove_for_user(self, db: AsyncSession, *, current_user: usr_models.User, pref_key: str) -> int:
        """해당 키의 사용자 설정(지점/회사 공통 모두)을 삭제하고 삭제 건수를 반환합니다."""
        prefs = [p for p in await self.list_for_user(db, user_id=current_user.id) if p.pref_key == pref_key]
        if not prefs:
            raise NotFoundError(f"Preference '{pref_key}' not found")
        for pref in prefs:
            await db.delete(pref)
        await db.commit()
        return len(prefs)


class CRUDRolePreference(CRUDBase[usr_models.RolePreference, usr_schemas.PreferenceSet, usr_schemas.PreferenceSet]):
    def __init__(self):
        super().__init__(model=usr_models.RolePreference)

    async def upsert(
        self, db: AsyncSession, *, role: usr_models.UserRole, pref_key: str, value: Any
    ) -> usr_models.RolePreference:
        pref = await self.get_one_filtered(db, filters={"role": role, "pref_key": pref_key})
        if pref is None:
            pref = usr_models.RolePreference(role=role, pref_key=pref_key)
        pref.pref_value = encode_pref_value(value)
        db.add(pref)
        await db.commit()
        await db.refresh(pref)
        return pref


preference = CRUDPreference()
role_preference = CRUDRolePreference()
