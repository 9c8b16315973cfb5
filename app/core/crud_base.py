# app/core/crud_base.py

"""
공통 CRUD(Create, Read, Update, Delete) 작업을 위한 기본 클래스 모듈입니다.
모든 메서드는 비동기(async) 환경에서 동작합니다.
"""

import logging
from typing import Generic, List, Optional, Sequence, Tuple, Type, TypeVar, Any, Dict

from sqlalchemy import func
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from pydantic import BaseModel

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    모든 CRUD 작업에 대한 기본 클래스를 정의합니다.
    """
    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        """ID를 기준으로 단일 레코드를 조회합니다."""
        return await db.get(self.model, id)

    async def get_multi(
        self, db: AsyncSession, *, skip: int = 0, limit: int = 100, **kwargs: Any
    ) -> List[ModelType]:
        """
        여러 레코드를 조회합니다. None이 아닌 키워드 인자는 동등 조건 필터로 적용됩니다.
        """
        query = select(self.model)
        for field, value in kwargs.items():
            if value is None:
                continue
            if hasattr(self.model, field):
                query = query.where(getattr(self.model, field) == value)
            else:
                logger.warning("Model %s has no attribute '%s'", self.model.__name__, field)

        query = query.order_by(self.model.id).offset(skip).limit(limit)
        result = await db.execute(query)
        return result.scalars().all()

    async def get_by_attribute(
        self, db: AsyncSession, *, attribute: str, value: Any
    ) -> Optional[ModelType]:
        statement = select(self.model).where(getattr(self.model, attribute) == value)
        response = await db.execute(statement)
        return response.scalars().first()

    async def get_one_filtered(
        self, db: AsyncSession, *, filters: Dict[str, Any]
    ) -> Optional[ModelType]:
        """
        여러 속성의 동등 조건으로 단일 항목을 조회합니다.
        조건을 만족하는 레코드가 여러 개면 첫 번째 것을, 없으면 None을 반환합니다.
        """
        query = select(self.model)
        for attribute, value in filters.items():
            query = query.where(getattr(self.model, attribute) == value)
        response = await db.execute(query)
        return response.scalars().first()

    async def paginate(
        self,
        db: AsyncSession,
        *,
        conditions: Sequence[Any] = (),
        order_by: Sequence[Any] = (),
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[ModelType], int]:
        """
        조건에 맞는 레코드의 한 페이지와 전체 건수를 함께 반환합니다.
        page는 1부터 시작합니다.
        """
        count_query = select(func.count()).select_from(self.model)
        query = select(self.model)
        if conditions:
            count_query = count_query.where(*conditions)
            query = query.where(*conditions)

        total = (await db.execute(count_query)).scalar_one()

        query = query.order_by(*(order_by or (self.model.id.desc(),)))
        query = query.offset((page - 1) * page_size).limit(page_size)
        result = await db.execute(query)
        return result.scalars().all(), total

    async def create(self, db: AsyncSession, *, obj_in: CreateSchemaType | Dict[str, Any], **extra: Any) -> ModelType:
        """
        새로운 레코드를 생성합니다. extra 값은 스키마 값보다 우선합니다.
        """
        obj_data = obj_in.model_dump() if isinstance(obj_in, BaseModel) else dict(obj_in)
        obj_data.update(extra)
        db_obj = self.model.model_validate(obj_data)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self, db: AsyncSession, *, db_obj: ModelType, obj_in: UpdateSchemaType | Dict[str, Any]
    ) -> ModelType:
        """
        기존 레코드를 업데이트합니다. 요청에 포함된(set) 필드만 반영됩니다.
        """
        update_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(db_obj, key, value)

        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def delete(self, db: AsyncSession, *, id: Any) -> Optional[ModelType]:
        """
        ID를 기준으로 레코드를 삭제합니다.
        """
        db_obj = await db.get(self.model, id)
        if db_obj:
            await db.delete(db_obj)
            await db.commit()
        return db_obj
