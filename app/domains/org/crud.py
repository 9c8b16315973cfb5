# app/domains/org/crud.py

"""
'org' 도메인의 CRUD 작업을 담당하는 모듈입니다.
"""

from typing import List, Optional
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from app.core.exceptions import ConflictError, NotFoundError
from . import models as org_models
from . import schemas as org_schemas


# =============================================================================
# 1. companies 테이블 CRUD
# =============================================================================
class CRUDCompany(CRUDBase[org_models.Company, org_schemas.CompanyCreate, org_schemas.CompanyUpdate]):
    def __init__(self):
        super().__init__(model=org_models.Company)

    async def get_by_code(self, db: AsyncSession, *, company_code: str) -> Optional[org_models.Company]:
        return await self.get_by_attribute(db, attribute="company_code", value=company_code)

    async def create(self, db: AsyncSession, *, obj_in: org_schemas.CompanyCreate) -> org_models.Company:
        if await self.get_by_code(db, company_code=obj_in.company_code):
            raise ConflictError("Company with this code already exists")
        return await super().create(db, obj_in=obj_in)


company = CRUDCompany()


# =============================================================================
# 2. branches 테이블 CRUD
# =============================================================================
class CRUDBranch(CRUDBase[org_models.Branch, org_schemas.BranchCreate, org_schemas.BranchUpdate]):
    def __init__(self):
        super().__init__(model=org_models.Branch)

    async def get_by_code(
        self, db: AsyncSession, *, company_id: int, branch_code: str
    ) -> Optional[org_models.Branch]:
        return await self.get_one_filtered(db, filters={"company_id": company_id, "branch_code": branch_code})

    async def get_by_company(self, db: AsyncSession, *, company_id: int) -> List[org_models.Branch]:
        return await self.get_multi(db, company_id=company_id, limit=1000)

    async def create_for_company(
        self, db: AsyncSession, *, company_id: int, obj_in: org_schemas.BranchCreate
    ) -> org_models.Branch:
        if not await company.get(db, id=company_id):
            raise NotFoundError("Company not found")
        if await self.get_by_code(db, company_id=company_id, branch_code=obj_in.branch_code):
            raise ConflictError("Branch with this code already exists in this company")
        return await super().create(db, obj_in=obj_in, company_id=company_id)


branch = CRUDBranch()
