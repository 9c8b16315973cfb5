# app/domains/srch/schemas.py

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class CylinderHit(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    branch_id: int
    cylinder_code: str
    barcode_number: Optional[str] = None
    serial_number: Optional[str] = None


class PartyHit(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    branch_id: int
    party_code: str
    party_name: str
    phone: Optional[str] = None


class UserHit(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    login_id: str
    full_name: Optional[str] = None
    email: Optional[str] = None


class BranchHit(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    branch_code: str
    branch_name: str


class CompanyHit(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_code: str
    company_name: str


class SearchResult(BaseModel):
    cylinders: List[CylinderHit] = []
    parties: List[PartyHit] = []
    users: List[UserHit] = []
    branches: List[BranchHit] = []
    companies: List[CompanyHit] = []
