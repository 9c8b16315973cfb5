# app/domains/models/__init__.py

"""
이 파일은 모든 도메인의 SQLModel 모델들을 한 곳에서 중앙 관리하여,
다른 모듈에서 쉽게 임포트할 수 있도록 하는 역할을 합니다.
SQLModel.metadata가 모든 테이블을 인식하도록 보장합니다.
"""

# org (Company, Branch)
from app.domains.org.models import Company, Branch

# usr (User, UserPreference, RolePreference)
from app.domains.usr.models import User, UserRole, UserPreference, RolePreference

# mst (GasType, CylinderFamily, UnitOfMeasure, Country, State, City, GasCategory, GasTypeCylinderFamilyMap)
from app.domains.mst.models import (
    GasType, CylinderFamily, UnitOfMeasure, Country, State, City, GasCategory, GasTypeCylinderFamilyMap,
)

# pty (Party, PartyAddress, PartyType)
from app.domains.pty.models import Party, PartyAddress, PartyType

# cyl (Cylinder, CylinderTest)
from app.domains.cyl.models import Cylinder, CylinderTest

# prc (PartyGasRate)
from app.domains.prc.models import PartyGasRate


#  `from app.domains.models import *` 구문으로 임포트될 모델 목록 정의
__all__ = [
    # org
    "Company", "Branch",
    # usr
    "User", "UserRole", "UserPreference", "RolePreference",
    # mst
    "GasType", "CylinderFamily", "UnitOfMeasure", "Country", "State", "City", "GasCategory", "GasTypeCylinderFamilyMap",
    # pty
    "Party", "PartyAddress", "PartyType",
    # cyl
    "Cylinder", "CylinderTest",
    # prc
    "PartyGasRate",
]
