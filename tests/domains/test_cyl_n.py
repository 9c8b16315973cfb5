# tests/domains/test_cyl_n.py

"""
'cyl' 도메인 (가스 용기 및 검사 이력) 관련 API 엔드포인트에 대한 통합 테스트 모듈입니다.

- 소유 형태(SELF/PARTY) 규칙
- 검사 이력 변경 시 용기 last_test_date/next_test_date 동기화
- 스코프(회사/지점) 격리
- 트랜잭션 롤백 (검사일 재계산 실패 시)
- CSV 일괄 등록, 공개 바코드 조회
"""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import NotFoundError
from app.domains.cyl import crud as cyl_crud
from app.domains.cyl import models as cyl_models
from app.domains.cyl import schemas as cyl_schemas

CYLINDERS_URL = "/api/v1/cylinders"
TESTS_URL = "/api/v1/cylinder-tests"


def cylinder_payload(**overrides) -> dict:
    payload = {
        "cylinder_code": "CYL-001",
        "cylinder_family_code": "B-47",
        "serial_number": "SN-1001",
        "barcode_number": "BC-1001",
        "gas_content": "Oxygen",
        "capacity": 47.0,
        "capacity_unit": "L",
        "manufacturer": "Everest Kanto",
        "owner_type": "SELF",
    }
    payload.update(overrides)
    return payload


async def create_cylinder(client: AsyncClient, **overrides) -> dict:
    response = await client.post(CYLINDERS_URL, json=cylinder_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def get_cylinder(client: AsyncClient, cylinder_id: int) -> dict:
    response = await client.get(f"{CYLINDERS_URL}/{cylinder_id}")
    assert response.status_code == 200, response.text
    return response.json()["data"]


async def add_test(client: AsyncClient, cylinder_id: int, **fields) -> int:
    response = await client.post(f"{CYLINDERS_URL}/{cylinder_id}/tests", json=fields)
    assert response.status_code == 201, response.text
    return response.json()["data"]["test_id"]


async def count_cylinders(db_session: AsyncSession) -> int:
    result = await db_session.execute(select(func.count()).select_from(cyl_models.Cylinder))
    return result.scalar_one()


# =============================================================================
# 1. 용기 등록 + 첫 검사 이력
# =============================================================================
@pytest.mark.asyncio
async def test_create_cylinder_with_first_test_sets_dates(authorized_client: AsyncClient):
    """첫 검사 이력과 함께 등록하면 용기의 검사일이 그 검사 기준으로 설정되는지 테스트합니다."""
    response = await authorized_client.post(
        CYLINDERS_URL,
        json=cylinder_payload(
            test_date="2024-06-01",
            test_type="Hydrostatic",
            test_result="Pass",
            test_pressure=250.5,
            tester_name="R. Kumar",
            next_test_date="2029-06-01",
        ),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "success"
    assert body["message"] == "Cylinder and test record created successfully"
    assert body["data"]["test_id"] is not None

    cylinder = await get_cylinder(authorized_client, body["data"]["cylinder_id"])
    assert cylinder["last_test_date"] == "2024-06-01"
    assert cylinder["next_test_date"] == "2029-06-01"
    assert cylinder["status"] == "available"

    tests = (await authorized_client.get(f"{CYLINDERS_URL}/{cylinder['id']}/tests")).json()["data"]
    assert len(tests) == 1
    assert tests[0]["id"] == body["data"]["test_id"]
    assert tests[0]["test_result"] == "Pass"
    assert tests[0]["inspector_name"] == "R. Kumar"
    assert tests[0]["test_pressure"] == 250.5


@pytest.mark.asyncio
async def test_create_cylinder_without_complete_test_fields(authorized_client: AsyncClient):
    """test_type/test_result 없이 test_date만 있으면 검사 이력을 만들지 않는지 테스트합니다."""
    response = await authorized_client.post(CYLINDERS_URL, json=cylinder_payload(test_date="2024-06-01"))

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Cylinder created successfully"
    assert body["data"]["test_id"] is None

    cylinder = await get_cylinder(authorized_client, body["data"]["cylinder_id"])
    assert cylinder["last_test_date"] is None
    assert cylinder["next_test_date"] is None


@pytest.mark.asyncio
async def test_create_cylinder_with_blank_test_fields(authorized_client: AsyncClient):
    """공백만 있는 test_type/test_result는 첫 검사 이력을 만들지 않는지 테스트합니다."""
    response = await authorized_client.post(
        CYLINDERS_URL, json=cylinder_payload(test_date="2024-06-01", test_type="   ", test_result=" ")
    )

    assert response.status_code == 201
    body = response.json()
    assert body["data"]["test_id"] is None

    cylinder = await get_cylinder(authorized_client, body["data"]["cylinder_id"])
    assert cylinder["last_test_date"] is None
    tests = (await authorized_client.get(f"{CYLINDERS_URL}/{body['data']['cylinder_id']}/tests")).json()["data"]
    assert tests == []


@pytest.mark.asyncio
async def test_first_test_result_is_normalized(authorized_client: AsyncClient):
    data = await create_cylinder(
        authorized_client, test_date="2024-06-01", test_type="Visual", test_status="fine"
    )
    tests = (await authorized_client.get(f"{CYLINDERS_URL}/{data['cylinder_id']}/tests")).json()["data"]
    assert tests[0]["test_result"] == "Pass"
    assert tests[0]["test_type"] == "Visual"


# =============================================================================
# 2. 소유 형태 규칙
# =============================================================================
@pytest.mark.asyncio
async def test_create_party_cylinder_without_party_rejected(authorized_client: AsyncClient, db_session: AsyncSession):
    """PARTY 소유인데 owner_party_id가 없으면 400으로 거부되고 아무것도 저장되지 않는지 테스트합니다."""
    response = await authorized_client.post(CYLINDERS_URL, json=cylinder_payload(owner_type="PARTY"))

    assert response.status_code == 400
    body = response.json()
    assert body["status"] == "error"
    assert body["message"] == "owner_party_id is required when owner_type is PARTY"
    assert await count_cylinders(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "owner_type, message",
    [
        (None, "owner_type is required (SELF or PARTY)"),
        ("  ", "owner_type is required (SELF or PARTY)"),
        ("OWNER", "Invalid owner_type. Allowed values: 'SELF', 'PARTY'"),
    ],
)
async def test_create_cylinder_invalid_owner_type(authorized_client: AsyncClient, owner_type, message):
    response = await authorized_client.post(CYLINDERS_URL, json=cylinder_payload(owner_type=owner_type))

    assert response.status_code == 400
    assert response.json()["message"] == message


@pytest.mark.asyncio
async def test_create_self_cylinder_clears_party_links(authorized_client: AsyncClient, test_party_id: int):
    """SELF 소유면 요청에 거래처/보유자가 있어도 NULL로 저장되는지 테스트합니다."""
    data = await create_cylinder(
        authorized_client, owner_type="self", owner_party_id=test_party_id, current_holder_party_id=test_party_id
    )
    cylinder = await get_cylinder(authorized_client, data["cylinder_id"])

    assert cylinder["owner_type"] == "SELF"
    assert cylinder["owner_party_id"] is None
    assert cylinder["current_holder_party_id"] is None


@pytest.mark.asyncio
async def test_create_party_cylinder(authorized_client: AsyncClient, test_party_id: int, test_second_party_id: int):
    data = await create_cylinder(
        authorized_client,
        owner_type=" party ",
        owner_party_id=test_party_id,
        current_holder_party_id=test_second_party_id,
    )
    cylinder = await get_cylinder(authorized_client, data["cylinder_id"])

    assert cylinder["owner_type"] == "PARTY"
    assert cylinder["owner_party_id"] == test_party_id
    assert cylinder["current_holder_party_id"] == test_second_party_id


@pytest.mark.asyncio
async def test_create_party_cylinder_unknown_party(authorized_client: AsyncClient, db_session: AsyncSession):
    response = await authorized_client.post(
        CYLINDERS_URL, json=cylinder_payload(owner_type="PARTY", owner_party_id=9999)
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Party 9999 not found in this company-branch"
    assert await count_cylinders(db_session) == 0


@pytest.mark.asyncio
async def test_create_duplicate_cylinder_code_conflict(authorized_client: AsyncClient):
    await create_cylinder(authorized_client)
    response = await authorized_client.post(CYLINDERS_URL, json=cylinder_payload(serial_number="SN-OTHER"))

    assert response.status_code == 409
    assert response.json()["message"] == "Cylinder with this code already exists in this company-branch"


@pytest.mark.asyncio
async def test_same_code_allowed_in_other_branch(authorized_client: AsyncClient, other_branch_client: AsyncClient):
    """용기 코드는 회사-지점 단위로만 고유한지 테스트합니다."""
    await create_cylinder(authorized_client)
    await create_cylinder(other_branch_client)


@pytest.mark.asyncio
async def test_update_party_to_self_clears_links(
    authorized_client: AsyncClient, test_party_id: int, test_second_party_id: int
):
    """PARTY → SELF로만 변경해도 거래처/보유자가 같은 요청에서 NULL이 되는지 테스트합니다."""
    data = await create_cylinder(
        authorized_client,
        owner_type="PARTY",
        owner_party_id=test_party_id,
        current_holder_party_id=test_second_party_id,
    )

    response = await authorized_client.put(f"{CYLINDERS_URL}/{data['cylinder_id']}", json={"owner_type": "SELF"})

    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["owner_type"] == "SELF"
    assert updated["owner_party_id"] is None
    assert updated["current_holder_party_id"] is None


@pytest.mark.asyncio
async def test_update_to_self_overrides_supplied_holder(authorized_client: AsyncClient, test_party_id: int):
    data = await create_cylinder(authorized_client, owner_type="PARTY", owner_party_id=test_party_id)

    response = await authorized_client.put(
        f"{CYLINDERS_URL}/{data['cylinder_id']}",
        json={"owner_type": "SELF", "current_holder_party_id": test_party_id},
    )

    assert response.status_code == 200
    assert response.json()["data"]["current_holder_party_id"] is None


@pytest.mark.asyncio
async def test_update_self_to_party_requires_party(authorized_client: AsyncClient):
    data = await create_cylinder(authorized_client)

    response = await authorized_client.put(f"{CYLINDERS_URL}/{data['cylinder_id']}", json={"owner_type": "PARTY"})

    assert response.status_code == 400
    assert response.json()["message"] == "owner_party_id is required when owner_type is PARTY"
    cylinder = await get_cylinder(authorized_client, data["cylinder_id"])
    assert cylinder["owner_type"] == "SELF"


@pytest.mark.asyncio
async def test_update_party_cylinder_uses_existing_party(
    authorized_client: AsyncClient, test_party_id: int, test_second_party_id: int
):
    """owner_type 생략 시 기존 PARTY/거래처 값으로 검증하고, 보유자만 변경할 수 있는지 테스트합니다."""
    data = await create_cylinder(authorized_client, owner_type="PARTY", owner_party_id=test_party_id)
    url = f"{CYLINDERS_URL}/{data['cylinder_id']}"

    response = await authorized_client.put(url, json={"current_holder_party_id": test_second_party_id})
    assert response.status_code == 200
    assert response.json()["data"]["owner_party_id"] == test_party_id
    assert response.json()["data"]["current_holder_party_id"] == test_second_party_id

    response = await authorized_client.put(url, json={"owner_party_id": None})
    assert response.status_code == 400
    cylinder = await get_cylinder(authorized_client, data["cylinder_id"])
    assert cylinder["owner_party_id"] == test_party_id


@pytest.mark.asyncio
async def test_update_self_cylinder_ignores_party_fields(authorized_client: AsyncClient, test_party_id: int):
    data = await create_cylinder(authorized_client)

    response = await authorized_client.put(
        f"{CYLINDERS_URL}/{data['cylinder_id']}",
        json={"owner_party_id": test_party_id, "current_holder_party_id": test_party_id},
    )

    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["owner_type"] == "SELF"
    assert updated["owner_party_id"] is None
    assert updated["current_holder_party_id"] is None


# =============================================================================
# 3. 부분 수정 규칙 / 소프트 삭제
# =============================================================================
@pytest.mark.asyncio
async def test_update_cylinder_partial_fields(authorized_client: AsyncClient):
    """생략한 필드는 유지되고, 명시적 null은 NULL로 기록되는지 테스트합니다."""
    data = await create_cylinder(authorized_client, status="in_use")
    url = f"{CYLINDERS_URL}/{data['cylinder_id']}"

    response = await authorized_client.put(url, json={"manufacturer": "Luxfer", "serial_number": None})
    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["manufacturer"] == "Luxfer"
    assert updated["serial_number"] is None
    assert updated["barcode_number"] == "BC-1001"
    assert updated["status"] == "in_use"

    response = await authorized_client.put(url, json={"status": None})
    assert response.json()["data"]["status"] == "available"


@pytest.mark.asyncio
async def test_update_cylinder_rejects_null_required_field(authorized_client: AsyncClient):
    data = await create_cylinder(authorized_client)

    response = await authorized_client.put(f"{CYLINDERS_URL}/{data['cylinder_id']}", json={"cylinder_code": None})

    assert response.status_code == 400
    assert "cylinder_code" in response.json()["message"]


@pytest.mark.asyncio
async def test_update_cylinder_code_conflict(authorized_client: AsyncClient):
    await create_cylinder(authorized_client)
    second = await create_cylinder(authorized_client, cylinder_code="CYL-002", barcode_number="BC-1002")

    response = await authorized_client.put(
        f"{CYLINDERS_URL}/{second['cylinder_id']}", json={"cylinder_code": "CYL-001"}
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_update_cylinder_does_not_touch_test_dates(authorized_client: AsyncClient):
    """용기 수정 요청으로는 검사일 캐시 값을 바꿀 수 없는지 테스트합니다."""
    data = await create_cylinder(
        authorized_client, test_date="2024-06-01", test_type="Hydrostatic", test_result="Pass"
    )

    response = await authorized_client.put(
        f"{CYLINDERS_URL}/{data['cylinder_id']}",
        json={"last_test_date": "2030-01-01", "next_test_date": "2031-01-01"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["last_test_date"] == "2024-06-01"
    assert response.json()["data"]["next_test_date"] is None


@pytest.mark.asyncio
async def test_soft_delete_keeps_test_history(authorized_client: AsyncClient):
    data = await create_cylinder(
        authorized_client, test_date="2024-06-01", test_type="Hydrostatic", test_result="Pass"
    )

    response = await authorized_client.delete(f"{CYLINDERS_URL}/{data['cylinder_id']}")
    assert response.status_code == 200
    assert response.json()["data"]["is_active"] is False

    cylinder = await get_cylinder(authorized_client, data["cylinder_id"])
    assert cylinder["is_active"] is False
    tests = (await authorized_client.get(f"{CYLINDERS_URL}/{data['cylinder_id']}/tests")).json()["data"]
    assert len(tests) == 1

    inactive = (await authorized_client.get(CYLINDERS_URL, params={"is_active": False})).json()["data"]
    assert inactive["total_count"] == 1


@pytest.mark.asyncio
async def test_update_missing_cylinder_not_found(authorized_client: AsyncClient):
    response = await authorized_client.put(f"{CYLINDERS_URL}/9999", json={"manufacturer": "X"})

    assert response.status_code == 404
    assert response.json()["message"] == "Cylinder not found for this company-branch"


# =============================================================================
# 4. 검사 이력과 검사일 동기화
# =============================================================================
@pytest.mark.asyncio
async def test_newer_test_updates_dates_and_delete_reverts(authorized_client: AsyncClient):
    """더 최근 검사 추가 시 검사일이 갱신되고, 삭제하면 이전 검사 기준으로 되돌아가는지 테스트합니다."""
    data = await create_cylinder(
        authorized_client,
        test_date="2024-06-01",
        test_type="Hydrostatic",
        test_result="Pass",
        next_test_date="2029-06-01",
    )
    cylinder_id = data["cylinder_id"]

    newer_id = await add_test(authorized_client, cylinder_id, test_date="2025-01-15", next_test_date="2030-01-15")
    cylinder = await get_cylinder(authorized_client, cylinder_id)
    assert cylinder["last_test_date"] == "2025-01-15"
    assert cylinder["next_test_date"] == "2030-01-15"

    response = await authorized_client.delete(f"{TESTS_URL}/{newer_id}")
    assert response.status_code == 200
    cylinder = await get_cylinder(authorized_client, cylinder_id)
    assert cylinder["last_test_date"] == "2024-06-01"
    assert cylinder["next_test_date"] == "2029-06-01"


@pytest.mark.asyncio
async def test_deleting_last_test_clears_dates(authorized_client: AsyncClient):
    data = await create_cylinder(
        authorized_client, test_date="2024-06-01", test_type="Hydrostatic", test_result="Pass"
    )

    response = await authorized_client.delete(f"{TESTS_URL}/{data['test_id']}")
    assert response.status_code == 200

    cylinder = await get_cylinder(authorized_client, data["cylinder_id"])
    assert cylinder["last_test_date"] is None
    assert cylinder["next_test_date"] is None


@pytest.mark.asyncio
async def test_backdated_test_does_not_change_dates(authorized_client: AsyncClient):
    data = await create_cylinder(authorized_client)
    await add_test(authorized_client, data["cylinder_id"], test_date="2024-06-01", next_test_date="2029-06-01")
    await add_test(authorized_client, data["cylinder_id"], test_date="2020-02-01", next_test_date="2025-02-01")

    cylinder = await get_cylinder(authorized_client, data["cylinder_id"])
    assert cylinder["last_test_date"] == "2024-06-01"
    assert cylinder["next_test_date"] == "2029-06-01"


@pytest.mark.asyncio
async def test_same_day_tests_latest_created_wins(authorized_client: AsyncClient):
    """같은 날짜의 검사가 여러 건이면 나중에 등록된 검사의 차기 검사일이 사용되는지 테스트합니다."""
    data = await create_cylinder(authorized_client)
    await add_test(authorized_client, data["cylinder_id"], test_date="2024-06-01", next_test_date="2029-06-01")
    await add_test(authorized_client, data["cylinder_id"], test_date="2024-06-01", next_test_date="2026-06-01")

    cylinder = await get_cylinder(authorized_client, data["cylinder_id"])
    assert cylinder["next_test_date"] == "2026-06-01"


@pytest.mark.asyncio
async def test_create_test_defaults_and_aliases(authorized_client: AsyncClient):
    data = await create_cylinder(authorized_client)
    cylinder_id = data["cylinder_id"]

    await add_test(authorized_client, cylinder_id, test_date="2024-01-10")
    await add_test(
        authorized_client, cylinder_id,
        test_date="2024-02-10", test_type="Visual", test_status="not ok", tester_name="A. Shah", test_notes="Dent",
    )

    tests = (await authorized_client.get(f"{CYLINDERS_URL}/{cylinder_id}/tests")).json()["data"]
    assert [t["test_date"] for t in tests] == ["2024-02-10", "2024-01-10"]
    latest, first = tests
    assert first["test_type"] == "Hydrostatic"
    assert first["test_result"] == "Pass"
    assert latest["test_result"] == "Fail"
    assert latest["inspector_name"] == "A. Shah"
    assert latest["notes"] == "Dent"


@pytest.mark.asyncio
async def test_create_test_requires_test_date(authorized_client: AsyncClient):
    data = await create_cylinder(authorized_client)

    response = await authorized_client.post(f"{CYLINDERS_URL}/{data['cylinder_id']}/tests", json={"test_type": "Visual"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_test_for_unknown_cylinder(authorized_client: AsyncClient):
    response = await authorized_client.post(f"{CYLINDERS_URL}/9999/tests", json={"test_date": "2024-06-01"})

    assert response.status_code == 404
    assert response.json()["message"] == "Cylinder not found for this company-branch"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw, stored",
    [("FINE", "Pass"), ("passed", "Pass"), ("NOT_OK", "Fail"), ("cond", "Conditional"), ("  Needs review ", "Needs review")],
)
async def test_update_test_result_normalized(authorized_client: AsyncClient, raw: str, stored: str):
    data = await create_cylinder(
        authorized_client, test_date="2024-06-01", test_type="Hydrostatic", test_result="Fail"
    )

    response = await authorized_client.put(f"{TESTS_URL}/{data['test_id']}", json={"test_result": raw})

    assert response.status_code == 200
    assert response.json()["data"]["test_result"] == stored


@pytest.mark.asyncio
async def test_update_test_overwrites_provided_columns(authorized_client: AsyncClient):
    data = await create_cylinder(
        authorized_client,
        test_date="2024-06-01",
        test_type="Pneumatic",
        test_result="Pass",
        inspector_name="R. Kumar",
        next_test_date="2029-06-01",
    )
    url = f"{TESTS_URL}/{data['test_id']}"

    response = await authorized_client.put(
        url, json={"test_type": None, "inspector_name": None, "remarks": "Re-stamped"}
    )

    assert response.status_code == 200
    test = response.json()["data"]
    assert test["test_type"] == "Hydrostatic"
    assert test["inspector_name"] is None
    assert test["remarks"] == "Re-stamped"
    assert test["test_result"] == "Pass"
    assert test["next_test_date"] == "2029-06-01"

    response = await authorized_client.put(url, json={"test_date": None})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_test_date_recalculates(authorized_client: AsyncClient):
    """최신 검사의 날짜를 과거로 고치면 다른 검사가 최신이 되는지 테스트합니다."""
    data = await create_cylinder(authorized_client)
    cylinder_id = data["cylinder_id"]
    await add_test(authorized_client, cylinder_id, test_date="2023-05-01", next_test_date="2028-05-01")
    latest_id = await add_test(authorized_client, cylinder_id, test_date="2024-05-01", next_test_date="2029-05-01")

    response = await authorized_client.put(f"{TESTS_URL}/{latest_id}", json={"test_date": "2022-05-01"})
    assert response.status_code == 200

    cylinder = await get_cylinder(authorized_client, cylinder_id)
    assert cylinder["last_test_date"] == "2023-05-01"
    assert cylinder["next_test_date"] == "2028-05-01"

    response = await authorized_client.put(f"{TESTS_URL}/{latest_id}", json={"next_test_date": None, "test_date": "2025-01-01"})
    cylinder = await get_cylinder(authorized_client, cylinder_id)
    assert cylinder["last_test_date"] == "2025-01-01"
    assert cylinder["next_test_date"] is None


# =============================================================================
# 5. 스코프 격리
# =============================================================================
@pytest.mark.asyncio
async def test_test_record_in_other_branch_not_found(
    authorized_client: AsyncClient, other_branch_client: AsyncClient
):
    """다른 지점의 검사 이력은 수정/삭제할 수 없고, 아무 변경도 일어나지 않는지 테스트합니다."""
    data = await create_cylinder(
        authorized_client, test_date="2024-06-01", test_type="Hydrostatic", test_result="Pass"
    )
    url = f"{TESTS_URL}/{data['test_id']}"

    response = await other_branch_client.put(url, json={"test_result": "Fail"})
    assert response.status_code == 404
    assert response.json()["message"] == "Test record not found for this company-branch"

    response = await other_branch_client.delete(url)
    assert response.status_code == 404

    tests = (await authorized_client.get(f"{CYLINDERS_URL}/{data['cylinder_id']}/tests")).json()["data"]
    assert len(tests) == 1
    assert tests[0]["test_result"] == "Pass"
    cylinder = await get_cylinder(authorized_client, data["cylinder_id"])
    assert cylinder["last_test_date"] == "2024-06-01"


@pytest.mark.asyncio
async def test_admin_with_mismatched_scope_not_found(authorized_client: AsyncClient, admin_client: AsyncClient, scope_ids):
    data = await create_cylinder(
        authorized_client, test_date="2024-06-01", test_type="Hydrostatic", test_result="Pass"
    )

    response = await admin_client.delete(
        f"{TESTS_URL}/{data['test_id']}", params={"branch_id": scope_ids.other_branch_id}
    )
    assert response.status_code == 404

    response = await admin_client.delete(f"{TESTS_URL}/{data['test_id']}", params={"branch_id": scope_ids.branch_id})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_cylinder_in_other_branch_not_visible(authorized_client: AsyncClient, other_branch_client: AsyncClient):
    data = await create_cylinder(authorized_client)

    assert (await other_branch_client.get(f"{CYLINDERS_URL}/{data['cylinder_id']}")).status_code == 404
    response = await other_branch_client.post(
        f"{CYLINDERS_URL}/{data['cylinder_id']}/tests", json={"test_date": "2024-06-01"}
    )
    assert response.status_code == 404
    assert (await other_branch_client.delete(f"{CYLINDERS_URL}/{data['cylinder_id']}")).status_code == 404


@pytest.mark.asyncio
async def test_non_admin_cannot_assert_other_scope(authorized_client: AsyncClient, scope_ids):
    response = await authorized_client.get(CYLINDERS_URL, params={"branch_id": scope_ids.other_branch_id})
    assert response.status_code == 403

    response = await authorized_client.post(
        CYLINDERS_URL, json=cylinder_payload(branch_id=scope_ids.other_branch_id)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_can_create_in_other_branch(admin_client: AsyncClient, other_branch_client: AsyncClient, scope_ids):
    response = await admin_client.post(
        CYLINDERS_URL, json=cylinder_payload(company_id=scope_ids.company_id, branch_id=scope_ids.other_branch_id)
    )
    assert response.status_code == 201

    listed = (await other_branch_client.get(CYLINDERS_URL)).json()["data"]
    assert listed["total_count"] == 1
    assert listed["items"][0]["branch_id"] == scope_ids.other_branch_id


@pytest.mark.asyncio
async def test_list_tests_endpoint_filters(
    authorized_client: AsyncClient, other_branch_client: AsyncClient, admin_client: AsyncClient
):
    first = await create_cylinder(authorized_client)
    second = await create_cylinder(authorized_client, cylinder_code="CYL-002", barcode_number="BC-1002")
    await add_test(authorized_client, first["cylinder_id"], test_date="2024-01-01", test_type="Visual")
    await add_test(authorized_client, first["cylinder_id"], test_date="2024-03-01")
    await add_test(authorized_client, second["cylinder_id"], test_date="2024-02-01")
    west = await create_cylinder(other_branch_client, cylinder_code="W-001")
    await add_test(other_branch_client, west["cylinder_id"], test_date="2024-04-01")

    tests = (await authorized_client.get(TESTS_URL)).json()["data"]
    assert [t["test_date"] for t in tests] == ["2024-03-01", "2024-02-01", "2024-01-01"]

    tests = (await authorized_client.get(TESTS_URL, params={"cylinder_id": first["cylinder_id"]})).json()["data"]
    assert len(tests) == 2

    tests = (await authorized_client.get(TESTS_URL, params={"test_type": "Visual"})).json()["data"]
    assert len(tests) == 1

    all_branches = (await admin_client.get(TESTS_URL)).json()["data"]
    assert len(all_branches) == 4


# =============================================================================
# 6. 조회 (목록, 통계, 검사 예정, 코드/일련번호)
# =============================================================================
@pytest.mark.asyncio
async def test_list_cylinders_search_and_paging(authorized_client: AsyncClient):
    await create_cylinder(authorized_client, cylinder_code="OXY-001", barcode_number="B1", status="in_use")
    await create_cylinder(authorized_client, cylinder_code="OXY-002", barcode_number="B2")
    await create_cylinder(authorized_client, cylinder_code="ARG-001", barcode_number="B3", manufacturer="Luxfer")

    page = (await authorized_client.get(CYLINDERS_URL, params={"search": "oxy", "page_size": 1})).json()["data"]
    assert page["total_count"] == 2
    assert page["page_size"] == 1
    assert len(page["items"]) == 1
    assert page["items"][0]["cylinder_code"] == "OXY-001"

    page = (await authorized_client.get(CYLINDERS_URL, params={"search": "luxfer"})).json()["data"]
    assert [c["cylinder_code"] for c in page["items"]] == ["ARG-001"]

    page = (await authorized_client.get(CYLINDERS_URL, params={"status": "in_use"})).json()["data"]
    assert page["total_count"] == 1


@pytest.mark.asyncio
async def test_cylinder_stats(authorized_client: AsyncClient):
    await create_cylinder(authorized_client, cylinder_code="C1", barcode_number="B1")
    await create_cylinder(authorized_client, cylinder_code="C2", barcode_number="B2")
    await create_cylinder(authorized_client, cylinder_code="C3", barcode_number="B3", status="testing")

    stats = (await authorized_client.get(f"{CYLINDERS_URL}/stats")).json()["data"]

    assert {s["status"]: s["count"] for s in stats} == {"available": 2, "testing": 1}


@pytest.mark.asyncio
async def test_cylinders_due_for_test(authorized_client: AsyncClient):
    today = date.today()
    soon = await create_cylinder(authorized_client, cylinder_code="SOON", barcode_number="B1")
    overdue = await create_cylinder(authorized_client, cylinder_code="OVERDUE", barcode_number="B2")
    later = await create_cylinder(authorized_client, cylinder_code="LATER", barcode_number="B3")
    await add_test(authorized_client, soon["cylinder_id"], test_date="2020-01-01",
                   next_test_date=(today + timedelta(days=10)).isoformat())
    await add_test(authorized_client, overdue["cylinder_id"], test_date="2019-01-01",
                   next_test_date=(today - timedelta(days=5)).isoformat())
    await add_test(authorized_client, later["cylinder_id"], test_date="2024-01-01",
                   next_test_date=(today + timedelta(days=400)).isoformat())

    due = (await authorized_client.get(f"{CYLINDERS_URL}/due-for-test")).json()["data"]
    assert [c["cylinder_code"] for c in due] == ["OVERDUE", "SOON"]

    due = (await authorized_client.get(f"{CYLINDERS_URL}/due-for-test", params={"days_ahead": 500})).json()["data"]
    assert len(due) == 3


@pytest.mark.asyncio
async def test_get_cylinder_by_code_and_serial(authorized_client: AsyncClient):
    data = await create_cylinder(authorized_client)

    response = await authorized_client.get(f"{CYLINDERS_URL}/code/CYL-001")
    assert response.status_code == 200
    assert response.json()["data"]["id"] == data["cylinder_id"]

    response = await authorized_client.get(f"{CYLINDERS_URL}/serial/SN-1001")
    assert response.json()["data"]["id"] == data["cylinder_id"]

    assert (await authorized_client.get(f"{CYLINDERS_URL}/code/NOPE")).status_code == 404


@pytest.mark.asyncio
async def test_public_barcode_lookup(authorized_client: AsyncClient, client: AsyncClient):
    """인증 없이 바코드로 활성 용기와 최신 검사 이력을 조회하는지 테스트합니다."""
    data = await create_cylinder(
        authorized_client, test_date="2023-06-01", test_type="Hydrostatic", test_result="Pass"
    )
    latest_id = await add_test(authorized_client, data["cylinder_id"], test_date="2024-06-01", test_result="ok")

    response = await client.get("/api/v1/public/cylinders/barcode/BC-1001")

    assert response.status_code == 200
    found = response.json()["data"]
    assert found["cylinder"]["cylinder_code"] == "CYL-001"
    assert found["cylinder"]["company_name"] == "Acme Gases"
    assert found["cylinder"]["branch_name"] == "Main Plant"
    assert found["latest_test"]["id"] == latest_id

    await authorized_client.delete(f"{CYLINDERS_URL}/{data['cylinder_id']}")
    assert (await client.get("/api/v1/public/cylinders/barcode/BC-1001")).status_code == 404


# =============================================================================
# 7. CSV 일괄 등록
# =============================================================================
@pytest.mark.asyncio
async def test_upload_cylinders_csv(authorized_client: AsyncClient, test_party_id: int):
    csv_text = (
        "Cylinder Code,Cylinder Family Code,Owner Type,Owner Party ID,Serial Number,Barcode Number,"
        "Last Test Date,Next Test Date,Test Type,Test Result,Status\n"
        "CSV-001,B-47,self,,SN-1,BC-1,2024-03-10,2029-03-10,Hydrostatic,ok,Available\n"
        "CSV-002,B-47,PARTY,,SN-2,BC-2,,,,,\n"
        ",,,,,,,,,,\n"
        "CSV-003,B-47,OWNER,,SN-3,,,,,,\n"
        "CSV-001,B-47,SELF,,SN-4,,,,,,\n"
        f"CSV-005,B-47,PARTY,{test_party_id},SN-5,,15-04-2024,,Hydrostatic,PASS,in_use\n"
    )

    response = await authorized_client.post(
        f"{CYLINDERS_URL}/upload", files={"file": ("cylinders.csv", csv_text.encode("utf-8-sig"), "text/csv")}
    )

    assert response.status_code == 200
    result = response.json()["data"]
    assert result["total"] == 5
    assert result["inserted"] == 2
    assert result["failed"] == 3
    assert [e["row"] for e in result["errors"]] == [3, 5, 6]
    assert result["errors"][0]["error"] == "owner_party_id is required when owner_type is PARTY"
    assert result["errors"][1]["error"] == "Invalid owner_type. Allowed values: 'SELF', 'PARTY'"
    assert result["errors"][2]["cylinder_code"] == "CSV-001"
    assert [r["cylinder_code"] for r in result["inserted_records"]] == ["CSV-001", "CSV-005"]
    assert all(r["test_id"] is not None for r in result["inserted_records"])

    first = await get_cylinder(authorized_client, result["inserted_records"][0]["cylinder_id"])
    assert first["status"] == "available"
    assert first["last_test_date"] == "2024-03-10"
    assert first["next_test_date"] == "2029-03-10"

    second = await get_cylinder(authorized_client, result["inserted_records"][1]["cylinder_id"])
    assert second["owner_party_id"] == test_party_id
    assert second["last_test_date"] == "2024-04-15"


@pytest.mark.asyncio
async def test_upload_empty_file_rejected(authorized_client: AsyncClient):
    response = await authorized_client.post(
        f"{CYLINDERS_URL}/upload", files={"file": ("empty.csv", b"", "text/csv")}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Uploaded file is empty"


# =============================================================================
# 8. 트랜잭션 / 재계산 (저장소 레벨)
# =============================================================================
def _create_schema(scope_ids, **overrides) -> cyl_schemas.CylinderCreate:
    data = cylinder_payload(company_id=scope_ids.company_id, branch_id=scope_ids.branch_id)
    data.update(overrides)
    return cyl_schemas.CylinderCreate(**data)


@pytest.mark.asyncio
async def test_create_with_test_is_all_or_nothing(db_session: AsyncSession, scope_ids, monkeypatch):
    """첫 검사 이력 처리 중 실패하면 용기 등록도 함께 롤백되는지 테스트합니다."""
    async def broken_recalculate(db, cylinder_id):
        raise RuntimeError("recalculation failed")

    monkeypatch.setattr(cyl_crud, "recalculate_cylinder_dates", broken_recalculate)
    obj_in = _create_schema(scope_ids, test_date="2024-06-01", test_type="Hydrostatic", test_result="Pass")

    with pytest.raises(RuntimeError):
        await cyl_crud.cylinder_crud.create_with_test(
            db_session, obj_in=obj_in, company_id=scope_ids.company_id, branch_id=scope_ids.branch_id
        )

    assert await count_cylinders(db_session) == 0
    tests = await db_session.execute(select(func.count()).select_from(cyl_models.CylinderTest))
    assert tests.scalar_one() == 0


@pytest.mark.asyncio
async def test_failed_recalculation_rolls_back_new_test(db_session: AsyncSession, scope_ids, monkeypatch):
    cylinder, _ = await cyl_crud.cylinder_crud.create_with_test(
        db_session,
        obj_in=_create_schema(scope_ids, test_date="2024-06-01", test_type="Hydrostatic", test_result="Pass"),
        company_id=scope_ids.company_id,
        branch_id=scope_ids.branch_id,
    )
    cylinder_id = cylinder.id

    async def broken_recalculate(db, cylinder_id):
        raise RuntimeError("recalculation failed")

    monkeypatch.setattr(cyl_crud, "recalculate_cylinder_dates", broken_recalculate)
    with pytest.raises(RuntimeError):
        await cyl_crud.cylinder_test_crud.create_test(
            db_session,
            cylinder_id=cylinder_id,
            company_id=scope_ids.company_id,
            branch_id=scope_ids.branch_id,
            obj_in=cyl_schemas.CylinderTestCreate(test_date=date(2025, 1, 1)),
        )
    monkeypatch.undo()

    tests = await cyl_crud.cylinder_test_crud.list_tests(
        db_session, company_id=scope_ids.company_id, cylinder_id=cylinder_id
    )
    assert [t.test_date for t in tests] == [date(2024, 6, 1)]
    reloaded = await db_session.get(cyl_models.Cylinder, cylinder_id)
    assert reloaded.last_test_date == date(2024, 6, 1)


@pytest.mark.asyncio
async def test_recalculate_is_idempotent(db_session: AsyncSession, scope_ids):
    cylinder, _ = await cyl_crud.cylinder_crud.create_with_test(
        db_session,
        obj_in=_create_schema(
            scope_ids, test_date="2024-06-01", test_type="Hydrostatic", test_result="Pass", next_test_date="2029-06-01"
        ),
        company_id=scope_ids.company_id,
        branch_id=scope_ids.branch_id,
    )

    first = await cyl_crud.recalculate_cylinder_dates(db_session, cylinder.id)
    first_dates = (first.last_test_date, first.next_test_date)
    second = await cyl_crud.recalculate_cylinder_dates(db_session, cylinder.id)

    assert (second.last_test_date, second.next_test_date) == first_dates == (date(2024, 6, 1), date(2029, 6, 1))
    assert second not in db_session.dirty


@pytest.mark.asyncio
async def test_delete_test_outside_scope_raises_not_found(db_session: AsyncSession, scope_ids):
    _, test = await cyl_crud.cylinder_crud.create_with_test(
        db_session,
        obj_in=_create_schema(scope_ids, test_date="2024-06-01", test_type="Hydrostatic", test_result="Pass"),
        company_id=scope_ids.company_id,
        branch_id=scope_ids.branch_id,
    )
    test_id = test.id

    with pytest.raises(NotFoundError):
        await cyl_crud.cylinder_test_crud.delete_test(
            db_session, test_id=test_id, company_id=scope_ids.company_id, branch_id=scope_ids.other_branch_id
        )

    assert await db_session.get(cyl_models.CylinderTest, test_id) is not None


@pytest.mark.asyncio
async def test_update_in_scope_applies_partial_changes(db_session: AsyncSession, scope_ids):
    cylinder, _ = await cyl_crud.cylinder_crud.create_with_test(
        db_session, obj_in=_create_schema(scope_ids), company_id=scope_ids.company_id, branch_id=scope_ids.branch_id
    )
    cylinder_id = cylinder.id

    updated = await cyl_crud.cylinder_crud.update_in_scope(
        db_session,
        cylinder_id=cylinder_id,
        company_id=scope_ids.company_id,
        branch_id=scope_ids.branch_id,
        obj_in={"manufacturer": "Everest Kanto"},
    )

    assert updated.manufacturer == "Everest Kanto"
    assert updated.serial_number == "SN-1001"

    with pytest.raises(NotFoundError):
        await cyl_crud.cylinder_crud.update_in_scope(
            db_session,
            cylinder_id=cylinder_id,
            company_id=scope_ids.company_id,
            branch_id=scope_ids.other_branch_id,
            obj_in={"manufacturer": "Other"},
        )


@pytest.mark.asyncio
async def test_base_update_still_available_on_cylinder_crud(db_session: AsyncSession, scope_ids):
    """범위 수정과 별개로 CRUDBase.update(db_obj, obj_in) 시그니처가 유지되는지 테스트합니다."""
    cylinder, _ = await cyl_crud.cylinder_crud.create_with_test(
        db_session, obj_in=_create_schema(scope_ids), company_id=scope_ids.company_id, branch_id=scope_ids.branch_id
    )

    updated = await cyl_crud.cylinder_crud.update(db_session, db_obj=cylinder, obj_in={"status": "filled"})

    assert updated.status == "filled"
