# app/domains/cyl/services.py

"""
'cyl' 도메인의 입력 정규화/검증 규칙을 모아 둔 모듈입니다.

- 소유 형태(owner_type) 검증: SELF/PARTY 규칙을 생성/수정 모드별로 적용합니다.
- 검사 결과(test_result) 정규화: FINE/OK/PASSED 등 현장 표기를 Pass/Fail/Conditional로 통일합니다.
- CSV 업로드 행을 용기 생성 요청 스키마로 변환합니다.

DB에 접근하지 않는 순수 함수만 두며, 모든 오류는 ValidationError로 발생합니다.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from app.core.exceptions import ValidationError
from app.utils import csv_upload


class OwnerType(str, Enum):
    SELF = "SELF"
    PARTY = "PARTY"


class TestResult(str, Enum):
    PASS = "Pass"
    FAIL = "Fail"
    CONDITIONAL = "Conditional"


DEFAULT_TEST_TYPE = "Hydrostatic"
DEFAULT_TEST_RESULT = TestResult.PASS.value
DEFAULT_STATUS = "available"

_TEST_RESULT_ALIASES = {
    "FINE": TestResult.PASS,
    "OK": TestResult.PASS,
    "PASS": TestResult.PASS,
    "PASSED": TestResult.PASS,
    "FAIL": TestResult.FAIL,
    "FAILED": TestResult.FAIL,
    "NOT OK": TestResult.FAIL,
    "NOT_OK": TestResult.FAIL,
    "CONDITIONAL": TestResult.CONDITIONAL,
    "COND": TestResult.CONDITIONAL,
}

OWNER_TYPE_REQUIRED = "owner_type is required (SELF or PARTY)"
OWNER_TYPE_INVALID = "Invalid owner_type. Allowed values: 'SELF', 'PARTY'"
OWNER_PARTY_REQUIRED = "owner_party_id is required when owner_type is PARTY"


# =============================================================================
# 1. 값 정규화
# =============================================================================
def normalize_owner_type(value: Any) -> Optional[str]:
    """앞뒤 공백 제거 후 대문자로 변환합니다. 빈 값은 None."""
    if value is None:
        return None
    text = str(value).strip().upper()
    return text or None


def normalize_int_or_none(value: Any, field: str = "value") -> Optional[int]:
    """정수 또는 숫자 문자열을 int로 변환합니다. None/빈 문자열은 None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        raise ValidationError(f"{field} must be an integer")


def normalize_test_result(value: Any) -> Optional[str]:
    """
    검사 결과 표기를 정규화합니다. (대소문자 무시)
    FINE/OK/PASS/PASSED → Pass, FAIL/FAILED/NOT OK/NOT_OK → Fail, CONDITIONAL/COND → Conditional.
    그 외 값은 공백만 제거해 그대로 두고, 빈 값은 None을 반환합니다.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    matched = _TEST_RESULT_ALIASES.get(text.upper())
    return matched.value if matched else text


def _require_allowed_owner_type(owner_type: Optional[str]) -> OwnerType:
    if owner_type is None:
        raise ValidationError(OWNER_TYPE_REQUIRED)
    try:
        return OwnerType(owner_type)
    except ValueError:
        raise ValidationError(OWNER_TYPE_INVALID)


def _require_positive_or_none(value: Optional[int], field: str) -> Optional[int]:
    if value is not None and value <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return value


# =============================================================================
# 2. 소유 형태 검증
# =============================================================================
def validate_ownership_for_create(
    owner_type: Any, owner_party_id: Any = None, current_holder_party_id: Any = None
) -> Dict[str, Any]:
    """
    신규 용기의 소유 정보를 검증하고 저장할 값을 반환합니다.
    SELF이면 요청 값과 관계없이 owner_party_id/current_holder_party_id를 None으로 만듭니다.
    """
    effective_type = _require_allowed_owner_type(normalize_owner_type(owner_type))

    if effective_type is OwnerType.SELF:
        return {"owner_type": OwnerType.SELF.value, "owner_party_id": None, "current_holder_party_id": None}

    party_id = normalize_int_or_none(owner_party_id, "owner_party_id")
    if party_id is None or party_id <= 0:
        raise ValidationError(OWNER_PARTY_REQUIRED)
    holder_id = _require_positive_or_none(
        normalize_int_or_none(current_holder_party_id, "current_holder_party_id"), "current_holder_party_id"
    )
    return {"owner_type": OwnerType.PARTY.value, "owner_party_id": party_id, "current_holder_party_id": holder_id}


def validate_ownership_for_update(
    existing_owner_type: Any, existing_owner_party_id: Optional[int], changes: Mapping[str, Any]
) -> Dict[str, Any]:
    """
    부분 수정 요청(changes: 요청에 포함된 키만)의 소유 정보를 검증하고,
    실제로 기록할 소유 관련 컬럼 값을 반환합니다.

    - owner_type이 없으면 기존 값이 유효 소유 형태가 됩니다.
    - PARTY는 요청 값 또는 기존 값에서 양수 owner_party_id를 얻어야 합니다.
    - 유효 소유 형태가 SELF이면 거래처/보유자 컬럼을 항상 None으로 기록합니다.
    """
    result: Dict[str, Any] = {}

    if "owner_type" in changes:
        effective_type = _require_allowed_owner_type(normalize_owner_type(changes["owner_type"]))
        result["owner_type"] = effective_type.value
    else:
        effective_type = _require_allowed_owner_type(normalize_owner_type(existing_owner_type))

    if effective_type is OwnerType.SELF:
        result["owner_party_id"] = None
        result["current_holder_party_id"] = None
        return result

    if "owner_party_id" in changes:
        effective_party = normalize_int_or_none(changes["owner_party_id"], "owner_party_id")
        result["owner_party_id"] = effective_party
    else:
        effective_party = existing_owner_party_id
    if effective_party is None or effective_party <= 0:
        raise ValidationError(OWNER_PARTY_REQUIRED)

    if "current_holder_party_id" in changes:
        result["current_holder_party_id"] = _require_positive_or_none(
            normalize_int_or_none(changes["current_holder_party_id"], "current_holder_party_id"),
            "current_holder_party_id",
        )
    return result


# =============================================================================
# 3. CSV 행 변환
# =============================================================================
_CYLINDER_TEXT_COLUMNS = (
    "cylinder_code", "serial_number", "barcode_number", "cylinder_type", "cylinder_family_code",
    "gas_content", "manufacture_no", "challan_no", "capacity_unit", "manufacturer",
    "owner_type", "ownership_remarks",
)


def cylinder_payload_from_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """
    업로드 CSV 한 행을 용기 생성 요청 dict로 변환합니다.
    last_test_date 컬럼은 첫 검사 이력의 test_date로, test_remarks는 test_notes로 사용합니다.
    필수 컬럼이 없으면 ValidationError, 값 형식이 잘못된 경우 ValueError가 발생합니다.
    """
    payload: Dict[str, Any] = {col: csv_upload.safe_text(row.get(col)) for col in _CYLINDER_TEXT_COLUMNS}
    if not payload["cylinder_code"] or not payload["cylinder_family_code"]:
        raise ValidationError("cylinder_code and cylinder_family_code are required")

    status = csv_upload.safe_text(row.get("status"))
    payload["status"] = status.lower() if status else DEFAULT_STATUS
    payload["capacity"] = csv_upload.parse_decimal(row.get("capacity"))
    payload["manufacture_date"] = csv_upload.parse_date(row.get("manufacture_date"))
    payload["owner_party_id"] = csv_upload.parse_int(row.get("owner_party_id"))
    payload["current_holder_party_id"] = csv_upload.parse_int(row.get("current_holder_party_id"))

    payload["test_date"] = csv_upload.parse_date(row.get("test_date") or row.get("last_test_date"))
    payload["next_test_date"] = csv_upload.parse_date(row.get("next_test_date"))
    payload["test_type"] = csv_upload.safe_text(row.get("test_type"))
    payload["test_result"] = csv_upload.safe_text(row.get("test_result") or row.get("test_status"))
    payload["test_pressure"] = csv_upload.parse_decimal(row.get("test_pressure"))
    payload["inspector_name"] = csv_upload.safe_text(row.get("inspector_name") or row.get("tester_name"))
    payload["test_notes"] = csv_upload.safe_text(row.get("test_notes") or row.get("test_remarks"))
    return payload
