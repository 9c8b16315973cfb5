# app/utils/csv_upload.py

"""
CSV 일괄 업로드 공용 파서입니다.

- 업로드 파일을 UTF-8(BOM 포함)로 디코딩하고, 실패하면 latin-1로 대체합니다.
- 헤더는 소문자 + 공백→'_' 형태로 정규화합니다. (예: "Cylinder Code" → "cylinder_code")
- 셀 값은 NA 표기("-", "N/A", "null" 등)를 None으로 취급합니다.
"""

import csv
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from io import StringIO
from typing import Any, Dict, List, Mapping, Optional

from fastapi import UploadFile

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import AppError, ValidationError

NA_SET = {"", "-", "na", "n/a", "null", "none", "nil"}

DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y", "%Y/%m/%d", "%d.%m.%Y")


def norm_header(h: Any) -> str:
    s = ("" if h is None else str(h)).strip().lower()
    s = s.replace("\ufeff", "")
    return re.sub(r"\s+", "_", s)


def safe_text(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    if s.lower() in NA_SET:
        return None
    return s


def parse_decimal(v: Any) -> Optional[Decimal]:
    """'1,234.50' 형태를 허용합니다. 비어 있으면 None."""
    s = safe_text(v)
    if s is None:
        return None
    try:
        return Decimal(s.replace(",", ""))
    except InvalidOperation as e:
        raise ValueError(f"Invalid number '{v}'") from e


def parse_int(v: Any) -> Optional[int]:
    s = safe_text(v)
    if s is None:
        return None
    try:
        return int(Decimal(s))
    except InvalidOperation as e:
        raise ValueError(f"Invalid integer '{v}'") from e


def parse_bool(v: Any) -> Optional[bool]:
    s = safe_text(v)
    if s is None:
        return None
    s = s.lower()
    if s in {"1", "true", "t", "yes", "y"}:
        return True
    if s in {"0", "false", "f", "no", "n"}:
        return False
    raise ValueError(f"Invalid boolean '{v}'")


def parse_date(v: Any) -> Optional[date]:
    """ISO(YYYY-MM-DD) 및 DD-MM-YYYY, DD/MM/YYYY 등 흔한 형식을 날짜로 변환합니다."""
    s = safe_text(v)
    if s is None:
        return None
    s = s.split("T")[0].split(" ")[0]
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Invalid date '{v}'")


def row_error_message(exc: Exception) -> str:
    """행 오류를 응답용 메시지로 변환합니다. DB 오류 상세는 노출하지 않습니다."""
    if isinstance(exc, AppError):
        return exc.message
    if isinstance(exc, SchemaValidationError):
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "row"
        return f"{field}: {first.get('msg')}"
    if isinstance(exc, SQLAlchemyError):
        return "Database constraint violated"
    return str(exc)


def is_empty_row(row: Mapping[str, Any]) -> bool:
    return all(safe_text(v) is None for v in row.values())


def parse_csv_text(text: str) -> List[Dict[str, Any]]:
    """CSV 텍스트를 정규화된 헤더의 dict 목록으로 변환합니다."""
    reader = csv.DictReader(StringIO(text))
    return [
        {norm_header(k): v for k, v in row.items() if k is not None}
        for row in reader
    ]


def decode_upload(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1", errors="replace")


async def read_upload_rows(upload_file: UploadFile) -> List[Dict[str, Any]]:
    """
    업로드된 CSV 파일을 읽어 행 목록을 반환합니다.
    반환 목록의 i번째 행은 파일의 (i + 2)번째 줄입니다. (1번째 줄은 헤더)
    """
    raw = await upload_file.read()
    if not raw:
        raise ValidationError("Uploaded file is empty")
    rows = parse_csv_text(decode_upload(raw))
    if not rows:
        raise ValidationError("Uploaded file has no data rows")
    return rows
