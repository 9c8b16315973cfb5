# app/core/responses.py

"""
모든 API 응답이 공유하는 {status, message, data} 봉투(envelope) 스키마입니다.
"""

from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    status: Literal["success", "error"] = "success"
    message: str = "OK"
    data: Optional[DataT] = None


class Page(BaseModel, Generic[DataT]):
    """페이지네이션 목록 응답"""
    items: List[DataT]
    total_count: int
    page: int
    page_size: int


def success(data=None, message: str = "OK") -> dict:
    """성공 응답 봉투를 생성합니다. response_model이 data를 검증/직렬화합니다."""
    return {"status": "success", "message": message, "data": data}
