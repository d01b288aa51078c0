"""
Response envelope shared by every endpoint:
    {"success": bool, "message": str, "data": ...}
"""
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str = ""
    data: Optional[T] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


def envelope(data: Any = None, message: str = "") -> dict:
    return {"success": True, "message": message, "data": data}
