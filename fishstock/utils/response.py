# fishstock/utils/response.py

from typing import TypeVar, Generic, Optional, Dict, Any, List
from pydantic import BaseModel

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: Optional[T] = None


class PageData(BaseModel, Generic[T]):
    total: int
    page: int
    page_size: int
    items: List[T]


def success_response(message: str, data: Optional[T] = None) -> Dict[str, Any]:
    return {"success": True, "message": message, "data": data}


def page_response(
    message: str,
    total: int,
    items: list,
    page: int = 1,
    page_size: int = 20,
) -> Dict[str, Any]:
    return success_response(
        message,
        {"total": total, "page": page, "page_size": page_size, "items": items},
    )
