"""Response envelopes shared by every fees endpoint"""

from typing import Any, Generic, List, Optional, Sequence, TypeVar
from pydantic import BaseModel, Field


T = TypeVar('T')


class SuccessResponse(BaseModel, Generic[T]):
    """
    {"success": true, "data": {...}, "message": "Payment recorded successfully"}
    """
    success: bool = True
    data: T
    message: str = "Operation successful"


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[List[Any]] = None


class ErrorResponse(BaseModel):
    """
    Every failure, business rule or not, comes back in this shape:

        {
            "success": false,
            "error": {"code": "overpayment", "message": "Amount 1200.00 exceeds ..."}
        }

    ``code`` is stable and meant for clients to branch on; ``message`` is for people.
    """
    success: bool = False
    error: ErrorDetail

    @classmethod
    def build(cls, code: str, message: str, details: Optional[List[Any]] = None) -> "ErrorResponse":
        return cls(error=ErrorDetail(code=code, message=message, details=details))


class PaginationMeta(BaseModel):
    page: int = Field(..., ge=1, description="Current page number")
    page_size: int = Field(..., ge=1, le=100, description="Items per page")
    total: int = Field(..., ge=0, description="Total number of items")
    total_pages: int = Field(..., ge=0, description="Total number of pages")


class PaginatedResponse(BaseModel, Generic[T]):
    """A page of invoices or payments plus the counts needed to page through the rest"""
    success: bool = True
    data: list[T]
    meta: PaginationMeta
    message: str = "Operation successful"

    @classmethod
    def page_of(cls, items: Sequence[Any], page: int, page_size: int, total: int) -> "PaginatedResponse":
        return cls(
            data=list(items),
            meta=PaginationMeta(
                page=page,
                page_size=page_size,
                total=total,
                total_pages=(total + page_size - 1) // page_size,
            ),
        )
