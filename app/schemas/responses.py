"""Standardized API Response Schemas"""

from typing import Generic, TypeVar, Optional, Any, Dict, List
from pydantic import BaseModel, Field, computed_field


T = TypeVar('T')


class SuccessResponse(BaseModel, Generic[T]):
    """
    Standard success response envelope.

    Example:
        {
            "success": true,
            "data": {...},
            "message": "Operation successful"
        }
    """
    success: bool = True
    data: Optional[T] = None
    message: str = "Operation successful"


class ErrorDetail(BaseModel):
    """Error details structure"""
    code: str
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """
    Standard error response envelope.

    Example:
        {
            "success": false,
            "error": {
                "code": "COURSE_FULL",
                "message": "Course Algebra II is full (20/20)."
            }
        }
    """
    success: bool = False
    error: ErrorDetail


class PaginationMeta(BaseModel):
    """Pagination metadata"""
    page: int = Field(..., ge=1, description="Current page number")
    page_size: int = Field(..., ge=1, le=200, description="Items per page")
    total: int = Field(..., ge=0, description="Total number of items")
    total_pages: int = Field(..., ge=0, description="Total number of pages")


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response with metadata."""
    success: bool = True
    data: list[T]
    meta: PaginationMeta
    message: str = "Operation successful"


class ItemOutcome(BaseModel):
    """Outcome of one item in a partial-success batch."""
    key: str
    success: bool
    error_code: Optional[str] = None
    error: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class BatchResult(BaseModel):
    """
    One outcome per input item, in input order.

    Batches are never rolled back as a whole; a failed item leaves the
    items before and after it untouched.
    """
    items: List[ItemOutcome] = Field(default_factory=list)

    @computed_field
    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.success)

    @computed_field
    @property
    def failed(self) -> int:
        return sum(1 for item in self.items if not item.success)

    def add_success(self, key: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.items.append(ItemOutcome(key=key, success=True, data=data))

    def add_failure(self, key: str, error_code: str, error: str) -> None:
        self.items.append(ItemOutcome(key=key, success=False, error_code=error_code, error=error))


class DestructiveResult(BaseModel):
    """
    Response of a confirmation-gated operation.

    `performed` is False when the confirmation phrase did not match; the
    counts then describe what would have been deleted.
    """
    performed: bool
    counts: Dict[str, int] = Field(default_factory=dict)
