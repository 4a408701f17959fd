"""Common schemas for the procurement API."""

from typing import Optional, List, Any
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Body of every error response."""
    error: str = Field(..., description="Machine-stable error kind")
    detail: Optional[str] = None
    details: List[ErrorDetail] = Field(default_factory=list)


class SuccessResponse(BaseModel):
    """Standard success response."""
    message: str
    data: Optional[Any] = None
