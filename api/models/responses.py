"""Pydantic response schemas."""

from typing import Any, List, Optional
from pydantic import BaseModel

from core.validation import ValidationResult


class QueryResponse(BaseModel):
    success: bool
    data: Optional[List[Any]] = None
    execution_time_ms: Optional[int] = None
    error: Optional[str] = None
    code: Optional[int] = None


class ValidationResponse(BaseModel):
    valid: bool
    error_message: Optional[str] = None
    category: Optional[str] = None

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResponse":
        return cls(
            valid=result.is_valid,
            error_message=result.error_message,
            category=result.category.value if result.category else None,
        )


class ErrorResponse(BaseModel):
    error_code: int
    message: str


class HealthResponse(BaseModel):
    status: str
