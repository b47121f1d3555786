"""
Outcome types shared by every stage of the SQL validation pipeline.

Each stage returns a ValidationResult instead of raising, so the pipeline
can stop at the first failing stage with a plain early return.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """Why a statement was rejected."""

    EMPTY_INPUT = "empty_input"
    DANGEROUS_OPERATION = "dangerous_operation"
    INVALID_IDENTIFIER = "invalid_identifier"
    SYNTAX_ERROR = "syntax_error"
    MALFORMED_FORMAT = "malformed_format"
    INJECTION_SUSPECTED = "injection_suspected"
    NOT_A_SELECT = "not_a_select"
    MULTIPLE_STATEMENTS = "multiple_statements"
    INPUT_TOO_LONG = "input_too_long"


@dataclass(frozen=True)
class ValidationResult:
    """Two-state outcome: valid, or invalid with a reason."""

    is_valid: bool
    error_message: Optional[str] = None
    category: Optional[ErrorCategory] = None

    def __post_init__(self):
        if self.is_valid and (self.error_message is not None or self.category is not None):
            raise ValueError("A valid result cannot carry an error message or category")
        if not self.is_valid and not self.error_message:
            raise ValueError("An invalid result requires an error message")

    def __bool__(self) -> bool:
        return self.is_valid

    @classmethod
    def valid(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def invalid(
        cls,
        reason: str,
        category: ErrorCategory = ErrorCategory.SYNTAX_ERROR,
    ) -> "ValidationResult":
        return cls(is_valid=False, error_message=reason, category=category)
