"""
Central error types for the query service and API layers.

The validator itself never raises for bad SQL; these are raised by the
service when a lookup fails or when it refuses to execute.
"""

from core.validation import ValidationResult


class QueryGuardError(Exception):
    """Base application error."""


class QueryNotFoundError(QueryGuardError, LookupError):
    """Raised when no stored query exists for an identifier."""

    def __init__(self, identifier: str):
        super().__init__(f"Query file not found: {identifier}.sql")
        self.identifier = identifier


class SqlValidationError(QueryGuardError, ValueError):
    """Raised when SQL fails validation and must not be executed."""

    def __init__(self, result: ValidationResult):
        super().__init__(f"SQL validation failed: {result.error_message}")
        self.result = result
