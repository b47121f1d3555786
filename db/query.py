"""
Query validation and safe execution layer.

Ensures only validated, read-only SQL reaches the database.
Acts as the single guarded entry point for stored and user-provided SQL.
"""

import logging
from typing import Any, Dict, List, Optional

from core.errors import SqlValidationError
from core.sql_validator import SqlValidator
from core.validation import ErrorCategory, ValidationResult
from db.connection import DatabaseClient
from db.query_store import QueryStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_SQL_LENGTH = 4096


class QueryService:
    """Loads stored queries, validates them and runs them read-only."""

    def __init__(
        self,
        store: QueryStore,
        db: DatabaseClient,
        validator: Optional[SqlValidator] = None,
        max_sql_length: int = DEFAULT_MAX_SQL_LENGTH,
    ):
        self.store = store
        self.db = db
        self.validator = validator or SqlValidator()
        self.max_sql_length = max_sql_length

    def load_query(self, identifier: str) -> str:
        return self.store.load_query(identifier)

    def list_queries(self) -> List[str]:
        return self.store.list_queries()

    def validate_sql(self, sql: Optional[str]) -> ValidationResult:
        """
        Validate SQL text, refusing oversized input before any matching.

        Args:
            sql: Raw SQL text

        Returns:
            ValidationResult from the length cap or the validator
        """
        if sql is not None and len(sql) > self.max_sql_length:
            return ValidationResult.invalid(
                f"SQL exceeds maximum length of {self.max_sql_length} characters",
                ErrorCategory.INPUT_TOO_LONG,
            )
        return self.validator.validate_sql(sql)

    def execute_query(self, sql: str) -> List[Dict[str, Any]]:
        """
        Validate and execute a read-only SQL query.

        Raises:
            SqlValidationError: if the SQL fails validation; nothing is executed
        """
        result = self.validate_sql(sql)
        if not result.is_valid:
            logger.warning("SQL validation failed: %s", result.error_message)
            raise SqlValidationError(result)

        logger.info("Executing query: %s", sql.strip())
        return self.db.fetch_records(sql)

    def run_saved_query(self, identifier: str) -> List[Dict[str, Any]]:
        """Load the query stored under ``identifier`` and execute it."""
        return self.execute_query(self.load_query(identifier))
