"""
Blacklist of SQL verbs that modify data or schema.

All names are compiled into a single word-boundary regex, so the cleaned
statement is scanned once no matter how many operations are listed.
"""

import re
from enum import Enum
from typing import Iterable, Optional, Pattern

from core.validation import ErrorCategory, ValidationResult


class DangerousOperation(Enum):
    """Non-read operations. Declaration order decides which one is reported."""

    DROP = "DROP"
    DELETE = "DELETE"
    UPDATE = "UPDATE"
    INSERT = "INSERT"
    ALTER = "ALTER"
    CREATE = "CREATE"
    TRUNCATE = "TRUNCATE"
    EXEC = "EXEC"
    EXECUTE = "EXECUTE"


class KeywordBlacklist:
    """Whole-word, case-insensitive matcher for a fixed set of operations."""

    def __init__(self, operations: Iterable[DangerousOperation] = DangerousOperation):
        self._operations = tuple(operations)
        self._rank = {op.value: i for i, op in enumerate(self._operations)}
        # Longest names first so EXECUTE is tried before EXEC
        names = sorted(self._rank, key=len, reverse=True)
        self._pattern: Pattern[str] = re.compile(
            r"\b(" + "|".join(re.escape(n) for n in names) + r")\b",
            re.IGNORECASE,
        )

    @property
    def operations(self):
        return self._operations

    def find(self, sql: str) -> Optional[DangerousOperation]:
        """
        Return the highest-priority operation occurring as a whole word.

        Args:
            sql: Cleaned SQL text

        Returns:
            The matching DangerousOperation, or None
        """
        hits = {m.group(1).upper() for m in self._pattern.finditer(sql)}
        if not hits:
            return None
        first = min(hits, key=self._rank.__getitem__)
        return DangerousOperation(first)

    def check(self, sql: str) -> ValidationResult:
        operation = self.find(sql.upper())
        if operation is not None:
            return ValidationResult.invalid(
                f"Dangerous SQL keyword detected: {operation.value}",
                ErrorCategory.DANGEROUS_OPERATION,
            )
        return ValidationResult.valid()
