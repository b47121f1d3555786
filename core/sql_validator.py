"""
Read-only SQL validator.

Decides whether a free-text SQL string is a single, well-formed SELECT
that is safe to hand to a read-only execution path. Stages run in a
fixed order and the first failure is returned:

    comments stripped -> dangerous keywords -> grammar -> format
    -> injection heuristics -> SELECT prefix -> multiple statements

The order is part of the contract: callers branch on the message text,
and a statement that is both destructive and malformed must be reported
as destructive.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Optional, Sequence

from core.keywords import KeywordBlacklist
from core.sql_checks import (
    InjectionHeuristics,
    check_format,
    check_prefix,
    check_single_statement,
    strip_comments,
)
from core.sql_grammar import SelectRecognizer
from core.validation import ErrorCategory, ValidationResult


@dataclass(frozen=True)
class ValidationRules:
    """Immutable tables shared by every validation call."""

    blacklist: KeywordBlacklist = field(default_factory=KeywordBlacklist)
    recognizer: SelectRecognizer = field(default_factory=SelectRecognizer)
    injection: InjectionHeuristics = field(default_factory=InjectionHeuristics)

    @classmethod
    def default(cls) -> "ValidationRules":
        return _default_rules()


@lru_cache(maxsize=1)
def _default_rules() -> ValidationRules:
    return ValidationRules()


class SqlValidator:
    """
    Stateless validation pipeline.

    The validator only reads its rules, so a single instance can serve
    any number of concurrent callers.
    """

    def __init__(self, rules: Optional[ValidationRules] = None):
        self.rules = rules or ValidationRules.default()
        self._stages: Sequence[Callable[[str], ValidationResult]] = (
            self.rules.blacklist.check,
            self.rules.recognizer.check,
            check_format,
            self.rules.injection.check,
            check_prefix,
            check_single_statement,
        )

    def validate_sql(self, sql: Optional[str]) -> ValidationResult:
        """
        Validate SQL text.

        Args:
            sql: Raw SQL text; None is treated as empty

        Returns:
            ValidationResult.valid(), or the result of the first failing stage
        """
        if sql is None or not sql.strip():
            return ValidationResult.invalid("SQL is null or empty", ErrorCategory.EMPTY_INPUT)

        cleaned = strip_comments(sql)
        for stage in self._stages:
            result = stage(cleaned)
            if not result.is_valid:
                return result
        return ValidationResult.valid()
