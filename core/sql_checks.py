"""
Text-level checks of the validation pipeline.

Everything here works on plain strings: comment stripping, the length and
parenthesis format check, injection heuristics, the SELECT prefix check
and the multi-statement scan.
"""

import re
from typing import Iterable, Pattern, Sequence, Tuple

from core.validation import ErrorCategory, ValidationResult


SINGLE_LINE_COMMENT = re.compile(r"--[^\r\n]*")
MULTI_LINE_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
WHITESPACE = re.compile(r"\s+")

MIN_STATEMENT_LENGTH = 6

DEFAULT_INJECTION_PATTERNS: Tuple[str, ...] = (
    r"';.*--",
    r"\b(?:WHERE|OR|AND)\s+1\s*=\s*1",
    r"\b(?:WHERE|OR|AND)\s+0\s*=\s*0",
    r"\b(?:WHERE|OR|AND)\s+'[^']*'\s*=\s*'[^']*'",
    r"\bor\s+'.*'\s*=\s*'.*'",
    r"\band\s+'.*'\s*=\s*'.*'",
)


def strip_comments(sql: str) -> str:
    """
    Remove SQL comments and collapse whitespace.

    Comments are replaced by a space so they never join the tokens around
    them. Quote state is not tracked: a ``--`` inside a string literal is
    removed like any other comment.

    Args:
        sql: Raw SQL text

    Returns:
        Cleaned text, trimmed, with single spaces between tokens
    """
    cleaned = SINGLE_LINE_COMMENT.sub(" ", sql)
    cleaned = MULTI_LINE_COMMENT.sub(" ", cleaned)
    return WHITESPACE.sub(" ", cleaned).strip()


def check_format(sql: str) -> ValidationResult:
    """Minimum length and raw-character parenthesis balance."""
    if len(sql) < MIN_STATEMENT_LENGTH:
        return ValidationResult.invalid(
            "Invalid SQL format: statement is too short",
            ErrorCategory.MALFORMED_FORMAT,
        )

    depth = 0
    for ch in sql:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                break
    if depth != 0:
        return ValidationResult.invalid(
            "Invalid SQL format: unbalanced parentheses",
            ErrorCategory.MALFORMED_FORMAT,
        )
    return ValidationResult.valid()


class InjectionHeuristics:
    """Ordered regex scan for common injection idioms. First hit wins."""

    def __init__(self, patterns: Iterable[str] = DEFAULT_INJECTION_PATTERNS):
        self._patterns: Sequence[Pattern[str]] = tuple(
            re.compile(p, re.IGNORECASE) for p in patterns
        )

    @property
    def patterns(self) -> Sequence[Pattern[str]]:
        return self._patterns

    def matches(self, sql: str) -> bool:
        return any(p.search(sql) for p in self._patterns)

    def check(self, sql: str) -> ValidationResult:
        if self.matches(sql):
            return ValidationResult.invalid(
                "Potential SQL injection detected",
                ErrorCategory.INJECTION_SUSPECTED,
            )
        return ValidationResult.valid()


def check_prefix(sql: str) -> ValidationResult:
    if not sql.strip().upper().startswith("SELECT"):
        return ValidationResult.invalid(
            "Only SELECT statements are allowed",
            ErrorCategory.NOT_A_SELECT,
        )
    return ValidationResult.valid()


def contains_multiple_statements(sql: str) -> bool:
    """
    True when an unquoted ``;`` is followed by anything but whitespace.

    Each quote type toggles only while the other one is closed, so ``"it's"``
    and ``'say "hi"'`` are both read as a single quoted region.
    """
    in_single = False
    in_double = False
    for i, ch in enumerate(sql):
        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            if sql[i + 1:].strip():
                return True
    return False


def check_single_statement(sql: str) -> ValidationResult:
    if contains_multiple_statements(sql):
        return ValidationResult.invalid(
            "Multiple SQL statements are not allowed",
            ErrorCategory.MULTIPLE_STATEMENTS,
        )
    return ValidationResult.valid()
