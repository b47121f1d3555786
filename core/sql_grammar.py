"""
Structural validation for the accepted SELECT sublanguage.

Two checks run over the token stream of the cleaned statement:

1. Malformed bare identifiers (``123invalid``, ``@invalid``) are rejected.
2. The statement as a whole must match the grammar below, recognized by a
   small recursive-descent parser. No tree is built; the parser only
   answers "does it match" and, if not, where it stopped.
   Nesting is capped at MAX_NESTING_DEPTH so any capped input finishes.

    script        := statement (';' statement)* [';']
    statement     := select_core (UNION [ALL] union_select)*
    select_core   := SELECT [DISTINCT] select_list FROM table_ref [WHERE condition]
                     [GROUP BY column_expr, ...] [HAVING condition]
                     [ORDER BY column_expr [ASC|DESC], ...] [LIMIT n [OFFSET n]]
    union_select  := SELECT [DISTINCT] select_list FROM table_ref [WHERE condition]
    condition     := term ((AND|OR) term)*
    term          := [NOT] ('(' condition ')' | basic_condition)

Several ``;``-separated statements are accepted here on purpose: rejecting
them is the job of the multi-statement check, which reports a clearer
message.
"""

import difflib
from contextlib import contextmanager
from typing import Iterable, List, Optional, Sequence

from core.sql_lexer import IDENTIFIER_JUNK, Token, UnmatchedQuoteError, tokenize
from core.validation import ErrorCategory, ValidationResult


EXPECTED_FORMAT = (
    "SELECT columns FROM table [WHERE conditions] [GROUP BY ...] [HAVING ...] "
    "[ORDER BY ...] [LIMIT ...] [UNION [ALL] SELECT ...]"
)

RESERVED_WORDS = frozenset({
    "ALL", "AND", "AS", "ASC", "BETWEEN", "BY", "CASE", "DESC", "DISTINCT",
    "ELSE", "END", "ESCAPE", "FALSE", "FROM", "GROUP", "HAVING", "IN", "INTO",
    "IS", "JOIN", "LIKE", "LIMIT", "NOT", "NULL", "OFFSET", "ON", "OR",
    "ORDER", "SELECT", "THEN", "TRUE", "UNION", "WHEN", "WHERE",
})

CLAUSE_KEYWORDS = ("SELECT", "FROM", "WHERE", "GROUP", "HAVING", "ORDER", "LIMIT", "UNION")

LITERAL_WORDS = ("NULL", "TRUE", "FALSE")

# Similarity needed before a bare alias is hinted as a misspelled keyword
ALIAS_MISSPELLING_CUTOFF = 0.8
HINT_CUTOFF = 0.7

# Parentheses and nested calls deeper than this are refused
MAX_NESTING_DEPTH = 64


class SqlSyntaxError(Exception):
    """Raised by the parser at the first token that does not fit the grammar."""

    def __init__(self, detail: str, position: int, hint: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.position = position
        self.hint = hint

    def describe(self) -> str:
        hint = f" ({self.hint})" if self.hint else ""
        return (
            f"Invalid SELECT SQL syntax: {self.detail} at position {self.position}{hint}. "
            f"Expected format: {EXPECTED_FORMAT}"
        )


def _misspelling_of(word: str, keywords: Sequence[str], cutoff: float) -> Optional[str]:
    matches = difflib.get_close_matches(word.upper(), keywords, n=1, cutoff=cutoff)
    return matches[0] if matches else None


def find_invalid_identifier(tokens: Sequence[Token]) -> Optional[str]:
    """
    Find a bare identifier that starts with a digit or a special character.

    Quoted identifiers are single tokens, so they are never inspected.

    Returns:
        The offending text, or None
    """
    for current, following in zip(tokens, tokens[1:]):
        glued = following.position == current.position + len(current.text)
        if not glued or following.kind != "word":
            continue
        if current.kind == "number":
            return current.text + following.text
        if current.kind == "unknown" and current.text in IDENTIFIER_JUNK:
            return current.text + following.text
    return None


class _Parser:
    """Single-use cursor over one token list."""

    def __init__(self, tokens: List[Token], end_position: int, reserved: frozenset):
        self.tokens = tokens
        self.pos = 0
        self.end_position = end_position
        self.reserved = reserved
        self.depth = 0
        # (token index just past an alias, hint) for an alias resembling a keyword
        self.alias_hint: Optional[tuple] = None

    # -- cursor helpers -------------------------------------------------

    def peek(self, offset: int = 0) -> Optional[Token]:
        index = self.pos + offset
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def at_word(self, *names: str) -> bool:
        token = self.peek()
        return token is not None and token.is_word(*names)

    def at_punct(self, char: str) -> bool:
        token = self.peek()
        return token is not None and token.is_punct(char)

    def accept_word(self, *names: str) -> Optional[Token]:
        return self.advance() if self.at_word(*names) else None

    def accept_punct(self, char: str) -> bool:
        if self.at_punct(char):
            self.pos += 1
            return True
        return False

    def is_identifier(self, token: Optional[Token]) -> bool:
        if token is None:
            return False
        if token.kind == "quoted_ident":
            return True
        return token.kind == "word" and token.upper not in self.reserved

    def at_clause_end(self) -> bool:
        token = self.peek()
        return token is None or token.is_punct(";") or token.is_word(*CLAUSE_KEYWORDS)

    # -- errors ---------------------------------------------------------

    def error(self, detail: str, token: Optional[Token] = None, hint: Optional[str] = None) -> SqlSyntaxError:
        if token is None:
            token = self.peek()
        if hint is None and self.alias_hint is not None and self.alias_hint[0] == self.pos:
            hint = self.alias_hint[1]
        position = token.position if token is not None else self.end_position
        return SqlSyntaxError(detail, position, hint)

    @contextmanager
    def nested(self):
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            raise self.error("nesting too deep")
        try:
            yield
        finally:
            self.depth -= 1

    def unexpected(self, expected: str) -> SqlSyntaxError:
        token = self.peek()
        if token is None:
            return self.error(f"expected {expected} but reached end of statement")
        hint = None
        if token.kind == "word":
            keyword = _misspelling_of(token.text, CLAUSE_KEYWORDS, HINT_CUTOFF)
            if keyword and keyword != token.upper:
                hint = f"did you mean '{keyword}'?"
        return self.error(f"expected {expected} but found '{token.text}'", token, hint)

    def expect_word(self, name: str) -> Token:
        token = self.accept_word(name)
        if token is not None:
            return token
        # The near miss may sit a couple of tokens back, e.g. "SELECT FORM users"
        for candidate in (self.peek(), self.peek(-1), self.peek(-2)):
            if candidate is None or candidate.kind != "word" or candidate.upper == name:
                continue
            if _misspelling_of(candidate.text, [name], HINT_CUTOFF):
                found = self.peek()
                if found is None:
                    detail = f"expected '{name}' but reached end of statement"
                else:
                    detail = f"expected '{name}' but found '{found.text}'"
                raise self.error(detail, hint=f"'{candidate.text}' looks like a misspelling of '{name}'")
        raise self.unexpected(f"'{name}'")

    def expect_punct(self, char: str) -> None:
        if not self.accept_punct(char):
            raise self.unexpected(f"'{char}'")

    def expect_identifier(self, what: str = "an identifier") -> Token:
        token = self.peek()
        if self.is_identifier(token):
            return self.advance()
        raise self.unexpected(what)

    # -- grammar --------------------------------------------------------

    def parse_script(self) -> None:
        if not self.tokens:
            raise self.error("empty statement")
        self.parse_statement()
        while self.accept_punct(";"):
            if self.peek() is None:
                return
            self.parse_statement()
        if self.peek() is not None:
            raise self.unexpected("end of statement")

    def parse_statement(self) -> None:
        self.parse_select(full=True)
        while self.accept_word("UNION"):
            self.accept_word("ALL")
            self.parse_select(full=False)

    def parse_select(self, full: bool) -> None:
        self.expect_word("SELECT")
        self.accept_word("DISTINCT")
        self.parse_select_list()
        self.expect_word("FROM")
        if self.at_clause_end() or (self.peek().kind == "word" and self.peek().upper in self.reserved):
            raise self.error("missing table name after FROM")
        self.parse_table_ref()

        if self.accept_word("WHERE"):
            self.parse_clause_condition("WHERE")
        if not full:
            return
        if self.accept_word("GROUP"):
            self.expect_word("BY")
            self.parse_column_expr()
            while self.accept_punct(","):
                self.parse_column_expr()
        if self.accept_word("HAVING"):
            self.parse_clause_condition("HAVING")
        if self.accept_word("ORDER"):
            self.expect_word("BY")
            self.parse_order_item()
            while self.accept_punct(","):
                self.parse_order_item()
        if self.accept_word("LIMIT"):
            self.expect_integer()
            if self.accept_word("OFFSET"):
                self.expect_integer()

    def parse_select_list(self) -> None:
        if self.accept_punct("*"):
            return
        self.parse_select_item()
        while self.accept_punct(","):
            self.parse_select_item()

    def parse_select_item(self) -> None:
        if self.at_word("FROM"):
            raise self.error("empty column list")
        if self.parse_column_expr(allow_star=True):
            return
        self.parse_alias()

    def parse_alias(self) -> None:
        if self.accept_word("AS"):
            self.expect_identifier("an alias")
            return
        token = self.peek()
        if not self.is_identifier(token):
            return
        self.advance()
        # A legal alias; only explained if the very next token fails to parse
        if token.kind == "word" and len(token.text) >= 4:
            keyword = _misspelling_of(token.text, CLAUSE_KEYWORDS, ALIAS_MISSPELLING_CUTOFF)
            if keyword and len(token.text) <= len(keyword):
                self.alias_hint = (self.pos, f"'{token.text}' looks like a misspelling of '{keyword}'")

    def parse_table_ref(self) -> None:
        self.parse_qualified(what="a table name")
        self.parse_alias()

    def parse_qualified(self, allow_star: bool = False, what: str = "an identifier") -> bool:
        """Consume ``a.b.c``; return True when it ended in ``.*``."""
        self.expect_identifier(what)
        while self.at_punct("."):
            following = self.peek(1)
            if allow_star and following is not None and following.is_punct("*"):
                self.pos += 2
                return True
            self.pos += 1
            self.expect_identifier()
        return False

    def parse_column_expr(self, allow_star: bool = False) -> bool:
        if self.accept_punct("("):
            with self.nested():
                self.parse_column_expr()
            self.expect_punct(")")
            return False
        if self.at_word("CASE"):
            self.parse_case()
            return False
        return self.parse_operand(allow_star)

    def parse_case(self) -> None:
        self.expect_word("CASE")
        if not self.at_word("WHEN"):
            raise self.unexpected("'WHEN'")
        while self.accept_word("WHEN"):
            self.parse_condition()
            self.expect_word("THEN")
            self.parse_operand()
        if self.accept_word("ELSE"):
            self.parse_operand()
        self.expect_word("END")

    def parse_operand(self, allow_star: bool = False) -> bool:
        token = self.peek()
        if token is not None and self.is_identifier(token):
            if self.parse_qualified(allow_star):
                return True
            if self.at_punct("("):
                with self.nested():
                    self.parse_call_args()
            return False
        self.parse_value()
        return False

    def parse_call_args(self) -> None:
        self.expect_punct("(")
        if self.accept_punct(")"):
            return
        if self.accept_punct("*"):
            self.expect_punct(")")
            return
        self.accept_word("DISTINCT")
        self.parse_operand()
        while self.accept_punct(","):
            self.parse_operand()
        self.expect_punct(")")

    def parse_value(self) -> None:
        token = self.peek()
        if token is not None and (token.kind in ("string", "number") or token.is_word(*LITERAL_WORDS)):
            self.pos += 1
            return
        if self.is_identifier(token):
            self.parse_qualified()
            return
        raise self.unexpected("a value")

    def parse_clause_condition(self, clause: str) -> None:
        if self.at_clause_end():
            raise self.error(f"empty {clause} clause")
        self.parse_condition()

    def parse_condition(self) -> None:
        self.parse_term()
        while self.accept_word("AND", "OR"):
            self.parse_term()

    def parse_term(self) -> None:
        self.accept_word("NOT")
        if self.accept_punct("("):
            with self.nested():
                self.parse_condition()
            self.expect_punct(")")
            return
        self.parse_basic_condition()

    def parse_basic_condition(self) -> None:
        self.parse_operand()
        token = self.peek()
        if token is None:
            raise self.error("incomplete condition")

        if token.kind == "operator" or token.is_word("LIKE"):
            self.pos += 1
            self.parse_comparison_rhs()
            return
        if self.accept_word("IS"):
            self.accept_word("NOT")
            self.expect_word("NULL")
            return

        self.accept_word("NOT")
        if self.accept_word("LIKE"):
            self.parse_comparison_rhs()
        elif self.accept_word("IN"):
            self.expect_punct("(")
            self.parse_value()
            while self.accept_punct(","):
                self.parse_value()
            self.expect_punct(")")
        elif self.accept_word("BETWEEN"):
            self.parse_value()
            self.expect_word("AND")
            self.parse_value()
        else:
            raise self.unexpected("a comparison")

    def parse_comparison_rhs(self) -> None:
        self.parse_operand()
        if self.accept_word("ESCAPE"):
            token = self.peek()
            if token is None or token.kind != "string":
                raise self.unexpected("a string literal after ESCAPE")
            self.pos += 1

    def parse_order_item(self) -> None:
        self.parse_column_expr()
        self.accept_word("ASC", "DESC")

    def expect_integer(self) -> None:
        token = self.peek()
        if token is None or token.kind != "number" or "." in token.text:
            raise self.unexpected("an integer")
        self.pos += 1


def _check_parentheses(tokens: Iterable[Token]) -> None:
    opened: List[Token] = []
    for token in tokens:
        if token.is_punct("("):
            opened.append(token)
        elif token.is_punct(")"):
            if not opened:
                raise SqlSyntaxError("unbalanced parentheses, unexpected ')'", token.position)
            opened.pop()
    if opened:
        raise SqlSyntaxError("unbalanced parentheses, '(' is never closed", opened[-1].position)


class SelectRecognizer:
    """
    Grammar matcher for the SELECT sublanguage.

    Holds only immutable configuration; every call builds its own parser,
    so one instance can be shared freely between threads.
    """

    def __init__(self, reserved_words: Iterable[str] = RESERVED_WORDS):
        self._reserved = frozenset(w.upper() for w in reserved_words)

    def recognize(self, sql: str, tokens: Optional[List[Token]] = None) -> None:
        """
        Raise SqlSyntaxError unless the whole text matches the grammar.

        Args:
            sql: Cleaned SQL text
            tokens: Pre-computed tokens of ``sql``, if available
        """
        if tokens is None:
            tokens = tokenize(sql)
        _check_parentheses(tokens)
        _Parser(tokens, len(sql), self._reserved).parse_script()

    def check(self, sql: str) -> ValidationResult:
        try:
            tokens = tokenize(sql)
        except UnmatchedQuoteError as exc:
            return ValidationResult.invalid(str(exc), ErrorCategory.SYNTAX_ERROR)

        bad = find_invalid_identifier(tokens)
        if bad is not None:
            return ValidationResult.invalid(
                f"Invalid identifier '{bad}': table or column names cannot start with "
                f"a number or special character",
                ErrorCategory.INVALID_IDENTIFIER,
            )

        try:
            self.recognize(sql, tokens)
        except SqlSyntaxError as exc:
            return ValidationResult.invalid(exc.describe(), ErrorCategory.SYNTAX_ERROR)
        except RecursionError:
            # Only reachable with a lowered interpreter recursion limit
            error = SqlSyntaxError("nesting too deep", 0)
            return ValidationResult.invalid(error.describe(), ErrorCategory.SYNTAX_ERROR)
        return ValidationResult.valid()
