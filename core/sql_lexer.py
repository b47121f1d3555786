"""
Tokenizer for cleaned SQL text.

Produces a flat token list for the SELECT recognizer. Quoted regions are
kept whole so that nothing inside them is mistaken for structure.
"""

from dataclasses import dataclass
from typing import List, Literal

TokenKind = Literal[
    "word",
    "quoted_ident",
    "string",
    "number",
    "operator",
    "punct",
    "unknown",
]

OPERATORS = ("!=", "<>", "<=", ">=", "=", "<", ">")
PUNCTUATION = frozenset("(),.*;")

# Characters that may not be glued to the front of a bare identifier
IDENTIFIER_JUNK = frozenset("@#$%^&-+[]{}|:?!~")


class UnmatchedQuoteError(ValueError):
    """A quoted region runs to the end of the text."""

    def __init__(self, position: int):
        super().__init__("Unmatched quotes in SQL")
        self.position = position


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int

    @property
    def upper(self) -> str:
        return self.text.upper()

    def is_word(self, *names: str) -> bool:
        return self.kind == "word" and self.text.upper() in names

    def is_punct(self, char: str) -> bool:
        return self.kind == "punct" and self.text == char


def _is_word_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == "_")


def _is_word_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


def _scan_quoted(sql: str, start: int, quote: str) -> int:
    """Return the index just past the closing quote. Doubled quotes are escapes."""
    i = start + 1
    n = len(sql)
    while i < n:
        if sql[i] == quote:
            if i + 1 < n and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    raise UnmatchedQuoteError(start)


def tokenize(sql: str) -> List[Token]:
    """
    Split SQL text into tokens.

    Args:
        sql: Cleaned SQL text (comments already removed)

    Returns:
        Tokens in source order, whitespace dropped

    Raises:
        UnmatchedQuoteError: if a quote is opened and never closed
    """
    tokens: List[Token] = []
    i = 0
    n = len(sql)

    while i < n:
        ch = sql[i]

        if ch.isspace():
            i += 1
            continue

        if ch in ("'", '"', "`"):
            end = _scan_quoted(sql, i, ch)
            kind = "string" if ch == "'" else "quoted_ident"
            tokens.append(Token(kind, sql[i:end], i))
            i = end
            continue

        if _is_word_start(ch):
            end = i + 1
            while end < n and _is_word_char(sql[end]):
                end += 1
            tokens.append(Token("word", sql[i:end], i))
            i = end
            continue

        if ch.isascii() and ch.isdigit():
            end = i + 1
            while end < n and sql[end].isascii() and sql[end].isdigit():
                end += 1
            if end + 1 < n and sql[end] == "." and sql[end + 1].isascii() and sql[end + 1].isdigit():
                end += 1
                while end < n and sql[end].isascii() and sql[end].isdigit():
                    end += 1
            tokens.append(Token("number", sql[i:end], i))
            i = end
            continue

        op = next((o for o in OPERATORS if sql.startswith(o, i)), None)
        if op is not None:
            tokens.append(Token("operator", op, i))
            i += len(op)
            continue

        if ch in PUNCTUATION:
            tokens.append(Token("punct", ch, i))
        else:
            tokens.append(Token("unknown", ch, i))
        i += 1

    return tokens
