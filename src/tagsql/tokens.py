"""Token types, data structures, and character classification helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    EOF = auto()

    # Content
    IDENTIFIER = auto()  # [A-Za-z_][A-Za-z0-9_]*
    NUMBER = auto()  # digits with at most one embedded '.'
    STRING = auto()  # '...' including quotes, '' escapes a quote

    # Punctuation (single-character)
    COMMA = auto()  # ,
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    LBRACKET = auto()  # [
    RBRACKET = auto()  # ]
    AMPERSAND = auto()  # &
    PERIOD = auto()  # .
    ASTERISK = auto()  # *
    DOLLAR = auto()  # $
    EQUALS = auto()  # =
    SEMICOLON = auto()  # ;

    UNKNOWN = auto()  # any other single character, passed through verbatim


PUNCTUATION: dict[str, TokenType] = {
    ",": TokenType.COMMA,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "&": TokenType.AMPERSAND,
    ".": TokenType.PERIOD,
    "*": TokenType.ASTERISK,
    "$": TokenType.DOLLAR,
    "=": TokenType.EQUALS,
    ";": TokenType.SEMICOLON,
}


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based character offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Span:
    """Source range from start to (exclusive) end position."""

    start: Position
    end: Position


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexer token holding the exact source text it was read from."""

    type: TokenType
    value: str
    span: Span

    @property
    def pos(self) -> Position:
        return self.span.start


def is_ident_start(ch: str) -> bool:
    """Return True if ch can begin an identifier."""
    return ch.isalpha() or ch == "_"


def is_ident_char(ch: str) -> bool:
    """Return True if ch can continue an identifier."""
    return ch.isalpha() or ch.isdigit() or ch == "_"


def is_digit(ch: str) -> bool:
    """Return True if ch is a decimal digit (including non-ASCII digits)."""
    return ch.isdigit()


def statement_origin(source: str) -> Position:
    """Position in *source* at which the stripped statement text begins."""
    stripped = len(source) - len(source.lstrip())
    lead = source[:stripped]
    line_start = lead.rfind("\n") + 1
    return Position(lead.count("\n") + 1, stripped - line_start + 1, stripped)


def relocate(pos: Position, origin: Position) -> Position:
    """Translate *pos*, relative to the stripped statement, back into *source*."""
    column = pos.column + origin.column - 1 if pos.line == 1 else pos.column
    return Position(pos.line + origin.line - 1, column, pos.offset + origin.offset)
