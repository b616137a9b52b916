"""Shared test fixtures and helpers."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from tagsql.ast import Expression, Identity, walk
from tagsql.errors import ParseError
from tagsql.lexer import Lexer, tokenize
from tagsql.parser import Parser, parse
from tagsql.reflect import column
from tagsql.tokens import Position, Span, Token, TokenType


@dataclass
class Person:
    id: int = column("id", default=0)
    name: str = column("name,omitempty", default="")
    address_id: int = column("address_id", default=0)


@dataclass
class Address:
    id: int = column("id", default=0)
    street: str = column("street", default="")


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns tokens (excluding EOF)."""

    def _lex(source: str) -> list[Token]:
        tokens = tokenize(source)
        # Strip trailing EOF for convenience
        return [t for t in tokens if t.type != TokenType.EOF]

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns the SQLRoot."""

    def _parse(source: str):
        return parse(source)

    return _parse


@pytest.fixture
def run_parser():
    """Return a helper that parses source and returns (root, errors) without raising."""

    def _run(source: str) -> tuple[Expression, list[ParseError]]:
        return Parser(Lexer(source)).run()

    return _run


def tok(tt: TokenType, value: str, offset: int, line: int = 1, column: int | None = None) -> Token:
    """Build a single-line token; column defaults to offset + 1."""
    if column is None:
        column = offset + 1
    start = Position(line, column, offset)
    end = Position(line, column + len(value), offset + len(value))
    return Token(tt, value, Span(start, end))


def ident(tt: TokenType, value: str, offset: int, line: int = 1, column: int | None = None) -> Identity:
    return Identity(tok(tt, value, offset, line, column))


def assert_types(tokens: list[Token], expected: list[TokenType]) -> None:
    """Assert that the token types match the expected list."""
    actual = [t.type for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_values(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token values match the expected list."""
    actual = [t.value for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def find_nodes(root: Expression, cls: type) -> list:
    """Return all nodes of the given class, in walk order."""
    found = []

    def visit(node: Expression) -> None:
        if isinstance(node, cls):
            found.append(node)

    walk(root, visit)
    return found


def shape(node: Expression) -> tuple:
    """Kinds and identity literals of a tree, ignoring positions."""
    if isinstance(node, Identity):
        return (node.kind, node.value)
    return (node.kind, tuple(shape(c) for c in node.children))


def messages(errors: list[ParseError]) -> list[str]:
    return [e.message for e in errors]
