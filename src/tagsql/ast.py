"""AST node types for parsed tagsql statements."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import ClassVar, Union

from tagsql.tokens import Position, Span, Token


class ExpressionKind(Enum):
    SQL_ROOT = auto()
    GROUPED_COLUMNS = auto()
    OUTPUT_TARGET = auto()
    INPUT_SOURCE = auto()
    IDENTITY = auto()
    PASS_THROUGH = auto()


class _Node:
    """Accessors shared by every expression variant."""

    __slots__ = ()

    span: Span

    @property
    def begin(self) -> Position:
        return self.span.start

    @property
    def end(self) -> Position:
        return self.span.end


@dataclass(frozen=True, slots=True)
class Identity(_Node):
    """A single opaque token: identifier, literal, or punctuation."""

    kind: ClassVar[ExpressionKind] = ExpressionKind.IDENTITY

    token: Token

    @property
    def span(self) -> Span:
        return self.token.span

    @property
    def value(self) -> str:
        return self.token.value

    @property
    def children(self) -> tuple[Expression, ...]:
        return ()

    def render(self) -> str:
        return self.token.value


class _TypeMapping(_Node):
    """Shared shape of ``&Type.field`` and ``$Type.field``."""

    __slots__ = ()

    marker: Token
    name: Identity
    field: Identity

    @property
    def span(self) -> Span:
        return Span(self.marker.span.start, self.field.span.end)

    @property
    def children(self) -> tuple[Expression, ...]:
        return (self.name, self.field)

    @property
    def type_name(self) -> Identity:
        """The type name child, e.g. ``Person`` in ``&Person.*``."""
        return self.name

    @property
    def field_name(self) -> str:
        return self.field.value

    @property
    def is_wildcard(self) -> bool:
        return self.field.value == "*"

    def render(self) -> str:
        return f"{self.marker.value}{self.name.render()}.{self.field.render()}"


@dataclass(frozen=True, slots=True)
class OutputTarget(_TypeMapping):
    """Type into which query output is mapped: ``&Person.*``."""

    kind: ClassVar[ExpressionKind] = ExpressionKind.OUTPUT_TARGET

    marker: Token
    name: Identity
    field: Identity


@dataclass(frozen=True, slots=True)
class InputSource(_TypeMapping):
    """Type from which a statement parameter is sourced: ``$Person.id``."""

    kind: ClassVar[ExpressionKind] = ExpressionKind.INPUT_SOURCE

    marker: Token
    name: Identity
    field: Identity


@dataclass(frozen=True, slots=True)
class GroupedColumns(_Node):
    """Parenthesised, comma-separated column list: ``(id, name)``."""

    kind: ClassVar[ExpressionKind] = ExpressionKind.GROUPED_COLUMNS

    children: tuple[Expression, ...]
    span: Span

    def render(self) -> str:
        return "(" + ", ".join(child.render() for child in self.children) + ")"


@dataclass(frozen=True, slots=True)
class PassThrough(_Node):
    """SQL that is handed to the database untouched, such as ``p.name``."""

    kind: ClassVar[ExpressionKind] = ExpressionKind.PASS_THROUGH

    children: tuple[Expression, ...]
    span: Span

    def render(self) -> str:
        # Adjacent children stay adjacent; any source gap becomes one space.
        parts: list[str] = []
        prev: Expression | None = None
        for child in self.children:
            if prev is not None and child.span.start.offset > prev.span.end.offset:
                parts.append(" ")
            parts.append(child.render())
            prev = child
        return "".join(parts)


@dataclass(frozen=True, slots=True)
class SQLRoot(_Node):
    """Root of a parsed statement."""

    kind: ClassVar[ExpressionKind] = ExpressionKind.SQL_ROOT

    children: tuple[Expression, ...]
    span: Span

    def render(self) -> str:
        return " ".join(child.render() for child in self.children)


Expression = Union[SQLRoot, GroupedColumns, OutputTarget, InputSource, Identity, PassThrough]
TypeMapping = Union[OutputTarget, InputSource]


def walk(node: Expression, visit: Callable[[Expression], object]) -> object | None:
    """Visit *node* and its descendants depth-first, parents before children.

    *visit* returns None to continue.  Any other value stops the traversal
    at once and is returned to the caller; siblings and ancestors still
    pending are not visited.
    """
    signal = visit(node)
    if signal is not None:
        return signal
    for child in node.children:
        signal = walk(child, visit)
        if signal is not None:
            return signal
    return None


def type_mappings(node: Expression) -> list[TypeMapping]:
    """Return every output target and input source under *node*, in source order."""
    found: list[TypeMapping] = []

    def collect(exp: Expression) -> None:
        if isinstance(exp, (OutputTarget, InputSource)):
            found.append(exp)

    walk(node, collect)
    return found
