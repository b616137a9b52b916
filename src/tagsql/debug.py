"""--debug AST dump to stderr."""

from __future__ import annotations

import sys
from typing import TextIO

from tagsql.ast import (
    Expression,
    GroupedColumns,
    Identity,
    InputSource,
    OutputTarget,
    PassThrough,
    SQLRoot,
)


def dump_ast(node: Expression, *, file: TextIO = sys.stderr) -> None:
    """Print a human-readable AST tree to *file*."""
    _dump(node, 0, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _label(node: Expression) -> str:
    if isinstance(node, SQLRoot):
        return "SQLRoot"
    if isinstance(node, GroupedColumns):
        return f"GroupedColumns ({len(node.children)} columns)"
    if isinstance(node, OutputTarget):
        return f"OutputTarget {node.render()}"
    if isinstance(node, InputSource):
        return f"InputSource {node.render()}"
    if isinstance(node, PassThrough):
        return f"PassThrough({node.render()!r})"
    if isinstance(node, Identity):
        return f"Identity({node.value!r}) {node.token.type.name}"
    raise TypeError(f"not an expression: {type(node).__name__}")


def _dump(node: Expression, depth: int, f: TextIO) -> None:
    pos = node.begin
    f.write(f"{_indent(depth)}{_label(node)} @{pos.line}:{pos.column}\n")
    # Annotation children are implied by the label
    if isinstance(node, (OutputTarget, InputSource)):
        return
    for child in node.children:
        _dump(child, depth + 1, f)
