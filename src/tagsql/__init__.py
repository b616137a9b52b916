"""Annotated SQL statements bound to record types."""

from __future__ import annotations

from tagsql.errors import (
    BindError,
    ParseError,
    ParseErrors,
    ReflectError,
    SuperfluousTypeError,
    TagSQLError,
    TypeInfoNotPresentError,
    TypeNameNotUniqueError,
)
from tagsql.reflect import Describable, Descriptor, Field, TypeCache, column
from tagsql.statement import Preparer, Statement, prepare

__version__ = "0.1.0"

__all__ = [
    "BindError",
    "Describable",
    "Descriptor",
    "Field",
    "ParseError",
    "ParseErrors",
    "Preparer",
    "ReflectError",
    "Statement",
    "SuperfluousTypeError",
    "TagSQLError",
    "TypeCache",
    "TypeInfoNotPresentError",
    "TypeNameNotUniqueError",
    "column",
    "prepare",
]
