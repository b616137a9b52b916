"""Prepared statements: parsing and type binding in one step."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from tagsql.ast import InputSource, OutputTarget, SQLRoot, type_mappings
from tagsql.binder import types_for_statement, validate
from tagsql.parser import parse
from tagsql.reflect import Descriptor, TypeCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Statement:
    """A parsed statement whose annotations are bound to supplied types.

    Immutable; one instance may be shared between threads.
    """

    expression: SQLRoot
    types: Mapping[str, Descriptor]

    def render(self) -> str:
        return self.expression.render()

    @property
    def outputs(self) -> list[OutputTarget]:
        return [m for m in type_mappings(self.expression) if isinstance(m, OutputTarget)]

    @property
    def inputs(self) -> list[InputSource]:
        return [m for m in type_mappings(self.expression) if isinstance(m, InputSource)]


class Preparer:
    """Prepares statements against a type cache it owns or is given."""

    def __init__(self, cache: TypeCache | None = None) -> None:
        self.cache = cache if cache is not None else TypeCache()

    def prepare(self, stmt: str, *args: Any) -> Statement:
        """Parse *stmt* and bind its annotations to the types of *args*.

        Raises ParseErrors for malformed text, ReflectError for arguments
        that cannot be described, and a BindError subclass when annotations
        and arguments do not correspond one to one.
        """
        expression = parse(stmt)
        types = types_for_statement(args, self.cache)
        validate(expression, types)
        logger.debug("prepared statement with types %s", ", ".join(types) or "(none)")
        return Statement(expression, MappingProxyType(types))


def prepare(stmt: str, *args: Any, cache: TypeCache | None = None) -> Statement:
    """Convenience function: prepare *stmt* with a one-off or supplied cache."""
    return Preparer(cache).prepare(stmt, *args)
