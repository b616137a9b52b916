"""Binding of statement annotations to supplied type descriptors."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from tagsql.ast import Expression, InputSource, OutputTarget, walk
from tagsql.errors import SuperfluousTypeError, TypeInfoNotPresentError, TypeNameNotUniqueError
from tagsql.reflect import Descriptor, TypeCache

TypeMap = dict[str, Descriptor]


def types_for_statement(args: Iterable[Any], cache: TypeCache) -> TypeMap:
    """Describe each argument and index the descriptors by type name.

    Names must be unique, so two types sharing a name need distinct local
    declarations::

        @dataclass
        class Person:
            id: int = column("id", default=0)

        class Manager(Person):
            pass

        prepare(
            "SELECT p.* AS &Person.*, m.* AS &Manager.* "
            "FROM person AS p JOIN person AS m ON p.manager_id = m.id",
            Person(), Manager(),
        )
    """
    types: TypeMap = {}
    for arg in args:
        descriptor = cache.reflect(arg)
        if descriptor.name in types:
            raise TypeNameNotUniqueError(descriptor.name)
        types[descriptor.name] = descriptor
    return types


def validate(root: Expression, types: TypeMap) -> None:
    """Check that annotation type names and supplied types match exactly.

    Raises TypeInfoNotPresentError for the first annotation naming a type
    that was not supplied, then SuperfluousTypeError for the first supplied
    type that no annotation uses.
    """
    seen: set[str] = set()

    def visit(exp: Expression) -> TypeInfoNotPresentError | None:
        if isinstance(exp, (OutputTarget, InputSource)):
            name = exp.type_name.value
            if name not in types:
                return TypeInfoNotPresentError(name)
            seen.add(name)
        return None

    err = walk(root, visit)
    if err is not None:
        raise err

    for name in types:
        if name not in seen:
            raise SuperfluousTypeError(name)
