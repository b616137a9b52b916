"""Type descriptors for caller-supplied record types, and their cache.

A descriptor is the name of a record type plus the column tags of its
mapped fields.  Three kinds of value can be described:

* a class implementing ``__tagsql_describe__`` (see ``Describable``);
* a dataclass, whose fields opt in with ``column("tag")`` or
  ``field(metadata={"db": "tag"})``;
* a ``Descriptor`` itself.

Classes that can be neither changed nor decorated are registered on the
cache with ``TypeCache.register``.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

from tagsql.errors import ReflectError

logger = logging.getLogger(__name__)

TAG_KEY = "db"
_OMIT_EMPTY = "omitempty"


@dataclass(frozen=True, slots=True)
class Field:
    """One mapped field: the attribute that holds the column's value."""

    attribute: str
    omit_empty: bool = False


@dataclass(frozen=True)
class Descriptor:
    """Name of a record type and its fields, keyed by column tag."""

    name: str
    fields: Mapping[str, Field] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @classmethod
    def of(cls, name: str, field_names: Iterable[str]) -> Descriptor:
        """Build a descriptor whose tags equal the attribute names."""
        return cls(name, {tag: Field(tag) for tag in field_names})

    @property
    def field_names(self) -> frozenset[str]:
        return frozenset(self.fields)


@runtime_checkable
class Describable(Protocol):
    """A class that reports its own descriptor.

    A subclass that inherits the hook without overriding it is described
    with the inherited fields under its own class name, as dataclass
    subclasses are.
    """

    @classmethod
    def __tagsql_describe__(cls) -> Descriptor: ...


def column(tag: str, **kwargs: Any) -> Any:
    """Dataclass field mapped to column *tag*, e.g. ``column("name,omitempty")``."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def describe(cls: type) -> Descriptor:
    """Derive the descriptor for *cls*, without caching."""
    hook = getattr(cls, "__tagsql_describe__", None)
    if hook is not None:
        descriptor = hook()
        if not isinstance(descriptor, Descriptor):
            raise ReflectError(
                f"{cls.__qualname__}.__tagsql_describe__ returned "
                f"{type(descriptor).__name__}, not a Descriptor"
            )
        if "__tagsql_describe__" not in vars(cls):
            return Descriptor(cls.__name__, descriptor.fields)
        return descriptor

    if dataclasses.is_dataclass(cls):
        return _describe_dataclass(cls)

    raise ReflectError(
        f"cannot describe type {cls.__qualname__!r}: "
        "not a dataclass and no __tagsql_describe__ method"
    )


def _describe_dataclass(cls: type) -> Descriptor:
    fields: dict[str, Field] = {}
    for f in dataclasses.fields(cls):
        tag = f.metadata.get(TAG_KEY)
        # Fields without a tag are not mapped to any column
        if tag is None:
            continue
        name, omit_empty = _parse_tag(str(tag), cls, f.name)
        if name in fields:
            raise ReflectError(f"duplicate column tag {name!r} in {cls.__name__}")
        fields[name] = Field(f.name, omit_empty)
    return Descriptor(cls.__name__, fields)


def _parse_tag(tag: str, cls: type, attribute: str) -> tuple[str, bool]:
    name, *options = (part.strip() for part in tag.split(","))
    if not name:
        raise ReflectError(f"empty column tag on field {attribute!r} of {cls.__name__}")

    omit_empty = False
    for option in options:
        if option == _OMIT_EMPTY:
            omit_empty = True
        else:
            raise ReflectError(f'unexpected tag value "{option}"')
    return name, omit_empty


class TypeCache:
    """Descriptors by type, safe to share between threads.

    Each type is described at most once; entries are never invalidated.
    A describe hook may itself reflect other types through the same cache.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entries: dict[type, Descriptor] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, cls: object) -> bool:
        with self._lock:
            return cls in self._entries

    def register(self, cls: type, descriptor: Descriptor) -> None:
        """Use *descriptor* for *cls* instead of deriving one."""
        with self._lock:
            self._entries[cls] = descriptor

    def reflect(self, value: Any) -> Descriptor:
        """Return the descriptor for *value*, which may be an instance or a class."""
        if isinstance(value, Descriptor):
            return value

        cls = value if isinstance(value, type) else type(value)
        with self._lock:
            cached = self._entries.get(cls)
            if cached is None:
                logger.debug("describing type %s", cls.__qualname__)
                cached = describe(cls)
                self._entries[cls] = cached
            return cached
