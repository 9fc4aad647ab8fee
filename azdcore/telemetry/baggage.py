"""Immutable attribute baggage and its propagation through the current context."""

from __future__ import annotations

import contextvars
import enum
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any


class AttributeType(enum.Enum):
    """The kind of value an attribute carries."""

    BOOL = "bool"
    INT64 = "int64"
    FLOAT64 = "float64"
    STRING = "string"
    BOOLSLICE = "boolslice"
    INT64SLICE = "int64slice"
    FLOAT64SLICE = "float64slice"
    STRINGSLICE = "stringslice"

    @property
    def is_slice(self) -> bool:
        return self in _SLICE_TYPES


_SLICE_TYPES = frozenset(
    {
        AttributeType.BOOLSLICE,
        AttributeType.INT64SLICE,
        AttributeType.FLOAT64SLICE,
        AttributeType.STRINGSLICE,
    }
)


@dataclass(frozen=True)
class Attribute:
    """A typed key/value pair. Slice values are stored as tuples."""

    key: str
    type: AttributeType
    value: Any

    @classmethod
    def string(cls, key: str, value: str) -> Attribute:
        return cls(key, AttributeType.STRING, str(value))

    @classmethod
    def boolean(cls, key: str, value: bool) -> Attribute:
        return cls(key, AttributeType.BOOL, bool(value))

    @classmethod
    def int64(cls, key: str, value: int) -> Attribute:
        return cls(key, AttributeType.INT64, int(value))

    @classmethod
    def float64(cls, key: str, value: float) -> Attribute:
        return cls(key, AttributeType.FLOAT64, float(value))

    @classmethod
    def string_slice(cls, key: str, values: Iterable[str]) -> Attribute:
        return cls(key, AttributeType.STRINGSLICE, tuple(str(v) for v in values))

    @classmethod
    def boolean_slice(cls, key: str, values: Iterable[bool]) -> Attribute:
        return cls(key, AttributeType.BOOLSLICE, tuple(bool(v) for v in values))

    @classmethod
    def int64_slice(cls, key: str, values: Iterable[int]) -> Attribute:
        return cls(key, AttributeType.INT64SLICE, tuple(int(v) for v in values))

    @classmethod
    def float64_slice(cls, key: str, values: Iterable[float]) -> Attribute:
        return cls(key, AttributeType.FLOAT64SLICE, tuple(float(v) for v in values))

    def with_value(self, value: Any) -> Attribute:
        """Return an attribute with the same key and type but a new value."""
        if self.type.is_slice:
            value = tuple(value)
        return Attribute(self.key, self.type, value)


class Baggage:
    """An immutable set of attributes keyed by attribute key.

    Mutating operations return a new instance and leave this one unchanged.
    """

    __slots__ = ("_items",)

    def __init__(self, attributes: Iterable[Attribute] = ()) -> None:
        self._items: dict[str, Attribute] = {a.key: a for a in attributes}

    def set(self, *args: Attribute) -> Baggage:
        """Return a copy with the given attributes set, replacing existing keys."""
        if not args:
            return self
        copied = Baggage(self._items.values())
        for attribute in args:
            copied._items[attribute.key] = attribute
        return copied

    def delete(self, key: str) -> Baggage:
        """Return a copy without the given key."""
        return Baggage(a for k, a in self._items.items() if k != key)

    def lookup(self, key: str) -> Attribute | None:
        """Return the attribute stored under key, or None."""
        return self._items.get(key)

    def get(self, key: str) -> Any:
        """Return the value stored under key, or None."""
        attribute = self._items.get(key)
        return None if attribute is None else attribute.value

    def keys(self) -> list[str]:
        return list(self._items)

    def attributes(self) -> list[Attribute]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Attribute]:
        return iter(list(self._items.values()))

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Baggage):
            return NotImplemented
        return self._items == other._items

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Baggage({list(self._items.values())!r})"


_EMPTY = Baggage()
_CURRENT: contextvars.ContextVar[Baggage] = contextvars.ContextVar(
    "azdcore_baggage", default=_EMPTY
)


def current_baggage() -> Baggage:
    """Return the baggage held by the current context."""
    return _CURRENT.get()


@contextmanager
def baggage_scope(baggage: Baggage) -> Iterator[Baggage]:
    """Make the given baggage current for the duration of the block."""
    token = _CURRENT.set(baggage)
    try:
        yield baggage
    finally:
        _CURRENT.reset(token)


@contextmanager
def attributes_scope(attributes: Iterable[Attribute]) -> Iterator[Baggage]:
    """Make the current baggage plus the given attributes current for the block."""
    with baggage_scope(current_baggage().set(*attributes)) as baggage:
        yield baggage


@contextmanager
def cleared_baggage_scope() -> Iterator[Baggage]:
    """Make an empty baggage current for the duration of the block."""
    with baggage_scope(Baggage()) as baggage:
        yield baggage