"""Thread-safe stores of telemetry attributes set globally and per usage event."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from azdcore.telemetry.baggage import Attribute, AttributeType, Baggage

_APPENDABLE = frozenset(
    {
        AttributeType.BOOLSLICE,
        AttributeType.INT64SLICE,
        AttributeType.FLOAT64SLICE,
        AttributeType.STRINGSLICE,
    }
)
_INCREMENTABLE = frozenset(
    {AttributeType.INT64, AttributeType.FLOAT64, AttributeType.STRING}
)


class AttributeStore:
    """A collection of attributes that supports concurrent writers."""

    def __init__(self, attributes: Iterable[Attribute] = ()) -> None:
        self._lock = threading.Lock()
        self._baggage = Baggage(attributes)

    def set(self, attributes: Iterable[Attribute]) -> None:
        """Set attributes, replacing any existing values for the same keys."""
        with self._lock:
            self._baggage = self._baggage.set(*attributes)

    def get(self) -> list[Attribute]:
        """Return all stored attributes."""
        return self._baggage.attributes()

    def append(self, attribute: Attribute) -> None:
        """Append to a slice attribute of the same type, otherwise replace it."""
        with self._lock:
            existing = self._baggage.lookup(attribute.key)
            if (
                existing is not None
                and existing.type is attribute.type
                and attribute.type in _APPENDABLE
            ):
                attribute = attribute.with_value(existing.value + attribute.value)
            self._baggage = self._baggage.set(attribute)

    def append_unique(self, attribute: Attribute) -> None:
        """Merge unique strings into a string-slice attribute.

        A string value is treated as a one-element string slice. Mismatched
        types are replaced outright.
        """
        with self._lock:
            existing = self._baggage.lookup(attribute.key)
            if existing is not None and existing.type is AttributeType.STRINGSLICE:
                current = existing.value
                if attribute.type is AttributeType.STRING:
                    if attribute.value in current:
                        return
                    attribute = Attribute.string_slice(
                        attribute.key, current + (attribute.value,)
                    )
                elif attribute.type is AttributeType.STRINGSLICE:
                    adds = tuple(v for v in attribute.value if v not in current)
                    if not adds:
                        return
                    attribute = Attribute.string_slice(attribute.key, current + adds)
            elif attribute.type is AttributeType.STRING:
                attribute = Attribute.string_slice(attribute.key, [attribute.value])
            self._baggage = self._baggage.set(attribute)

    def increment(self, attribute: Attribute) -> None:
        """Add to a numeric attribute or concatenate a string attribute of the same type."""
        with self._lock:
            existing = self._baggage.lookup(attribute.key)
            if (
                existing is not None
                and existing.type is attribute.type
                and attribute.type in _INCREMENTABLE
            ):
                attribute = attribute.with_value(existing.value + attribute.value)
            self._baggage = self._baggage.set(attribute)


_global_store = AttributeStore()
_usage_store = AttributeStore()


def set_global_attributes(*args: Attribute) -> None:
    """Set attributes included with every telemetry event."""
    _global_store.set(args)


def get_global_attributes() -> list[Attribute]:
    return _global_store.get()


def set_usage_attributes(*args: Attribute) -> None:
    """Set attributes included with usage events."""
    _usage_store.set(args)


def get_usage_attributes() -> list[Attribute]:
    return _usage_store.get()


def append_usage_attribute(attribute: Attribute) -> None:
    _usage_store.append(attribute)


def append_usage_attribute_unique(attribute: Attribute) -> None:
    _usage_store.append_unique(attribute)


def increment_usage_attribute(attribute: Attribute) -> None:
    _usage_store.increment(attribute)