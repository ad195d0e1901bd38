"""Adapter exposing plain Python data as queryable values.

Documents decoded with `json` or `tomllib` are made of dicts, lists, strings,
numbers, booleans and `None` (plus date/time objects for TOML). `wrap()` turns
such a document into a `VariantValue` without copying it.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from datetime import date, datetime, time

from spath.value import ValueKind


_TEMPORAL_TYPES = (datetime, date, time)


class NativeValue:
    """Queryable view over one plain Python value."""

    __slots__ = ("data",)

    def __init__(self, data: object) -> None:
        self.data = data

    def __repr__(self) -> str:
        return f"NativeValue({self.data!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NativeValue):
            return NotImplemented
        return self.data is other.data or bool(self.data == other.data)

    def kind(self) -> ValueKind:
        data = self.data
        if data is None:
            return ValueKind.NULL
        if isinstance(data, bool):
            return ValueKind.BOOL
        if isinstance(data, int | float):
            return ValueKind.NUMBER
        if isinstance(data, (str, *_TEMPORAL_TYPES)):
            return ValueKind.STRING
        if isinstance(data, Mapping):
            return ValueKind.OBJECT
        if isinstance(data, list | tuple):
            return ValueKind.ARRAY
        raise TypeError(f"Unsupported value type: {type(data).__name__}")

    def as_bool(self) -> bool | None:
        return self.data if isinstance(self.data, bool) else None

    def as_number(self) -> int | float | None:
        if isinstance(self.data, bool) or not isinstance(self.data, int | float):
            return None
        return self.data

    def as_str(self) -> str | None:
        if isinstance(self.data, str):
            return self.data
        if isinstance(self.data, _TEMPORAL_TYPES):
            return self.data.isoformat()
        return None

    def as_array(self) -> NativeArray | None:
        if isinstance(self.data, list | tuple):
            return NativeArray(self.data)
        return None

    def as_object(self) -> NativeObject | None:
        if isinstance(self.data, Mapping):
            return NativeObject(self.data)
        return None


class NativeArray:
    """Array capability over a Python list or tuple."""

    __slots__ = ("_items",)

    def __init__(self, items: Sequence[object]) -> None:
        self._items = items

    def __len__(self) -> int:
        return len(self._items)

    def get(self, index: int) -> NativeValue | None:
        if 0 <= index < len(self._items):
            return NativeValue(self._items[index])
        return None

    def items(self) -> Iterator[tuple[int, NativeValue]]:
        for index, item in enumerate(self._items):
            yield (index, NativeValue(item))


class NativeObject:
    """Object capability over a Python mapping with string keys."""

    __slots__ = ("_members",)

    def __init__(self, members: Mapping[object, object]) -> None:
        self._members = members

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, key: object) -> bool:
        return key in self._members

    def get(self, key: str) -> NativeValue | None:
        if key in self._members:
            return NativeValue(self._members[key])
        return None

    def items(self) -> Iterator[tuple[str, NativeValue]]:
        for key, item in self._members.items():
            if not isinstance(key, str):
                raise TypeError(f"Object keys must be strings, got {type(key).__name__}")
            yield (key, NativeValue(item))


def wrap(data: object) -> NativeValue:
    """Wrap plain Python data for querying."""
    return NativeValue(data)
