"""Capability interfaces a document representation implements to be queryable.

The evaluator never looks at concrete Python types of the queried document. It
only asks a value which kind it is and then uses the scalar, array or object
capability matching that kind. Adapters (see `spath.native`) provide these
capabilities over their own data types.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Final, Protocol, TypeAlias, runtime_checkable


class ValueKind(StrEnum):
    """Kinds of values a document node can have."""

    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


@runtime_checkable
class VariantValue(Protocol):
    """Scalar and type inspection capability of a document node."""

    def kind(self) -> ValueKind:
        """Return which kind of value this is."""
        ...

    def as_bool(self) -> bool | None:
        """Return the boolean, or None when the value is not a boolean."""
        ...

    def as_number(self) -> int | float | None:
        """Return the number, or None when the value is not a number."""
        ...

    def as_str(self) -> str | None:
        """Return the string, or None when the value is not a string."""
        ...

    def as_array(self) -> VariantArray | None:
        """Return the array capability, or None when the value is not an array."""
        ...

    def as_object(self) -> VariantObject | None:
        """Return the object capability, or None when the value is not an object."""
        ...


class VariantArray(Protocol):
    """Indexed access to an array value."""

    def __len__(self) -> int: ...

    def get(self, index: int) -> VariantValue | None:
        """Return the element at a 0-based index, or None when out of range."""
        ...

    def items(self) -> Iterator[tuple[int, VariantValue]]:
        """Iterate `(index, element)` pairs in index order."""
        ...


class VariantObject(Protocol):
    """Keyed access to an object value."""

    def __len__(self) -> int: ...

    def __contains__(self, key: object) -> bool: ...

    def get(self, key: str) -> VariantValue | None:
        """Return the member value for key, or None when absent."""
        ...

    def items(self) -> Iterator[tuple[str, VariantValue]]:
        """Iterate `(key, value)` pairs in insertion order."""
        ...


Scalar: TypeAlias = None | bool | int | float | str


@dataclass(frozen=True, slots=True)
class LiteralValue:
    """Scalar value that does not live in the queried document."""

    value: Scalar

    def kind(self) -> ValueKind:
        if self.value is None:
            return ValueKind.NULL
        if isinstance(self.value, bool):
            return ValueKind.BOOL
        if isinstance(self.value, int | float):
            return ValueKind.NUMBER
        return ValueKind.STRING

    def as_bool(self) -> bool | None:
        return self.value if isinstance(self.value, bool) else None

    def as_number(self) -> int | float | None:
        if isinstance(self.value, bool) or not isinstance(self.value, int | float):
            return None
        return self.value

    def as_str(self) -> str | None:
        return self.value if isinstance(self.value, str) else None

    def as_array(self) -> VariantArray | None:
        return None

    def as_object(self) -> VariantObject | None:
        return None


@dataclass(frozen=True, slots=True)
class Nothing:
    """Absence of a value, e.g. a singular query that matched no node."""

    def __repr__(self) -> str:
        return "NOTHING"


NOTHING: Final = Nothing()


FunctionValue: TypeAlias = VariantValue | Nothing


def values_equal(left: VariantValue, right: VariantValue) -> bool:
    """Compare two values structurally; values of different kinds are unequal.

    Nested arrays and objects are walked with an explicit stack.
    """
    pending: list[tuple[VariantValue, VariantValue]] = [(left, right)]
    while pending:
        left, right = pending.pop()
        kind = left.kind()
        if kind != right.kind():
            return False

        match kind:
            case ValueKind.NULL:
                continue
            case ValueKind.BOOL:
                if left.as_bool() != right.as_bool():
                    return False
            case ValueKind.NUMBER:
                if left.as_number() != right.as_number():
                    return False
            case ValueKind.STRING:
                if left.as_str() != right.as_str():
                    return False
            case ValueKind.ARRAY:
                pairs = _array_pairs(left.as_array(), right.as_array())
                if pairs is None:
                    return False
                pending.extend(pairs)
            case ValueKind.OBJECT:
                pairs = _object_pairs(left.as_object(), right.as_object())
                if pairs is None:
                    return False
                pending.extend(pairs)
    return True


def _array_pairs(
    left: VariantArray | None, right: VariantArray | None
) -> list[tuple[VariantValue, VariantValue]] | None:
    """Pair up array elements by position, or None if the lengths differ."""
    if left is None or right is None or len(left) != len(right):
        return None
    return [
        (left_item, right_item)
        for (_, left_item), (_, right_item) in zip(left.items(), right.items(), strict=True)
    ]


def _object_pairs(
    left: VariantObject | None, right: VariantObject | None
) -> list[tuple[VariantValue, VariantValue]] | None:
    """Pair up object members by key, ignoring member order, or None if the key sets differ."""
    if left is None or right is None or len(left) != len(right):
        return None
    pairs: list[tuple[VariantValue, VariantValue]] = []
    for key, left_item in left.items():
        right_item = right.get(key)
        if right_item is None:
            return None
        pairs.append((left_item, right_item))
    return pairs


def value_less_than(left: VariantValue, right: VariantValue) -> bool:
    """Order two numbers or two strings; any other pairing is unordered."""
    left_number = left.as_number()
    right_number = right.as_number()
    if left_number is not None and right_number is not None:
        return left_number < right_number

    left_text = left.as_str()
    right_text = right.as_str()
    if left_text is not None and right_text is not None:
        return left_text < right_text
    return False
