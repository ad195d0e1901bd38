"""Tests for the function registry and the built-in functions."""

from __future__ import annotations

import pytest

from spath.errors import FunctionRegistrationError, QueryRuntimeError
from spath.functions import (
    BUILTIN_REGISTRY,
    ExprType,
    FunctionRegistry,
    FunctionSignature,
    default_registry,
)
from spath.native import wrap
from spath.value import NOTHING, LiteralValue


LOGICAL_OF_VALUE = FunctionSignature((ExprType.VALUE,), ExprType.LOGICAL)


def _call(name: str, *arguments: object) -> object:
    definition = BUILTIN_REGISTRY.get(name)
    assert definition is not None
    return definition.implementation(*arguments)


def test_builtin_registry_contents() -> None:
    """The built-in registry is frozen and holds the five standard functions."""
    assert BUILTIN_REGISTRY.frozen
    assert BUILTIN_REGISTRY.names() == ["count", "length", "match", "search", "value"]
    assert len(BUILTIN_REGISTRY) == 5
    assert "length" in BUILTIN_REGISTRY
    assert "nope" not in BUILTIN_REGISTRY


@pytest.mark.parametrize(
    ("name", "rendered"),
    [
        ("length", "length(ValueType) -> ValueType"),
        ("count", "count(NodesType) -> ValueType"),
        ("match", "match(ValueType, ValueType) -> LogicalType"),
        ("search", "search(ValueType, ValueType) -> LogicalType"),
        ("value", "value(NodesType) -> ValueType"),
    ],
)
def test_builtin_signatures(name: str, rendered: str) -> None:
    """Built-in definitions render as name plus signature."""
    assert str(BUILTIN_REGISTRY.get(name)) == rendered


def test_default_registry_is_open_copy() -> None:
    """default_registry returns an extensible copy of the built-ins."""
    registry = default_registry()
    registry.register("truthy", LOGICAL_OF_VALUE, lambda value: True)

    assert not registry.frozen
    assert "truthy" in registry
    assert "truthy" not in BUILTIN_REGISTRY
    assert registry.get("truthy") is not None
    assert registry.get("truthy").signature.arity == 1  # type: ignore[union-attr]


def test_register_rejects_duplicates() -> None:
    """A name can only be registered once."""
    registry = default_registry()

    with pytest.raises(FunctionRegistrationError, match="already registered: length"):
        registry.register("length", LOGICAL_OF_VALUE, lambda value: True)


@pytest.mark.parametrize("name", ["", "Upper", "1st", "with-dash", "has space", "_x"])
def test_register_rejects_invalid_names(name: str) -> None:
    """Function names are lowercase identifiers."""
    with pytest.raises(FunctionRegistrationError, match="Invalid function name"):
        FunctionRegistry().register(name, LOGICAL_OF_VALUE, lambda value: True)


def test_register_rejects_frozen_registry() -> None:
    """Frozen registries cannot grow."""
    with pytest.raises(FunctionRegistrationError, match="registry is frozen"):
        BUILTIN_REGISTRY.register("extra", LOGICAL_OF_VALUE, lambda value: True)


def test_registry_without_and_iteration() -> None:
    """without() drops names and iteration yields the remaining definitions."""
    registry = BUILTIN_REGISTRY.without("value", "count")

    assert [definition.name for definition in registry] == ["length", "match", "search"]
    assert repr(registry) == "FunctionRegistry(length, match, search; open)"
    assert repr(BUILTIN_REGISTRY).endswith("; frozen)")


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        ("abc", 3),
        ("☺", 1),
        ([1, 2, 3], 3),
        ({"a": 1}, 1),
        ([], 0),
    ],
)
def test_length(data: object, expected: int) -> None:
    """length counts characters, elements or members."""
    result = _call("length", wrap(data))

    assert result == LiteralValue(expected)


@pytest.mark.parametrize("data", [1, True, None])
def test_length_of_other_kinds_is_nothing(data: object) -> None:
    """length has no result for scalars other than strings."""
    assert _call("length", wrap(data)) is NOTHING


def test_length_of_nothing_is_nothing() -> None:
    """length of an absent value is absent."""
    assert _call("length", NOTHING) is NOTHING


def test_count() -> None:
    """count returns the number of nodes."""
    assert _call("count", (wrap(1), wrap(2))) == LiteralValue(2)
    assert _call("count", ()) == LiteralValue(0)


@pytest.mark.parametrize(
    ("text", "pattern", "matches", "searches"),
    [
        ("1974-05-01", "1974-05-..", True, True),
        ("1974-05-011", "1974-05-..", False, True),
        ("abc", "b", False, True),
        ("abc", "a.c", True, True),
        ("a\nc", "a.c", False, False),
        ("a\rc", "a.c", False, False),
        ("a.c", "a[.]c", True, True),
        ("abc", "a[.]c", False, False),
        ("a.c", "a\\.c", True, True),
        ("Bob", "[A-Z][a-z]+", True, True),
        ("bob", "[A-Z][a-z]+", False, False),
    ],
)
def test_match_and_search(text: str, pattern: str, matches: bool, searches: bool) -> None:
    """match anchors the whole string, search looks for any substring."""
    assert _call("match", wrap(text), LiteralValue(pattern)) is matches
    assert _call("search", wrap(text), LiteralValue(pattern)) is searches


@pytest.mark.parametrize(
    ("value", "pattern"),
    [
        (wrap(1), LiteralValue("1")),
        (wrap("a"), LiteralValue(1)),
        (NOTHING, LiteralValue("a")),
        (wrap("a"), NOTHING),
        (wrap("a"), LiteralValue("(")),
    ],
)
def test_match_and_search_are_false_for_unusable_operands(value: object, pattern: object) -> None:
    """Non-strings and invalid patterns never match."""
    assert _call("match", value, pattern) is False
    assert _call("search", value, pattern) is False


def test_value_returns_single_node() -> None:
    """value unwraps a single node."""
    node = wrap({"a": 1})

    assert _call("value", (node,)) is node


@pytest.mark.parametrize("count", [0, 2])
def test_value_requires_exactly_one_node(count: int) -> None:
    """value fails for empty or multi-node arguments."""
    nodes = tuple(wrap(index) for index in range(count))

    with pytest.raises(QueryRuntimeError, match=f"argument matched {count}"):
        _call("value", nodes)
