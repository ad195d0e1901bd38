"""Tests for node lists."""

from __future__ import annotations

import pytest

from spath.errors import NodeCountError
from spath.native import wrap
from spath.node import LocatedNode, NodeList, node_list
from spath.path import NormalizedPath


def _node(data: object, *elements: str | int) -> LocatedNode:
    path = NormalizedPath()
    for element in elements:
        path = path.child(element)
    return LocatedNode(wrap(data), path)


def test_node_list_accessors() -> None:
    """Node lists expose values, locations and both ends."""
    nodes = node_list([_node(1, "a"), _node(2, "b")])

    assert len(nodes) == 2
    assert [value.as_number() for value in nodes.values()] == [1, 2]
    assert [str(location) for location in nodes.locations()] == ["$['a']", "$['b']"]
    assert nodes.first() == _node(1, "a")
    assert nodes.last() == _node(2, "b")


def test_located_nodes_unpack_as_pairs() -> None:
    """Each entry unpacks into value and location."""
    value, location = _node("x", 0)

    assert value.as_str() == "x"
    assert str(location) == "$[0]"


def test_empty_node_list_ends_are_none() -> None:
    """Empty lists have no first or last node."""
    assert NodeList().first() is None
    assert NodeList().last() is None


def test_exactly_one() -> None:
    """exactly_one returns the single node or raises with the count."""
    assert node_list([_node(1)]).exactly_one() == _node(1)

    with pytest.raises(NodeCountError, match="but is empty") as empty:
        NodeList().exactly_one()
    assert empty.value.count == 0

    with pytest.raises(NodeCountError, match="instead contains 2 entries") as several:
        node_list([_node(1, 0), _node(2, 1)]).exactly_one()
    assert several.value.count == 2


def test_at_most_one() -> None:
    """at_most_one allows an empty list but not several nodes."""
    assert NodeList().at_most_one() is None
    assert node_list([_node(1)]).at_most_one() == _node(1)

    with pytest.raises(NodeCountError):
        node_list([_node(1, 0), _node(2, 1)]).at_most_one()


def test_dedup_sorts_and_drops_repeated_locations() -> None:
    """dedup keeps one node per location, ordered by location."""
    nodes = node_list([_node(2, "b"), _node(1, "a"), _node(2, "b"), _node(0, 0)])

    unique = nodes.dedup()

    assert [str(location) for location in unique.locations()] == ["$[0]", "$['a']", "$['b']"]
    assert len(nodes) == 4
