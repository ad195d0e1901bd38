"""Tests for normalized paths."""

from __future__ import annotations

import pytest

from spath.path import IndexElement, NameElement, NormalizedPath, PathElement, escape_name


def test_root_path_renders_as_dollar() -> None:
    """The empty path is the root location."""
    assert str(NormalizedPath()) == "$"


def test_child_paths_render_in_bracket_notation() -> None:
    """Child paths use quoted names and bare indices."""
    path = NormalizedPath().child("phones").child(1)

    assert str(path) == "$['phones'][1]"
    assert path == NormalizedPath((NameElement("phones"), IndexElement(1)))
    assert repr(path) == "NormalizedPath(\"$['phones'][1]\")"


@pytest.mark.parametrize(
    ("name", "escaped"),
    [
        ("plain", "plain"),
        ("it's", "it\\'s"),
        ("back\\slash", "back\\\\slash"),
        ("new\nline", "new\\nline"),
        ("tab\t", "tab\\t"),
        ("\x01", "\\u0001"),
        ("\x1f", "\\u001f"),
        ("é", "é"),
    ],
)
def test_escape_name(name: str, escaped: str) -> None:
    """Names escape quotes, backslashes and control characters."""
    assert escape_name(name) == escaped


def test_indices_sort_before_names() -> None:
    """Every index element sorts before every name element."""
    assert IndexElement(1000) < NameElement("a")
    assert NameElement("") > IndexElement(0)
    assert IndexElement(1) < IndexElement(2)
    assert NameElement("a") < NameElement("b")
    assert NameElement("B") < NameElement("a")


def test_path_elements_are_hashable_values() -> None:
    """Equal elements hash equally."""
    assert NameElement("a") == NameElement("a")
    assert NameElement("a") != IndexElement(0)
    assert len({NameElement("a"), NameElement("a"), IndexElement(0)}) == 2


def test_paths_sort_element_by_element() -> None:
    """Paths compare lexicographically with prefixes first."""
    root = NormalizedPath()
    paths = [
        root.child("b"),
        root.child("a").child(0),
        root.child(3),
        root.child("a"),
    ]

    assert [str(path) for path in sorted(paths)] == [
        "$[3]",
        "$['a']",
        "$['a'][0]",
        "$['b']",
    ]


def test_path_element_base_is_abstract() -> None:
    """Only names and indices are concrete path elements."""
    with pytest.raises(TypeError):
        PathElement()  # type: ignore[abstract]
