"""Tests for diagnostic rendering."""

from __future__ import annotations

import pytest

from spath.diagnostics import Span, line_and_column, render_diagnostic
from spath.errors import NodeCountError, QueryParseError, QueryRuntimeError


@pytest.mark.parametrize(
    ("source", "offset", "expected"),
    [
        ("$.a", 0, (1, 1)),
        ("$.a", 2, (1, 3)),
        ("$.a", 3, (1, 4)),
        ("abc\ndef", 5, (2, 2)),
        ("abc\ndef", 4, (2, 1)),
        ("abc", 99, (1, 4)),
    ],
)
def test_line_and_column(source: str, offset: int, expected: tuple[int, int]) -> None:
    """Offsets should map to 1-based line and column numbers."""
    assert line_and_column(source, offset) == expected


def test_render_diagnostic_points_at_span() -> None:
    """Rendered diagnostics show the source line and a caret under the span."""
    rendered = render_diagnostic("$.a b", Span(4, 5), "unexpected 'b'")

    assert rendered == "unexpected 'b' (line 1, column 5)\n\n$.a b\n    ^"


def test_render_diagnostic_wide_span_and_expected() -> None:
    """Wide spans get one caret per character and expected items are sorted."""
    rendered = render_diagnostic("$[?foo(@)]", Span(3, 6), "unknown function", ["b", "a", "a"])

    lines = rendered.split("\n")
    assert lines[3] == "   ^^^"
    assert lines[4] == "expected one of: a, b"


def test_render_diagnostic_on_second_line() -> None:
    """Only the line containing the span start is shown."""
    rendered = render_diagnostic("$\n.a ]", Span(5, 6), "unexpected ']'")

    assert rendered.startswith("unexpected ']' (line 2, column 4)")
    assert rendered.split("\n")[2:] == [".a ]", "   ^"]


def test_render_diagnostic_empty_span_at_end() -> None:
    """End-of-input spans still get a single caret."""
    rendered = render_diagnostic("$[", Span(2, 2), "unexpected end of input")

    assert rendered.endswith("$[\n  ^")


def test_span_merge_and_str() -> None:
    """Spans merge into the smallest covering span."""
    assert Span(3, 5).merge(Span(1, 2)) == Span(1, 5)
    assert str(Span(1, 5)) == "1..5"


def test_errors_render_with_source_and_span() -> None:
    """Errors carrying source and span render as diagnostics."""
    exc = QueryParseError("bad", source="$x", span=Span(1, 2), expected=("'.'",))

    assert str(exc).startswith("bad (line 1, column 2)")
    assert str(exc).endswith("expected one of: '.'")
    assert exc.message == "bad"


def test_errors_without_location_render_message() -> None:
    """Errors without location render as their bare message."""
    assert str(QueryParseError("bad")) == "bad"
    assert str(QueryRuntimeError("boom", expression="$['a']")) == "boom in $['a']"
    assert NodeCountError("none", 0).count == 0
