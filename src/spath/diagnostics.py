"""Span-aware rendering of query diagnostics."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open `[start, end)` range of offsets into query text."""

    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"

    def merge(self, other: Span) -> Span:
        """Return the smallest span covering both spans."""
        return Span(min(self.start, other.start), max(self.end, other.end))


def line_and_column(source: str, offset: int) -> tuple[int, int]:
    """Return 1-based line and column numbers for an offset into source."""
    offset = max(0, min(offset, len(source)))
    line_number = source.count("\n", 0, offset) + 1
    line_start = source.rfind("\n", 0, offset) + 1
    return (line_number, offset - line_start + 1)


def _source_line(source: str, line_number: int) -> str:
    """Return the text of one 1-based source line."""
    lines = source.split("\n")
    if 1 <= line_number <= len(lines):
        return lines[line_number - 1]
    return source


def render_diagnostic(
    source: str,
    span: Span,
    message: str,
    expected: Iterable[str] = (),
) -> str:
    """Render message with the offending source line and a caret pointer.

    Args:
        source: Full query text
        span: Location of the problem within source
        message: Human-readable description of the problem
        expected: Optional descriptions of what would have been accepted

    Returns:
        Multi-line diagnostic text
    """
    line_number, column_number = line_and_column(source, span.start)
    error_line = _source_line(source, line_number)
    line_end = len(error_line) + 1
    width = max(1, min(span.end - span.start, line_end - column_number))
    pointer = " " * (column_number - 1) + "^" * width

    rendered = f"{message} (line {line_number}, column {column_number})\n\n{error_line}\n{pointer}"
    expected_items = sorted(set(expected))
    if expected_items:
        rendered += f"\nexpected one of: {', '.join(expected_items)}"
    return rendered
