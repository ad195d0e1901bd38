"""Normalized locations of nodes within a document."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import total_ordering


_NAME_ESCAPES = {
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "'": "\\'",
    "\\": "\\\\",
}


def escape_name(name: str) -> str:
    """Escape a member name for use inside a single-quoted bracket selector."""
    escaped: list[str] = []
    for char in name:
        replacement = _NAME_ESCAPES.get(char)
        if replacement is not None:
            escaped.append(replacement)
        elif ord(char) < 0x20:
            escaped.append(f"\\u{ord(char):04x}")
        else:
            escaped.append(char)
    return "".join(escaped)


@total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class PathElement(ABC):
    """One step of a normalized path.

    Elements are totally ordered: every index sorts before every name, indices
    compare numerically and names compare by code point.
    """

    @abstractmethod
    def sort_key(self) -> tuple[int, int, str]:
        """Key placing indices before names."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PathElement):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PathElement):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __hash__(self) -> int:
        return hash(self.sort_key())


@dataclass(frozen=True, slots=True, eq=False)
class NameElement(PathElement):
    """Object member name."""

    name: str

    def sort_key(self) -> tuple[int, int, str]:
        return (1, 0, self.name)

    def __str__(self) -> str:
        return f"['{escape_name(self.name)}']"


@dataclass(frozen=True, slots=True, eq=False)
class IndexElement(PathElement):
    """Array position."""

    index: int

    def sort_key(self) -> tuple[int, int, str]:
        return (0, self.index, "")

    def __str__(self) -> str:
        return f"[{self.index}]"


class NormalizedPath(tuple[PathElement, ...]):
    """Sequence of path elements from the root to a node.

    The empty path is the location of the root node itself.
    """

    __slots__ = ()

    def __new__(cls, elements: tuple[PathElement, ...] | list[PathElement] = ()) -> NormalizedPath:
        return super().__new__(cls, elements)

    def child(self, element: PathElement | str | int) -> NormalizedPath:
        """Return a new path extended by one element."""
        if isinstance(element, str):
            element = NameElement(element)
        elif isinstance(element, int):
            element = IndexElement(element)
        return NormalizedPath((*self, element))

    def __str__(self) -> str:
        return "$" + "".join(str(element) for element in self)

    def __repr__(self) -> str:
        return f"NormalizedPath({str(self)!r})"
