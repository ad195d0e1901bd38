"""Query results: matched values paired with their locations."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import NamedTuple

from spath.errors import NodeCountError
from spath.path import NormalizedPath
from spath.value import VariantValue


class LocatedNode(NamedTuple):
    """A matched value and the normalized path it was found at."""

    value: VariantValue
    location: NormalizedPath


class NodeList(list[LocatedNode]):
    """Ordered query result; the same location may appear more than once.

    Results reference positions in the caller's document and are only
    meaningful while that document is left unmodified.
    """

    def values(self) -> Iterator[VariantValue]:
        """Iterate matched values in result order."""
        return (node.value for node in self)

    def locations(self) -> Iterator[NormalizedPath]:
        """Iterate matched locations in result order."""
        return (node.location for node in self)

    def first(self) -> LocatedNode | None:
        """Return the first node, or None when empty."""
        return self[0] if self else None

    def last(self) -> LocatedNode | None:
        """Return the last node, or None when empty."""
        return self[-1] if self else None

    def exactly_one(self) -> LocatedNode:
        """Return the only node, failing unless there is exactly one."""
        if not self:
            raise NodeCountError("nodelist expected to contain one entry, but is empty", 0)
        if len(self) > 1:
            raise NodeCountError(
                f"nodelist expected to contain one entry, but instead contains {len(self)} entries",
                len(self),
            )
        return self[0]

    def at_most_one(self) -> LocatedNode | None:
        """Return the only node or None, failing when there are several."""
        if len(self) > 1:
            raise NodeCountError(
                "nodelist expected to contain at most one entry, "
                f"but instead contains {len(self)} entries",
                len(self),
            )
        return self.first()

    def dedup(self) -> NodeList:
        """Return nodes sorted by location with repeated locations dropped."""
        seen: set[NormalizedPath] = set()
        unique = NodeList()
        for node in sorted(self, key=lambda item: item.location):
            if node.location in seen:
                continue
            seen.add(node.location)
            unique.append(node)
        return unique


def node_list(nodes: Iterable[LocatedNode] = ()) -> NodeList:
    """Build a node list from located nodes."""
    return NodeList(nodes)
