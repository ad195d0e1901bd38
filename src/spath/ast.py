"""AST nodes for query expressions.

Every node renders back to canonical query text with `str()`. The canonical
form uses bracket notation for all child and descendant segments, so
`$.store..price` renders as `$['store']..['price']`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Literal

from spath.diagnostics import Span
from spath.functions import ExprType
from spath.path import escape_name
from spath.value import Scalar


@dataclass(frozen=True, slots=True)
class Selector:
    """Base selector type."""


@dataclass(frozen=True, slots=True)
class NameSelector(Selector):
    """Select an object member by name."""

    name: str

    def __str__(self) -> str:
        return f"'{escape_name(self.name)}'"


@dataclass(frozen=True, slots=True)
class IndexSelector(Selector):
    """Select an array element; negative indices count from the end."""

    index: int

    def __str__(self) -> str:
        return str(self.index)


@dataclass(frozen=True, slots=True)
class WildcardSelector(Selector):
    """Select every array element or object member value."""

    def __str__(self) -> str:
        return "*"


@dataclass(frozen=True, slots=True)
class SliceSelector(Selector):
    """Select a range of array elements."""

    start: int | None
    end: int | None
    step: int | None

    def __str__(self) -> str:
        start = "" if self.start is None else str(self.start)
        end = "" if self.end is None else str(self.end)
        if self.step is None:
            return f"{start}:{end}"
        return f"{start}:{end}:{self.step}"


@dataclass(frozen=True, slots=True)
class FilterSelector(Selector):
    """Select children for which a logical expression holds."""

    expr: Expr

    def __str__(self) -> str:
        return f"?{self.expr}"


@dataclass(frozen=True, slots=True)
class Segment:
    """Base segment type: a union of selectors."""

    selectors: tuple[Selector, ...]

    def _selector_list(self) -> str:
        return "[" + ", ".join(str(selector) for selector in self.selectors) + "]"


@dataclass(frozen=True, slots=True)
class ChildSegment(Segment):
    """Apply selectors to the immediate children of each input node."""

    def __str__(self) -> str:
        return self._selector_list()


@dataclass(frozen=True, slots=True)
class DescendantSegment(Segment):
    """Apply selectors to each input node and all of its descendants."""

    def __str__(self) -> str:
        return ".." + self._selector_list()


@dataclass(frozen=True, slots=True)
class Expr:
    """Base filter expression type."""


@dataclass(frozen=True, slots=True)
class Query(Expr):
    """Query rooted at the document root (`$`) or the current node (`@`)."""

    root: Literal["$", "@"]
    segments: tuple[Segment, ...] = ()

    @property
    def is_relative(self) -> bool:
        return self.root == "@"

    @property
    def is_singular(self) -> bool:
        """Whether the query can match at most one node."""
        return all(
            isinstance(segment, ChildSegment)
            and len(segment.selectors) == 1
            and isinstance(segment.selectors[0], NameSelector | IndexSelector)
            for segment in self.segments
        )

    def __str__(self) -> str:
        return self.root + "".join(str(segment) for segment in self.segments)


@dataclass(frozen=True, slots=True)
class LiteralExpr(Expr):
    """Literal scalar: string, number, `true`, `false` or `null`."""

    value: Scalar

    def __str__(self) -> str:
        if isinstance(self.value, str):
            return f"'{escape_name(self.value)}'"
        return json.dumps(self.value)


@dataclass(frozen=True, slots=True)
class FunctionCall(Expr):
    """Call of a registered function."""

    name: str
    arguments: tuple[Expr, ...]
    result_type: ExprType
    span: Span = field(default=Span(0, 0), compare=False)

    def __str__(self) -> str:
        return f"{self.name}(" + ", ".join(str(argument) for argument in self.arguments) + ")"


@dataclass(frozen=True, slots=True)
class ExistenceTest(Expr):
    """True when the query selects at least one node."""

    query: Query

    def __str__(self) -> str:
        return str(self.query)


@dataclass(frozen=True, slots=True)
class Comparison(Expr):
    """Comparison of two single values."""

    left: Expr
    operator: Literal["==", "!=", "<", "<=", ">", ">="]
    right: Expr

    def __str__(self) -> str:
        return f"{self.left} {self.operator} {self.right}"


@dataclass(frozen=True, slots=True)
class LogicalNot(Expr):
    """Logical negation."""

    operand: Expr

    def __str__(self) -> str:
        if isinstance(self.operand, ExistenceTest | FunctionCall | LogicalNot):
            return f"!{self.operand}"
        return f"!({self.operand})"


@dataclass(frozen=True, slots=True)
class LogicalAnd(Expr):
    """Logical conjunction."""

    left: Expr
    right: Expr

    def __str__(self) -> str:
        return f"{_grouped(self.left)} && {_grouped(self.right)}"


@dataclass(frozen=True, slots=True)
class LogicalOr(Expr):
    """Logical disjunction."""

    left: Expr
    right: Expr

    def __str__(self) -> str:
        # `||` binds loosest, so only a nested `||` on the right needs grouping.
        right = f"({self.right})" if isinstance(self.right, LogicalOr) else str(self.right)
        return f"{self.left} || {right}"


def _grouped(expr: Expr) -> str:
    """Render an operand of `&&`, parenthesized when it binds looser."""
    if isinstance(expr, LogicalOr):
        return f"({expr})"
    return str(expr)
