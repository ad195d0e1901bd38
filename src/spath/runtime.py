"""Runtime evaluation of parsed queries."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, replace
from typing import Final, cast

from spath.ast import (
    ChildSegment,
    Comparison,
    DescendantSegment,
    ExistenceTest,
    Expr,
    FilterSelector,
    FunctionCall,
    IndexSelector,
    LiteralExpr,
    LogicalAnd,
    LogicalNot,
    LogicalOr,
    NameSelector,
    Query,
    Segment,
    Selector,
    SliceSelector,
    WildcardSelector,
)
from spath.errors import QueryRuntimeError
from spath.functions import (
    BUILTIN_REGISTRY,
    ExprType,
    FunctionArgument,
    FunctionRegistry,
    NodesArgument,
)
from spath.node import LocatedNode, NodeList
from spath.path import NormalizedPath
from spath.value import (
    NOTHING,
    FunctionValue,
    LiteralValue,
    Nothing,
    ValueKind,
    VariantValue,
    value_less_than,
    values_equal,
)


DEFAULT_MAX_DEPTH: Final = 512

logger = logging.getLogger("spath")


@dataclass(frozen=True, slots=True)
class EvalContext:
    """Execution context for runtime evaluation.

    Attributes:
        root: Document root bound to `$`
        registry: Functions the query was parsed against
        source: Query text, used to point at failing expressions
        max_depth: Limit for document depth under descendant segments and for
            nesting of filters
        filter_depth: Current filter nesting level
    """

    root: VariantValue
    registry: FunctionRegistry = BUILTIN_REGISTRY
    source: str | None = None
    max_depth: int = DEFAULT_MAX_DEPTH
    filter_depth: int = 0


def evaluate_query(query: Query, context: EvalContext) -> NodeList:
    """Evaluate an absolute query against the context's root value."""
    if query.is_relative:
        raise QueryRuntimeError("Only queries starting with '$' can be evaluated directly")
    logger.debug("Evaluating %s", query)
    result = _evaluate_segments(query.segments, _root_node(context), context)
    logger.debug("Query %s matched %d node(s)", query, len(result))
    return result


def _root_node(context: EvalContext) -> NodeList:
    return NodeList([LocatedNode(context.root, NormalizedPath())])


def _evaluate_segments(
    segments: tuple[Segment, ...],
    nodes: NodeList,
    context: EvalContext,
) -> NodeList:
    """Apply segments one after another, starting from nodes."""
    for segment in segments:
        nodes = _evaluate_segment(segment, nodes, context)
    return nodes


def _evaluate_segment(segment: Segment, nodes: NodeList, context: EvalContext) -> NodeList:
    """Apply one segment to every input node, in input order."""
    output = NodeList()
    if isinstance(segment, ChildSegment):
        for node in nodes:
            for selector in segment.selectors:
                output.extend(_select(selector, node, context))
    elif isinstance(segment, DescendantSegment):
        for node in nodes:
            for descendant in _descendants(node, context):
                for selector in segment.selectors:
                    output.extend(_select(selector, descendant, context))
    else:
        raise QueryRuntimeError(f"Unsupported segment type: {type(segment).__name__}")
    return output


def _children(node: LocatedNode) -> Iterator[LocatedNode]:
    """Yield array elements in index order or object members in insertion order."""
    value, location = node
    match value.kind():
        case ValueKind.ARRAY:
            array = value.as_array()
            if array is not None:
                for position, item in array.items():
                    yield LocatedNode(item, location.child(position))
        case ValueKind.OBJECT:
            obj = value.as_object()
            if obj is not None:
                for key, item in obj.items():
                    yield LocatedNode(item, location.child(key))


def _descendants(node: LocatedNode, context: EvalContext) -> Iterator[LocatedNode]:
    """Yield node and all its descendants, depth-first in document order."""
    stack: list[tuple[LocatedNode, int]] = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        if depth > context.max_depth:
            raise QueryRuntimeError(
                f"Document nesting exceeds the maximum depth of {context.max_depth}",
                expression=str(current.location),
            )
        yield current
        children = list(_children(current))
        stack.extend((child, depth + 1) for child in reversed(children))


def _select(selector: Selector, node: LocatedNode, context: EvalContext) -> Iterator[LocatedNode]:
    """Apply one selector to the children of node."""
    if isinstance(selector, NameSelector):
        yield from _select_name(selector.name, node)
    elif isinstance(selector, IndexSelector):
        yield from _select_index(selector.index, node)
    elif isinstance(selector, WildcardSelector):
        yield from _children(node)
    elif isinstance(selector, SliceSelector):
        yield from _select_slice(selector, node)
    elif isinstance(selector, FilterSelector):
        yield from _select_filter(selector, node, context)
    else:
        raise QueryRuntimeError(f"Unsupported selector type: {type(selector).__name__}")


def _select_name(name: str, node: LocatedNode) -> Iterator[LocatedNode]:
    if node.value.kind() is not ValueKind.OBJECT:
        return
    obj = node.value.as_object()
    member = None if obj is None else obj.get(name)
    if member is not None:
        yield LocatedNode(member, node.location.child(name))


def _select_index(index: int, node: LocatedNode) -> Iterator[LocatedNode]:
    if node.value.kind() is not ValueKind.ARRAY:
        return
    array = node.value.as_array()
    if array is None:
        return
    position = index if index >= 0 else len(array) + index
    if position < 0:
        return
    item = array.get(position)
    if item is not None:
        yield LocatedNode(item, node.location.child(position))


def slice_indices(length: int, start: int | None, end: int | None, step: int | None) -> range:
    """Return array positions selected by a slice, in selection order.

    Negative bounds count from the end. Bounds are clamped to `[0, length]`
    for a positive step and to `[-1, length - 1]` for a negative one. A
    missing bound defaults to the first or last position in the direction
    of iteration.
    """
    step = 1 if step is None else step
    if step == 0:
        return range(0)

    def normalize(bound: int) -> int:
        return bound if bound >= 0 else length + bound

    if step > 0:
        lower = 0 if start is None else min(max(normalize(start), 0), length)
        upper = length if end is None else min(max(normalize(end), 0), length)
        return range(lower, upper, step)

    upper = length - 1 if start is None else min(max(normalize(start), -1), length - 1)
    lower = -1 if end is None else min(max(normalize(end), -1), length - 1)
    return range(upper, lower, step)


def _select_slice(selector: SliceSelector, node: LocatedNode) -> Iterator[LocatedNode]:
    if node.value.kind() is not ValueKind.ARRAY:
        return
    array = node.value.as_array()
    if array is None:
        return
    for position in slice_indices(len(array), selector.start, selector.end, selector.step):
        item = array.get(position)
        if item is not None:
            yield LocatedNode(item, node.location.child(position))


def _select_filter(
    selector: FilterSelector,
    node: LocatedNode,
    context: EvalContext,
) -> Iterator[LocatedNode]:
    nested = replace(context, filter_depth=context.filter_depth + 1)
    if nested.filter_depth > context.max_depth:
        raise QueryRuntimeError(
            f"Filter nesting exceeds the maximum depth of {context.max_depth}",
            expression=str(selector),
        )
    for child in _children(node):
        if _test(selector.expr, child, nested):
            yield child


def _query_nodes(query: Query, current: LocatedNode, context: EvalContext) -> NodeList:
    """Evaluate an embedded query relative to `@` or from `$`."""
    start = NodeList([current]) if query.is_relative else _root_node(context)
    return _evaluate_segments(query.segments, start, context)


def _test(expr: Expr, current: LocatedNode, context: EvalContext) -> bool:
    """Evaluate a logical expression for the current node."""
    if isinstance(expr, LogicalOr):
        return _test(expr.left, current, context) or _test(expr.right, current, context)
    if isinstance(expr, LogicalAnd):
        return _test(expr.left, current, context) and _test(expr.right, current, context)
    if isinstance(expr, LogicalNot):
        return not _test(expr.operand, current, context)
    if isinstance(expr, ExistenceTest):
        return len(_query_nodes(expr.query, current, context)) > 0
    if isinstance(expr, Comparison):
        left = _comparable_value(expr.left, current, context)
        right = _comparable_value(expr.right, current, context)
        return compare_values(expr.operator, left, right)
    if isinstance(expr, FunctionCall):
        result = _call_function(expr, current, context)
        if expr.result_type is ExprType.NODES:
            return len(cast(NodesArgument, result)) > 0
        return bool(result)
    raise QueryRuntimeError(f"Unsupported logical expression: {expr}", expression=str(expr))


def _equal(left: FunctionValue, right: FunctionValue) -> bool:
    if isinstance(left, Nothing) or isinstance(right, Nothing):
        return isinstance(left, Nothing) and isinstance(right, Nothing)
    return values_equal(left, right)


def _less(left: FunctionValue, right: FunctionValue) -> bool:
    if isinstance(left, Nothing) or isinstance(right, Nothing):
        return False
    return value_less_than(left, right)


def compare_values(operator: str, left: FunctionValue, right: FunctionValue) -> bool:
    """Apply a comparison operator; NOTHING equals only NOTHING."""
    match operator:
        case "==":
            return _equal(left, right)
        case "!=":
            return not _equal(left, right)
        case "<":
            return _less(left, right)
        case "<=":
            return _less(left, right) or _equal(left, right)
        case ">":
            return _less(right, left)
        case ">=":
            return _less(right, left) or _equal(left, right)
    raise QueryRuntimeError(f"Unsupported comparison operator: {operator}")


def _single_value(
    nodes: NodesArgument,
    expr: Expr,
    call: FunctionCall | None,
    context: EvalContext,
) -> VariantValue:
    """Apply singleton coercion to a node list used as a value."""
    if len(nodes) == 1:
        return nodes[0]
    raise QueryRuntimeError(
        f"{expr} must select exactly one node to be used as a value, but selected {len(nodes)}",
        source=context.source,
        span=None if call is None else call.span,
        expression=str(expr if call is None else call),
    )


def _comparable_value(expr: Expr, current: LocatedNode, context: EvalContext) -> FunctionValue:
    """Evaluate one side of a comparison."""
    if isinstance(expr, LiteralExpr):
        return LiteralValue(expr.value)
    if isinstance(expr, Query):
        node = _query_nodes(expr, current, context).first()
        return NOTHING if node is None else node.value
    if isinstance(expr, FunctionCall):
        result = _call_function(expr, current, context)
        if expr.result_type is ExprType.NODES:
            return _single_value(cast(NodesArgument, result), expr, expr, context)
        return cast(FunctionValue, result)
    raise QueryRuntimeError(f"Unsupported comparison operand: {expr}", expression=str(expr))


def _function_argument(
    expr: Expr,
    parameter: ExprType,
    call: FunctionCall,
    current: LocatedNode,
    context: EvalContext,
) -> FunctionArgument:
    """Evaluate and convert one function argument to its parameter type."""
    match parameter:
        case ExprType.LOGICAL:
            return _test(expr, current, context)
        case ExprType.NODES:
            if isinstance(expr, Query):
                return tuple(_query_nodes(expr, current, context).values())
            return _call_function(cast(FunctionCall, expr), current, context)

    if isinstance(expr, Query) and not expr.is_singular:
        nodes = tuple(_query_nodes(expr, current, context).values())
        return _single_value(nodes, expr, call, context)
    if isinstance(expr, FunctionCall) and expr.result_type is ExprType.NODES:
        nodes = cast(NodesArgument, _call_function(expr, current, context))
        return _single_value(nodes, expr, call, context)
    return _comparable_value(expr, current, context)


def _call_function(call: FunctionCall, current: LocatedNode, context: EvalContext) -> FunctionArgument:
    """Evaluate a function call for the current node."""
    definition = context.registry.get(call.name)
    if definition is None:
        raise QueryRuntimeError(
            f"Unknown function: {call.name}",
            source=context.source,
            span=call.span,
            expression=str(call),
        )

    arguments = [
        _function_argument(argument, parameter, call, current, context)
        for argument, parameter in zip(
            call.arguments, definition.signature.parameters, strict=True
        )
    ]
    try:
        return definition.implementation(*arguments)
    except QueryRuntimeError as exc:
        if exc.span is not None:
            raise
        raise QueryRuntimeError(
            exc.message,
            source=context.source,
            span=call.span,
            expression=str(call),
        ) from exc
