"""Compiler entrypoints for query expressions."""

from __future__ import annotations

from dataclasses import dataclass, field

from spath.ast import Query
from spath.functions import BUILTIN_REGISTRY, FunctionRegistry
from spath.node import NodeList
from spath.parser import parse_query
from spath.runtime import DEFAULT_MAX_DEPTH, EvalContext, evaluate_query
from spath.value import VariantValue


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    """Parsed query bound to the registry it was type-checked against.

    Compiled queries are immutable and can be evaluated any number of times,
    against any number of documents.
    """

    source: str
    query: Query
    registry: FunctionRegistry = field(default=BUILTIN_REGISTRY, repr=False, compare=False)

    def evaluate(self, root: VariantValue, *, max_depth: int = DEFAULT_MAX_DEPTH) -> NodeList:
        """Evaluate the query against a document root."""
        context = EvalContext(root, self.registry, self.source, max_depth)
        return evaluate_query(self.query, context)

    def __str__(self) -> str:
        return str(self.query)


def compile_query(text: str, registry: FunctionRegistry | None = None) -> CompiledQuery:
    """Parse and type-check query text.

    Args:
        text: Query text starting with `$`
        registry: Functions callable from filters; built-ins when omitted

    Raises:
        QueryLexError: If the text cannot be tokenized
        QueryParseError: If the text is not a valid query
    """
    registry = BUILTIN_REGISTRY if registry is None else registry
    return CompiledQuery(text, parse_query(text, registry), registry)


def evaluate(
    compiled: CompiledQuery,
    root: VariantValue,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> NodeList:
    """Evaluate a compiled query against a document root.

    Raises:
        QueryRuntimeError: If a function call or singleton coercion fails, or
            the document or filters nest deeper than max_depth
    """
    return compiled.evaluate(root, max_depth=max_depth)
