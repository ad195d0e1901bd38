"""Query expressions over JSON-like documents."""

from spath.compiler import CompiledQuery, compile_query, evaluate
from spath.errors import (
    FunctionRegistrationError,
    NodeCountError,
    QueryLanguageError,
    QueryLexError,
    QueryParseError,
    QueryRuntimeError,
)
from spath.functions import (
    BUILTIN_REGISTRY,
    ExprType,
    FunctionDefinition,
    FunctionRegistry,
    FunctionSignature,
    default_registry,
)
from spath.native import wrap
from spath.node import LocatedNode, NodeList
from spath.parser import parse_query
from spath.path import IndexElement, NameElement, NormalizedPath, PathElement
from spath.runtime import DEFAULT_MAX_DEPTH, EvalContext, evaluate_query
from spath.value import NOTHING, LiteralValue, ValueKind, VariantArray, VariantObject, VariantValue


__version__ = "0.1.0"

__all__ = [
    "BUILTIN_REGISTRY",
    "DEFAULT_MAX_DEPTH",
    "NOTHING",
    "CompiledQuery",
    "EvalContext",
    "ExprType",
    "FunctionDefinition",
    "FunctionRegistrationError",
    "FunctionRegistry",
    "FunctionSignature",
    "IndexElement",
    "LiteralValue",
    "LocatedNode",
    "NameElement",
    "NodeCountError",
    "NodeList",
    "NormalizedPath",
    "PathElement",
    "QueryLanguageError",
    "QueryLexError",
    "QueryParseError",
    "QueryRuntimeError",
    "ValueKind",
    "VariantArray",
    "VariantObject",
    "VariantValue",
    "__version__",
    "compile_query",
    "default_registry",
    "evaluate",
    "evaluate_query",
    "parse_query",
    "wrap",
]
