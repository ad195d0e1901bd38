"""Function registry and built-in filter functions."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from typing import TypeAlias

from spath.errors import FunctionRegistrationError, QueryRuntimeError
from spath.value import NOTHING, FunctionValue, LiteralValue, Nothing, ValueKind, VariantValue


logger = logging.getLogger("spath")

_FUNCTION_NAME = re.compile(r"[a-z][a-z0-9_]*")


class ExprType(StrEnum):
    """Static type of a filter expression or function parameter."""

    VALUE = "ValueType"
    LOGICAL = "LogicalType"
    NODES = "NodesType"


NodesArgument: TypeAlias = tuple[VariantValue, ...]
FunctionArgument: TypeAlias = FunctionValue | bool | NodesArgument
FunctionImplementation: TypeAlias = Callable[..., FunctionArgument]


@dataclass(frozen=True, slots=True)
class FunctionSignature:
    """Declared parameter types and result type of a function."""

    parameters: tuple[ExprType, ...]
    result: ExprType

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def __str__(self) -> str:
        parameters = ", ".join(parameter.value for parameter in self.parameters)
        return f"({parameters}) -> {self.result.value}"


@dataclass(frozen=True, slots=True)
class FunctionDefinition:
    """Registered function: name, signature and implementation."""

    name: str
    signature: FunctionSignature
    implementation: FunctionImplementation

    def __str__(self) -> str:
        return f"{self.name}{self.signature}"


class FunctionRegistry:
    """Mapping from function names to definitions.

    A registry is filled before any query is parsed against it. Parsing freezes
    the registry, after which registration fails.
    """

    def __init__(self) -> None:
        self._definitions: dict[str, FunctionDefinition] = {}
        self._frozen = False

    def register(
        self,
        name: str,
        signature: FunctionSignature,
        implementation: FunctionImplementation,
    ) -> FunctionDefinition:
        """Register a function implementation under name.

        Raises:
            FunctionRegistrationError: If the registry is frozen, the name is
                not a valid function name or is already registered
        """
        if self._frozen:
            raise FunctionRegistrationError(f"Cannot register {name}: registry is frozen")
        if _FUNCTION_NAME.fullmatch(name) is None:
            raise FunctionRegistrationError(f"Invalid function name: {name!r}")
        if name in self._definitions:
            raise FunctionRegistrationError(f"Function already registered: {name}")

        definition = FunctionDefinition(name, signature, implementation)
        self._definitions[name] = definition
        logger.debug("Registered function %s", definition)
        return definition

    def get(self, name: str) -> FunctionDefinition | None:
        return self._definitions.get(name)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> FunctionRegistry:
        """Return an unfrozen registry with the same definitions."""
        registry = FunctionRegistry()
        registry._definitions = dict(self._definitions)
        return registry

    def without(self, *names: str) -> FunctionRegistry:
        """Return an unfrozen copy with the named functions left out."""
        registry = FunctionRegistry()
        registry._definitions = {
            name: definition for name, definition in self._definitions.items() if name not in names
        }
        return registry

    def names(self) -> list[str]:
        return sorted(self._definitions)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __iter__(self) -> Iterator[FunctionDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"FunctionRegistry({', '.join(self.names())}; {state})"


def _func_length(value: FunctionValue) -> FunctionValue:
    """Return string, array or object length; NOTHING for anything else."""
    if isinstance(value, Nothing):
        return NOTHING
    match value.kind():
        case ValueKind.STRING:
            text = value.as_str()
            return NOTHING if text is None else LiteralValue(len(text))
        case ValueKind.ARRAY:
            array = value.as_array()
            return NOTHING if array is None else LiteralValue(len(array))
        case ValueKind.OBJECT:
            obj = value.as_object()
            return NOTHING if obj is None else LiteralValue(len(obj))
    return NOTHING


def _func_count(nodes: NodesArgument) -> FunctionValue:
    """Return the number of nodes."""
    return LiteralValue(len(nodes))


def _translate_pattern(pattern: str) -> str:
    """Translate an I-Regexp pattern to Python `re` syntax.

    The only difference handled is `.`, which outside a character class
    matches any character except line breaks.
    """
    translated: list[str] = []
    in_class = False
    position = 0
    while position < len(pattern):
        char = pattern[position]
        if char == "\\":
            translated.append(pattern[position : position + 2])
            position += 2
            continue
        if in_class:
            if char == "]":
                in_class = False
        elif char == "[":
            in_class = True
        elif char == ".":
            char = "[^\\n\\r]"
        translated.append(char)
        position += 1
    return "".join(translated)


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile an I-Regexp pattern, or return None when it is invalid."""
    try:
        return re.compile(_translate_pattern(pattern))
    except re.error:
        logger.debug("Invalid regular expression %r", pattern)
        return None


def _string_and_pattern(value: FunctionValue, pattern: FunctionValue) -> tuple[str, re.Pattern[str]] | None:
    """Extract the subject string and compiled pattern, if both are usable."""
    if isinstance(value, Nothing) or isinstance(pattern, Nothing):
        return None
    text = value.as_str()
    pattern_text = pattern.as_str()
    if text is None or pattern_text is None:
        return None
    compiled = _compile_pattern(pattern_text)
    if compiled is None:
        return None
    return (text, compiled)


def _func_match(value: FunctionValue, pattern: FunctionValue) -> bool:
    """Whether the whole string matches the pattern."""
    operands = _string_and_pattern(value, pattern)
    if operands is None:
        return False
    text, compiled = operands
    return compiled.fullmatch(text) is not None


def _func_search(value: FunctionValue, pattern: FunctionValue) -> bool:
    """Whether some substring matches the pattern."""
    operands = _string_and_pattern(value, pattern)
    if operands is None:
        return False
    text, compiled = operands
    return compiled.search(text) is not None


def _func_value(nodes: NodesArgument) -> FunctionValue:
    """Return the value of the only node."""
    if len(nodes) != 1:
        raise QueryRuntimeError(
            f"value() requires exactly one node, but the argument matched {len(nodes)}"
        )
    return nodes[0]


def _build_builtin_registry() -> FunctionRegistry:
    """Create the frozen registry of built-in functions."""
    registry = FunctionRegistry()
    registry.register(
        "length", FunctionSignature((ExprType.VALUE,), ExprType.VALUE), _func_length
    )
    registry.register("count", FunctionSignature((ExprType.NODES,), ExprType.VALUE), _func_count)
    registry.register(
        "match",
        FunctionSignature((ExprType.VALUE, ExprType.VALUE), ExprType.LOGICAL),
        _func_match,
    )
    registry.register(
        "search",
        FunctionSignature((ExprType.VALUE, ExprType.VALUE), ExprType.LOGICAL),
        _func_search,
    )
    registry.register("value", FunctionSignature((ExprType.NODES,), ExprType.VALUE), _func_value)
    registry.freeze()
    return registry


BUILTIN_REGISTRY = _build_builtin_registry()


def default_registry() -> FunctionRegistry:
    """Return an extensible registry pre-populated with the built-ins."""
    return BUILTIN_REGISTRY.copy()
