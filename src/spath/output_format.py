"""Output formats for query results."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import StrEnum

from rich.console import Console
from rich.syntax import Syntax

from spath.color import path_text
from spath.node import NodeList
from spath.value import ValueKind, VariantValue


logger = logging.getLogger("spath")

DEFAULT_OUTPUT_THEME = "github-dark"


class OutputFormat(StrEnum):
    """Supported output formats."""

    VALUES = "values"
    NODES = "nodes"
    PATHS = "paths"


class OutputFormatError(RuntimeError):
    """Raised when output formatting fails."""


@dataclass(frozen=True)
class OutputOperation:
    """One prepared output operation."""

    kind: str
    text: str | None = None
    renderable: object | None = None
    markup: bool = False


@dataclass(frozen=True)
class PreparedOutput:
    """Prepared output operations ready for console rendering."""

    operations: tuple[OutputOperation, ...]


def build_console(color_enabled: bool) -> Console:
    """Create a console writing to stdout, with styling only when enabled."""
    return Console(
        no_color=not color_enabled,
        force_terminal=color_enabled,
        highlight=False,
        soft_wrap=True,
    )


def to_json_compatible(value: VariantValue) -> object:
    """Convert a queried value into plain JSON-serializable Python data."""
    match value.kind():
        case ValueKind.NULL:
            return None
        case ValueKind.BOOL:
            return value.as_bool()
        case ValueKind.NUMBER:
            return value.as_number()
        case ValueKind.STRING:
            return value.as_str()
        case ValueKind.ARRAY:
            array = value.as_array()
            if array is None:
                raise OutputFormatError("Array value without array access")
            return [to_json_compatible(item) for _, item in array.items()]
        case ValueKind.OBJECT:
            obj = value.as_object()
            if obj is None:
                raise OutputFormatError("Object value without object access")
            return {key: to_json_compatible(item) for key, item in obj.items()}
    raise OutputFormatError(f"Unsupported value kind: {value.kind()}")


def _json_output_payload(nodes: NodeList, output_format: OutputFormat) -> object:
    if output_format is OutputFormat.NODES:
        return [
            {"path": str(node.location), "value": to_json_compatible(node.value)}
            for node in nodes
        ]
    return [to_json_compatible(value) for value in nodes.values()]


def _prepare_json(text: str, color_enabled: bool, out_theme: str) -> PreparedOutput:
    """Prepare JSON text, highlighted when color is enabled."""
    if color_enabled:
        renderable = Syntax(
            text,
            "json",
            theme=out_theme.strip() or DEFAULT_OUTPUT_THEME,
            line_numbers=False,
            word_wrap=True,
        )
        return PreparedOutput(
            operations=(OutputOperation(kind="console_print", renderable=renderable),)
        )
    return PreparedOutput(operations=(OutputOperation(kind="plain_write", text=text),))


def prepare_output(
    nodes: NodeList,
    output_format: OutputFormat,
    color_enabled: bool,
    out_theme: str = DEFAULT_OUTPUT_THEME,
) -> PreparedOutput:
    """Render query results in the selected output format."""
    if output_format is OutputFormat.PATHS:
        return PreparedOutput(
            operations=tuple(
                OutputOperation(
                    kind="console_print",
                    text=path_text(str(location), color_enabled),
                    markup=color_enabled,
                )
                for location in nodes.locations()
            )
        )

    payload = _json_output_payload(nodes, output_format)
    try:
        text = json.dumps(payload, ensure_ascii=False, indent=2, allow_nan=False)
    except ValueError as exc:
        raise OutputFormatError(f"Cannot render results as JSON: {exc}") from exc
    logger.debug("Rendered %d result(s) as %s", len(nodes), output_format)
    return _prepare_json(text, color_enabled, out_theme)


def _write_plain_output(console: Console, text: str) -> None:
    """Write plain output directly to console stream."""
    console.file.write(f"{text}\n")
    console.file.flush()


def print_prepared_output(console: Console, prepared_output: PreparedOutput) -> None:
    """Print already prepared output operations."""
    for operation in prepared_output.operations:
        if operation.kind == "plain_write":
            if operation.text is not None:
                _write_plain_output(console, operation.text)
            continue
        if operation.renderable is not None:
            console.print(operation.renderable)
            continue
        console.print(operation.text if operation.text is not None else "", markup=operation.markup)
