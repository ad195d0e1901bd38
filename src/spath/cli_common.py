"""Shared helpers for CLI commands: document loading and registry setup."""

from __future__ import annotations

import json
import logging
import sys
import tomllib
from enum import StrEnum
from pathlib import Path

import typer

from spath.functions import BUILTIN_REGISTRY, FunctionRegistry


logger = logging.getLogger("spath")


class InputFormat(StrEnum):
    """Supported document formats."""

    AUTO = "auto"
    JSON = "json"
    TOML = "toml"


_SUFFIX_FORMATS = {
    ".json": InputFormat.JSON,
    ".toml": InputFormat.TOML,
}


def resolve_input_format(path: str | None, input_format: str) -> InputFormat:
    """Resolve the effective document format.

    Raises:
        typer.BadParameter: If input_format is not a known format
    """
    try:
        selected = InputFormat(input_format.strip().lower())
    except ValueError as exc:
        choices = ", ".join(item.value for item in InputFormat)
        raise typer.BadParameter(
            f"Unknown input format '{input_format}'. Choose one of: {choices}"
        ) from exc

    if selected is not InputFormat.AUTO:
        return selected
    if path is None:
        return InputFormat.JSON
    return _SUFFIX_FORMATS.get(Path(path).suffix.lower(), InputFormat.JSON)


def _read_text(path: str | None) -> str:
    """Read document text from a file, or from stdin when path is None."""
    if path is None:
        return sys.stdin.read()
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError as err:
        raise typer.BadParameter(f"Path '{path}' not found") from err
    except PermissionError as err:
        raise typer.BadParameter(f"Permission denied for '{path}'") from err
    except IsADirectoryError as err:
        raise typer.BadParameter(f"Path '{path}' is a directory") from err
    except UnicodeDecodeError as err:
        raise typer.BadParameter(f"File '{path}' is not valid UTF-8 text") from err


def load_document(path: str | None, input_format: str) -> object:
    """Load a JSON or TOML document.

    Args:
        path: Document path, or None to read stdin
        input_format: One of `auto`, `json` or `toml`

    Returns:
        Decoded document as plain Python data

    Raises:
        typer.BadParameter: If the document cannot be read or decoded
    """
    resolved_format = resolve_input_format(path, input_format)
    source_name = "<stdin>" if path is None else path
    text = _read_text(path)

    try:
        if resolved_format is InputFormat.TOML:
            document: object = tomllib.loads(text)
        else:
            document = json.loads(text)
    except json.JSONDecodeError as err:
        raise typer.BadParameter(f"Invalid JSON in '{source_name}': {err}") from err
    except tomllib.TOMLDecodeError as err:
        raise typer.BadParameter(f"Invalid TOML in '{source_name}': {err}") from err

    logger.info("Loaded %s document from %s", resolved_format.value, source_name)
    return document


def build_registry(disabled_functions: list[str] | None) -> FunctionRegistry:
    """Return the built-in registry minus disabled functions.

    Raises:
        typer.BadParameter: If a disabled function is not a built-in
    """
    if not disabled_functions:
        return BUILTIN_REGISTRY

    unknown = sorted(name for name in disabled_functions if name not in BUILTIN_REGISTRY)
    if unknown:
        available = ", ".join(BUILTIN_REGISTRY.names())
        raise typer.BadParameter(
            f"Unknown function(s): {', '.join(unknown)}. Available functions: {available}"
        )

    registry = BUILTIN_REGISTRY.without(*disabled_functions)
    logger.info("Disabled functions: %s", ", ".join(sorted(set(disabled_functions))))
    return registry
