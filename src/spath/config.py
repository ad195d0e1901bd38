"""Configuration handling for the spath CLI.

The config file is a JSON object with two optional sections:

    {
      "defaults": {"--max-results": 10, "--no-color": true},
      "queries": {"cheap": "$..book[?@.price < 10]"}
    }

Defaults become Click's `default_map` for the query command, except for
repeatable options which are filled in only when not given on the command line.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, cast

import typer

from spath.cli_common import InputFormat
from spath.compiler import compile_query
from spath.errors import QueryLanguageError
from spath.functions import BUILTIN_REGISTRY
from spath.output_format import OutputFormat


if TYPE_CHECKING:
    from spath.commands.query import QueryArgs


DEFAULT_CONFIG_NAME = ".spath.json"

CONFIG_APPEND_DEFAULTS: dict[str, list[str]] = {}
CONFIG_DEFAULTS: dict[str, object] = {}
CONFIG_SAVED_QUERIES: dict[str, str] = {}


logger = logging.getLogger("spath")


@dataclass(frozen=True)
class ConfigOption:
    """One option accepted in the "defaults" section.

    `validate` returns the value to store under `dest` and raises `ValueError`
    for anything the option does not accept.
    """

    dest: str
    validate: Callable[[object], object]
    repeatable: bool = False


@dataclass
class LoadedCliConfig:
    """Fully parsed CLI config payload."""

    defaults: dict[str, object]
    append_defaults: dict[str, list[str]]
    saved_queries: dict[str, str]


def _integer(minimum: int) -> Callable[[object], object]:
    def validate(value: object) -> object:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("expected an integer")
        if value < minimum:
            raise ValueError(f"expected at least {minimum}")
        return value

    return validate


def _flag(value: object) -> object:
    if not isinstance(value, bool):
        raise ValueError("expected true or false")
    return value


def _inverted_flag(value: object) -> object:
    return not _flag(value)


def _choice(choices: Iterable[str]) -> Callable[[object], object]:
    allowed = sorted(choices)

    def validate(value: object) -> object:
        if value not in allowed:
            raise ValueError("expected one of " + ", ".join(allowed))
        return value

    return validate


def _non_blank(value: object) -> object:
    if not isinstance(value, str) or not value.strip():
        raise ValueError("expected a non-empty string")
    return value


def _function_names(value: object) -> object:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError("expected a list of function names")
    unknown = [name for name in value if name not in BUILTIN_REGISTRY]
    if unknown:
        raise ValueError("unknown function(s) " + ", ".join(unknown))
    return list(value)


CONFIG_OPTIONS: dict[str, ConfigOption] = {
    "--color": ConfigOption("color_flag", _flag),
    "--no-color": ConfigOption("color_flag", _inverted_flag),
    "--disable-function": ConfigOption("disable_functions", _function_names, repeatable=True),
    "--input-format": ConfigOption("input_format", _choice(item.value for item in InputFormat)),
    "--max-depth": ConfigOption("max_depth", _integer(1)),
    "--max-results": ConfigOption("max_results", _integer(0)),
    "--out": ConfigOption("out", _choice(item.value for item in OutputFormat)),
    "--out-theme": ConfigOption("out_theme", _non_blank),
    "--verbose": ConfigOption("verbose", _flag),
}


def _malformed(reason: str) -> typer.BadParameter:
    return typer.BadParameter(f"Malformed config: {reason}")


def load_config(filepath: Path) -> dict[str, object]:
    """Read the config file; a missing file is an empty config.

    Raises:
        typer.BadParameter: If the file is unreadable or not a JSON object
    """
    try:
        with filepath.open(encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError) as exc:
        raise _malformed(f"cannot read {filepath}") from exc

    if not isinstance(config, dict):
        raise _malformed("expected a JSON object")
    return config


def parse_saved_queries(section: object) -> dict[str, str]:
    """Validate the "queries" section; every query must compile."""
    if not isinstance(section, dict):
        raise _malformed("queries must be an object")

    queries: dict[str, str] = {}
    for name, text in section.items():
        if not isinstance(text, str):
            raise _malformed(f"saved query {name!r} must be a string")
        try:
            compile_query(text)
        except QueryLanguageError as exc:
            raise _malformed(f"saved query {name!r} is invalid: {exc.message}") from exc
        queries[name] = text
    return queries


def build_config_defaults(section: object) -> tuple[dict[str, object], dict[str, list[str]]]:
    """Validate the "defaults" section.

    Returns:
        Tuple of (defaults, append_defaults) keyed by command parameter name
    """
    if not isinstance(section, dict):
        raise _malformed("defaults must be an object")
    if "--color" in section and "--no-color" in section:
        raise _malformed("--color and --no-color are mutually exclusive")

    defaults: dict[str, object] = {}
    append_defaults: dict[str, list[str]] = {}
    for key, value in section.items():
        option = CONFIG_OPTIONS.get(key)
        if option is None:
            raise _malformed(f"unknown option {key}")
        try:
            validated = option.validate(value)
        except ValueError as exc:
            raise _malformed(f"{key}: {exc}") from exc
        if option.repeatable:
            append_defaults[option.dest] = cast(list[str], validated)
        else:
            defaults[option.dest] = validated

    return (defaults, append_defaults)


def parse_config_argument(argv: list[str]) -> str:
    """Parse only the --config argument from argv."""
    for idx, arg in enumerate(argv[1:], start=1):
        if arg == "--config" and idx + 1 < len(argv):
            return argv[idx + 1]
        if arg.startswith("--config="):
            return arg.split("=", 1)[1]
    return DEFAULT_CONFIG_NAME


def load_cli_config(argv: list[str]) -> LoadedCliConfig:
    """Load config defaults and saved queries from the configured file path.

    Raises:
        typer.BadParameter: If the config file is unreadable or malformed
    """
    config_path = Path(parse_config_argument(argv))
    if not config_path.is_absolute():
        config_path = Path.cwd() / config_path
    config = load_config(config_path)

    unknown_sections = sorted(set(config) - {"defaults", "queries"})
    if unknown_sections:
        raise _malformed("unknown section(s) " + ", ".join(unknown_sections))

    defaults, append_defaults = build_config_defaults(config.get("defaults", {}))
    return LoadedCliConfig(
        defaults=defaults,
        append_defaults=append_defaults,
        saved_queries=parse_saved_queries(config.get("queries", {})),
    )


def build_default_map(defaults: dict[str, object]) -> dict[str, dict[str, object]]:
    """Build Click default_map for Typer commands."""
    return {"query": dict(defaults)}


def resolve_saved_query(query: str) -> str:
    """Return the saved query text for a configured name, or query unchanged."""
    saved = CONFIG_SAVED_QUERIES.get(query)
    if saved is None:
        return query
    logger.info("Using saved query %s: %s", query, saved)
    return saved


def apply_config_defaults(args: QueryArgs) -> None:
    """Fill repeatable options left unset on the command line from config."""
    if args.disable_functions is None and "disable_functions" in CONFIG_APPEND_DEFAULTS:
        args.disable_functions = list(CONFIG_APPEND_DEFAULTS["disable_functions"])


def log_applied_config_defaults(command_name: str) -> None:
    """Log config defaults loaded from config file, by option name."""
    if not logger.isEnabledFor(logging.INFO):
        return

    applied = {**CONFIG_DEFAULTS, **CONFIG_APPEND_DEFAULTS}
    entries = [
        f"{key}={applied[option.dest]!r}"
        for key, option in sorted(CONFIG_OPTIONS.items())
        if option.dest in applied and key != "--no-color"
    ]
    if entries:
        logger.info("Config defaults applied (%s): %s", command_name, ", ".join(entries))


def log_command_arguments(args: QueryArgs, command_name: str) -> None:
    """Log all final argument values used to run a command."""
    if not logger.isEnabledFor(logging.INFO):
        return

    entries = [
        f"{field.name}={getattr(args, field.name)!r}"
        for field in sorted(fields(args), key=lambda field: field.name)
    ]
    logger.info("Command arguments (%s): %s", command_name, ", ".join(entries))
