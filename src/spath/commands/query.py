"""Query command: run a query against a JSON or TOML document."""

from __future__ import annotations

from dataclasses import dataclass

import click
import typer

from spath import config as config_module
from spath.cli_common import InputFormat, build_registry, load_document
from spath.color import should_use_color
from spath.compiler import compile_query
from spath.errors import QueryLexError, QueryParseError, QueryRuntimeError
from spath.native import wrap
from spath.node import NodeList
from spath.output_format import (
    DEFAULT_OUTPUT_THEME,
    OutputFormat,
    OutputFormatError,
    build_console,
    prepare_output,
    print_prepared_output,
)
from spath.runtime import DEFAULT_MAX_DEPTH


@dataclass
class QueryArgs:
    """Arguments for the query command."""

    query: str
    file: str | None
    config: str
    input_format: str
    out: str
    out_theme: str
    max_results: int
    max_depth: int
    color_flag: bool | None
    disable_functions: list[str] | None


def _resolve_output_format(out: str) -> OutputFormat:
    try:
        return OutputFormat(out.strip().lower())
    except ValueError as exc:
        choices = ", ".join(item.value for item in OutputFormat)
        raise typer.BadParameter(f"Unknown output format '{out}'. Choose one of: {choices}") from exc


def run_query(args: QueryArgs) -> None:
    """Run the query command."""
    color_enabled = should_use_color(args.color_flag)
    console = build_console(color_enabled)
    if args.max_results < 0:
        raise typer.BadParameter("--max-results must be non-negative")
    if args.max_depth < 1:
        raise typer.BadParameter("--max-depth must be positive")
    output_format = _resolve_output_format(args.out)

    registry = build_registry(args.disable_functions)
    query_text = config_module.resolve_saved_query(args.query)
    try:
        compiled_query = compile_query(query_text, registry)
    except (QueryLexError, QueryParseError) as exc:
        raise click.UsageError(str(exc)) from exc

    document = load_document(args.file, args.input_format)
    try:
        nodes = compiled_query.evaluate(wrap(document), max_depth=args.max_depth)
    except QueryRuntimeError as exc:
        raise click.UsageError(str(exc)) from exc

    if args.max_results:
        nodes = NodeList(nodes[: args.max_results])

    try:
        prepared_output = prepare_output(nodes, output_format, color_enabled, args.out_theme)
    except OutputFormatError as exc:
        raise click.UsageError(str(exc)) from exc
    print_prepared_output(console, prepared_output)


def register(app: typer.Typer) -> None:
    """Register the query command."""

    @app.command("query")
    def query_command(  # noqa: PLR0913
        query: str = typer.Argument(
            ..., metavar="QUERY", help="Query expression, or the name of a saved query"
        ),
        file: str | None = typer.Argument(
            None, metavar="FILE", help="JSON or TOML document (stdin when omitted)"
        ),
        config: str = typer.Option(
            config_module.DEFAULT_CONFIG_NAME,
            "--config",
            metavar="FILE",
            help="Config file name to load from current directory",
        ),
        input_format: str = typer.Option(
            InputFormat.AUTO,
            "--input-format",
            help="Document format: auto, json or toml",
        ),
        out: str = typer.Option(
            OutputFormat.VALUES,
            "--out",
            help="Output format: values, nodes or paths",
        ),
        out_theme: str = typer.Option(
            DEFAULT_OUTPUT_THEME,
            "--out-theme",
            help="Syntax theme for highlighted JSON output",
        ),
        max_results: int = typer.Option(
            0,
            "--max-results",
            "-n",
            metavar="N",
            help="Maximum number of results to display (0 for all)",
        ),
        max_depth: int = typer.Option(
            DEFAULT_MAX_DEPTH,
            "--max-depth",
            metavar="N",
            help="Maximum document depth for descendant segments and filter nesting",
        ),
        color_flag: bool | None = typer.Option(
            None,
            "--color/--no-color",
            help="Force colored output",
        ),
        disable_functions: list[str] | None = typer.Option(  # noqa: B008
            None,
            "--disable-function",
            metavar="NAME",
            help="Built-in function to make unavailable (repeatable)",
        ),
    ) -> None:
        """Select values from a JSON or TOML document."""
        args = QueryArgs(
            query=query,
            file=file,
            config=config,
            input_format=input_format,
            out=out,
            out_theme=out_theme,
            max_results=max_results,
            max_depth=max_depth,
            color_flag=color_flag,
            disable_functions=disable_functions or None,
        )
        config_module.apply_config_defaults(args)
        config_module.log_applied_config_defaults("query")
        config_module.log_command_arguments(args, "query")
        run_query(args)
