"""Commands for inspecting queries and available functions."""

from __future__ import annotations

import click
import typer

from spath import config as config_module
from spath.color import dim, function_name, should_use_color
from spath.compiler import compile_query
from spath.errors import QueryLexError, QueryParseError
from spath.functions import BUILTIN_REGISTRY
from spath.output_format import build_console


def run_parse(query: str) -> None:
    """Print the canonical form of a query."""
    query_text = config_module.resolve_saved_query(query)
    try:
        compiled_query = compile_query(query_text)
    except (QueryLexError, QueryParseError) as exc:
        raise click.UsageError(str(exc)) from exc
    typer.echo(str(compiled_query))


def run_functions(color_flag: bool | None) -> None:
    """List built-in functions with their signatures."""
    color_enabled = should_use_color(color_flag)
    console = build_console(color_enabled)
    for definition in sorted(BUILTIN_REGISTRY, key=lambda item: item.name):
        line = function_name(definition.name, color_enabled) + dim(
            str(definition.signature), color_enabled
        )
        console.print(line, markup=color_enabled)


def register(app: typer.Typer) -> None:
    """Register the parse and functions commands."""

    @app.command("parse")
    def parse_command(
        query: str = typer.Argument(
            ..., metavar="QUERY", help="Query expression, or the name of a saved query"
        ),
    ) -> None:
        """Check a query and print its canonical form."""
        run_parse(query)

    @app.command("functions")
    def functions_command(
        color_flag: bool | None = typer.Option(
            None,
            "--color/--no-color",
            help="Force colored output",
        ),
    ) -> None:
        """List functions available in filter expressions."""
        run_functions(color_flag)
