"""Tests for spath.config helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import typer

from spath import config
from spath.commands.query import QueryArgs


def _write_config(directory: Path, payload: object, name: str = ".spath.json") -> Path:
    path = directory / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_config_missing_file_returns_empty(tmp_path: Path) -> None:
    """Missing config should return empty config without error."""
    assert config.load_config(tmp_path / "missing.json") == {}


def test_load_config_directory_path_is_malformed(tmp_path: Path) -> None:
    """Directory path should be treated as malformed config."""
    config_dir = tmp_path / "cfgdir"
    config_dir.mkdir()

    with pytest.raises(typer.BadParameter, match="Malformed config: cannot read"):
        config.load_config(config_dir)


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("[1, 2, 3]", "expected a JSON object"),
        ("{not json", "cannot read"),
    ],
)
def test_load_config_malformed_content(tmp_path: Path, content: str, message: str) -> None:
    """Invalid JSON or non-object JSON should be rejected."""
    path = tmp_path / "config.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(typer.BadParameter, match=message):
        config.load_config(path)


def test_build_config_defaults_collects_options() -> None:
    """Valid defaults are split into scalar and repeatable defaults."""
    result = config.build_config_defaults(
        {
            "--max-results": 3,
            "--verbose": True,
            "--out": "nodes",
            "--color": True,
            "--disable-function": ["search"],
        }
    )

    assert result == (
        {"max_results": 3, "verbose": True, "out": "nodes", "color_flag": True},
        {"disable_functions": ["search"]},
    )


def test_build_config_defaults_no_color() -> None:
    """--no-color maps to a disabled color flag."""
    assert config.build_config_defaults({"--no-color": True}) == ({"color_flag": False}, {})


@pytest.mark.parametrize(
    ("defaults", "message"),
    [
        ({"--max-depth": 0}, "--max-depth: expected at least 1"),
        ({"--max-results": -1}, "--max-results: expected at least 0"),
        ({"--max-results": True}, "--max-results: expected an integer"),
        ({"--unknown": 1}, "unknown option --unknown"),
        ({"--verbose": "yes"}, "--verbose: expected true or false"),
        ({"--color": 1}, "--color: expected true or false"),
        ({"--color": True, "--no-color": True}, "mutually exclusive"),
        ({"--input-format": "yaml"}, "--input-format: expected one of auto, json, toml"),
        ({"--out": "org"}, "--out: expected one of"),
        ({"--out-theme": "   "}, "--out-theme: expected a non-empty string"),
        ({"--disable-function": "match"}, "expected a list of function names"),
        ({"--disable-function": ["nope"]}, "unknown function\\(s\\) nope"),
    ],
)
def test_build_config_defaults_rejects_invalid_entries(
    defaults: dict[str, object], message: str
) -> None:
    """Any invalid entry makes the defaults section malformed."""
    with pytest.raises(typer.BadParameter, match=message):
        config.build_config_defaults(defaults)


def test_parse_saved_queries_compiles_each_query() -> None:
    """Saved queries must be valid queries."""
    assert config.parse_saved_queries({"cheap": "$..book[?@.price < 10]"}) == {
        "cheap": "$..book[?@.price < 10]"
    }
    with pytest.raises(typer.BadParameter, match="saved query 'bad' is invalid"):
        config.parse_saved_queries({"bad": "$["})
    with pytest.raises(typer.BadParameter, match="saved query 'bad' must be a string"):
        config.parse_saved_queries({"bad": 1})
    with pytest.raises(typer.BadParameter, match="queries must be an object"):
        config.parse_saved_queries([])


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        (["spath", "query", "$"], ".spath.json"),
        (["spath", "query", "--config", "alt.json", "$"], "alt.json"),
        (["spath", "query", "--config=other.json", "$"], "other.json"),
        (["spath", "query", "$", "--config"], ".spath.json"),
    ],
)
def test_parse_config_argument(argv: list[str], expected: str) -> None:
    """Only the --config option is picked out of argv."""
    assert config.parse_config_argument(argv) == expected


def test_load_cli_config_reads_working_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Config is loaded from the current directory by default."""
    _write_config(
        tmp_path,
        {
            "defaults": {"--max-results": 2, "--disable-function": ["value"]},
            "queries": {"titles": "$..title"},
        },
    )
    monkeypatch.chdir(tmp_path)

    loaded = config.load_cli_config(["spath", "query", "titles"])

    assert loaded.defaults == {"max_results": 2}
    assert loaded.append_defaults == {"disable_functions": ["value"]}
    assert loaded.saved_queries == {"titles": "$..title"}


def test_load_cli_config_uses_explicit_path(tmp_path: Path) -> None:
    """An absolute --config path is used as is."""
    path = _write_config(tmp_path, {"defaults": {"--out": "paths"}}, "custom.json")

    loaded = config.load_cli_config(["spath", "query", "--config", str(path), "$"])

    assert loaded.defaults == {"out": "paths"}


def test_load_cli_config_without_file_is_empty(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """No config file means no defaults and no saved queries."""
    monkeypatch.chdir(tmp_path)

    loaded = config.load_cli_config(["spath", "query", "$"])

    assert loaded == config.LoadedCliConfig({}, {}, {})


@pytest.mark.parametrize(
    "payload",
    [
        {"defaults": {"--max-results": -1}},
        {"defaults": []},
        {"queries": {"broken": "$.a["}},
        {"other": {}},
        ["not", "an", "object"],
    ],
)
def test_load_cli_config_rejects_malformed_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, payload: object
) -> None:
    """Malformed config files stop the CLI before any command runs."""
    _write_config(tmp_path, payload)
    monkeypatch.chdir(tmp_path)

    with pytest.raises(typer.BadParameter, match="Malformed config"):
        config.load_cli_config(["spath", "query", "$"])


def test_build_default_map_targets_query_command() -> None:
    """Config defaults apply to the query command."""
    assert config.build_default_map({"max_results": 1}) == {"query": {"max_results": 1}}


def test_resolve_saved_query(caplog: pytest.LogCaptureFixture) -> None:
    """Saved query names resolve to their text; anything else is kept."""
    config.CONFIG_SAVED_QUERIES["titles"] = "$..title"
    caplog.set_level(logging.INFO, logger="spath")

    assert config.resolve_saved_query("titles") == "$..title"
    assert config.resolve_saved_query("$.a") == "$.a"
    assert "Using saved query titles: $..title" in caplog.text


def _query_args(**overrides: object) -> QueryArgs:
    args = QueryArgs(
        query="$",
        file=None,
        config=".spath.json",
        input_format="auto",
        out="values",
        out_theme="github-dark",
        max_results=0,
        max_depth=512,
        color_flag=False,
        disable_functions=None,
    )
    for key, value in overrides.items():
        setattr(args, key, value)
    return args


def test_apply_config_defaults_fills_unset_lists() -> None:
    """Config list defaults only apply when the option was not given."""
    config.CONFIG_APPEND_DEFAULTS["disable_functions"] = ["match"]

    unset = _query_args()
    explicit = _query_args(disable_functions=["search"])
    config.apply_config_defaults(unset)
    config.apply_config_defaults(explicit)

    assert unset.disable_functions == ["match"]
    assert explicit.disable_functions == ["search"]


def test_log_applied_config_defaults(caplog: pytest.LogCaptureFixture) -> None:
    """Applied defaults are logged with their option names."""
    config.CONFIG_DEFAULTS["max_results"] = 5
    config.CONFIG_APPEND_DEFAULTS["disable_functions"] = ["value"]
    caplog.set_level(logging.INFO, logger="spath")

    config.log_applied_config_defaults("query")

    assert (
        "Config defaults applied (query): --disable-function=['value'], --max-results=5"
        in caplog.text
    )


def test_log_command_arguments(caplog: pytest.LogCaptureFixture) -> None:
    """Final command arguments are logged sorted by name."""
    caplog.set_level(logging.INFO, logger="spath")

    config.log_command_arguments(_query_args(), "query")

    assert "Command arguments (query): color_flag=False, config='.spath.json'" in caplog.text
