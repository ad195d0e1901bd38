"""Tests for spath.color utilities."""

from __future__ import annotations

import sys

import pytest

from spath import color


def test_should_use_color_respects_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    """Explicit color flag should override TTY detection."""
    monkeypatch.setattr(sys.stdout, "isatty", lambda: False)

    assert color.should_use_color(True) is True
    assert color.should_use_color(False) is False


def test_should_use_color_uses_tty(monkeypatch: pytest.MonkeyPatch) -> None:
    """When flag is None, use TTY detection."""
    monkeypatch.setattr(sys.stdout, "isatty", lambda: True)

    assert color.should_use_color(None) is True


def test_colorize_noop_when_disabled() -> None:
    """colorize should return original text when disabled."""
    assert color.colorize("hello", "green", False) == "hello"


def test_colorize_wraps_when_enabled() -> None:
    """colorize should wrap text with markup when enabled."""
    assert color.colorize("hello", "green", True) == "[green]hello[/]"


def test_colorize_escapes_markup() -> None:
    """Text that looks like markup is escaped."""
    assert color.colorize("[red]", "green", True) == "[green]\\[red][/]"


def test_named_styles() -> None:
    """Function names, paths and secondary text have fixed styles."""
    assert color.function_name("length", True) == "[bold green]length[/]"
    assert color.path_text("$", True) == "[bold blue]$[/]"
    assert color.dim("(ValueType)", True) == "[dim white](ValueType)[/]"
    assert color.dim("(ValueType)", False) == "(ValueType)"
