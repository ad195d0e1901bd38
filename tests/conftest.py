"""Shared fixtures for spath tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from spath import config
from spath.logging_config import LOGGER_NAME


BOOKSTORE: dict[str, object] = {
    "store": {
        "book": [
            {
                "category": "reference",
                "author": "Nigel Rees",
                "title": "Sayings of the Century",
                "price": 8.95,
            },
            {
                "category": "fiction",
                "author": "Evelyn Waugh",
                "title": "Sword of Honour",
                "price": 12.99,
            },
            {
                "category": "fiction",
                "author": "Herman Melville",
                "title": "Moby Dick",
                "isbn": "0-553-21311-3",
                "price": 8.99,
            },
            {
                "category": "fiction",
                "author": "J. R. R. Tolkien",
                "title": "The Lord of the Rings",
                "isbn": "0-395-19395-8",
                "price": 22.99,
            },
        ],
        "bicycle": {"color": "red", "price": 399},
    }
}


@pytest.fixture
def bookstore() -> dict[str, object]:
    """Example document from RFC 9535."""
    return BOOKSTORE


@pytest.fixture(autouse=True)
def reset_config_globals() -> Iterator[None]:
    """Keep module-level CLI config state from leaking between tests."""
    yield
    config.CONFIG_DEFAULTS.clear()
    config.CONFIG_APPEND_DEFAULTS.clear()
    config.CONFIG_SAVED_QUERIES.clear()


@pytest.fixture(autouse=True)
def restore_spath_logger() -> Iterator[None]:
    """Undo logging configuration done by verbose runs."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
