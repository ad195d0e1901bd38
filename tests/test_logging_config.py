"""Tests for logging configuration."""

from __future__ import annotations

import logging

from spath.logging_config import LOGGER_NAME, configure_logging


def test_verbose_logging_adds_single_stdout_handler() -> None:
    """Verbose mode logs INFO messages through one stream handler."""
    configure_logging(True)
    configure_logging(True)

    logger = logging.getLogger(LOGGER_NAME)
    stream_handlers = [h for h in logger.handlers if isinstance(h, logging.StreamHandler)]
    assert logger.level == logging.INFO
    assert len(stream_handlers) == 1
    assert logger.propagate is False


def test_quiet_logging_drops_handlers() -> None:
    """Non-verbose mode only lets warnings through and removes handlers."""
    configure_logging(True)
    configure_logging(False)

    logger = logging.getLogger(LOGGER_NAME)
    assert logger.level == logging.WARNING
    assert logger.handlers == []
