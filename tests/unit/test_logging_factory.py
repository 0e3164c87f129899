"""Unit tests for LogLevel and LogContext."""
from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import pytest

from transcriptor.utils.logging_factory import ROOT_LOGGER_NAME, LogContext, LogLevel


@pytest.fixture
def package_logger():
    """Restore the package logger's handlers and level after each test."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    for handler in list(logger.handlers):
        if handler not in saved[0]:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


class TestLogLevel:
    def test_from_flags(self):
        assert LogLevel.from_flags() is LogLevel.NORMAL
        assert LogLevel.from_flags(quiet=True) is LogLevel.QUIET
        assert LogLevel.from_flags(verbose=True) is LogLevel.VERBOSE

    def test_flags_are_exclusive(self):
        with pytest.raises(ValueError):
            LogLevel.from_flags(quiet=True, verbose=True)

    @pytest.mark.parametrize(
        "name,level",
        [
            (None, LogLevel.NORMAL),
            ("debug", LogLevel.VERBOSE),
            ("INFO", LogLevel.NORMAL),
            ("WARNING", LogLevel.NORMAL),
            ("error", LogLevel.QUIET),
        ],
    )
    def test_from_name(self, name, level):
        assert LogLevel.from_name(name) is level

    def test_logging_levels(self):
        assert LogLevel.QUIET.logging_level == logging.ERROR
        assert LogLevel.NORMAL.logging_level == logging.INFO
        assert LogLevel.VERBOSE.logging_level == logging.DEBUG


class TestLogContext:
    """Tests for the per-run logging context."""

    def test_is_frozen(self):
        context = LogContext()
        with pytest.raises(dataclasses.FrozenInstanceError):
            context.level = LogLevel.VERBOSE

    def test_loggers_nest_under_package(self):
        context = LogContext()
        assert context.get_logger("transcriptor.cache.links").name == "transcriptor.cache.links"
        assert context.get_logger("tests.helper").name == "transcriptor.tests.helper"

    def test_configure_sets_level(self, package_logger):
        LogContext(level=LogLevel.VERBOSE).configure()
        assert package_logger.level == logging.DEBUG
        assert package_logger.propagate is False

    def test_configure_replaces_console_handler(self, package_logger):
        context = LogContext()
        context.configure(logging.StreamHandler())
        context.configure(logging.StreamHandler())
        stream_handlers = [h for h in package_logger.handlers if type(h) is logging.StreamHandler]
        assert len(stream_handlers) == 1

    def test_log_file_receives_records(self, package_logger, tmp_path: Path):
        log_file = tmp_path / "logs" / "run.log"
        context = LogContext(level=LogLevel.NORMAL, log_file=log_file)
        context.configure()

        context.get_logger("transcriptor.test").info("hello file")
        for handler in package_logger.handlers:
            handler.flush()

        assert "hello file" in log_file.read_text(encoding="utf-8")
