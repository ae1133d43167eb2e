"""Tests for logging setup helpers."""

from __future__ import annotations

import logging

import pytest

from nodecanvas.config.schema import LoggingConfig
from nodecanvas.errors import (
    CommandValidationError,
    ExternalServiceError,
    InteractionConflictError,
    SnapshotError,
    TransformError,
)
from nodecanvas.logging import (
    TRACE,
    VERBOSE,
    failure_level,
    get_logger,
    log_failure,
    resolve_level,
)


class TestResolveLevel:
    def test_default_is_info(self) -> None:
        assert resolve_level(None) == logging.INFO
        assert resolve_level(LoggingConfig()) == logging.INFO

    def test_level_names(self) -> None:
        assert resolve_level(LoggingConfig(level="debug")) == logging.DEBUG
        assert resolve_level(LoggingConfig(level="Warn")) == logging.WARNING
        assert resolve_level(LoggingConfig(level="nonsense")) == logging.INFO

    def test_verbose_wins_over_level(self) -> None:
        assert resolve_level(LoggingConfig(level="ERROR", verbose=3)) == VERBOSE
        assert resolve_level(LoggingConfig(verbose=0)) == logging.ERROR
        assert resolve_level(LoggingConfig(verbose=9)) == TRACE


class TestGetLogger:
    def test_children_share_the_package_root(self) -> None:
        assert get_logger().name == "nodecanvas"
        assert get_logger("compiler").name == "nodecanvas.compiler"


class TestFailureLevels:
    """Test the log level picked for each failure category."""

    def test_degrading_failures_are_warnings(self) -> None:
        assert failure_level(TransformError("a.js", "bad")) == logging.WARNING
        assert failure_level(CommandValidationError("x", "bad")) == logging.WARNING
        assert failure_level(SnapshotError("bad")) == logging.WARNING

    def test_gesture_conflict_is_debug(self) -> None:
        assert failure_level(InteractionConflictError("busy")) == logging.DEBUG

    def test_service_and_unknown_failures_are_errors(self) -> None:
        assert failure_level(ExternalServiceError("down", status=503)) == logging.ERROR
        assert failure_level(RuntimeError("boom")) == logging.ERROR

    def test_log_failure_uses_category_level(self, caplog: pytest.LogCaptureFixture) -> None:
        log = get_logger("test")
        with caplog.at_level(logging.DEBUG, logger="nodecanvas"):
            log_failure(log, TransformError("a.js", "bad"), "Failed %s", "a.js")
            log_failure(log, ExternalServiceError("down"), "Service down")

        assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
            (logging.WARNING, "Failed a.js"),
            (logging.ERROR, "Service down"),
        ]
        assert all(r.exc_info is None for r in caplog.records)

    def test_unexpected_failure_carries_traceback_when_debugging(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        log = get_logger("test")
        try:
            raise KeyError("boom")
        except KeyError as e:
            with caplog.at_level(logging.DEBUG, logger="nodecanvas"):
                log_failure(log, e, "Unexpected")

        (record,) = caplog.records
        assert record.levelno == logging.ERROR
        assert record.exc_info is not None
