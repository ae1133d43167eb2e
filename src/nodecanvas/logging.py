"""Logging configuration for nodecanvas.

Uses Python's standard logging module with support for:
- File logging via config or the NODECANVAS_LOG environment variable
- Verbosity levels: error(0), warning(1), info(2), verbose(3), trace(4)
- Stderr fallback when no log file is configured
- One log level per failure category (FAILURE_LEVELS)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING, Any

from nodecanvas.errors import (
    CommandValidationError,
    ExternalServiceError,
    InteractionConflictError,
    NodeCanvasError,
    SnapshotError,
    TransformError,
)

if TYPE_CHECKING:
    from nodecanvas.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("nodecanvas")

_initialized = False

_LEVEL_MAP = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# --verbose=N to log level (0=errors only, 4=everything)
_VERBOSITY_MAP = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
    3: VERBOSE,
    4: TRACE,
}


class _LowercaseLevelFormatter(logging.Formatter):
    """Formatter that emits lowercase level names."""

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


# Failure category to log level. Most specific class first.
FAILURE_LEVELS: tuple[tuple[type[BaseException], int], ...] = (
    (InteractionConflictError, logging.DEBUG),
    (CommandValidationError, logging.WARNING),
    (TransformError, logging.WARNING),
    (SnapshotError, logging.WARNING),
    (ExternalServiceError, logging.ERROR),
    (NodeCanvasError, logging.WARNING),
)


def failure_level(error: BaseException) -> int:
    """Log level for ``error``. Anything outside the taxonomy is an error."""
    for error_type, level in FAILURE_LEVELS:
        if isinstance(error, error_type):
            return level
    return logging.ERROR


def log_failure(log: logging.Logger, error: BaseException, msg: str, *args: Any) -> None:
    """Log ``msg`` at the level of ``error``'s category.

    Failures outside the taxonomy carry their traceback at debug verbosity.
    """
    level = failure_level(error)
    exc_info = not isinstance(error, NodeCanvasError) and log.isEnabledFor(logging.DEBUG)
    log.log(level, msg, *args, exc_info=error if exc_info else None)


def resolve_level(config: LoggingConfig | None) -> int:
    """Pick a log level from config: verbose (int) wins over level (str)."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        return _VERBOSITY_MAP.get(config.verbose, TRACE)
    if config.level:
        return _LEVEL_MAP.get(config.level.upper(), logging.INFO)
    return logging.INFO


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Initialize logging based on configuration.

    Call this once at startup. Subsequent calls are no-ops.

    Args:
        config: Optional LoggingConfig with level, verbose, and file settings.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    log_level = resolve_level(config)
    logger.setLevel(log_level)

    formatter = _LowercaseLevelFormatter(
        "%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S"
    )

    log_path = config.file if config and config.file else os.environ.get("NODECANVAS_LOG")

    if log_path:
        log_path = os.path.expanduser(log_path)
        try:
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[nodecanvas] Failed to open log file: {e}", file=sys.stderr)
                _add_stderr_handler(formatter, log_level)
            return
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    elif sys.stderr.isatty():
        # Only log to stderr if it's a real console, not a pipe
        _add_stderr_handler(formatter, log_level)


def _add_stderr_handler(formatter: logging.Formatter, level: int = logging.DEBUG) -> None:
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Optional name for a child logger (e.g., "compiler", "tools").
              If None, returns the root nodecanvas logger.
    """
    if name:
        return logger.getChild(name)
    return logger
