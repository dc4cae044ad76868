"""Structured logging setup.

All modules log through structlog. configure_logging() is called once by
the CLI and writes to stderr, keeping stdout for command output. Library
users who never call it get structlog's defaults.
"""

import logging
import sys
from typing import Any

import structlog

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Looked up per logger so a replaced sys.stderr is honoured
    return structlog.PrintLogger(sys.stderr)


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog processors and the minimum level.

    Args:
        level: One of DEBUG, INFO, WARNING, ERROR
        json_output: Render one JSON object per line instead of console output
    """
    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_LEVELS[level.upper()]),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a structlog logger, optionally bound to initial values.

    The logger resolves its configuration on first use, so module-level
    loggers follow a later configure_logging() call. The name is bound as
    `logger_name`; `logger` is a reserved argument of structlog.get_logger.
    """
    if name is not None:
        initial_values.setdefault("logger_name", name)
    return structlog.get_logger(**initial_values)
