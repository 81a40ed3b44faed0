"""
TagWeave Structured Logging Module.

structlog setup for the engine, its watchers and the CLI. Log lines go
to stderr so command output on stdout stays clean.
Requires Python 3.11+.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from utils.config import get_settings


def _add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Tag every entry with the application name and version."""
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    return event_dict


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """
    Configure structured logging for the application.

    Call this once at application startup.

    Args:
        level: Level name overriding the configured one
        fmt: "json" or "console", overriding the configured format
    """
    settings = get_settings()
    level_no = getattr(logging, (level or settings.logging.level).upper())

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_app_context,
    ]

    if (fmt or settings.logging.format) == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # watchdog logs through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level_no)
    logging.getLogger("watchdog").setLevel(logging.WARNING)


def get_logger(name: str | None = None, **context: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name
        **context: Key/value pairs bound to every entry

    Returns:
        Configured structlog logger
    """
    logger = structlog.get_logger(name)
    return logger.bind(**context) if context else logger


class LoggerMixin:
    """
    Mixin class to add logging capability to any class.

    Subclasses can override ``_log_context`` to bind identifying fields,
    e.g. the extension a watcher serves, to every entry they emit.
    """

    def _log_context(self) -> dict[str, Any]:
        return {}

    @property
    def log(self) -> structlog.stdlib.BoundLogger:
        """Get logger bound to this class name and its context."""
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__, **self._log_context())
        return self._logger
