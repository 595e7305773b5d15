"""Structured logging configuration."""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from eventlog.core.config import get_settings


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application context to log entries."""
    settings = get_settings()
    event_dict["app_name"] = settings.app_name
    event_dict["app_version"] = settings.app_version
    event_dict["environment"] = settings.environment
    return event_dict


def setup_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    # Configure structlog
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_app_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development:
        # Use colored output for development
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        # Use JSON for production
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class FallbackSink:
    """
    Last-resort diagnostics channel for failures of the system log itself.

    Writes one JSON line per report straight to stderr through its own
    structlog pipeline, so it keeps working when the database, the stdlib
    logging configuration or the main structlog setup are broken.
    """

    def __init__(self, stream: Any = None) -> None:
        self._logger = structlog.wrap_logger(
            structlog.PrintLogger(file=stream or sys.stderr),
            wrapper_class=structlog.BoundLogger,
            processors=[
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(default=str),
            ],
        )

    def report(self, event: str, **context: Any) -> None:
        """Emit a diagnostic line. Never raises."""
        try:
            self._logger.error(event, **context)
        except Exception:  # noqa: BLE001
            # stderr itself is unusable; there is nowhere left to report to.
            pass


_fallback_sink = FallbackSink()


def get_fallback_sink() -> FallbackSink:
    """Get the process-wide fallback sink."""
    return _fallback_sink
