"""Retry helpers and error description utilities."""

import logging
from typing import Tuple, Type

from sqlalchemy.exc import InterfaceError, OperationalError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from eventlog.core.config import get_settings

# tenacity's logging hooks expect a stdlib logger
_retry_logger = logging.getLogger(__name__)

TRANSIENT_DATABASE_ERRORS: Tuple[Type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    ConnectionError,
    TimeoutError,
)


def with_retry(
    max_attempts: int | None = None,
    min_wait: int | None = None,
    max_wait: int | None = None,
    exceptions: Tuple[Type[BaseException], ...] = TRANSIENT_DATABASE_ERRORS,
):
    """
    Decorator for retry logic with exponential backoff.

    Defaults come from settings. Only transient database errors are retried;
    anything else propagates on the first attempt.

    Usage:
        @with_retry()
        async def insert(...):
            ...
    """
    settings = get_settings()
    return retry(
        stop=stop_after_attempt(max_attempts or settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=settings.retry_min_wait_seconds if min_wait is None else min_wait,
            max=max_wait or settings.retry_max_wait_seconds,
        ),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(_retry_logger, logging.WARNING),
        reraise=True,
    )


def describe_error(error: BaseException) -> str:
    """Message stored alongside an event describing ``error``."""
    return str(error) or "Unknown error"
