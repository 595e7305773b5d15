"""Middleware recording API requests into the system log."""

import time
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from eventlog.core.config import Settings, get_settings
from eventlog.core.error_handling import describe_error
from eventlog.core.logging import get_logger
from eventlog.core.request_utils import REQUEST_ID_HEADER, client_info, generate_request_id
from eventlog.db.session import get_log_store
from eventlog.services.event_recorder import EventRecorder

logger = get_logger(__name__)

SLOW_REQUEST_EVENT = "slow_api_request"


class SystemLoggingMiddleware(BaseHTTPMiddleware):
    """
    Records an ``api_request`` event for API calls.

    Features:
    - Request id taken from ``X-Request-ID`` or generated, echoed on the response
    - Failures (4xx, 5xx, raised exceptions) are always recorded
    - Successful requests only when ``logs_successful_requests`` is on
    - A ``slow_api_request`` performance metric above the slow threshold

    Routes can put ``error_message`` on ``request.state`` to have it stored
    with the event; the auth dependency puts ``user_id`` there.
    """

    def __init__(self, app, settings: Optional[Settings] = None):
        """Initialize request logging middleware."""
        super().__init__(app)
        self.settings = settings or get_settings()

    def _is_excluded(self, path: str) -> bool:
        prefixes = self.settings.request_logging_exclude_paths
        return any(path.startswith(prefix) for prefix in prefixes)

    def _recorder(self, request: Request) -> EventRecorder:
        # Resolve the store the way route dependencies do so overrides apply
        provider = request.app.dependency_overrides.get(get_log_store, get_log_store)
        return EventRecorder(provider())

    def _should_record(self, status_code: int, duration: float, failed: bool) -> bool:
        return (
            failed
            or status_code >= 400
            or self.settings.logs_successful_requests
            or self._is_slow(duration)
        )

    def _is_slow(self, duration: float) -> bool:
        return (
            self.settings.performance_logging_enabled
            and duration > self.settings.slow_request_threshold_ms
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and record it."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        request.state.request_id = request_id

        if not self.settings.request_logging_enabled or self._is_excluded(request.url.path):
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            duration = round((time.perf_counter() - start_time) * 1000, 3)
            await self._record(request, request_id, 500, duration, describe_error(e))
            raise

        duration = round((time.perf_counter() - start_time) * 1000, 3)
        response.headers[REQUEST_ID_HEADER] = request_id
        await self._record(
            request,
            request_id,
            response.status_code,
            duration,
            getattr(request.state, "error_message", None),
            failed=False,
        )
        return response

    async def _record(
        self,
        request: Request,
        request_id: str,
        status_code: int,
        duration: float,
        error_message: Optional[str],
        failed: bool = True,
    ) -> None:
        record_request = self._should_record(status_code, duration, failed)
        record_slow = not failed and self._is_slow(duration)
        if not (record_request or record_slow):
            return

        try:
            recorder = self._recorder(request)
        except Exception as e:
            logger.error("request_logging_unavailable", path=request.url.path, error=str(e))
            return

        if record_request:
            await recorder.log_api_request(
                method=request.method,
                url=request.url.path,
                status_code=status_code,
                duration=duration,
                user_id=getattr(request.state, "user_id", None),
                error_message=error_message,
                request_id=request_id,
                **client_info(request),
            )

        if record_slow:
            await recorder.log_performance_metric(
                SLOW_REQUEST_EVENT,
                metric_name="api_response_time",
                value=duration,
                unit="ms",
                threshold=self.settings.slow_request_threshold_ms,
                metadata={
                    "method": request.method,
                    "request_id": request_id,
                    "status_code": status_code,
                    "url": request.url.path,
                },
            )
