"""Recording of structured operational events."""

from typing import Any, Dict, Optional

from eventlog.core.error_handling import describe_error
from eventlog.core.logging import FallbackSink, get_fallback_sink, get_logger
from eventlog.core.sanitizer import DataSanitizer
from eventlog.db.store import LogStore
from eventlog.models.enums import (
    SECURITY_SEVERITY_LEVELS,
    DatabaseOperation,
    LogCategory,
    LogLevel,
    SecuritySeverity,
)
from eventlog.monitoring.metrics import get_metrics_collector
from eventlog.schemas.log_schemas import LogEventCreate

logger = get_logger(__name__)

MAX_USER_AGENT_LENGTH = 1000
MAX_ERROR_MESSAGE_LENGTH = 2000
MAX_STACK_TRACE_LENGTH = 5000


def _truncate(value: Optional[str], limit: int) -> Optional[str]:
    return value[:limit] if value is not None else None


class EventRecorder:
    """
    Persists system log events.

    ``record`` is fire-and-forget: it sanitizes and truncates the event,
    hands it to the store, and converts any failure into a diagnostic on the
    fallback sink. It never raises, so a broken log store can not fail the
    business operation that emitted the event.
    """

    def __init__(
        self,
        store: LogStore,
        sanitizer: Optional[DataSanitizer] = None,
        fallback_sink: Optional[FallbackSink] = None,
    ) -> None:
        """Initialize recorder with its store."""
        self.store = store
        self.sanitizer = sanitizer or DataSanitizer()
        self.fallback_sink = fallback_sink or get_fallback_sink()

    def prepare(self, event: LogEventCreate) -> LogEventCreate:
        """Sanitize payloads and enforce field length caps."""
        return event.model_copy(
            update={
                "old_values": self.sanitizer.sanitize(event.old_values),
                "new_values": self.sanitizer.sanitize(event.new_values),
                "metadata": self.sanitizer.sanitize(event.metadata),
                "error_message": _truncate(event.error_message, MAX_ERROR_MESSAGE_LENGTH),
                "stack_trace": _truncate(event.stack_trace, MAX_STACK_TRACE_LENGTH),
                "user_agent": _truncate(event.user_agent, MAX_USER_AGENT_LENGTH),
            }
        )

    async def record(self, event: LogEventCreate) -> None:
        """Persist an event. Never raises."""
        try:
            await self.store.insert(self.prepare(event))
            get_metrics_collector().record_event(event.level.value, event.category.value)
            logger.debug(
                "system_log_recorded",
                log_level=event.level.value,
                category=event.category.value,
                event_type=event.event_type,
            )
        except Exception as e:
            self._report_failure(event, e)

    def _report_failure(self, event: LogEventCreate, error: Exception) -> None:
        self.fallback_sink.report(
            "system_log_record_failed",
            error=describe_error(error),
            error_type=type(error).__name__,
            log_level=event.level.value,
            category=event.category.value,
            event_type=event.event_type,
            log_message=event.message,
        )
        try:
            get_metrics_collector().record_event_failure()
        except Exception:  # noqa: BLE001
            # Metrics are best effort; the failure is already on the sink.
            pass

    async def log_authentication(
        self,
        event_type: str,
        *,
        success: bool,
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
        user_name: Optional[str] = None,
        user_role: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        error_message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Authentication event: INFO on success, WARN on failure."""
        await self.record(
            LogEventCreate(
                level=LogLevel.INFO if success else LogLevel.WARN,
                category=LogCategory.AUTHENTICATION,
                event_type=event_type,
                message=(
                    f"Authentication event: {event_type} for user {user_email or 'unknown'}"
                ),
                status_code=200 if success else 401,
                user_id=user_id,
                user_email=user_email,
                user_name=user_name,
                user_role=user_role,
                ip_address=ip_address,
                user_agent=user_agent,
                error_message=error_message,
                metadata=metadata,
            )
        )

    async def log_admin_action(
        self,
        event_type: str,
        *,
        admin_user_id: str,
        admin_user_name: str,
        admin_user_email: str,
        admin_user_role: str,
        resource_type: str,
        resource_id: str,
        old_values: Optional[Any] = None,
        new_values: Optional[Any] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Admin action: always INFO."""
        await self.record(
            LogEventCreate(
                level=LogLevel.INFO,
                category=LogCategory.ADMIN_ACTION,
                event_type=event_type,
                message=(
                    f"Admin action: {event_type} on {resource_type} {resource_id} "
                    f"by {admin_user_email}"
                ),
                user_id=admin_user_id,
                user_name=admin_user_name,
                user_email=admin_user_email,
                user_role=admin_user_role,
                resource_type=resource_type,
                resource_id=resource_id,
                old_values=old_values,
                new_values=new_values,
                ip_address=ip_address,
                user_agent=user_agent,
                metadata=metadata,
            )
        )

    async def log_payment_event(
        self,
        event_type: str,
        *,
        payment_id: str,
        success: bool,
        user_id: Optional[str] = None,
        amount: Optional[float] = None,
        currency: Optional[str] = None,
        status: Optional[str] = None,
        error_message: Optional[str] = None,
        duration: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Payment event: INFO on success, ERROR on failure."""
        await self.record(
            LogEventCreate(
                level=LogLevel.INFO if success else LogLevel.ERROR,
                category=LogCategory.PAYMENT_PROCESSING,
                event_type=event_type,
                message=f"Payment event: {event_type} for payment {payment_id}",
                resource_type="payment",
                resource_id=payment_id,
                status_code=200 if success else 400,
                user_id=user_id,
                duration=duration,
                error_message=error_message,
                metadata={
                    **(metadata or {}),
                    "amount": amount,
                    "currency": currency,
                    "status": status,
                },
            )
        )

    async def log_api_request(
        self,
        *,
        method: str,
        url: str,
        status_code: int,
        duration: float,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        error_message: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> None:
        """API request: ERROR for 5xx, WARN for 4xx, INFO otherwise."""
        if status_code >= 500:
            level = LogLevel.ERROR
        elif status_code >= 400:
            level = LogLevel.WARN
        else:
            level = LogLevel.INFO

        await self.record(
            LogEventCreate(
                level=level,
                category=LogCategory.API_REQUEST,
                event_type="api_request",
                message=f"{method} {url} - {status_code}",
                status_code=status_code,
                duration=duration,
                user_id=user_id,
                ip_address=ip_address,
                user_agent=user_agent,
                error_message=error_message,
                request_id=request_id,
            )
        )

    async def log_email_event(
        self,
        event_type: str,
        *,
        recipient_email: str,
        subject: str,
        template_type: str,
        success: bool,
        error_message: Optional[str] = None,
        duration: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Email event: INFO on success, ERROR on failure."""
        await self.record(
            LogEventCreate(
                level=LogLevel.INFO if success else LogLevel.ERROR,
                category=LogCategory.EMAIL_SERVICE,
                event_type=event_type,
                message=f"Email event: {event_type} to {recipient_email}",
                status_code=200 if success else 500,
                duration=duration,
                error_message=error_message,
                metadata={
                    "recipient_email": recipient_email,
                    "subject": subject,
                    "template_type": template_type,
                    **(metadata or {}),
                },
            )
        )

    async def log_security_event(
        self,
        event_type: str,
        *,
        severity: SecuritySeverity,
        description: str,
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Security event, level follows severity (low INFO ... critical CRITICAL)."""
        await self.record(
            LogEventCreate(
                level=SECURITY_SEVERITY_LEVELS[SecuritySeverity(severity)],
                category=LogCategory.SECURITY_EVENT,
                event_type=event_type,
                message=f"Security event: {description}",
                user_id=user_id,
                user_email=user_email,
                ip_address=ip_address,
                user_agent=user_agent,
                metadata=metadata,
            )
        )

    async def log_database_operation(
        self,
        event_type: str,
        *,
        operation: DatabaseOperation,
        table_name: str,
        record_id: str,
        user_id: Optional[str] = None,
        old_values: Optional[Any] = None,
        new_values: Optional[Any] = None,
        duration: Optional[float] = None,
    ) -> None:
        """Database mutation: always INFO."""
        operation = DatabaseOperation(operation)
        await self.record(
            LogEventCreate(
                level=LogLevel.INFO,
                category=LogCategory.DATABASE_OPERATION,
                event_type=event_type,
                message=f"Database {operation.value} on {table_name} record {record_id}",
                resource_type=table_name,
                resource_id=record_id,
                user_id=user_id,
                old_values=old_values,
                new_values=new_values,
                duration=duration,
            )
        )

    async def log_performance_metric(
        self,
        event_type: str,
        *,
        metric_name: str,
        value: float,
        unit: str,
        threshold: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Performance metric: WARN when it exceeds ``threshold``, else INFO."""
        exceeded = threshold is not None and value > threshold

        await self.record(
            LogEventCreate(
                level=LogLevel.WARN if exceeded else LogLevel.INFO,
                category=LogCategory.PERFORMANCE,
                event_type=event_type,
                message=f"Performance metric: {metric_name} = {value}{unit}",
                duration=value if unit == "ms" else None,
                metadata=metadata,
            )
        )
