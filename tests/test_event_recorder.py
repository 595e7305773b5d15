"""Tests for the event recorder and its typed constructors."""

import io
import json

import pytest
from pydantic import ValidationError

from eventlog.core.logging import FallbackSink
from eventlog.core.sanitizer import REDACTED
from eventlog.models.enums import DatabaseOperation, LogCategory, LogLevel
from eventlog.schemas.log_schemas import LogEventCreate
from eventlog.services.event_recorder import (
    MAX_ERROR_MESSAGE_LENGTH,
    MAX_STACK_TRACE_LENGTH,
    MAX_USER_AGENT_LENGTH,
    EventRecorder,
)


@pytest.fixture
def sink_stream():
    return io.StringIO()


@pytest.fixture
def recorder(memory_store, sink_stream):
    return EventRecorder(memory_store, fallback_sink=FallbackSink(stream=sink_stream))


@pytest.mark.asyncio
async def test_record_persists_sanitized_truncated_event(recorder, memory_store):
    await recorder.record(
        LogEventCreate(
            level=LogLevel.INFO,
            category=LogCategory.ADMIN_ACTION,
            event_type="user_updated",
            message="User updated",
            old_values={"email": "a@example.com", "password": "old"},
            new_values={"email": "b@example.com", "password": "new"},
            metadata={"headers": {"Authorization": "Bearer x"}},
            error_message="e" * 3000,
            stack_trace="s" * 6000,
            user_agent="u" * 1500,
        )
    )

    [row] = memory_store.rows
    assert row.old_values == {"email": "a@example.com", "password": REDACTED}
    assert row.new_values == {"email": "b@example.com", "password": REDACTED}
    assert row.event_metadata == {"headers": {"Authorization": REDACTED}}
    assert len(row.error_message) == MAX_ERROR_MESSAGE_LENGTH
    assert len(row.stack_trace) == MAX_STACK_TRACE_LENGTH
    assert len(row.user_agent) == MAX_USER_AGENT_LENGTH


@pytest.mark.asyncio
async def test_record_failure_is_contained_and_reported(recorder, memory_store, sink_stream):
    memory_store.insert_error = RuntimeError("database is down")

    await recorder.record(
        LogEventCreate(
            level=LogLevel.ERROR,
            category=LogCategory.SYSTEM_ERROR,
            event_type="job_failed",
            message="Nightly job failed",
        )
    )

    assert memory_store.rows == []
    report = json.loads(sink_stream.getvalue().strip())
    assert report["event"] == "system_log_record_failed"
    assert report["error"] == "database is down"
    assert report["event_type"] == "job_failed"


def test_missing_required_fields_raise_validation_error():
    with pytest.raises(ValidationError):
        LogEventCreate(level=LogLevel.INFO, category=LogCategory.AUDIT_TRAIL, event_type="x")

    with pytest.raises(ValidationError):
        LogEventCreate(
            level="LOUD", category=LogCategory.AUDIT_TRAIL, event_type="x", message="m"
        )


@pytest.mark.asyncio
async def test_long_free_form_fields_are_recorded(recorder, memory_store, sink_stream):
    event_type = "x" * 101
    role = "regional_support_supervisor_" * 4

    await recorder.log_authentication(
        event_type,
        success=True,
        user_email="a@b.c",
        user_role=role,
        ip_address="2001:db8::1, " * 10,
    )

    [row] = memory_store.rows
    assert row.event_type == event_type
    assert row.user_role == role
    assert sink_stream.getvalue() == ""


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "success,level,status_code",
    [(True, LogLevel.INFO, 200), (False, LogLevel.WARN, 401)],
)
async def test_log_authentication(recorder, memory_store, success, level, status_code):
    await recorder.log_authentication(
        "user_login", success=success, user_email="ana@example.com"
    )

    [row] = memory_store.rows
    assert row.level == level
    assert row.category == LogCategory.AUTHENTICATION
    assert row.status_code == status_code
    assert row.message == "Authentication event: user_login for user ana@example.com"


@pytest.mark.asyncio
async def test_log_authentication_unknown_user(recorder, memory_store):
    await recorder.log_authentication("user_login", success=False)

    assert memory_store.rows[0].message == "Authentication event: user_login for user unknown"


@pytest.mark.asyncio
async def test_log_admin_action(recorder, memory_store):
    await recorder.log_admin_action(
        "venue_deleted",
        admin_user_id="u1",
        admin_user_name="Ada",
        admin_user_email="ada@example.com",
        admin_user_role="SUPER_ADMIN",
        resource_type="venue",
        resource_id="v9",
        old_values={"name": "Hall", "secret": "s"},
    )

    [row] = memory_store.rows
    assert row.level == LogLevel.INFO
    assert row.category == LogCategory.ADMIN_ACTION
    assert row.message == "Admin action: venue_deleted on venue v9 by ada@example.com"
    assert row.old_values == {"name": "Hall", "secret": REDACTED}


@pytest.mark.asyncio
async def test_log_payment_event_failure(recorder, memory_store):
    await recorder.log_payment_event(
        "payment_failed",
        payment_id="pi_1",
        success=False,
        amount=12.5,
        currency="EUR",
        status="declined",
        metadata={"card": "4242"},
    )

    [row] = memory_store.rows
    assert row.level == LogLevel.ERROR
    assert row.status_code == 400
    assert row.resource_type == "payment"
    assert row.resource_id == "pi_1"
    assert row.message == "Payment event: payment_failed for payment pi_1"
    assert row.event_metadata == {
        "card": REDACTED,
        "amount": 12.5,
        "currency": "EUR",
        "status": "declined",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code,level",
    [(200, LogLevel.INFO), (302, LogLevel.INFO), (404, LogLevel.WARN), (503, LogLevel.ERROR)],
)
async def test_log_api_request_level_follows_status(recorder, memory_store, status_code, level):
    await recorder.log_api_request(
        method="GET", url="/api/v1/system-logs", status_code=status_code, duration=12.0
    )

    [row] = memory_store.rows
    assert row.level == level
    assert row.event_type == "api_request"
    assert row.message == f"GET /api/v1/system-logs - {status_code}"


@pytest.mark.asyncio
async def test_log_email_event(recorder, memory_store):
    await recorder.log_email_event(
        "email_sent",
        recipient_email="guest@example.com",
        subject="Your booking",
        template_type="reservation_confirmation",
        success=False,
        error_message="SMTP timeout",
    )

    [row] = memory_store.rows
    assert row.level == LogLevel.ERROR
    assert row.status_code == 500
    assert row.message == "Email event: email_sent to guest@example.com"
    assert row.event_metadata["template_type"] == "reservation_confirmation"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "severity,level",
    [
        ("low", LogLevel.INFO),
        ("medium", LogLevel.WARN),
        ("high", LogLevel.ERROR),
        ("critical", LogLevel.CRITICAL),
    ],
)
async def test_log_security_event_severity_mapping(recorder, memory_store, severity, level):
    await recorder.log_security_event(
        "brute_force", severity=severity, description="Repeated failed logins"
    )

    [row] = memory_store.rows
    assert row.level == level
    assert row.category == LogCategory.SECURITY_EVENT
    assert row.message == "Security event: Repeated failed logins"


@pytest.mark.asyncio
async def test_log_database_operation(recorder, memory_store):
    await recorder.log_database_operation(
        "booking_changed",
        operation=DatabaseOperation.update,
        table_name="bookings",
        record_id="b1",
        new_values={"status": "confirmed"},
    )

    [row] = memory_store.rows
    assert row.category == LogCategory.DATABASE_OPERATION
    assert row.message == "Database update on bookings record b1"
    assert row.resource_type == "bookings"


@pytest.mark.asyncio
async def test_log_performance_metric_threshold(recorder, memory_store):
    await recorder.log_performance_metric(
        "slow_query", metric_name="query_time", value=1200.0, unit="ms", threshold=1000
    )
    await recorder.log_performance_metric(
        "cache_ratio", metric_name="hit_ratio", value=0.9, unit="%"
    )

    slow, ratio = memory_store.rows
    assert slow.level == LogLevel.WARN
    assert slow.duration == 1200.0
    assert slow.message == "Performance metric: query_time = 1200.0ms"
    assert ratio.level == LogLevel.INFO
    assert ratio.duration is None
