"""Integration tests for the SQLAlchemy log store on SQLite."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import Text

from eventlog.models.base import utc_now
from eventlog.models.enums import LogCategory, LogLevel
from eventlog.models.system_log import SystemLog
from eventlog.schemas.log_schemas import LogEntryResponse, LogEventCreate, LogQueryFilters
from eventlog.services.event_recorder import EventRecorder
from eventlog.services.query_service import LogQueryService


async def seed(session_factory, created_at: datetime, **fields) -> None:
    fields.setdefault("category", LogCategory.SYSTEM_ERROR)
    fields.setdefault("event_type", "seeded")
    fields.setdefault("message", "seeded row")
    async with session_factory() as session:
        session.add(SystemLog(created_at=created_at, **fields))
        await session.commit()


@pytest.mark.asyncio
async def test_insert_and_find_round_trip(sql_store):
    await sql_store.insert(
        LogEventCreate(
            level=LogLevel.INFO,
            category=LogCategory.AUDIT_TRAIL,
            event_type="record_viewed",
            message="Record viewed",
            user_id="u1",
            metadata={"fields": ["a", "b"]},
        )
    )

    rows, total = await sql_store.find(LogQueryFilters(), limit=10, offset=0)

    assert total == 1
    entry = LogEntryResponse.model_validate(rows[0])
    assert entry.event_type == "record_viewed"
    assert entry.metadata == {"fields": ["a", "b"]}
    assert entry.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_filters_combine(sql_store, session_factory):
    now = utc_now()
    await seed(session_factory, now, level=LogLevel.ERROR, user_id="u1", message="Card declined")
    await seed(session_factory, now, level=LogLevel.ERROR, user_id="u2", message="Card declined")
    await seed(session_factory, now, level=LogLevel.INFO, user_id="u1", message="Card declined")
    await seed(
        session_factory,
        now - timedelta(days=3),
        level=LogLevel.ERROR,
        user_id="u1",
        message="Card declined",
    )

    rows, total = await sql_store.find(
        LogQueryFilters(
            level=[LogLevel.ERROR, LogLevel.CRITICAL],
            user_id="u1",
            date_from=now - timedelta(days=1),
            search="declined",
        ),
        limit=10,
        offset=0,
    )

    assert total == 1
    assert rows[0].user_id == "u1"


@pytest.mark.asyncio
async def test_count_by_and_average_duration(sql_store, session_factory):
    now = utc_now()
    await seed(session_factory, now, level=LogLevel.WARN, category=LogCategory.API_REQUEST, duration=10.0)
    await seed(session_factory, now, level=LogLevel.WARN, category=LogCategory.API_REQUEST, duration=30.0)
    await seed(session_factory, now, level=LogLevel.ERROR, category=LogCategory.EMAIL_SERVICE)
    await seed(session_factory, now - timedelta(days=2), level=LogLevel.ERROR, duration=1000.0)

    since = now - timedelta(days=1)

    assert await sql_store.count_by("level", since) == {"WARN": 2, "ERROR": 1}
    assert await sql_store.count_by("category", since) == {"API_REQUEST": 2, "EMAIL_SERVICE": 1}
    assert await sql_store.average_duration(since) == 20.0
    assert await sql_store.average_duration(now + timedelta(days=1)) is None


@pytest.mark.asyncio
async def test_delete_older_than_spares_critical_and_recent(sql_store, session_factory):
    now = utc_now()
    old = now - timedelta(days=200)
    await seed(session_factory, old, level=LogLevel.DEBUG)
    await seed(session_factory, old, level=LogLevel.ERROR)
    await seed(session_factory, old, level=LogLevel.CRITICAL)
    await seed(session_factory, now, level=LogLevel.INFO)

    deleted = await sql_store.delete_older_than(now - timedelta(days=90))

    assert deleted == 2
    rows, total = await sql_store.find(LogQueryFilters(), limit=10, offset=0)
    assert total == 2
    assert {row.level for row in rows} == {LogLevel.CRITICAL, LogLevel.INFO}

    assert await sql_store.delete_older_than(now - timedelta(days=90)) == 0


@pytest.mark.asyncio
async def test_recorder_and_query_service_over_sqlite(sql_store):
    recorder = EventRecorder(sql_store)
    await recorder.log_authentication(
        "login_failed",
        success=False,
        user_email="eve@example.com",
        metadata={"password": "guess"},
    )

    page = await LogQueryService(sql_store).query(
        LogQueryFilters(category=[LogCategory.AUTHENTICATION])
    )

    [entry] = page.entries
    assert entry.level == LogLevel.WARN
    assert entry.metadata == {"password": "[REDACTED]"}
    assert entry.created_at <= datetime.now(timezone.utc)


@pytest.mark.asyncio
async def test_substring_filters_treat_wildcards_literally(sql_store, session_factory):
    now = utc_now()
    await seed(session_factory, now, level=LogLevel.INFO, message="plain message")
    await seed(session_factory, now, level=LogLevel.INFO, message="another one")
    await seed(session_factory, now, level=LogLevel.INFO, message="50% off")

    _, percent = await sql_store.find(LogQueryFilters(search="%"), limit=10, offset=0)
    _, underscore = await sql_store.find(LogQueryFilters(event_type="_"), limit=10, offset=0)
    rows, total = await sql_store.find(LogQueryFilters(search="50%"), limit=10, offset=0)

    assert percent == 1
    assert underscore == 0
    assert total == 1
    assert rows[0].message == "50% off"


@pytest.mark.asyncio
async def test_long_free_form_values_persist(sql_store):
    await sql_store.insert(
        LogEventCreate(
            level=LogLevel.INFO,
            category=LogCategory.AUTHENTICATION,
            event_type="e" * 300,
            message="Signed in",
            user_role="r" * 120,
            ip_address="203.0.113.7, " * 12,
        )
    )

    [row], total = await sql_store.find(LogQueryFilters(), limit=10, offset=0)

    assert total == 1
    assert len(row.event_type) == 300
    assert len(row.user_role) == 120


def test_free_form_columns_are_unbounded():
    columns = SystemLog.__table__.c

    for name in ("event_type", "user_role", "ip_address", "resource_type", "error_code"):
        assert isinstance(columns[name].type, Text), name
