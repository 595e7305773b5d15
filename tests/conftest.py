"""Pytest configuration and fixtures."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from eventlog.core.auth import create_access_token
from eventlog.core.config import get_settings
from eventlog.db.session import get_db, get_log_store
from eventlog.db.sqlalchemy_store import SqlAlchemyLogStore
from eventlog.db.store import GroupField, LogStore, group_key
from eventlog.models.base import Base
from eventlog.models.enums import LogCategory, LogLevel
from eventlog.models.system_log import SystemLog
from eventlog.schemas.log_schemas import LogEventCreate, LogQueryFilters

# 2026-03-04 was a Wednesday, 2026-03-08 a Sunday
WEDNESDAY = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)
SUNDAY = datetime(2026, 3, 8, 3, 0, tzinfo=timezone.utc)


class FixedClock:
    """Clock returning a settable instant."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class InMemoryLogStore(LogStore):
    """LogStore fake keeping SystemLog rows in a list."""

    def __init__(self, clock: Optional[FixedClock] = None) -> None:
        self.clock = clock or FixedClock(WEDNESDAY)
        self.rows: List[SystemLog] = []
        self.insert_error: Optional[Exception] = None
        self.delete_errors: Dict[datetime, Exception] = {}
        self.statistics_error: Optional[Exception] = None
        self.delete_calls: List[Tuple[datetime, LogLevel]] = []

    def add(self, created_at: Optional[datetime] = None, **fields: Any) -> SystemLog:
        """Seed a row directly, bypassing the recorder."""
        fields.setdefault("level", LogLevel.INFO)
        fields.setdefault("category", LogCategory.SYSTEM_ERROR)
        fields.setdefault("event_type", "seeded")
        fields.setdefault("message", "seeded row")
        row = SystemLog(id=uuid.uuid4(), created_at=created_at or self.clock(), **fields)
        self.rows.append(row)
        return row

    def events(self, event_type: Optional[str] = None) -> List[SystemLog]:
        return [row for row in self.rows if event_type is None or row.event_type == event_type]

    async def insert(self, event: LogEventCreate) -> None:
        if self.insert_error is not None:
            raise self.insert_error
        data = event.model_dump()
        data["event_metadata"] = data.pop("metadata")
        self.add(**data)

    def _matches(self, row: SystemLog, filters: LogQueryFilters) -> bool:
        def contains(value: Optional[str], needle: str) -> bool:
            return value is not None and needle.lower() in value.lower()

        if filters.level and row.level not in filters.level:
            return False
        if filters.category and row.category not in filters.category:
            return False
        if filters.event_type and not contains(row.event_type, filters.event_type):
            return False
        if filters.user_id and row.user_id != filters.user_id:
            return False
        if filters.date_from and row.created_at < filters.date_from:
            return False
        if filters.date_to and row.created_at > filters.date_to:
            return False
        if filters.resource_type and not contains(row.resource_type, filters.resource_type):
            return False
        if filters.resource_id and row.resource_id != filters.resource_id:
            return False
        if filters.search and not any(
            contains(value, filters.search)
            for value in (row.message, row.user_email, row.event_type)
        ):
            return False
        return True

    async def find(
        self, filters: LogQueryFilters, limit: int, offset: int
    ) -> Tuple[Sequence[Any], int]:
        matched = sorted(
            (row for row in self.rows if self._matches(row, filters)),
            key=lambda row: row.created_at,
            reverse=True,
        )
        return matched[offset : offset + limit], len(matched)

    async def count_by(self, field: GroupField, since: datetime) -> Dict[str, int]:
        if self.statistics_error is not None:
            raise self.statistics_error
        counts: Dict[str, int] = {}
        for row in self.rows:
            if row.created_at >= since:
                key = group_key(getattr(row, field))
                counts[key] = counts.get(key, 0) + 1
        return counts

    async def average_duration(self, since: datetime) -> Optional[float]:
        durations = [
            row.duration
            for row in self.rows
            if row.created_at >= since and row.duration is not None
        ]
        return sum(durations) / len(durations) if durations else None

    async def delete_older_than(
        self, cutoff: datetime, exclude_level: LogLevel = LogLevel.CRITICAL
    ) -> int:
        self.delete_calls.append((cutoff, exclude_level))
        if cutoff in self.delete_errors:
            raise self.delete_errors[cutoff]
        kept = [
            row for row in self.rows if row.created_at >= cutoff or row.level == exclude_level
        ]
        deleted = len(self.rows) - len(kept)
        self.rows = kept
        return deleted


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(WEDNESDAY)


@pytest.fixture
def memory_store(clock) -> InMemoryLogStore:
    return InMemoryLogStore(clock)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def sql_store(session_factory) -> SqlAlchemyLogStore:
    return SqlAlchemyLogStore(session_factory)


@pytest_asyncio.fixture
async def client(session_factory, sql_store, monkeypatch):
    from eventlog.main import app

    monkeypatch.setattr(get_settings(), "log_successful_requests", True)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_log_store] = lambda: sql_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def admin_token() -> str:
    return create_access_token(
        "admin-1", roles=["SUPER_ADMIN"], email="admin@example.com", name="Ada Admin"
    )


@pytest.fixture
def admin_headers(admin_token) -> Dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def sunday() -> datetime:
    return SUNDAY
