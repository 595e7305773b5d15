"""SQLAlchemy implementation of the system log store."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from eventlog.core.error_handling import with_retry
from eventlog.core.logging import get_logger
from eventlog.db.store import GroupField, LogStore, merge_counts
from eventlog.models.enums import LogLevel
from eventlog.models.system_log import SystemLog
from eventlog.schemas.log_schemas import LogEventCreate, LogQueryFilters

logger = get_logger(__name__)


def _contains(column: Any, value: str) -> Any:
    """Case-insensitive substring match; % and _ in ``value`` are literal."""
    return column.icontains(value, autoescape=True)


def build_conditions(filters: LogQueryFilters) -> List[Any]:
    """Translate query filters into SQLAlchemy WHERE clauses."""
    conditions = []

    if filters.level:
        conditions.append(SystemLog.level.in_(filters.level))
    if filters.category:
        conditions.append(SystemLog.category.in_(filters.category))
    if filters.event_type:
        conditions.append(_contains(SystemLog.event_type, filters.event_type))
    if filters.user_id:
        conditions.append(SystemLog.user_id == filters.user_id)
    if filters.date_from:
        conditions.append(SystemLog.created_at >= filters.date_from)
    if filters.date_to:
        conditions.append(SystemLog.created_at <= filters.date_to)
    if filters.resource_type:
        conditions.append(_contains(SystemLog.resource_type, filters.resource_type))
    if filters.resource_id:
        conditions.append(SystemLog.resource_id == filters.resource_id)
    if filters.search:
        conditions.append(
            or_(
                _contains(SystemLog.message, filters.search),
                _contains(SystemLog.user_email, filters.search),
                _contains(SystemLog.event_type, filters.search),
            )
        )

    return conditions


class SqlAlchemyLogStore(LogStore):
    """
    Stores system logs in the relational database.

    Every operation runs in its own short-lived session so the store can be
    shared by concurrent request handlers and background workflows.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize store with a session factory."""
        self.session_factory = session_factory

    @with_retry()
    async def insert(self, event: LogEventCreate) -> None:
        data = event.model_dump(exclude={"metadata"})
        log = SystemLog(**data, event_metadata=event.metadata)

        async with self.session_factory() as session:
            session.add(log)
            await session.commit()

    async def find(
        self, filters: LogQueryFilters, limit: int, offset: int
    ) -> Tuple[Sequence[SystemLog], int]:
        conditions = build_conditions(filters)

        # Get total count
        count_query = select(func.count()).select_from(SystemLog)
        if conditions:
            count_query = count_query.where(and_(*conditions))

        # Get paginated results
        query = select(SystemLog).order_by(SystemLog.created_at.desc())
        if conditions:
            query = query.where(and_(*conditions))
        query = query.limit(limit).offset(offset)

        async with self.session_factory() as session:
            total = (await session.execute(count_query)).scalar() or 0
            result = await session.execute(query)
            logs = list(result.scalars().all())

        return logs, total

    async def count_by(self, field: GroupField, since: datetime) -> Dict[str, int]:
        column = getattr(SystemLog, field)
        query = (
            select(column, func.count())
            .where(SystemLog.created_at >= since)
            .group_by(column)
        )

        async with self.session_factory() as session:
            result = await session.execute(query)
            return merge_counts([(group, count) for group, count in result.all()])

    async def average_duration(self, since: datetime) -> Optional[float]:
        query = select(func.avg(SystemLog.duration)).where(
            and_(SystemLog.created_at >= since, SystemLog.duration.is_not(None))
        )

        async with self.session_factory() as session:
            average = (await session.execute(query)).scalar()

        return float(average) if average is not None else None

    @with_retry()
    async def delete_older_than(
        self, cutoff: datetime, exclude_level: LogLevel = LogLevel.CRITICAL
    ) -> int:
        statement = (
            delete(SystemLog)
            .where(and_(SystemLog.created_at < cutoff, SystemLog.level != exclude_level))
            .execution_options(synchronize_session=False)
        )

        async with self.session_factory() as session:
            result = await session.execute(statement)
            await session.commit()

        logger.info(
            "system_logs_deleted",
            cutoff=cutoff.isoformat(),
            excluded_level=exclude_level.value,
            deleted=result.rowcount,
        )
        return result.rowcount or 0
