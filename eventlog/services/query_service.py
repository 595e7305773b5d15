"""Service for reading, aggregating and exporting system logs."""

import csv
import io
import math
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from eventlog.core.config import get_settings
from eventlog.core.logging import get_logger
from eventlog.db.store import LogStore
from eventlog.models.base import utc_now
from eventlog.models.enums import LogCategory, LogLevel, Timeframe
from eventlog.schemas.log_schemas import (
    LogEntryResponse,
    LogPage,
    LogQueryFilters,
    LogStatistics,
)

logger = get_logger(__name__)

CSV_HEADERS = [
    "Timestamp",
    "Level",
    "Category",
    "Event Type",
    "Message",
    "User Email",
    "User Role",
    "Resource Type",
    "Resource ID",
    "IP Address",
    "Status Code",
    "Duration",
    "Error Message",
]


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class LogQueryService:
    """Handles filtered reads, statistics and CSV export over the system log."""

    def __init__(
        self, store: LogStore, clock: Callable[[], datetime] = utc_now
    ) -> None:
        """Initialize service with a store and a clock."""
        self.store = store
        self.clock = clock
        self.settings = get_settings()

    async def query(self, filters: Optional[LogQueryFilters] = None) -> LogPage:
        """
        Get filtered system logs with pagination, newest first.

        Args:
            filters: Query filters, page and limit

        Returns:
            One page of entries with totals
        """
        filters = filters or LogQueryFilters(limit=self.settings.default_page_size)

        rows, total = await self.store.find(filters, limit=filters.limit, offset=filters.offset)

        return LogPage(
            entries=[LogEntryResponse.model_validate(row) for row in rows],
            total=total,
            page=filters.page,
            limit=filters.limit,
            total_pages=math.ceil(total / filters.limit),
            has_more=filters.page * filters.limit < total,
        )

    async def statistics(self, timeframe: Timeframe = Timeframe.DAY) -> LogStatistics:
        """
        Aggregate counts over a trailing window.

        Every level and category is present in the result, zero when absent
        from the window.
        """
        since = self.clock() - Timeframe(timeframe).window

        level_counts = await self.store.count_by("level", since)
        category_counts = await self.store.count_by("category", since)
        average = await self.store.average_duration(since)

        by_level = {level: level_counts.get(level.value, 0) for level in LogLevel}
        by_category = {
            category: category_counts.get(category.value, 0) for category in LogCategory
        }

        return LogStatistics(
            total_logs=sum(level_counts.values()),
            by_level=by_level,
            by_category=by_category,
            recent_errors=by_level[LogLevel.ERROR] + by_level[LogLevel.CRITICAL],
            critical_alerts=by_level[LogLevel.CRITICAL],
            average_response_time=average or 0.0,
        )

    async def export_csv(self, filters: Optional[LogQueryFilters] = None) -> str:
        """
        Export matching logs as CSV.

        Always the first page, capped at ``export_max_rows`` whatever limit
        was requested. Every field is quoted; embedded quotes are doubled.
        """
        filters = (filters or LogQueryFilters()).model_copy(
            update={"page": 1, "limit": self.settings.export_max_rows}
        )
        page = await self.query(filters)

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for entry in page.entries:
            writer.writerow(self._csv_row(entry))

        logger.info("system_logs_exported", rows=len(page.entries), total=page.total)
        return buffer.getvalue()

    @staticmethod
    def _csv_row(entry: LogEntryResponse) -> List[str]:
        return [
            format_timestamp(entry.created_at),
            entry.level.value,
            entry.category.value,
            entry.event_type,
            entry.message,
            _cell(entry.user_email),
            _cell(entry.user_role),
            _cell(entry.resource_type),
            _cell(entry.resource_id),
            _cell(entry.ip_address),
            _cell(entry.status_code),
            _cell(entry.duration),
            _cell(entry.error_message),
        ]
