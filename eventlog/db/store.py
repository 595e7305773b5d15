"""Persistence contract for system logs."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

from eventlog.models.enums import LogLevel
from eventlog.schemas.log_schemas import LogEventCreate, LogQueryFilters

GroupField = Literal["level", "category"]


class LogStore(ABC):
    """
    Storage collaborator used by the recorder, query service and retention
    workflows.

    Implementations assign ``created_at`` at insert time. Bulk deletes are a
    single statement per call; no transaction spans several calls.
    """

    @abstractmethod
    async def insert(self, event: LogEventCreate) -> None:
        """Persist one already-sanitized event."""

    @abstractmethod
    async def find(
        self, filters: LogQueryFilters, limit: int, offset: int
    ) -> Tuple[Sequence[Any], int]:
        """
        Select matching rows, newest first.

        Returns:
            Tuple of (rows for the requested page, total matching count)
        """

    @abstractmethod
    async def count_by(self, field: GroupField, since: datetime) -> Dict[str, int]:
        """Count rows created at or after ``since``, grouped by ``field``."""

    @abstractmethod
    async def average_duration(self, since: datetime) -> Optional[float]:
        """Mean of non-null durations at or after ``since``; None when there are none."""

    @abstractmethod
    async def delete_older_than(
        self, cutoff: datetime, exclude_level: LogLevel = LogLevel.CRITICAL
    ) -> int:
        """Delete rows created before ``cutoff`` whose level is not ``exclude_level``."""


def group_key(value: Any) -> str:
    """Normalize an enum or raw group value to its string form."""
    return value.value if hasattr(value, "value") else str(value)


def merge_counts(rows: List[Tuple[Any, int]]) -> Dict[str, int]:
    """Fold (group, count) rows into a dict keyed by the group's string value."""
    counts: Dict[str, int] = {}
    for group, count in rows:
        key = group_key(group)
        counts[key] = counts.get(key, 0) + int(count)
    return counts
