"""Pydantic schemas for request/response validation."""

from eventlog.schemas.log_schemas import (
    APIResponse,
    LogEntryResponse,
    LogEventCreate,
    LogPage,
    LogQueryFilters,
    LogStatistics,
)
from eventlog.schemas.maintenance_schemas import (
    GrowthAlert,
    RetentionStats,
    StorageRecommendation,
)

__all__ = [
    "APIResponse",
    "LogEventCreate",
    "LogEntryResponse",
    "LogPage",
    "LogQueryFilters",
    "LogStatistics",
    "GrowthAlert",
    "RetentionStats",
    "StorageRecommendation",
]
