"""Schemas produced by the retention and maintenance workflows."""

from datetime import datetime

from pydantic import BaseModel, Field

from eventlog.models.enums import LogLevel


class RetentionStats(BaseModel):
    """
    Summary of one retention run.

    The ``*_estimate`` fields are rough figures (fixed bytes per row, a fixed
    30-day divisor, a one-year horizon), not exact accounting.
    """

    total_logs_processed: int = 0
    logs_deleted: int = 0
    policies_executed: int = 0
    policies_failed: int = 0
    bytes_freed_estimate: int = 0
    average_logs_per_day_estimate: int = 0
    oldest_log_date_estimate: datetime
    newest_log_date: datetime
    duration_ms: float = 0.0


class GrowthAlert(BaseModel):
    """A breached growth threshold."""

    event_type: str
    level: LogLevel
    observed: float
    threshold: float
    message: str


class StorageRecommendation(BaseModel):
    """An optimization suggestion from the weekly storage analysis."""

    type: str
    description: str
    impact: str = Field(..., description="High, Medium or Low")
    recommendation: str
