"""Pydantic schemas for system log data validation."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator

from eventlog.models.enums import LogCategory, LogLevel


class LogEventCreate(BaseModel):
    """
    An event to be recorded.

    level, category, event_type and message are required; building the
    schema without them raises ``ValidationError`` before anything is
    sanitized or persisted. Every other field is independently optional.
    """

    level: LogLevel
    category: LogCategory
    event_type: str
    message: str

    # User context
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None

    # Request context
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None
    session_id: Optional[str] = None

    # Resource context
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None

    # Performance tracking
    duration: Optional[float] = None
    status_code: Optional[int] = None

    # Data context (sanitized before storage)
    old_values: Optional[Any] = None
    new_values: Optional[Any] = None
    metadata: Optional[Any] = None

    # Error context
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    stack_trace: Optional[str] = None


class LogEntryResponse(BaseModel):
    """Schema for a stored system log."""

    id: UUID
    level: LogLevel
    category: LogCategory
    event_type: str
    message: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None
    session_id: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    duration: Optional[float] = None
    status_code: Optional[int] = None
    old_values: Optional[Any] = None
    new_values: Optional[Any] = None
    metadata: Optional[Any] = Field(
        default=None, validation_alias=AliasChoices("event_metadata", "metadata")
    )
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    stack_trace: Optional[str] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Treat naive timestamps coming back from the store as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    model_config = {"from_attributes": True}


class LogQueryFilters(BaseModel):
    """
    Filters for listing and exporting system logs.

    All filters are AND-combined. ``level`` and ``category`` match any of the
    listed values; ``search`` matches message, user email or event type.
    """

    level: Optional[List[LogLevel]] = None
    category: Optional[List[LogCategory]] = None
    event_type: Optional[str] = None
    user_id: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class LogPage(BaseModel):
    """Schema for a paginated list of system logs."""

    entries: List[LogEntryResponse]
    total: int
    page: int
    limit: int
    total_pages: int
    has_more: bool


class LogStatistics(BaseModel):
    """Aggregate counts over a trailing time window."""

    total_logs: int = 0
    by_level: Dict[LogLevel, int] = Field(default_factory=dict)
    by_category: Dict[LogCategory, int] = Field(default_factory=dict)
    recent_errors: int = 0
    critical_alerts: int = 0
    average_response_time: float = 0.0


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    success: bool = True
    data: Optional[Any] = None
    message: Optional[str] = None
    error: Optional[str] = None
