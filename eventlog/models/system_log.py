"""System log database model."""

from typing import Any, Optional

from sqlalchemy import JSON, Enum, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from eventlog.models.base import BaseModel
from eventlog.models.enums import LogCategory, LogLevel


class SystemLog(BaseModel):
    """
    One immutable operational event.

    Rows are inserted once by the event recorder and only ever removed by
    the retention workflow's bulk deletes.
    """

    __tablename__ = "system_logs"

    # Classification
    level: Mapped[LogLevel] = mapped_column(
        Enum(LogLevel, name="system_log_level"), nullable=False, comment="Severity tier"
    )

    category: Mapped[LogCategory] = mapped_column(
        Enum(LogCategory, name="system_log_category"),
        nullable=False,
        comment="Functional domain",
    )

    event_type: Mapped[str] = mapped_column(
        Text, nullable=False, index=True, comment="Free-form event discriminator"
    )

    message: Mapped[str] = mapped_column(Text, nullable=False, comment="Human-readable text")

    # Actor context
    user_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True, index=True)
    user_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_role: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Request context
    ip_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(
        String(1000), nullable=True, comment="Truncated to 1000 chars"
    )
    request_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    session_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Subject of the event
    resource_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resource_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Outcome / performance
    duration: Mapped[Optional[float]] = mapped_column(
        Float, nullable=True, comment="Duration in milliseconds"
    )
    status_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Sanitized payloads ("metadata" is reserved on declarative classes)
    old_values: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    new_values: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    event_metadata: Mapped[Optional[Any]] = mapped_column("metadata", JSON, nullable=True)

    # Error context
    error_code: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="Truncated to 2000 chars"
    )
    stack_trace: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="Truncated to 5000 chars"
    )

    # Indexes for query optimization
    __table_args__ = (
        Index("idx_system_logs_level_created", "level", "created_at"),
        Index("idx_system_logs_category_created", "category", "created_at"),
        Index("idx_system_logs_resource", "resource_type", "resource_id"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<SystemLog(id={self.id}, level={self.level}, "
            f"category={self.category}, event_type={self.event_type})>"
        )
