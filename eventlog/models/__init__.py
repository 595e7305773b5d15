"""Database models."""

from eventlog.models.base import Base, BaseModel
from eventlog.models.enums import (
    DatabaseOperation,
    LogCategory,
    LogLevel,
    SecuritySeverity,
    Timeframe,
)
from eventlog.models.system_log import SystemLog

__all__ = [
    "Base",
    "BaseModel",
    "SystemLog",
    "LogLevel",
    "LogCategory",
    "SecuritySeverity",
    "DatabaseOperation",
    "Timeframe",
]
