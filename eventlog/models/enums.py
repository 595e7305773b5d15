"""Closed vocabularies shared by the system log."""

from datetime import timedelta
from enum import Enum


class LogLevel(str, Enum):
    """Severity tier, least to most severe."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogCategory(str, Enum):
    """Functional domain of an event."""

    AUTHENTICATION = "AUTHENTICATION"
    ADMIN_ACTION = "ADMIN_ACTION"
    PAYMENT_PROCESSING = "PAYMENT_PROCESSING"
    API_REQUEST = "API_REQUEST"
    EMAIL_SERVICE = "EMAIL_SERVICE"
    SECURITY_EVENT = "SECURITY_EVENT"
    DATABASE_OPERATION = "DATABASE_OPERATION"
    PERFORMANCE = "PERFORMANCE"
    SYSTEM_ERROR = "SYSTEM_ERROR"
    AUDIT_TRAIL = "AUDIT_TRAIL"


class SecuritySeverity(str, Enum):
    """Severity scale reported by security event producers."""

    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class DatabaseOperation(str, Enum):
    """Mutations reported by database operation producers."""

    create = "create"
    update = "update"
    delete = "delete"


class Timeframe(str, Enum):
    """Trailing window for statistics snapshots."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def window(self) -> timedelta:
        return _TIMEFRAME_WINDOWS[self]


_TIMEFRAME_WINDOWS = {
    Timeframe.HOUR: timedelta(hours=1),
    Timeframe.DAY: timedelta(days=1),
    Timeframe.WEEK: timedelta(days=7),
    Timeframe.MONTH: timedelta(days=30),
}

SECURITY_SEVERITY_LEVELS = {
    SecuritySeverity.low: LogLevel.INFO,
    SecuritySeverity.medium: LogLevel.WARN,
    SecuritySeverity.high: LogLevel.ERROR,
    SecuritySeverity.critical: LogLevel.CRITICAL,
}
