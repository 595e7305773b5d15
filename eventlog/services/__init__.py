"""Business logic services."""

from eventlog.services.event_recorder import EventRecorder
from eventlog.services.query_service import LogQueryService

__all__ = ["EventRecorder", "LogQueryService"]
