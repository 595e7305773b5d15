"""FastAPI dependency providers for the system log services."""

from fastapi import Depends

from eventlog.db.session import get_log_store
from eventlog.db.store import LogStore
from eventlog.retention.maintenance import LogMaintenanceService
from eventlog.services.event_recorder import EventRecorder
from eventlog.services.query_service import LogQueryService


def get_event_recorder(store: LogStore = Depends(get_log_store)) -> EventRecorder:
    return EventRecorder(store)


def get_query_service(store: LogStore = Depends(get_log_store)) -> LogQueryService:
    return LogQueryService(store)


def get_maintenance_service(
    store: LogStore = Depends(get_log_store),
    recorder: EventRecorder = Depends(get_event_recorder),
    query_service: LogQueryService = Depends(get_query_service),
) -> LogMaintenanceService:
    return LogMaintenanceService(store, recorder, query_service)
