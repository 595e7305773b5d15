"""System log admin API endpoints.

Read, aggregate, export and clean up the system log. All routes require an
admin bearer token. Request events are recorded by ``SystemLoggingMiddleware``.
"""

import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, Response

from eventlog.api.deps import (
    get_event_recorder,
    get_maintenance_service,
    get_query_service,
)
from eventlog.core.auth import require_admin, user_roles
from eventlog.core.config import get_settings
from eventlog.core.error_handling import describe_error
from eventlog.core.logging import get_logger
from eventlog.core.request_utils import client_info
from eventlog.models.base import utc_now
from eventlog.models.enums import LogCategory, LogLevel, Timeframe
from eventlog.retention.maintenance import LogMaintenanceService
from eventlog.schemas.log_schemas import APIResponse, LogQueryFilters
from eventlog.services.event_recorder import EventRecorder
from eventlog.services.query_service import LogQueryService

router = APIRouter()
logger = get_logger(__name__)
settings = get_settings()


def _user_id(user: Dict[str, Any]) -> Optional[str]:
    return user.get("user_id") or user.get("sub")


def _admin_role(user: Dict[str, Any]) -> str:
    roles = user_roles(user)
    for role in roles:
        if role in settings.admin_roles:
            return role
    return roles[0] if roles else "unknown"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


async def _record_admin_action(
    recorder: EventRecorder,
    request: Request,
    user: Dict[str, Any],
    event_type: str,
    resource_id: str,
    metadata: Dict[str, Any],
) -> None:
    await recorder.log_admin_action(
        event_type,
        admin_user_id=_user_id(user) or "unknown",
        admin_user_name=user.get("name") or "unknown",
        admin_user_email=user.get("email") or "unknown",
        admin_user_role=_admin_role(user),
        resource_type="system_logs",
        resource_id=resource_id,
        metadata=metadata,
        **client_info(request),
    )


def _error_response(
    request: Request, status_code: int, error: str, message: str
) -> JSONResponse:
    if status_code >= 500:
        request.state.error_message = message
    return JSONResponse(
        status_code=status_code,
        content=APIResponse(success=False, error=error, message=message).model_dump(),
    )


def log_filters(
    level: Optional[List[LogLevel]] = Query(None),
    category: Optional[List[LogCategory]] = Query(None),
    event_type: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    resource_id: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
) -> LogQueryFilters:
    """Query string parameters for listing and exporting logs."""
    return LogQueryFilters(
        level=level or None,
        category=category or None,
        event_type=event_type,
        user_id=user_id,
        resource_type=resource_type,
        resource_id=resource_id,
        date_from=date_from,
        date_to=date_to,
        search=search,
        page=page,
        limit=limit,
    )


@router.get("/system-logs", response_model=APIResponse)
async def list_system_logs(
    request: Request,
    filters: LogQueryFilters = Depends(log_filters),
    query_service: LogQueryService = Depends(get_query_service),
    current_user: dict = Depends(require_admin),
):
    """
    Retrieve system logs with filtering and pagination, newest first.

    Requires an admin JWT.
    """
    try:
        page = await query_service.query(filters)
    except Exception as e:
        logger.error("system_logs_query_failed", error=str(e), exc_info=True)
        return _error_response(request, 500, "Failed to retrieve system logs", describe_error(e))

    return APIResponse(data=page.model_dump(mode="json"))


@router.get("/system-logs/stats", response_model=APIResponse)
async def system_log_stats(
    request: Request,
    timeframe: Timeframe = Query(Timeframe.DAY),
    query_service: LogQueryService = Depends(get_query_service),
    current_user: dict = Depends(require_admin),
):
    """
    Aggregate counts by level and category over a trailing window.

    Requires an admin JWT.
    """
    try:
        stats = await query_service.statistics(timeframe)
    except Exception as e:
        logger.error("system_log_stats_failed", error=str(e), exc_info=True)
        return _error_response(
            request, 500, "Failed to retrieve system log statistics", describe_error(e)
        )

    return APIResponse(data=stats.model_dump(mode="json"))


@router.get("/system-logs/export")
async def export_system_logs(
    request: Request,
    filters: LogQueryFilters = Depends(log_filters),
    query_service: LogQueryService = Depends(get_query_service),
    recorder: EventRecorder = Depends(get_event_recorder),
    current_user: dict = Depends(require_admin),
):
    """
    Export matching system logs as a CSV attachment.

    Pagination parameters are ignored; the export is capped at
    ``export_max_rows`` rows. Requires an admin JWT.
    """
    started = time.perf_counter()

    try:
        content = await query_service.export_csv(filters)
    except Exception as e:
        logger.error("system_logs_export_failed", error=str(e), exc_info=True)
        return _error_response(request, 500, "Failed to export system logs", describe_error(e))

    await _record_admin_action(
        recorder,
        request,
        current_user,
        "system_logs_export",
        "export",
        metadata={
            "duration": _elapsed_ms(started),
            "filters": filters.model_dump(
                mode="json", exclude={"page", "limit"}, exclude_none=True
            ),
        },
    )

    filename = f"system-logs-{utc_now().date().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/system-logs/cleanup", response_model=APIResponse)
async def cleanup_system_logs(
    request: Request,
    retention_days: int = Query(90),
    maintenance: LogMaintenanceService = Depends(get_maintenance_service),
    recorder: EventRecorder = Depends(get_event_recorder),
    current_user: dict = Depends(require_admin),
):
    """
    Delete non-CRITICAL logs older than ``retention_days``.

    Requires an admin JWT.
    """
    started = time.perf_counter()

    if not settings.cleanup_min_days <= retention_days <= settings.cleanup_max_days:
        return _error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            "Invalid retention period",
            (
                f"Retention days must be between {settings.cleanup_min_days} "
                f"and {settings.cleanup_max_days}"
            ),
        )

    try:
        deleted = await maintenance.cleanup_old_logs(retention_days)
    except Exception as e:
        logger.error("system_logs_cleanup_failed", error=str(e), exc_info=True)
        return _error_response(request, 500, "Failed to clean up system logs", describe_error(e))

    await _record_admin_action(
        recorder,
        request,
        current_user,
        "system_logs_cleanup",
        "cleanup",
        metadata={
            "deleted_count": deleted,
            "duration": _elapsed_ms(started),
            "retention_days": retention_days,
        },
    )

    return APIResponse(
        data={
            "deleted_count": deleted,
            "retention_days": retention_days,
            "message": f"Successfully deleted {deleted} old log entries",
        },
    )
