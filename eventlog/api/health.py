"""Health check endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eventlog.core.config import get_settings
from eventlog.core.logging import get_logger
from eventlog.db.session import get_db
from eventlog.models.system_log import SystemLog

router = APIRouter()
logger = get_logger(__name__)


@router.get("/")
async def health_check() -> dict:
    """Liveness: the process is up."""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Readiness: the system log table is reachable."""
    try:
        await db.execute(select(func.count()).select_from(SystemLog).limit(1))
    except SQLAlchemyError as e:
        logger.warning("readiness_check_failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "database": "disconnected", "error": str(e)},
        )

    return {"status": "ready", "database": "connected"}
