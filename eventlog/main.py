"""FastAPI application serving the system log admin API."""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eventlog.api import api_router
from eventlog.core.config import get_settings
from eventlog.core.logging import get_logger, setup_logging
from eventlog.core.request_utils import REQUEST_ID_HEADER
from eventlog.db.session import close_db, create_tables, init_db
from eventlog.middleware import SystemLoggingMiddleware
from eventlog.monitoring.metrics import get_metrics_collector, metrics_endpoint
from eventlog.schemas.log_schemas import APIResponse

setup_logging()
logger = get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("application_starting", app_name=settings.app_name, version=settings.app_version)

    init_db()
    if settings.is_development:
        await create_tables()

    yield

    logger.info("application_shutting_down")
    await close_db()


async def track_requests(request: Request, call_next):
    """Log every request and feed the request metrics."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    logger.info(
        "http_request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration=f"{elapsed:.3f}s",
    )

    if settings.enable_metrics:
        # Label by route template so path parameters don't explode cardinality
        route = request.scope.get("route")
        get_metrics_collector().record_api_request(
            request.method,
            getattr(route, "path", request.url.path),
            response.status_code,
            elapsed,
        )

    return response


async def unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )
    body = APIResponse(
        success=False,
        error="Internal server error",
        message=str(exc) if settings.debug else "An unexpected error occurred",
    )
    return JSONResponse(status_code=500, content=body.model_dump())


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Structured system event logging with retention and maintenance",
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )

    if settings.cors_enabled:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=settings.cors_methods,
            allow_headers=settings.cors_headers,
            expose_headers=[REQUEST_ID_HEADER],
        )

    application.add_middleware(SystemLoggingMiddleware, settings=settings)
    application.middleware("http")(track_requests)
    application.add_exception_handler(Exception, unhandled_exception)
    application.include_router(api_router)

    if settings.enable_metrics:
        application.get(settings.metrics_path, include_in_schema=False)(metrics_endpoint)

    @application.get("/")
    async def root():
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "status": "running",
            "environment": settings.environment,
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "eventlog.main:app",
        host=settings.host,
        port=settings.port,
        workers=settings.workers,
        log_level=settings.log_level.lower(),
        reload=settings.is_development,
    )
