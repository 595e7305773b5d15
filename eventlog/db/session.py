"""Database engine, sessions and the process-wide log store."""

from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from eventlog.core.config import Settings, get_settings
from eventlog.core.logging import get_logger
from eventlog.db.sqlalchemy_store import SqlAlchemyLogStore
from eventlog.models.base import Base

logger = get_logger(__name__)

engine: Optional[AsyncEngine] = None
async_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def engine_options(settings: Settings) -> Dict[str, Any]:
    """Pooled connections in production, NullPool everywhere else (and for SQLite)."""
    options: Dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
    if settings.is_production and not settings.uses_sqlite:
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_recycle=settings.database_pool_recycle,
        )
    else:
        options["poolclass"] = NullPool
    return options


def init_db() -> None:
    """Create the global engine and session factory from settings."""
    global engine, async_session_factory

    settings = get_settings()
    options = engine_options(settings)
    engine = create_async_engine(settings.database_url, **options)
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info(
        "database_initialized",
        environment=settings.environment,
        pooled="poolclass" not in options,
        pool_size=options.get("pool_size"),
    )


def _require_factory() -> async_sessionmaker[AsyncSession]:
    if async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency yielding a session for ad hoc queries (health checks).

    Log reads and writes go through ``get_log_store`` instead.
    """
    async with _require_factory()() as session:
        yield session


def get_log_store() -> SqlAlchemyLogStore:
    """Dependency returning the store bound to the global session factory."""
    return SqlAlchemyLogStore(_require_factory())


async def close_db() -> None:
    """Dispose of the engine and its pooled connections."""
    if engine is not None:
        await engine.dispose()
        logger.info("database_connections_closed")


async def create_tables() -> None:
    """Create the system log table. Development and testing only."""
    if engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_tables_created")
