"""
Database connection management.

Provides SQLAlchemy engines, session factories, and the FastAPI dependency
for database session injection.

Dependencies: sqlalchemy, gofigure.configs
System role: Database connection lifecycle management
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool, QueuePool

from gofigure.configs import get_settings

_async_session_factory: async_sessionmaker | None = None


def get_engine() -> Engine:
    """
    Create synchronous SQLAlchemy engine (used by schema scripts).

    Returns:
        Engine: Configured SQLAlchemy engine with pooling and pre-ping
    """
    db_config = get_settings().database

    return create_engine(
        db_config.database_url,
        echo=db_config.echo_sql,
        poolclass=QueuePool,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


def get_async_engine(pooled: bool = True) -> AsyncEngine:
    """
    Create async SQLAlchemy engine.

    Args:
        pooled: Use a connection pool. Worker tasks pass False because each
            task runs its own short-lived event loop and pooled connections
            cannot outlive it.

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine
    """
    db_config = get_settings().database

    if not pooled:
        return create_async_engine(
            db_config.async_database_url,
            echo=db_config.echo_sql,
            poolclass=NullPool,
        )

    return create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Build an async session factory with explicit transaction control."""
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


def get_async_session_factory() -> async_sessionmaker:
    """
    Return the process-wide async session factory for the API.

    The engine is created lazily on first use and reused across requests.

    Returns:
        async_sessionmaker: Shared async session factory
    """
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = make_session_factory(get_async_engine())
    return _async_session_factory


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database session injection with automatic cleanup.

    Yields:
        AsyncSession: Async SQLAlchemy database session (scoped to request lifetime)

    Usage:
        @router.get("/jobs/{id}")
        async def get_job(id: UUID, db: AsyncSession = Depends(get_async_db)):
            return await job_crud.get_by_id(db, id)
    """
    SessionFactory = get_async_session_factory()
    async with SessionFactory() as session:
        yield session


@asynccontextmanager
async def worker_session() -> AsyncIterator[AsyncSession]:
    """
    Open a session on a throwaway engine for a single worker task.

    Usage:
        async with worker_session() as db:
            await MeshPoller(db, ...).poll_once(...)
    """
    engine = get_async_engine(pooled=False)
    try:
        async with make_session_factory(engine)() as session:
            yield session
    finally:
        await engine.dispose()
