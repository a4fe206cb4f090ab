"""
Database connection management.

Provides SQLAlchemy engines, session factories, and the FastAPI dependency
for request-scoped async sessions.

Dependencies: sqlalchemy, lms_backend.configs
System role: Database connection lifecycle management
"""

from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy import Engine, create_engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import QueuePool

from lms_backend.configs import get_settings


def get_engine() -> Engine:
    """
    Create sync SQLAlchemy engine used by schema management scripts.

    Configures QueuePool for connection reuse. pool_pre_ping=True verifies
    connections before use to detect stale connections early.

    Returns:
        Engine: Configured SQLAlchemy engine (psycopg2 driver)
    """
    db_config = get_settings().database

    return create_engine(
        db_config.database_url,
        echo=db_config.echo_sql,
        poolclass=QueuePool,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_recycle=db_config.pool_recycle,
        pool_pre_ping=True,
    )


@lru_cache
def get_async_engine() -> AsyncEngine:
    """
    Create the process-wide async engine (asyncpg driver).

    Cached so that every request shares one connection pool.

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Raises:
        ArgumentError: If database URL is invalid
    """
    db_config = get_settings().database

    return create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_recycle=db_config.pool_recycle,
        pool_pre_ping=True,
    )


def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Create async session factory bound to the shared engine.

    autoflush=False and expire_on_commit=False keep transaction control
    explicit: services commit at each durable step and keep using the
    returned ORM objects afterwards.

    Returns:
        async_sessionmaker: Async session factory
    """
    return async_sessionmaker(
        bind=get_async_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a request-scoped async session.

    The session is closed after the route completes, even if it raised.
    Uncommitted work is rolled back on close.

    Yields:
        AsyncSession: Async SQLAlchemy session

    Usage:
        @router.get("/courses/{id}")
        async def get_course(id: UUID, db: AsyncSession = Depends(get_async_db)):
            return await course_crud.get_by_id(db, id)
    """
    SessionFactory = get_async_session_factory()
    async with SessionFactory() as session:
        yield session
