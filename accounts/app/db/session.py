# accounts/app/db/session.py
"""
Async database session management for SQLAlchemy.

Production considerations:
- Uses asyncpg for PostgreSQL
- Uses aiosqlite for SQLite (local development fallback)
- Pool settings differ for SQLite (no pooling) vs PostgreSQL

The engine and session factory are built lazily and cached, so tests can
point DATABASE_URL somewhere else and clear the caches between runs.
"""
from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool

from accounts.app.core.config import get_settings


def _create_async_engine() -> AsyncEngine:
    """
    Create and configure the async SQLAlchemy engine.

    SQLite (local development):
    - NullPool, a new connection per session
    - check_same_thread=False for async compatibility

    PostgreSQL (production):
    - AsyncAdaptedQueuePool with pre-ping and periodic recycling

    Returns:
        Configured AsyncEngine instance
    """
    settings = get_settings()

    if settings.is_sqlite:
        return create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )

    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=5,
        max_overflow=10,
        # Validate connection before checkout (prevents stale connection errors)
        pool_pre_ping=True,
        pool_recycle=300,
    )


@lru_cache()
def get_engine() -> AsyncEngine:
    return _create_async_engine()


@lru_cache()
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """
    Async session factory.

    expire_on_commit=False: attributes stay readable after commit
    autoflush=False: explicit flush control, prevents unexpected queries
    """
    return async_sessionmaker(
        bind=get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Usage in FastAPI endpoints:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...

    Session lifecycle:
    - Creates new session per request
    - Automatically closes session after request completes

    Note: This does NOT auto-commit. Callers commit explicitly.

    Yields:
        AsyncSession bound to the configured database
    """
    async with get_sessionmaker()() as session:
        yield session
