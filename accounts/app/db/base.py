# accounts/app/db/base.py
"""
SQLAlchemy declarative base and table creation.

This module defines the Base class for all ORM models and re-exports
database session components from db/session.py.
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Usage:
        class User(Base):
            __tablename__ = "users"
            id = Column(String(32), primary_key=True)
            ...
    """
    pass


from accounts.app.db.session import (  # noqa: E402
    get_engine,
    get_sessionmaker,
    get_db,
)


async def create_tables(drop_existing: bool = False) -> None:
    """Create every registered table on the configured engine."""
    # Models must be imported so their tables land in Base.metadata
    from accounts.app.models import user  # noqa: F401

    async with get_engine().begin() as conn:
        if drop_existing:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


__all__ = [
    "Base",
    "get_engine",
    "get_sessionmaker",
    "get_db",
    "create_tables",
]
