"""
Kadzai Backend — Database Session Management
=============================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       per-request session dependency.
How:   The engine pools asyncpg connections; `get_db_session` yields one
       session per request, commits on success and rolls back on any error.
Who:   Route handlers (through Depends), the health check, Alembic, the seed script.

Every write a handler makes (booking + passengers + seat updates, a new login
session) therefore lands in a single transaction.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from kadzai.config import settings


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=settings.db_pool_pre_ping,
    pool_recycle=3600,
    echo=settings.log_level == "DEBUG",
)

# expire_on_commit=False: response models are built from ORM objects after
# the dependency has committed.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    On success the transaction is committed; on any exception it is rolled
    back and the exception re-raised for the global handlers.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Close every pooled connection. Called from the app lifespan on shutdown."""
    await engine.dispose()
