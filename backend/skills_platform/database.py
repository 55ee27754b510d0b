"""
Skills Platform Backend — Database Session Management
=======================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   All access to the hosted PostgreSQL goes through this module.
How:   One async engine with a small connection pool; a session-per-request
       dependency that commits on success and rolls back on error.
Who:   Route handlers receive sessions through FastAPI's Depends().

Hosted database notes:
    Supabase fronts PostgreSQL with a connection pooler that limits
    connections per project, so the pool defaults are small (see config).
    pool_pre_ping catches connections the pooler closed while idle.
"""

from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from skills_platform.config import settings


engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=settings.db_pool_pre_ping,
    pool_recycle=1800,
    echo=settings.log_level == "DEBUG",
)

# expire_on_commit=False: response models read attributes after the commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata is what Alembic diffs against."""
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the factory
        2. Yields it to the route handler
        3. On success: commits (an AI grading writes several rows, and
           they land together or not at all)
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns the connection to the pool)
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


async def ping_database() -> bool:
    """Runs SELECT 1 against the hosted database. Used by the health check."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True


async def dispose_engine() -> None:
    """Closes every pooled connection. Called from the lifespan on shutdown."""
    await engine.dispose()
