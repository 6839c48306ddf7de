"""
Database configuration.
Async engine with connection pooling and the session dependencies used by
the API, the in-process scheduler and maintenance code.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import asyncpg
from sqlalchemy import text
from sqlalchemy.exc import PendingRollbackError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool
from sqlmodel import SQLModel

from .config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(
    str(settings.database.url),
    echo=settings.database.echo,
    future=True,
    pool_pre_ping=False,  # connections are validated on use
    pool_size=settings.database.pool_size,
    max_overflow=settings.database.max_overflow,
    pool_timeout=settings.database.pool_timeout,
    pool_recycle=settings.database.pool_recycle,
    poolclass=AsyncAdaptedQueuePool,
    connect_args={
        "server_settings": {
            "application_name": settings.api.app_name,
        },
        "command_timeout": 60,
        "timeout": 30,
    },
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Prevent additional queries after commit
    autoflush=False,
    autocommit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.
    Commits on success, rolls back on any exception.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            if session.in_transaction():
                try:
                    await session.commit()
                except PendingRollbackError:
                    await session.rollback()
                    raise
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_cleanup_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a new isolated session outside of a request.

    Used by the in-process generation job, which has no request scope.

    Example:
        async with get_cleanup_session() as db:
            await schedule_generation_service.generate_due_tickets(db)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def check_database() -> bool:
    """Return True if the database answers a trivial query."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return False


async def ensure_database_exists() -> None:
    """
    Ensure the database exists, create it if it doesn't.
    Connects to the default postgres database first to create the target database.
    """
    database_url = str(settings.database.url).replace("+asyncpg", "")

    if "/" not in database_url:
        raise ValueError("Invalid database URL format")

    db_name = database_url.split("/")[-1]
    base_url = "/".join(database_url.split("/")[:-1]) + "/postgres"

    try:
        conn = await asyncpg.connect(database_url)
        await conn.close()
        return
    except asyncpg.InvalidCatalogNameError:
        pass
    except Exception:
        # Other connection issues - let the main engine report them
        return

    try:
        conn = await asyncpg.connect(base_url)
        try:
            await conn.execute(f'CREATE DATABASE "{db_name}"')
            logger.info(f"Created database {db_name}")
        finally:
            await conn.close()
    except asyncpg.DuplicateDatabaseError:
        pass
    except Exception as e:
        logger.warning(f"Could not create database {db_name}: {e}")


async def init_db() -> None:
    """
    Initialize database tables on startup.
    Skips creation when the schedule tables are already present
    (Alembic owns the schema in deployed environments).
    """
    import db.models  # noqa: F401  registers the tables on SQLModel.metadata

    await ensure_database_exists()

    async with engine.begin() as conn:
        result = await conn.execute(
            text(
                "SELECT EXISTS (SELECT FROM information_schema.tables "
                "WHERE table_name = 'job_schedules')"
            )
        )
        if result.scalar():
            return

        await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Database tables created")


async def close_db() -> None:
    """
    Close database connections.
    Should be called on application shutdown.
    """
    await engine.dispose()
