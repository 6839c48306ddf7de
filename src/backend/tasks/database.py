"""
Database sessions for Celery tasks.

Each task runs its coroutine under a fresh event loop (see run_async), and
asyncpg connections cannot cross loops. The API's shared engine is therefore
off limits here; every task opens a short-lived engine of its own.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from core.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def get_celery_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Open a session on a task-scoped engine.

    Commits when the block exits cleanly, rolls back otherwise, and always
    disposes the engine.

    Usage:
        async with get_celery_session() as db:
            await schedule_generation_service.generate_due_tickets(db)
    """
    engine = create_async_engine(
        str(settings.database.url),
        echo=settings.database.echo,
        poolclass=NullPool,  # one task, one connection
    )
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    try:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.error(f"Database error in Celery task: {e}")
                raise
    finally:
        await engine.dispose()
