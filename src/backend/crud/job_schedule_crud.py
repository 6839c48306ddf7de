"""CRUD operations for job schedules."""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crud import base_crud
from db.models import JobSchedule


async def list_schedules(
    db: AsyncSession, include_inactive: bool = False
) -> List[JobSchedule]:
    """Get job schedules, newest first, optionally including inactive ones."""
    stmt = select(JobSchedule).order_by(JobSchedule.created_at.desc())
    if not include_inactive:
        stmt = stmt.where(JobSchedule.active.is_(True))

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_active_schedules(db: AsyncSession) -> List[JobSchedule]:
    """
    Get every active schedule for a generation pass.

    Ordered by cursor so log output reads chronologically; the engine
    itself does not depend on the order.
    """
    stmt = (
        select(JobSchedule)
        .where(JobSchedule.active.is_(True))
        .order_by(JobSchedule.next_due_date, JobSchedule.id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_schedule(
    db: AsyncSession, schedule_id: UUID, *, refresh: bool = False
) -> Optional[JobSchedule]:
    return await base_crud.find_by_id(
        db, JobSchedule, schedule_id, populate_existing=refresh
    )
