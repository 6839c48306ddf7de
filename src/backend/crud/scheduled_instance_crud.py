"""CRUD operations for scheduled job instances."""
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crud import base_crud
from db.models import ScheduledJobInstance


async def list_instances(db: AsyncSession) -> List[ScheduledJobInstance]:
    """
    Get all instances, latest due date first.

    Schedule, template and ticket are loaded through selectin relationships.
    """
    stmt = select(ScheduledJobInstance).order_by(
        ScheduledJobInstance.due_date.desc(),
        ScheduledJobInstance.created_at.desc(),
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_instance(
    db: AsyncSession, instance_id: UUID, *, refresh: bool = False
) -> Optional[ScheduledJobInstance]:
    return await base_crud.find_by_id(
        db, ScheduledJobInstance, instance_id, populate_existing=refresh
    )


async def get_instance_by_ticket(
    db: AsyncSession, ticket_id: UUID
) -> Optional[ScheduledJobInstance]:
    stmt = select(ScheduledJobInstance).where(
        ScheduledJobInstance.ticket_id == ticket_id
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def instance_exists(
    db: AsyncSession, schedule_id: UUID, due_date: date
) -> bool:
    """Check whether a schedule already fired for a due date."""
    return await base_crud.exists(
        db,
        ScheduledJobInstance,
        filters={"job_schedule_id": schedule_id, "due_date": due_date},
    )
