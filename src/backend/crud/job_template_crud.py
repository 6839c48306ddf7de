"""CRUD operations for job templates."""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from crud import base_crud
from db.models import JobSchedule, JobTemplate


async def list_templates(
    db: AsyncSession, include_inactive: bool = False
) -> List[JobTemplate]:
    """
    Get job templates, newest first.

    Args:
        db: Database session
        include_inactive: Include deactivated templates

    Returns:
        List of templates with site/company/contact relationships loaded
    """
    stmt = select(JobTemplate).order_by(JobTemplate.created_at.desc())
    if not include_inactive:
        stmt = stmt.where(JobTemplate.active.is_(True))

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_template(
    db: AsyncSession, template_id: UUID, *, refresh: bool = False
) -> Optional[JobTemplate]:
    return await base_crud.find_by_id(
        db, JobTemplate, template_id, populate_existing=refresh
    )


async def deactivate_schedules_for_template(
    db: AsyncSession, template_id: UUID
) -> List[UUID]:
    """
    Deactivate every active schedule bound to a template.

    Does not commit; runs in the caller's transaction.

    Returns:
        IDs of the schedules that were deactivated
    """
    ids_stmt = (
        select(JobSchedule.id)
        .where(JobSchedule.job_template_id == template_id)
        .where(JobSchedule.active.is_(True))
    )
    schedule_ids = list((await db.execute(ids_stmt)).scalars().all())

    if schedule_ids:
        stmt = (
            update(JobSchedule)
            .where(JobSchedule.id.in_(schedule_ids))
            .values(active=False)
            .execution_options(synchronize_session="fetch")
        )
        await db.execute(stmt)

    return schedule_ids
