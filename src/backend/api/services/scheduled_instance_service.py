"""Scheduled job instance reporting and status updates."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.scheduled_instance import (
    ScheduledInstanceListResponse,
    ScheduledInstanceRead,
)
from core.exceptions import NotFoundError
from crud import scheduled_instance_crud
from db.enums import InstanceStatus

logger = logging.getLogger(__name__)


class ScheduledInstanceService:
    """Read-only reporting over schedule firings, plus status sync."""

    async def list_instances(self, db: AsyncSession) -> ScheduledInstanceListResponse:
        """List every instance with schedule, template and ticket details, latest due first."""
        instances = await scheduled_instance_crud.list_instances(db)
        return ScheduledInstanceListResponse(
            instances=[ScheduledInstanceRead.from_model(i) for i in instances],
            total=len(instances),
        )

    async def update_status(
        self, db: AsyncSession, instance_id: UUID, status: InstanceStatus
    ) -> ScheduledInstanceRead:
        """Set an instance's lifecycle status.

        Raises:
            NotFoundError: instance does not exist
        """
        instance = await scheduled_instance_crud.get_instance(db, instance_id)
        if not instance:
            raise NotFoundError(f"Scheduled instance {instance_id} not found")

        previous = instance.status
        instance.status = InstanceStatus(status).value
        await db.commit()

        logger.info(f"Scheduled instance {instance_id} status {previous} -> {instance.status}")
        instance = await scheduled_instance_crud.get_instance(db, instance_id, refresh=True)
        return ScheduledInstanceRead.from_model(instance)


scheduled_instance_service = ScheduledInstanceService()
