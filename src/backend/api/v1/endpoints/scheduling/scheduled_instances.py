"""
Scheduled job instance API endpoints.

Endpoints:
- GET /scheduled-instances - Every firing with schedule, template and ticket details
- PUT /scheduled-instances/{instance_id}/status - Set created/completed/cancelled

Authentication:
- All endpoints require the administrator role
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.scheduled_instance import (
    ScheduledInstanceListResponse,
    ScheduledInstanceRead,
    ScheduledInstanceStatusUpdate,
)
from api.services.scheduled_instance_service import scheduled_instance_service
from core.database import get_session
from core.dependencies import CurrentUser, require_admin

router = APIRouter()


@router.get("", response_model=ScheduledInstanceListResponse)
async def list_scheduled_instances(
    response: Response,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """List scheduled instances, latest due date first."""
    result = await scheduled_instance_service.list_instances(db)
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.put("/{instance_id}/status", response_model=ScheduledInstanceRead)
async def update_scheduled_instance_status(
    instance_id: UUID,
    status_data: ScheduledInstanceStatusUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """Set an instance's status, normally mirrored from its ticket."""
    return await scheduled_instance_service.update_status(
        db, instance_id, status_data.status
    )
