"""
Job schedule API endpoints.

Endpoints:
- GET /job-schedules - List schedules (active only unless includeInactive)
- POST /job-schedules - Create a schedule
- GET /job-schedules/next-due-date - Preview the due date after a given date
- POST /job-schedules/generate - Run a generation pass now
- GET /job-schedules/{schedule_id} - Get a schedule
- PUT /job-schedules/{schedule_id} - Partially update a schedule

Frequencies:
- monthly, quarterly, semi_annually, annually: 30/90/180/365 days
- custom: frequencyValue x 30 days

Updating the frequency does not move nextDueDate; the new interval applies
from the next firing.

Authentication:
- All endpoints require the administrator role
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.generation import GenerateDueTicketsResponse
from api.schemas.job_schedule import (
    JobScheduleCreate,
    JobScheduleListResponse,
    JobScheduleRead,
    JobScheduleUpdate,
    NextDueDateRead,
)
from api.services.job_schedule_service import job_schedule_service
from api.services.schedule_generation_service import (
    schedule_generation_service,
    schedule_today,
)
from core.config import settings
from core.database import get_session
from core.dependencies import CurrentUser, require_admin
from db.enums import FrequencyType

# Rate limiter for the manual generation trigger
limiter = Limiter(key_func=get_remote_address)

router = APIRouter()


@router.get("", response_model=JobScheduleListResponse)
async def list_job_schedules(
    response: Response,
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """List job schedules, newest first."""
    schedules = await job_schedule_service.list_schedules(db, include_inactive)
    response.headers["X-Total-Count"] = str(len(schedules))
    return JobScheduleListResponse(schedules=schedules, total=len(schedules))


@router.post("", response_model=JobScheduleRead, status_code=201)
async def create_job_schedule(
    schedule_data: JobScheduleCreate,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """Create a job schedule bound to an active job template."""
    return await job_schedule_service.create_schedule(
        db, schedule_data, created_by=current_user.id
    )


@router.get("/next-due-date", response_model=NextDueDateRead)
async def calculate_next_due_date(
    current_date: date = Query(..., alias="currentDate"),
    frequency_type: FrequencyType = Query(..., alias="frequencyType"),
    frequency_value: Optional[int] = Query(None, alias="frequencyValue"),
    current_user: CurrentUser = Depends(require_admin),
):
    """Preview the due date that follows currentDate for a frequency rule."""
    return job_schedule_service.calculate_next_due_date(
        current_date, frequency_type, frequency_value
    )


@router.post("/generate", response_model=GenerateDueTicketsResponse)
@limiter.limit(settings.schedule.manual_rate_limit)
async def generate_due_tickets(
    request: Request,  # Must be first param for rate limiter
    as_of_date: Optional[date] = Query(None, alias="asOfDate"),
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """
    Create tickets for every schedule whose advance-notice window is open.

    Safe to call repeatedly; a schedule fires at most once per due date.
    """
    as_of = as_of_date or schedule_today()
    created = await schedule_generation_service.generate_due_tickets(
        db, as_of, trigger="api"
    )
    return GenerateDueTicketsResponse(as_of_date=as_of, tickets_created=created)


@router.get("/{schedule_id}", response_model=JobScheduleRead)
async def get_job_schedule(
    schedule_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """Get a single job schedule."""
    return await job_schedule_service.get_schedule(db, schedule_id)


@router.put("/{schedule_id}", response_model=JobScheduleRead)
async def update_job_schedule(
    schedule_id: UUID,
    schedule_data: JobScheduleUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """Update a job schedule. All fields are optional."""
    return await job_schedule_service.update_schedule(db, schedule_id, schedule_data)
