"""
Job template API endpoints.

Endpoints:
- GET /job-templates - List templates (active only unless includeInactive)
- POST /job-templates - Create a template
- GET /job-templates/{template_id} - Get a template
- PUT /job-templates/{template_id} - Partially update a template

Deactivating a template (active=false) also deactivates its schedules.

Authentication:
- All endpoints require the administrator role
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.job_template import (
    JobTemplateCreate,
    JobTemplateListResponse,
    JobTemplateRead,
    JobTemplateUpdate,
)
from api.services.job_template_service import job_template_service
from core.database import get_session
from core.dependencies import CurrentUser, require_admin

router = APIRouter()


@router.get("", response_model=JobTemplateListResponse)
async def list_job_templates(
    response: Response,
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """List job templates, newest first."""
    templates = await job_template_service.list_templates(db, include_inactive)
    response.headers["X-Total-Count"] = str(len(templates))
    return JobTemplateListResponse(templates=templates, total=len(templates))


@router.post("", response_model=JobTemplateRead, status_code=201)
async def create_job_template(
    template_data: JobTemplateCreate,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """Create a job template. The site owner company is derived from the site."""
    return await job_template_service.create_template(
        db, template_data, created_by=current_user.id
    )


@router.get("/{template_id}", response_model=JobTemplateRead)
async def get_job_template(
    template_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """Get a single job template."""
    return await job_template_service.get_template(db, template_id)


@router.put("/{template_id}", response_model=JobTemplateRead)
async def update_job_template(
    template_id: UUID,
    template_data: JobTemplateUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """Update a job template. All fields are optional."""
    return await job_template_service.update_template(db, template_id, template_data)
