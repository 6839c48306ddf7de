"""
API v1 routes.

Endpoints are organized by area under `endpoints/`. Everything here is
mounted under settings.api.api_v1_prefix.
"""

from fastapi import APIRouter

from .endpoints.scheduling import job_schedules, job_templates, scheduled_instances

api_router = APIRouter()

api_router.include_router(
    job_templates.router, prefix="/job-templates", tags=["job-templates"]
)

api_router.include_router(
    job_schedules.router, prefix="/job-schedules", tags=["job-schedules"]
)

api_router.include_router(
    scheduled_instances.router,
    prefix="/scheduled-instances",
    tags=["scheduled-instances"],
)
