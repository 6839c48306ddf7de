"""
CRUD layer for database operations.

This package contains all data access logic isolated from business logic.
CRUD modules are plain functions taking the session first.

Pattern:
    await job_schedule_crud.get_schedule(db, schedule_id)
"""

from . import base_crud
from . import job_schedule_crud
from . import job_template_crud
from . import reference_data_crud
from . import scheduled_instance_crud
from . import ticket_crud

__all__ = [
    "base_crud",
    "job_schedule_crud",
    "job_template_crud",
    "reference_data_crud",
    "scheduled_instance_crud",
    "ticket_crud",
]
