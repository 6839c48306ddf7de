"""
Scheduled job instance schemas for reporting and status updates.
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from core.schema_base import HTTPSchemaModel
from db.enums import InstanceStatus


class ScheduledInstanceRead(HTTPSchemaModel):
    """One schedule firing joined with its schedule, template and ticket."""
    id: UUID
    job_schedule_id: UUID
    schedule_name: Optional[str] = None
    template_name: Optional[str] = None
    ticket_id: Optional[UUID] = None
    ticket_number: Optional[str] = None
    ticket_subject: Optional[str] = None
    ticket_status: Optional[str] = None
    due_date: date
    created_date: date
    status: str
    created_at: datetime

    @classmethod
    def from_model(cls, instance) -> "ScheduledInstanceRead":
        schedule = instance.job_schedule
        template = schedule.job_template if schedule else None
        ticket = instance.ticket
        return cls(
            id=instance.id,
            job_schedule_id=instance.job_schedule_id,
            schedule_name=schedule.name if schedule else None,
            template_name=template.name if template else None,
            ticket_id=instance.ticket_id,
            ticket_number=ticket.ticket_number if ticket else None,
            ticket_subject=ticket.subject_title if ticket else None,
            ticket_status=ticket.status if ticket else None,
            due_date=instance.due_date,
            created_date=instance.created_date,
            status=instance.status,
            created_at=instance.created_at,
        )


class ScheduledInstanceListResponse(HTTPSchemaModel):
    """Response for listing scheduled instances."""
    instances: List[ScheduledInstanceRead]
    total: int


class ScheduledInstanceStatusUpdate(HTTPSchemaModel):
    """Schema for changing an instance's lifecycle status."""
    status: InstanceStatus
