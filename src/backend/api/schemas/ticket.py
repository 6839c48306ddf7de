"""
Ticket schemas used by the ticket-creation collaborator.
"""
from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import ConfigDict, Field

from core.schema_base import HTTPSchemaModel
from db.enums import Priority, TicketStatus, TicketType


class TicketCreate(HTTPSchemaModel):
    """Fully-populated ticket record handed to TicketService.create_ticket."""
    model_config = ConfigDict(use_enum_values=True)

    site_id: UUID
    site_owner_company_id: UUID
    ticket_type: TicketType = TicketType.JOB.value
    priority: Priority = Priority.MEDIUM.value
    date_raised: date
    who_raised_id: Optional[UUID] = None
    target_completion_date: Optional[date] = None
    due_date: Optional[date] = None
    assigned_company_id: Optional[UUID] = None
    assigned_contact_id: Optional[UUID] = None
    subject_title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    status: TicketStatus = TicketStatus.OPEN.value
