"""Ticket creation and status observation.

Used by the generation engine to materialize tickets, and by the ticket
screens to report status changes back to scheduled instances.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.ticket import TicketCreate
from core.config import settings
from core.exceptions import NotFoundError
from crud import base_crud, scheduled_instance_crud, ticket_crud
from db.enums import InstanceStatus, TicketStatus
from db.models import Ticket

logger = logging.getLogger(__name__)

# Ticket status -> instance status it implies
_INSTANCE_STATUS_FOR_TICKET = {
    TicketStatus.RESOLVED.value: InstanceStatus.COMPLETED.value,
    TicketStatus.CLOSED.value: InstanceStatus.COMPLETED.value,
    TicketStatus.CANCELLED.value: InstanceStatus.CANCELLED.value,
}


class TicketService:
    """Service for creating tickets and propagating their status."""

    def __init__(self, number_prefix: Optional[str] = None):
        self.number_prefix = number_prefix or settings.schedule.ticket_number_prefix

    def generate_ticket_number(self, raised_on: date) -> str:
        """Build a ticket number like TKT-20250101-3FA2C1."""
        return f"{self.number_prefix}-{raised_on.strftime('%Y%m%d')}-{uuid4().hex[:6].upper()}"

    async def create_ticket(self, db: AsyncSession, ticket_data: TicketCreate) -> Ticket:
        """Insert a ticket and assign its number.

        IMPORTANT: This method does NOT commit. The caller owns the
        transaction (the generation engine runs it inside a savepoint).

        Args:
            db: Database session
            ticket_data: Fully-populated ticket fields

        Returns:
            The flushed Ticket with its id and ticket_number set
        """
        ticket_number = self.generate_ticket_number(ticket_data.date_raised)
        while await ticket_crud.ticket_number_exists(db, ticket_number):
            ticket_number = self.generate_ticket_number(ticket_data.date_raised)

        values = ticket_data.model_dump()
        values["ticket_number"] = ticket_number

        ticket = await base_crud.create(db, Ticket, obj_in=values, commit=False)
        logger.debug(f"Created ticket {ticket.ticket_number} for site {ticket.site_id}")
        return ticket

    async def update_ticket_status(
        self, db: AsyncSession, ticket_id: UUID, status: TicketStatus
    ) -> Ticket:
        """Change a ticket's status and sync the linked scheduled instance.

        Resolved or closed tickets complete their instance; cancelled tickets
        cancel it. Other statuses leave the instance alone.

        Raises:
            NotFoundError: ticket does not exist
        """
        ticket = await ticket_crud.get_ticket(db, ticket_id)
        if not ticket:
            raise NotFoundError(f"Ticket {ticket_id} not found")

        status_value = TicketStatus(status).value
        ticket.status = status_value

        instance_status = _INSTANCE_STATUS_FOR_TICKET.get(status_value)
        if instance_status:
            instance = await scheduled_instance_crud.get_instance_by_ticket(db, ticket_id)
            if instance and instance.status != instance_status:
                instance.status = instance_status
                logger.info(
                    f"Scheduled instance {instance.id} marked {instance_status} "
                    f"(ticket {ticket.ticket_number} {status_value})"
                )

        await db.commit()
        return await ticket_crud.get_ticket(db, ticket_id, refresh=True)


ticket_service = TicketService()
