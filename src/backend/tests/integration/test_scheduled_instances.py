"""
Integration tests for scheduled job instances.

Tests:
- Reporting list joined with schedule, template and ticket
- Instance status updates
- Ticket status changes mirrored onto the instance
"""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.schedule_generation_service import ScheduleGenerationService
from api.services.scheduled_instance_service import ScheduledInstanceService
from api.services.ticket_service import TicketService
from core.exceptions import NotFoundError
from crud import scheduled_instance_crud
from db.enums import InstanceStatus, TicketStatus
from db.models import Ticket
from tests.factories import ScheduledJobInstanceFactory


@pytest.fixture
def tickets() -> TicketService:
    return TicketService(number_prefix="TKT")


@pytest.fixture
def instances() -> ScheduledInstanceService:
    return ScheduledInstanceService()


async def _fire(db: AsyncSession, tickets: TicketService) -> Ticket:
    engine = ScheduleGenerationService(tickets=tickets)
    assert await engine.generate_due_tickets(db, date(2025, 1, 1)) == 1
    return (await db.execute(select(Ticket))).scalar_one()


class TestListInstances:
    """Tests for list_instances()."""

    async def test_list_joins_schedule_template_and_ticket(
        self, db_session: AsyncSession, tickets, instances, monthly_schedule, job_template
    ):
        ticket = await _fire(db_session, tickets)

        result = await instances.list_instances(db_session)

        assert result.total == 1
        row = result.instances[0]
        assert row.job_schedule_id == monthly_schedule.id
        assert row.schedule_name == monthly_schedule.name
        assert row.template_name == job_template.name
        assert row.ticket_id == ticket.id
        assert row.ticket_number == ticket.ticket_number
        assert row.ticket_subject == "Service Plant A"
        assert row.ticket_status == "open"
        assert row.due_date == date(2025, 1, 1)
        assert row.status == "created"

    async def test_list_ordered_by_due_date_descending(
        self, db_session: AsyncSession, instances, monthly_schedule
    ):
        for due in (date(2025, 1, 1), date(2025, 3, 2), date(2025, 1, 31)):
            db_session.add(
                ScheduledJobInstanceFactory.create(
                    job_schedule_id=monthly_schedule.id, due_date=due
                )
            )
        await db_session.commit()

        result = await instances.list_instances(db_session)

        assert [row.due_date for row in result.instances] == [
            date(2025, 3, 2),
            date(2025, 1, 31),
            date(2025, 1, 1),
        ]
        assert all(row.ticket_number is None for row in result.instances)

    async def test_empty_list(self, db_session: AsyncSession, instances):
        result = await instances.list_instances(db_session)
        assert result.total == 0
        assert result.instances == []


class TestUpdateInstanceStatus:
    """Tests for update_status()."""

    async def test_marks_instance_completed(
        self, db_session: AsyncSession, instances, monthly_schedule
    ):
        instance = ScheduledJobInstanceFactory.create(
            job_schedule_id=monthly_schedule.id, due_date=date(2025, 1, 1)
        )
        db_session.add(instance)
        await db_session.commit()

        updated = await instances.update_status(
            db_session, instance.id, InstanceStatus.COMPLETED
        )
        assert updated.status == "completed"

    async def test_missing_instance(self, db_session: AsyncSession, instances):
        with pytest.raises(NotFoundError):
            await instances.update_status(db_session, uuid4(), InstanceStatus.CANCELLED)


class TestTicketStatusSync:
    """Ticket status changes reported back to the instance."""

    @pytest.mark.parametrize(
        "ticket_status,instance_status",
        [
            (TicketStatus.RESOLVED, "completed"),
            (TicketStatus.CLOSED, "completed"),
            (TicketStatus.CANCELLED, "cancelled"),
            (TicketStatus.ASSIGNED, "created"),
        ],
    )
    async def test_instance_follows_ticket(
        self,
        db_session: AsyncSession,
        tickets,
        monthly_schedule,
        ticket_status,
        instance_status,
    ):
        ticket = await _fire(db_session, tickets)

        updated = await tickets.update_ticket_status(db_session, ticket.id, ticket_status)

        assert updated.status == ticket_status.value
        instance = await scheduled_instance_crud.get_instance_by_ticket(db_session, ticket.id)
        assert instance.status == instance_status

    async def test_missing_ticket(self, db_session: AsyncSession, tickets):
        with pytest.raises(NotFoundError):
            await tickets.update_ticket_status(db_session, uuid4(), TicketStatus.RESOLVED)
