"""
Integration tests for the recurring ticket generation engine.

Tests:
- End-to-end firing (ticket, instance, cursor advance)
- Advance-notice window boundary
- Idempotent repeated passes
- Exhaustion past the end date
- One firing per schedule per pass
- Duplicate prevention (pre-check and unique constraint)
- Failure isolation between schedules
- Inactive templates are skipped
- Run summary counts
"""

import logging
import re
from datetime import date
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.schedule_generation_service import ScheduleGenerationService
from api.services.ticket_service import TicketService
from crud import job_schedule_crud, scheduled_instance_crud
from db.models import JobSchedule, JobTemplate, ScheduledJobInstance, Ticket
from tests.factories import (
    JobScheduleFactory,
    JobTemplateFactory,
    ScheduledJobInstanceFactory,
)


async def _count(db: AsyncSession, model) -> int:
    result = await db.execute(select(func.count(model.id)))
    return result.scalar()


async def _reload(db: AsyncSession, schedule: JobSchedule) -> JobSchedule:
    return await job_schedule_crud.get_schedule(db, schedule.id, refresh=True)


async def _add_schedule(db: AsyncSession, template: JobTemplate, **kwargs) -> JobSchedule:
    schedule = JobScheduleFactory.create(job_template_id=template.id, **kwargs)
    db.add(schedule)
    await db.commit()
    return schedule


@pytest.fixture
def engine() -> ScheduleGenerationService:
    return ScheduleGenerationService(tickets=TicketService(number_prefix="TKT"))


class TestEndToEnd:
    """Tests for a single firing."""

    async def test_fires_monthly_schedule(
        self, db_session: AsyncSession, engine, monthly_schedule, job_template
    ):
        created = await engine.generate_due_tickets(db_session, date(2025, 1, 1))

        assert created == 1

        tickets = (await db_session.execute(select(Ticket))).scalars().all()
        assert len(tickets) == 1
        ticket = tickets[0]
        assert ticket.target_completion_date == date(2025, 1, 8)
        assert ticket.due_date == date(2025, 1, 1)
        assert ticket.date_raised == date(2025, 1, 1)
        assert ticket.status == "open"
        assert ticket.ticket_type == "Job"
        assert ticket.subject_title == "Service Plant A"
        assert ticket.description == "Quarterly HVAC service due 2025-01-01"
        assert ticket.site_id == job_template.site_id
        assert ticket.site_owner_company_id == job_template.site_owner_company_id
        assert ticket.assigned_company_id == job_template.assigned_company_id
        assert ticket.assigned_contact_id == job_template.assigned_contact_id
        assert ticket.priority == job_template.priority
        assert re.fullmatch(r"TKT-20250101-[0-9A-F]{6}", ticket.ticket_number)

        instances = (await db_session.execute(select(ScheduledJobInstance))).scalars().all()
        assert len(instances) == 1
        assert instances[0].job_schedule_id == monthly_schedule.id
        assert instances[0].ticket_id == ticket.id
        assert instances[0].due_date == date(2025, 1, 1)
        assert instances[0].created_date == date(2025, 1, 1)
        assert instances[0].status == "created"

        schedule = await _reload(db_session, monthly_schedule)
        assert schedule.next_due_date == date(2025, 1, 31)
        assert schedule.active is True

    async def test_who_raised_is_template_creator(
        self, db_session: AsyncSession, engine, monthly_schedule, job_template
    ):
        creator = uuid4()
        job_template.created_by = creator
        await db_session.commit()

        await engine.generate_due_tickets(db_session, date(2025, 1, 1))

        ticket = (await db_session.execute(select(Ticket))).scalar_one()
        assert ticket.who_raised_id == creator

    async def test_custom_frequency_advances_by_months(
        self, db_session: AsyncSession, engine, job_template
    ):
        schedule = await _add_schedule(
            db_session,
            job_template,
            frequency_type="custom",
            frequency_value=3,
            next_due_date=date(2025, 1, 1),
            advance_notice_days=0,
        )

        assert await engine.generate_due_tickets(db_session, date(2025, 1, 1)) == 1
        assert (await _reload(db_session, schedule)).next_due_date == date(2025, 4, 1)


class TestAdvanceNotice:
    """Tests for the notice window."""

    async def test_not_fired_before_trigger_date(
        self, db_session: AsyncSession, engine, job_template
    ):
        schedule = await _add_schedule(
            db_session,
            job_template,
            start_date=date(2025, 3, 1),
            next_due_date=date(2025, 3, 31),
            advance_notice_days=14,
        )

        assert await engine.generate_due_tickets(db_session, date(2025, 3, 16)) == 0
        assert await _count(db_session, Ticket) == 0
        assert (await _reload(db_session, schedule)).next_due_date == date(2025, 3, 31)

    async def test_fired_on_trigger_date(self, db_session: AsyncSession, engine, job_template):
        schedule = await _add_schedule(
            db_session,
            job_template,
            start_date=date(2025, 3, 1),
            next_due_date=date(2025, 3, 31),
            advance_notice_days=14,
        )

        assert await engine.generate_due_tickets(db_session, date(2025, 3, 17)) == 1

        ticket = (await db_session.execute(select(Ticket))).scalar_one()
        assert ticket.due_date == date(2025, 3, 31)
        assert ticket.date_raised == date(2025, 3, 17)
        assert (await _reload(db_session, schedule)).next_due_date == date(2025, 4, 30)

    async def test_zero_notice_fires_on_due_date_only(
        self, db_session: AsyncSession, engine, monthly_schedule
    ):
        assert await engine.generate_due_tickets(db_session, date(2024, 12, 31)) == 0
        assert await engine.generate_due_tickets(db_session, date(2025, 1, 1)) == 1


class TestIdempotence:
    """Repeated passes must not duplicate work."""

    async def test_second_pass_same_day_creates_nothing(
        self, db_session: AsyncSession, engine, monthly_schedule
    ):
        assert await engine.generate_due_tickets(db_session, date(2025, 1, 1)) == 1
        assert await engine.generate_due_tickets(db_session, date(2025, 1, 1)) == 0

        assert await _count(db_session, Ticket) == 1
        assert await _count(db_session, ScheduledJobInstance) == 1
        assert (await _reload(db_session, monthly_schedule)).next_due_date == date(2025, 1, 31)

    async def test_one_firing_per_pass_when_behind(
        self, db_session: AsyncSession, engine, monthly_schedule
    ):
        """A schedule several periods behind catches up one period per pass."""
        assert await engine.generate_due_tickets(db_session, date(2025, 6, 1)) == 1
        assert (await _reload(db_session, monthly_schedule)).next_due_date == date(2025, 1, 31)

        assert await engine.generate_due_tickets(db_session, date(2025, 6, 1)) == 1
        assert (await _reload(db_session, monthly_schedule)).next_due_date == date(2025, 3, 2)

        due_dates = (
            await db_session.execute(
                select(ScheduledJobInstance.due_date).order_by(ScheduledJobInstance.due_date)
            )
        ).scalars().all()
        assert due_dates == [date(2025, 1, 1), date(2025, 1, 31)]

    async def test_existing_instance_skips_firing(
        self, db_session: AsyncSession, engine, monthly_schedule
    ):
        db_session.add(
            ScheduledJobInstanceFactory.create(
                job_schedule_id=monthly_schedule.id, due_date=date(2025, 1, 1)
            )
        )
        await db_session.commit()

        assert await engine.generate_due_tickets(db_session, date(2025, 1, 1)) == 0
        assert await _count(db_session, Ticket) == 0
        assert (await _reload(db_session, monthly_schedule)).next_due_date == date(2025, 1, 1)

    async def test_unique_constraint_catches_race(
        self, db_session: AsyncSession, engine, monthly_schedule, monkeypatch
    ):
        """When the pre-check misses a concurrent firing, the constraint still holds."""
        db_session.add(
            ScheduledJobInstanceFactory.create(
                job_schedule_id=monthly_schedule.id, due_date=date(2025, 1, 1)
            )
        )
        await db_session.commit()
        monkeypatch.setattr(
            scheduled_instance_crud, "instance_exists", AsyncMock(return_value=False)
        )

        assert await engine.generate_due_tickets(db_session, date(2025, 1, 1)) == 0

        # The savepoint rolled back the ticket and left the cursor alone
        assert await _count(db_session, Ticket) == 0
        assert await _count(db_session, ScheduledJobInstance) == 1
        assert (await _reload(db_session, monthly_schedule)).next_due_date == date(2025, 1, 1)


class TestExhaustion:
    """Schedules past their end date are deactivated."""

    async def test_exhausted_schedule_deactivated_without_ticket(
        self, db_session: AsyncSession, engine, job_template
    ):
        schedule = await _add_schedule(
            db_session,
            job_template,
            start_date=date(2024, 12, 1),
            end_date=date(2025, 1, 1),
            next_due_date=date(2025, 2, 1),
        )

        # Far before the trigger date: exhaustion does not depend on asOfDate
        assert await engine.generate_due_tickets(db_session, date(2024, 12, 1)) == 0

        assert await _count(db_session, Ticket) == 0
        reloaded = await _reload(db_session, schedule)
        assert reloaded.active is False
        assert reloaded.next_due_date == date(2025, 2, 1)

    async def test_due_on_end_date_still_fires(
        self, db_session: AsyncSession, engine, job_template
    ):
        schedule = await _add_schedule(
            db_session,
            job_template,
            start_date=date(2025, 1, 1),
            end_date=date(2025, 1, 31),
            next_due_date=date(2025, 1, 31),
            advance_notice_days=0,
        )

        assert await engine.generate_due_tickets(db_session, date(2025, 1, 31)) == 1
        assert await engine.generate_due_tickets(db_session, date(2025, 3, 2)) == 0

        reloaded = await _reload(db_session, schedule)
        assert reloaded.next_due_date == date(2025, 3, 2)
        assert reloaded.active is False


class TestSkippedSchedules:
    """Schedules the engine must leave alone."""

    async def test_inactive_schedule_ignored(self, db_session: AsyncSession, engine, job_template):
        await _add_schedule(
            db_session, job_template, next_due_date=date(2025, 1, 1), active=False
        )
        assert await engine.generate_due_tickets(db_session, date(2025, 1, 1)) == 0

    async def test_inactive_template_skipped(
        self, db_session: AsyncSession, engine, monthly_schedule, job_template, caplog
    ):
        job_template.active = False
        await db_session.commit()

        with caplog.at_level(logging.WARNING, logger="schedule.generation"):
            assert await engine.generate_due_tickets(db_session, date(2025, 1, 1)) == 0

        assert (await _reload(db_session, monthly_schedule)).next_due_date == date(2025, 1, 1)
        skipped = [r for r in caplog.records if r.name == "schedule.generation"]
        assert any("job template is inactive" in r.getMessage() for r in skipped)
        assert any(str(monthly_schedule.id) in r.getMessage() for r in skipped)


class TestRunSummary:
    """The closing log line reports every outcome of the pass."""

    async def test_counts_generated_exhausted_and_failed(
        self,
        db_session: AsyncSession,
        job_template,
        monthly_schedule,
        site,
        contractor,
        contact,
        caplog,
    ):
        await _add_schedule(
            db_session,
            job_template,
            start_date=date(2024, 12, 1),
            end_date=date(2025, 1, 1),
            next_due_date=date(2025, 2, 1),
        )
        broken_template = JobTemplateFactory.create(
            site=site,
            assigned_company_id=contractor.id,
            assigned_contact_id=contact.id,
            subject_title="Broken job",
        )
        db_session.add(broken_template)
        await db_session.commit()
        await _add_schedule(
            db_session, broken_template, next_due_date=date(2025, 1, 1), advance_notice_days=0
        )

        engine = ScheduleGenerationService(tickets=FailingTicketService("Broken job"))
        with caplog.at_level(logging.INFO, logger="schedule.generation"):
            assert await engine.generate_due_tickets(db_session, date(2025, 1, 1)) == 1

        assert (
            "Tickets generated: 1 | Skipped: 0 | Exhausted: 1 | Failed: 1" in caplog.text
        )

    async def test_counts_skipped(
        self, db_session: AsyncSession, engine, monthly_schedule, caplog
    ):
        await engine.generate_due_tickets(db_session, date(2025, 1, 1))
        db_session.add(
            ScheduledJobInstanceFactory.create(
                job_schedule_id=monthly_schedule.id, due_date=date(2025, 1, 31)
            )
        )
        await db_session.commit()

        with caplog.at_level(logging.INFO, logger="schedule.generation"):
            assert await engine.generate_due_tickets(db_session, date(2025, 1, 31)) == 0

        assert "Tickets generated: 0 | Skipped: 1 | Exhausted: 0 | Failed: 0" in caplog.text


class FailingTicketService(TicketService):
    """Ticket collaborator that fails for one site's template."""

    def __init__(self, failing_subject: str):
        super().__init__(number_prefix="TKT")
        self.failing_subject = failing_subject

    async def create_ticket(self, db, ticket_data):
        if ticket_data.subject_title == self.failing_subject:
            raise RuntimeError("ticket store unavailable")
        return await super().create_ticket(db, ticket_data)


class TestFailureIsolation:
    """One failing schedule does not stop the pass."""

    async def test_failing_schedule_skipped_others_fire(
        self, db_session: AsyncSession, job_template, monthly_schedule, site, contractor, contact
    ):
        broken_template = JobTemplateFactory.create(
            site=site,
            assigned_company_id=contractor.id,
            assigned_contact_id=contact.id,
            subject_title="Broken job",
        )
        db_session.add(broken_template)
        await db_session.commit()
        broken_schedule = await _add_schedule(
            db_session,
            broken_template,
            next_due_date=date(2025, 1, 1),
            advance_notice_days=0,
        )

        engine = ScheduleGenerationService(tickets=FailingTicketService("Broken job"))
        assert await engine.generate_due_tickets(db_session, date(2025, 1, 1)) == 1

        assert await _count(db_session, Ticket) == 1
        assert await _count(db_session, ScheduledJobInstance) == 1
        assert (await _reload(db_session, monthly_schedule)).next_due_date == date(2025, 1, 31)
        assert (await _reload(db_session, broken_schedule)).next_due_date == date(2025, 1, 1)

    async def test_duplicate_lookup_error_skips_only_that_schedule(
        self, db_session: AsyncSession, engine, job_template, monthly_schedule, monkeypatch
    ):
        other = await _add_schedule(
            db_session, job_template, next_due_date=date(2025, 1, 1), advance_notice_days=0
        )
        instance_exists = scheduled_instance_crud.instance_exists

        async def lookup_fails_for_monthly(db, schedule_id, due_date):
            if schedule_id == monthly_schedule.id:
                raise OperationalError("SELECT", {}, Exception("connection reset"))
            return await instance_exists(db, schedule_id, due_date)

        monkeypatch.setattr(scheduled_instance_crud, "instance_exists", lookup_fails_for_monthly)

        assert await engine.generate_due_tickets(db_session, date(2025, 1, 5)) == 1

        assert await _count(db_session, Ticket) == 1
        assert (await _reload(db_session, monthly_schedule)).next_due_date == date(2025, 1, 1)
        assert (await _reload(db_session, other)).next_due_date == date(2025, 1, 31)

    async def test_failed_schedule_retried_on_next_pass(
        self, db_session: AsyncSession, monthly_schedule
    ):
        failing = ScheduleGenerationService(tickets=FailingTicketService("Service Plant A"))
        assert await failing.generate_due_tickets(db_session, date(2025, 1, 1)) == 0

        healthy = ScheduleGenerationService(tickets=TicketService(number_prefix="TKT"))
        assert await healthy.generate_due_tickets(db_session, date(2025, 1, 1)) == 1


class TestUniqueConstraint:
    """Storage-level guard on (job_schedule_id, due_date)."""

    async def test_second_instance_for_same_due_date_rejected(
        self, db_session: AsyncSession, monthly_schedule
    ):
        db_session.add(
            ScheduledJobInstanceFactory.create(
                job_schedule_id=monthly_schedule.id, due_date=date(2025, 1, 1)
            )
        )
        await db_session.commit()

        db_session.add(
            ScheduledJobInstanceFactory.create(
                job_schedule_id=monthly_schedule.id, due_date=date(2025, 1, 1)
            )
        )
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()
