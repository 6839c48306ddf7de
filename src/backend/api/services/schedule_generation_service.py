"""Recurring ticket generation engine.

One pass walks every active job schedule and, for each schedule whose
advance-notice window has opened, creates a ticket and a scheduled job
instance and advances the schedule's `next_due_date` cursor.

Each firing runs in its own SAVEPOINT and is committed on its own, so a
failing schedule never blocks the others and a firing is never half
applied. The unique (job_schedule_id, due_date) constraint on instances
is the final guard against two overlapping passes firing the same date.

A schedule fires at most once per pass. A schedule that missed several
periods catches up one period per pass.
"""

from collections import Counter
from datetime import date, datetime, timedelta
from enum import Enum
from time import monotonic
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.ticket import TicketCreate
from api.services.frequency import compute_next_due_date
from api.services.placeholders import build_placeholder_context, render_placeholders
from api.services.ticket_service import TicketService, ticket_service
from core.config import settings
from core.exceptions import DuplicateFiringError
from core.logging_config import ScheduleLogger
from core.metrics import (
    track_firing_failure,
    track_generation_run,
    track_schedule_exhausted,
    track_ticket_generated,
)
from crud import job_schedule_crud, scheduled_instance_crud
from db.enums import InstanceStatus, TicketStatus, TicketType
from db.models import JobSchedule, ScheduledJobInstance


def schedule_today() -> date:
    """Today's date in the configured scheduling timezone."""
    return datetime.now(ZoneInfo(settings.schedule.timezone)).date()


class FiringOutcome(str, Enum):
    """What a pass did with one schedule."""

    GENERATED = "generated"
    NOT_DUE = "not_due"
    SKIPPED = "skipped"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class ScheduleGenerationService:
    """Creates tickets for job schedules that have come due."""

    def __init__(self, tickets: Optional[TicketService] = None):
        self.tickets = tickets or ticket_service
        self.schedule_log = ScheduleLogger()

    async def generate_due_tickets(
        self,
        db: AsyncSession,
        as_of_date: Optional[date] = None,
        trigger: str = "api",
    ) -> int:
        """Run one generation pass.

        Safe to call repeatedly: a second pass with the same `as_of_date`
        and no data changes creates nothing.

        Args:
            db: Database session
            as_of_date: Date to evaluate schedules against (default: today)
            trigger: Label for metrics (api, apscheduler, celery)

        Returns:
            Number of tickets created by this pass
        """
        as_of = as_of_date or schedule_today()
        started = monotonic()
        outcomes: Counter = Counter()

        async with track_generation_run(trigger):
            schedules = await job_schedule_crud.list_active_schedules(db)
            self.schedule_log.run_started(as_of, len(schedules))

            for schedule in schedules:
                outcomes[await self._process_schedule(db, schedule, as_of)] += 1

        generated = outcomes[FiringOutcome.GENERATED]
        self.schedule_log.run_finished(
            as_of,
            generated,
            monotonic() - started,
            skipped=outcomes[FiringOutcome.SKIPPED],
            exhausted=outcomes[FiringOutcome.EXHAUSTED],
            failed=outcomes[FiringOutcome.FAILED],
        )
        return generated

    async def _process_schedule(
        self, db: AsyncSession, schedule: JobSchedule, as_of: date
    ) -> FiringOutcome:
        """Evaluate one schedule and fire it if due."""
        # Attributes of `schedule` expire if its savepoint rolls back
        schedule_id = schedule.id
        schedule_name = schedule.name
        due_date = schedule.next_due_date
        end_date = schedule.end_date
        frequency_type = schedule.frequency_type

        if end_date is not None and due_date > end_date:
            return await self._deactivate_exhausted(db, schedule, end_date)

        trigger_date = due_date - timedelta(days=schedule.advance_notice_days)
        if as_of < trigger_date:
            return FiringOutcome.NOT_DUE

        try:
            if await scheduled_instance_crud.instance_exists(db, schedule_id, due_date):
                self.schedule_log.duplicate_skipped(schedule_id, schedule_name, due_date)
                return FiringOutcome.SKIPPED

            template = schedule.job_template
            if template is None or not template.active:
                self.schedule_log.schedule_skipped(
                    schedule_id, schedule_name, "job template is inactive"
                )
                return FiringOutcome.SKIPPED

            async with db.begin_nested():
                ticket = await self._create_ticket(db, schedule, template, due_date, as_of)

                db.add(
                    ScheduledJobInstance(
                        job_schedule_id=schedule_id,
                        ticket_id=ticket.id,
                        due_date=due_date,
                        created_date=as_of,
                        status=InstanceStatus.CREATED.value,
                    )
                )
                try:
                    await db.flush()
                except IntegrityError as e:
                    raise DuplicateFiringError(schedule_id, due_date) from e

                next_due_date = compute_next_due_date(
                    due_date, frequency_type, schedule.frequency_value
                )
                schedule.next_due_date = next_due_date
                await db.flush()
                ticket_number = ticket.ticket_number

            await db.commit()
        except DuplicateFiringError:
            self.schedule_log.duplicate_skipped(schedule_id, schedule_name, due_date)
            track_firing_failure("duplicate")
            return FiringOutcome.SKIPPED
        except SQLAlchemyError as e:
            self.schedule_log.firing_failed(schedule_id, schedule_name, str(e))
            track_firing_failure("database")
            return FiringOutcome.FAILED
        except Exception as e:
            # One bad schedule must not stop the pass
            self.schedule_log.firing_failed(schedule_id, schedule_name, str(e))
            track_firing_failure("error")
            return FiringOutcome.FAILED

        self.schedule_log.ticket_generated(
            schedule_id, schedule_name, ticket_number, due_date, next_due_date
        )
        track_ticket_generated(frequency_type)
        return FiringOutcome.GENERATED

    async def _create_ticket(
        self, db: AsyncSession, schedule: JobSchedule, template, due_date: date, as_of: date
    ):
        target_completion_date = due_date + timedelta(days=template.estimated_duration_days)
        context = build_placeholder_context(
            template, schedule, due_date, target_completion_date
        )

        ticket_data = TicketCreate(
            site_id=template.site_id,
            site_owner_company_id=template.site_owner_company_id,
            ticket_type=TicketType.JOB,
            priority=template.priority,
            date_raised=as_of,
            who_raised_id=template.created_by or settings.schedule.system_actor_id,
            target_completion_date=target_completion_date,
            due_date=due_date,
            assigned_company_id=template.assigned_company_id,
            assigned_contact_id=template.assigned_contact_id,
            subject_title=render_placeholders(template.subject_title, context),
            description=render_placeholders(template.description_template, context),
            status=TicketStatus.OPEN,
        )
        return await self.tickets.create_ticket(db, ticket_data)

    async def _deactivate_exhausted(
        self, db: AsyncSession, schedule: JobSchedule, end_date: date
    ) -> FiringOutcome:
        schedule_id = schedule.id
        schedule_name = schedule.name
        due_date = schedule.next_due_date

        try:
            async with db.begin_nested():
                schedule.active = False
                await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            self.schedule_log.firing_failed(schedule_id, schedule_name, str(e))
            track_firing_failure("database")
            return FiringOutcome.FAILED

        self.schedule_log.schedule_exhausted(schedule_id, schedule_name, due_date, end_date)
        track_schedule_exhausted()
        return FiringOutcome.EXHAUSTED


schedule_generation_service = ScheduleGenerationService()
