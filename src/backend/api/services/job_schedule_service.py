"""Job schedule service.

Validates recurrence rules and manages the schedule records. Only the
generation engine advances `next_due_date` on its own; updates here never
recompute it, even when the frequency changes.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.job_schedule import (
    JobScheduleCreate,
    JobScheduleRead,
    JobScheduleUpdate,
    NextDueDateRead,
)
from api.services.frequency import compute_next_due_date, validate_frequency_value
from core.exceptions import NotFoundError, PersistenceError, ValidationError
from crud import job_schedule_crud, job_template_crud
from db.enums import FrequencyType
from db.models import JobSchedule

logger = logging.getLogger(__name__)


class JobScheduleService:
    """Service for managing job schedules."""

    async def list_schedules(
        self, db: AsyncSession, include_inactive: bool = False
    ) -> List[JobScheduleRead]:
        """List job schedules, newest first."""
        schedules = await job_schedule_crud.list_schedules(db, include_inactive)
        return [JobScheduleRead.from_model(s) for s in schedules]

    async def get_schedule(self, db: AsyncSession, schedule_id: UUID) -> JobScheduleRead:
        """Get a job schedule by ID.

        Raises:
            NotFoundError: schedule does not exist
        """
        schedule = await job_schedule_crud.get_schedule(db, schedule_id)
        if not schedule:
            raise NotFoundError(f"Job schedule {schedule_id} not found")
        return JobScheduleRead.from_model(schedule)

    def calculate_next_due_date(
        self,
        current_date: date,
        frequency_type: FrequencyType,
        frequency_value: Optional[int] = None,
    ) -> NextDueDateRead:
        """Preview the due date following `current_date`."""
        value = self._normalize_frequency_value(frequency_type, frequency_value)
        return NextDueDateRead(
            current_date=current_date,
            frequency_type=frequency_type.value,
            frequency_value=value,
            next_due_date=compute_next_due_date(current_date, frequency_type, value),
        )

    async def create_schedule(
        self,
        db: AsyncSession,
        schedule_data: JobScheduleCreate,
        created_by: Optional[UUID] = None,
    ) -> JobScheduleRead:
        """Create a job schedule bound to an active template.

        The first due date is `next_due_date` when given, otherwise it is
        computed from `start_date` with the schedule's frequency.

        Raises:
            ValidationError: unknown/inactive template, bad dates
            InvalidFrequencyValue: custom frequency without a valid value
        """
        template = await job_template_crud.get_template(db, schedule_data.job_template_id)
        if not template:
            raise ValidationError(f"Job template {schedule_data.job_template_id} not found")
        if not template.active:
            raise ValidationError(f"Job template {template.name} is inactive")

        values = schedule_data.model_dump()
        values["frequency_type"] = schedule_data.frequency_type.value
        values["frequency_value"] = self._normalize_frequency_value(
            schedule_data.frequency_type, schedule_data.frequency_value
        )
        if values["next_due_date"] is None:
            values["next_due_date"] = compute_next_due_date(
                values["start_date"], values["frequency_type"], values["frequency_value"]
            )
        values["created_by"] = created_by

        self._validate_schedule(values)

        schedule = JobSchedule(**values)
        db.add(schedule)

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to create job schedule {schedule_data.name}: {e}")
            raise PersistenceError("Failed to create job schedule") from e

        logger.info(
            f"Created job schedule: {schedule.name} ({schedule.id}) | "
            f"Next due: {schedule.next_due_date.isoformat()}"
        )
        schedule = await job_schedule_crud.get_schedule(db, schedule.id, refresh=True)
        return JobScheduleRead.from_model(schedule)

    async def update_schedule(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        schedule_data: JobScheduleUpdate,
    ) -> JobScheduleRead:
        """Apply a partial update to a job schedule.

        Fields explicitly sent are applied, including zero and false values.
        `next_due_date` only changes when sent explicitly.

        Raises:
            NotFoundError: schedule does not exist
            ValidationError: merged state is invalid, or activating a schedule
                whose template is inactive
        """
        schedule = await job_schedule_crud.get_schedule(db, schedule_id)
        if not schedule:
            raise NotFoundError(f"Job schedule {schedule_id} not found")

        update_data = schedule_data.model_dump(exclude_unset=True)
        for field in ("name", "frequency_type", "start_date", "advance_notice_days",
                      "next_due_date", "active"):
            if field in update_data and update_data[field] is None:
                raise ValidationError(f"{field} cannot be null")

        if "frequency_type" in update_data:
            update_data["frequency_type"] = update_data["frequency_type"].value

        merged: Dict[str, Any] = {
            "frequency_type": schedule.frequency_type,
            "frequency_value": schedule.frequency_value,
            "start_date": schedule.start_date,
            "end_date": schedule.end_date,
            "advance_notice_days": schedule.advance_notice_days,
            "next_due_date": schedule.next_due_date,
        }
        merged.update(update_data)
        if {"frequency_type", "frequency_value"} & update_data.keys():
            update_data["frequency_value"] = merged["frequency_value"] = (
                self._normalize_frequency_value(
                    merged["frequency_type"], merged["frequency_value"]
                )
            )

        self._validate_schedule(merged)

        if update_data.get("active") is True and not schedule.active:
            template = schedule.job_template
            if not template or not template.active:
                raise ValidationError(
                    "Cannot activate a schedule whose job template is inactive"
                )

        for field, value in update_data.items():
            setattr(schedule, field, value)

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to update job schedule {schedule_id}: {e}")
            raise PersistenceError("Failed to update job schedule") from e

        logger.info(f"Updated job schedule: {schedule_id}")
        schedule = await job_schedule_crud.get_schedule(db, schedule_id, refresh=True)
        return JobScheduleRead.from_model(schedule)

    @staticmethod
    def _normalize_frequency_value(
        frequency_type: Any, frequency_value: Optional[int]
    ) -> Optional[int]:
        """Validate custom month counts; drop the value for fixed frequencies."""
        key = frequency_type.value if isinstance(frequency_type, FrequencyType) else frequency_type
        if key != FrequencyType.CUSTOM.value:
            return None
        validate_frequency_value(key, frequency_value)
        return frequency_value

    @staticmethod
    def _validate_schedule(values: Dict[str, Any]) -> None:
        """Check date ordering and notice window on a complete schedule state."""
        start_date = values["start_date"]
        end_date = values.get("end_date")
        next_due_date = values["next_due_date"]

        if values["advance_notice_days"] < 0:
            raise ValidationError("Advance notice days cannot be negative")
        if end_date is not None and end_date <= start_date:
            raise ValidationError("End date must be after start date")
        if next_due_date < start_date:
            raise ValidationError("Next due date cannot be before start date")


job_schedule_service = JobScheduleService()
