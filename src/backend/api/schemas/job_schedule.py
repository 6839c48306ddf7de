"""
Job schedule schemas for API validation and serialization.
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from core.schema_base import HTTPSchemaModel
from db.enums import FrequencyType


def _blank_to_none(v):
    # Forms submit an empty string for "no end date"
    if isinstance(v, str) and not v.strip():
        return None
    return v


class JobScheduleCreate(HTTPSchemaModel):
    """Schema for creating a job schedule.

    `frequency_value` is a month count and only applies to custom
    frequencies. `next_due_date` is computed from `start_date` when omitted.
    """
    job_template_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    frequency_type: FrequencyType
    frequency_value: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None
    advance_notice_days: int = 14
    next_due_date: Optional[date] = None
    active: bool = True

    @field_validator("end_date", "next_due_date", mode="before")
    @classmethod
    def normalize_blank_dates(cls, v):
        return _blank_to_none(v)


class JobScheduleUpdate(HTTPSchemaModel):
    """Schema for a partial job schedule update.

    Changing the frequency does not recompute `next_due_date`.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    frequency_type: Optional[FrequencyType] = None
    frequency_value: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    advance_notice_days: Optional[int] = None
    next_due_date: Optional[date] = None
    active: Optional[bool] = None

    @field_validator("end_date", "next_due_date", mode="before")
    @classmethod
    def normalize_blank_dates(cls, v):
        return _blank_to_none(v)


class JobScheduleRead(HTTPSchemaModel):
    """Job schedule with its template name."""
    id: UUID
    job_template_id: UUID
    job_template_name: Optional[str] = None
    name: str
    frequency_type: str
    frequency_value: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None
    advance_notice_days: int
    next_due_date: date
    active: bool
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, schedule) -> "JobScheduleRead":
        return cls(
            id=schedule.id,
            job_template_id=schedule.job_template_id,
            job_template_name=(
                schedule.job_template.name if schedule.job_template else None
            ),
            name=schedule.name,
            frequency_type=schedule.frequency_type,
            frequency_value=schedule.frequency_value,
            start_date=schedule.start_date,
            end_date=schedule.end_date,
            advance_notice_days=schedule.advance_notice_days,
            next_due_date=schedule.next_due_date,
            active=schedule.active,
            created_by=schedule.created_by,
            created_at=schedule.created_at,
            updated_at=schedule.updated_at,
        )


class JobScheduleListResponse(HTTPSchemaModel):
    """Response for listing job schedules."""
    schedules: List[JobScheduleRead]
    total: int


class NextDueDateRead(HTTPSchemaModel):
    """Preview of the due date that follows `current_date`."""
    current_date: date
    frequency_type: str
    frequency_value: Optional[int] = None
    next_due_date: date
