"""
Database models for the facilities helpdesk scheduling subsystem.

Reference data (companies, sites, contacts) is kept minimal: it is managed
by other screens and only read here. Tickets are written by the ticket
service on behalf of the generation engine.
"""

from datetime import date, datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlmodel import Field, Relationship, SQLModel

from db.enums import InstanceStatus, Priority, TicketStatus, TicketType


def utc_now():
    """
    Get current time in UTC (timezone-naive) for database storage.

    The API layer appends 'Z' on output, see core.schema_base.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TableModel(SQLModel):
    """Base table model with common functionality."""

    pass


# ============================================================================
# REFERENCE DATA
# ============================================================================


class Company(TableModel, table=True):
    """A company that owns sites or is assigned work."""

    __tablename__ = "companies"

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid, primary_key=True),
    )
    name: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True),
        description="Company name",
    )
    active: bool = Field(
        default=True,
        sa_column=Column(Boolean, default=True, nullable=False),
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )


class Site(TableModel, table=True):
    """A physical location owned by a company."""

    __tablename__ = "sites"

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid, primary_key=True),
    )
    name: str = Field(sa_column=Column(String(255), nullable=False))
    address: Optional[str] = Field(
        default=None,
        sa_column=Column(String(500), nullable=True),
    )
    owner_company_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("companies.id"), nullable=False),
        description="Company owning the site",
    )
    active: bool = Field(
        default=True,
        sa_column=Column(Boolean, default=True, nullable=False),
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )

    owner_company: Optional["Company"] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin"}
    )

    __table_args__ = (Index("ix_sites_owner_company_id", "owner_company_id"),)


class CompanyContact(TableModel, table=True):
    """A person at a company who can be assigned work."""

    __tablename__ = "company_contacts"

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid, primary_key=True),
    )
    company_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("companies.id"), nullable=False),
    )
    name: str = Field(sa_column=Column(String(255), nullable=False))
    email: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )
    phone: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
    )
    active: bool = Field(
        default=True,
        sa_column=Column(Boolean, default=True, nullable=False),
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )

    company: Optional["Company"] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin"}
    )

    __table_args__ = (Index("ix_company_contacts_company_id", "company_id"),)


# ============================================================================
# TICKETS
# ============================================================================


class Ticket(TableModel, table=True):
    """A job or fault raised against a site."""

    __tablename__ = "tickets"

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid, primary_key=True),
    )
    ticket_number: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Human-readable ticket number",
    )
    site_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("sites.id"), nullable=False),
    )
    site_owner_company_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("companies.id"), nullable=False),
    )
    ticket_type: str = Field(
        default=TicketType.JOB.value,
        sa_column=Column(String(20), nullable=False),
    )
    priority: str = Field(
        default=Priority.MEDIUM.value,
        sa_column=Column(String(20), nullable=False),
    )
    date_raised: date = Field(sa_column=Column(Date, nullable=False))
    who_raised_id: Optional[UUID] = Field(
        default=None,
        sa_column=Column(Uuid, nullable=True),
        description="User who raised the ticket (managed by the identity service)",
    )
    target_completion_date: Optional[date] = Field(
        default=None,
        sa_column=Column(Date, nullable=True),
    )
    due_date: Optional[date] = Field(
        default=None,
        sa_column=Column(Date, nullable=True),
    )
    assigned_company_id: Optional[UUID] = Field(
        default=None,
        sa_column=Column(Uuid, ForeignKey("companies.id"), nullable=True),
    )
    assigned_contact_id: Optional[UUID] = Field(
        default=None,
        sa_column=Column(Uuid, ForeignKey("company_contacts.id"), nullable=True),
    )
    subject_title: str = Field(sa_column=Column(String(500), nullable=False))
    description: str = Field(default="", sa_column=Column(Text, nullable=False))
    status: str = Field(
        default=TicketStatus.OPEN.value,
        sa_column=Column(String(20), nullable=False),
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={
            "server_default": text("CURRENT_TIMESTAMP"),
            "onupdate": utc_now,
        },
    )

    __table_args__ = (
        Index("ix_tickets_site_id", "site_id"),
        Index("ix_tickets_status", "status"),
    )


# ============================================================================
# RECURRING JOBS
# ============================================================================


class JobTemplate(TableModel, table=True):
    """Reusable blueprint for recurring job tickets.

    Never hard-deleted; deactivating a template deactivates its schedules.
    """

    __tablename__ = "job_templates"

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid, primary_key=True),
    )
    name: str = Field(sa_column=Column(String(255), nullable=False))
    description: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )
    site_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("sites.id"), nullable=False),
    )
    site_owner_company_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("companies.id"), nullable=False),
    )
    ticket_type: str = Field(
        default=TicketType.JOB.value,
        sa_column=Column(String(20), nullable=False),
    )
    priority: str = Field(
        default=Priority.MEDIUM.value,
        sa_column=Column(String(20), nullable=False),
    )
    assigned_company_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("companies.id"), nullable=False),
    )
    assigned_contact_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("company_contacts.id"), nullable=False),
    )
    subject_title: str = Field(
        sa_column=Column(String(500), nullable=False),
        description="Ticket subject, may contain {{placeholders}}",
    )
    description_template: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Ticket description, may contain {{placeholders}}",
    )
    estimated_duration_days: int = Field(
        default=7,
        sa_column=Column(Integer, nullable=False, default=7),
    )
    active: bool = Field(
        default=True,
        sa_column=Column(Boolean, default=True, nullable=False),
    )
    created_by: Optional[UUID] = Field(
        default=None,
        sa_column=Column(Uuid, nullable=True),
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={
            "server_default": text("CURRENT_TIMESTAMP"),
            "onupdate": utc_now,
        },
    )

    # Relationships
    site: Optional["Site"] = Relationship(
        sa_relationship_kwargs={
            "lazy": "selectin",
            "foreign_keys": "JobTemplate.site_id",
        }
    )
    site_owner_company: Optional["Company"] = Relationship(
        sa_relationship_kwargs={
            "lazy": "selectin",
            "foreign_keys": "JobTemplate.site_owner_company_id",
        }
    )
    assigned_company: Optional["Company"] = Relationship(
        sa_relationship_kwargs={
            "lazy": "selectin",
            "foreign_keys": "JobTemplate.assigned_company_id",
        }
    )
    assigned_contact: Optional["CompanyContact"] = Relationship(
        sa_relationship_kwargs={
            "lazy": "selectin",
            "foreign_keys": "JobTemplate.assigned_contact_id",
        }
    )

    __table_args__ = (
        Index("ix_job_templates_active", "active"),
        CheckConstraint(
            "estimated_duration_days >= 0",
            name="ck_job_templates_duration_non_negative",
        ),
    )


class JobSchedule(TableModel, table=True):
    """Recurrence rule bound to one job template.

    `next_due_date` is the cursor advanced by the generation engine.
    """

    __tablename__ = "job_schedules"

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid, primary_key=True),
    )
    job_template_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("job_templates.id"), nullable=False),
    )
    name: str = Field(sa_column=Column(String(255), nullable=False))
    frequency_type: str = Field(sa_column=Column(String(20), nullable=False))
    frequency_value: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, nullable=True),
        description="Month count, only used by custom frequencies",
    )
    start_date: date = Field(sa_column=Column(Date, nullable=False))
    end_date: Optional[date] = Field(
        default=None,
        sa_column=Column(Date, nullable=True),
    )
    advance_notice_days: int = Field(
        default=14,
        sa_column=Column(Integer, nullable=False, default=14),
    )
    next_due_date: date = Field(sa_column=Column(Date, nullable=False))
    active: bool = Field(
        default=True,
        sa_column=Column(Boolean, default=True, nullable=False),
    )
    created_by: Optional[UUID] = Field(
        default=None,
        sa_column=Column(Uuid, nullable=True),
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={
            "server_default": text("CURRENT_TIMESTAMP"),
            "onupdate": utc_now,
        },
    )

    job_template: Optional["JobTemplate"] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin"}
    )

    __table_args__ = (
        Index("ix_job_schedules_active", "active"),
        Index("ix_job_schedules_job_template_id", "job_template_id"),
        CheckConstraint(
            "advance_notice_days >= 0",
            name="ck_job_schedules_advance_notice_non_negative",
        ),
        CheckConstraint(
            "frequency_value IS NULL OR frequency_value >= 1",
            name="ck_job_schedules_frequency_value_positive",
        ),
    )


class ScheduledJobInstance(TableModel, table=True):
    """Audit record of one schedule firing and the ticket it produced."""

    __tablename__ = "scheduled_job_instances"

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid, primary_key=True),
    )
    job_schedule_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("job_schedules.id"), nullable=False),
    )
    ticket_id: Optional[UUID] = Field(
        default=None,
        sa_column=Column(Uuid, ForeignKey("tickets.id"), nullable=True),
    )
    due_date: date = Field(sa_column=Column(Date, nullable=False))
    created_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Run date the firing happened on",
    )
    status: str = Field(
        default=InstanceStatus.CREATED.value,
        sa_column=Column(String(20), nullable=False),
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )

    job_schedule: Optional["JobSchedule"] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin"}
    )
    ticket: Optional["Ticket"] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin"}
    )

    __table_args__ = (
        UniqueConstraint(
            "job_schedule_id",
            "due_date",
            name="uq_scheduled_job_instances_schedule_due",
        ),
        Index("ix_scheduled_job_instances_ticket_id", "ticket_id"),
        Index("ix_scheduled_job_instances_due_date", "due_date"),
    )
