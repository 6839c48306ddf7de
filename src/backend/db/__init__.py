"""
Database models using SQLModel.

Reference data, tickets and the recurring job tables live in a single
module; enums shared with the API schemas are in `db.enums`.
"""
from .enums import FrequencyType, InstanceStatus, Priority, TicketStatus, TicketType
from .models import (
    Company,
    CompanyContact,
    JobSchedule,
    JobTemplate,
    ScheduledJobInstance,
    Site,
    TableModel,
    Ticket,
    utc_now,
)

__all__ = [
    "FrequencyType",
    "InstanceStatus",
    "Priority",
    "TicketStatus",
    "TicketType",
    "Company",
    "CompanyContact",
    "JobSchedule",
    "JobTemplate",
    "ScheduledJobInstance",
    "Site",
    "TableModel",
    "Ticket",
    "utc_now",
]
