"""
String enums shared by models, schemas and services.
Columns store the `.value` so the database stays readable.
"""

from enum import Enum


class FrequencyType(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUALLY = "semi_annually"
    ANNUALLY = "annually"
    CUSTOM = "custom"


class InstanceStatus(str, Enum):
    CREATED = "created"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TicketStatus(str, Enum):
    OPEN = "open"
    ASSIGNED = "assigned"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"
    CLOSED = "closed"


class TicketType(str, Enum):
    JOB = "Job"
    FAULT = "Fault"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
