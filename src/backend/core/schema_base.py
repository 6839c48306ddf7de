"""
Base schema model for API payloads.

Provides camelCase field aliases for the admin UI, ISO date/datetime
serialization, and ORM conversion for all Pydantic schemas.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, field_serializer


def to_camel(string: str) -> str:
    """
    Convert snake_case to camelCase.

    Example:
        >>> to_camel("next_due_date")
        'nextDueDate'
    """
    parts = string.split("_")
    return parts[0] + "".join(word.capitalize() for word in parts[1:])


def serialize_datetime(dt: datetime | None) -> str | None:
    """
    Serialize datetime to ISO 8601 with a 'Z' suffix.

    Timestamps are stored as naive UTC. Aware values are converted to UTC
    first so the suffix is always truthful.
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)

    return dt.isoformat() + "Z"


class HTTPSchemaModel(BaseModel):
    """
    Base model for all HTTP API schemas.

    - camelCase aliases on output, snake_case or camelCase accepted on input
    - from_attributes=True so ORM rows validate directly
    - datetimes serialized with a 'Z' suffix; plain dates stay YYYY-MM-DD
    """

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_serializer("*", mode="wrap")
    @classmethod
    def serialize_any_datetime(cls, value: Any, handler: Any) -> Any:
        if isinstance(value, datetime):
            return serialize_datetime(value)
        return handler(value)
