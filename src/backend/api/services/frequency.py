"""Due-date arithmetic for recurring job schedules.

Frequencies are fixed day counts (a "month" is 30 days), not calendar
months. Generated due dates therefore drift across month boundaries over
many cycles; existing schedules depend on this exact arithmetic.
"""

import logging
from datetime import date, timedelta
from typing import Optional, Union

from core.exceptions import InvalidFrequencyValue
from db.enums import FrequencyType

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30

FREQUENCY_DAYS = {
    FrequencyType.MONTHLY.value: 30,
    FrequencyType.QUARTERLY.value: 90,
    FrequencyType.SEMI_ANNUALLY.value: 180,
    FrequencyType.ANNUALLY.value: 365,
}


def _frequency_key(frequency_type: Union[FrequencyType, str, None]) -> Optional[str]:
    if isinstance(frequency_type, FrequencyType):
        return frequency_type.value
    return frequency_type


def validate_frequency_value(
    frequency_type: Union[FrequencyType, str], frequency_value: Optional[int]
) -> None:
    """Raise InvalidFrequencyValue if a custom frequency has no usable month count."""
    if _frequency_key(frequency_type) != FrequencyType.CUSTOM.value:
        return
    if frequency_value is None or isinstance(frequency_value, bool) or frequency_value < 1:
        raise InvalidFrequencyValue(
            "Custom frequency requires a frequency value of at least 1 month"
        )


def frequency_interval(
    frequency_type: Union[FrequencyType, str], frequency_value: Optional[int] = None
) -> timedelta:
    """Return the interval between two due dates for a frequency rule."""
    key = _frequency_key(frequency_type)

    if key == FrequencyType.CUSTOM.value:
        validate_frequency_value(key, frequency_value)
        return timedelta(days=frequency_value * DAYS_PER_MONTH)

    days = FREQUENCY_DAYS.get(key)
    if days is None:
        logger.warning(
            f"Unknown frequency type {frequency_type!r}, using {DAYS_PER_MONTH}-day interval"
        )
        days = DAYS_PER_MONTH
    return timedelta(days=days)


def compute_next_due_date(
    from_date: date,
    frequency_type: Union[FrequencyType, str],
    frequency_value: Optional[int] = None,
) -> date:
    """
    Compute the due date following `from_date`.

    Args:
        from_date: Current due date (or start date for a new schedule)
        frequency_type: monthly, quarterly, semi_annually, annually or custom
        frequency_value: Month count, required and >= 1 for custom

    Returns:
        from_date plus 30/90/180/365 days, or frequency_value * 30 days

    Raises:
        InvalidFrequencyValue: custom frequency without a valid value

    Example:
        >>> compute_next_due_date(date(2025, 1, 1), "quarterly")
        datetime.date(2025, 4, 1)
    """
    return from_date + frequency_interval(frequency_type, frequency_value)
