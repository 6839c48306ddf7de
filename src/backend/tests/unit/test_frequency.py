"""
Unit tests for due-date arithmetic.

Tests cover:
- Fixed frequencies (30/90/180/365 days)
- Custom month counts
- Rejection of unusable custom values
- Monotonic cursor advance for every frequency type
"""

from datetime import date, timedelta

import pytest

from api.services.frequency import (
    compute_next_due_date,
    frequency_interval,
    validate_frequency_value,
)
from core.exceptions import InvalidFrequencyValue, ValidationError
from db.enums import FrequencyType


class TestComputeNextDueDate:
    """Tests for compute_next_due_date()."""

    def test_monthly_adds_thirty_days(self):
        assert compute_next_due_date(date(2025, 1, 1), "monthly") == date(2025, 1, 31)

    def test_quarterly_adds_ninety_days(self):
        assert compute_next_due_date(date(2025, 1, 1), "quarterly") == date(2025, 4, 1)

    def test_semi_annually_adds_180_days(self):
        assert compute_next_due_date(date(2025, 1, 1), "semi_annually") == date(2025, 6, 30)

    def test_annually_adds_365_days(self):
        assert compute_next_due_date(date(2025, 1, 1), "annually") == date(2026, 1, 1)

    def test_annually_drifts_over_leap_year(self):
        """365 days from 2024-01-01 lands on 2024-12-31 (2024 is a leap year)."""
        assert compute_next_due_date(date(2024, 1, 1), "annually") == date(2024, 12, 31)

    def test_custom_uses_thirty_day_months(self):
        assert compute_next_due_date(date(2025, 1, 1), "custom", 3) == date(2025, 4, 1)

    def test_custom_single_month(self):
        assert compute_next_due_date(date(2025, 2, 1), "custom", 1) == date(2025, 3, 3)

    def test_accepts_enum_members(self):
        assert compute_next_due_date(
            date(2025, 1, 1), FrequencyType.QUARTERLY
        ) == date(2025, 4, 1)

    def test_fixed_frequency_ignores_value(self):
        """frequency_value only applies to custom frequencies."""
        assert compute_next_due_date(date(2025, 1, 1), "monthly", 12) == date(2025, 1, 31)

    def test_unknown_type_falls_back_to_thirty_days(self):
        assert compute_next_due_date(date(2025, 1, 1), "fortnightly") == date(2025, 1, 31)


class TestCustomFrequencyValidation:
    """Tests for custom frequency value checks."""

    @pytest.mark.parametrize("value", [None, 0, -3])
    def test_rejects_missing_or_non_positive_value(self, value):
        with pytest.raises(InvalidFrequencyValue):
            compute_next_due_date(date(2025, 1, 1), "custom", value)

    def test_rejects_boolean_value(self):
        with pytest.raises(InvalidFrequencyValue):
            validate_frequency_value("custom", True)

    def test_invalid_frequency_is_a_validation_error(self):
        """Surfaces as HTTP 400 through the ValidationError mapping."""
        with pytest.raises(ValidationError):
            validate_frequency_value(FrequencyType.CUSTOM, None)

    def test_fixed_frequency_needs_no_value(self):
        validate_frequency_value("quarterly", None)


class TestCursorMonotonicity:
    """The next due date is always strictly after the current one."""

    @pytest.mark.parametrize(
        "frequency_type,frequency_value",
        [
            ("monthly", None),
            ("quarterly", None),
            ("semi_annually", None),
            ("annually", None),
            ("custom", 1),
            ("custom", 24),
        ],
    )
    def test_next_due_date_moves_forward(self, frequency_type, frequency_value):
        current = date(2025, 1, 1)
        for _ in range(12):
            following = compute_next_due_date(current, frequency_type, frequency_value)
            assert following > current
            current = following

    def test_interval_matches_day_table(self):
        assert frequency_interval("semi_annually") == timedelta(days=180)
        assert frequency_interval("custom", 6) == timedelta(days=180)
