"""
Unit tests for model defaults.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from db.models import JobTemplate, utc_now


class TestUtcNow:
    """Timestamps are stored as naive UTC."""

    def test_naive_utc(self):
        value = utc_now()
        now = datetime.now(timezone.utc).replace(tzinfo=None)

        assert value.tzinfo is None
        assert abs(now - value) < timedelta(seconds=5)

    def test_model_timestamps_default_to_naive_utc(self):
        template = JobTemplate(
            name="Chiller service",
            site_id=uuid4(),
            site_owner_company_id=uuid4(),
            assigned_company_id=uuid4(),
            assigned_contact_id=uuid4(),
            subject_title="Chiller service",
        )

        assert template.created_at.tzinfo is None
        assert template.updated_at.tzinfo is None
