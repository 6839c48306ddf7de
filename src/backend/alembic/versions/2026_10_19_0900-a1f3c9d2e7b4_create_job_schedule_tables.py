"""create_job_schedule_tables

Revision ID: a1f3c9d2e7b4
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a1f3c9d2e7b4"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    # Reference data (managed by other screens, read by templates)
    op.create_table(
        "companies",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "sites",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("owner_company_id", sa.UUID(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sites_owner_company_id", "sites", ["owner_company_id"])

    op.create_table(
        "company_contacts",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("company_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_company_contacts_company_id", "company_contacts", ["company_id"])

    op.create_table(
        "tickets",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("ticket_number", sa.String(length=50), nullable=False),
        sa.Column("site_id", sa.UUID(), nullable=False),
        sa.Column("site_owner_company_id", sa.UUID(), nullable=False),
        sa.Column("ticket_type", sa.String(length=20), nullable=False),
        sa.Column("priority", sa.String(length=20), nullable=False),
        sa.Column("date_raised", sa.Date(), nullable=False),
        sa.Column("who_raised_id", sa.UUID(), nullable=True),
        sa.Column("target_completion_date", sa.Date(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("assigned_company_id", sa.UUID(), nullable=True),
        sa.Column("assigned_contact_id", sa.UUID(), nullable=True),
        sa.Column("subject_title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["site_id"], ["sites.id"]),
        sa.ForeignKeyConstraint(["site_owner_company_id"], ["companies.id"]),
        sa.ForeignKeyConstraint(["assigned_company_id"], ["companies.id"]),
        sa.ForeignKeyConstraint(["assigned_contact_id"], ["company_contacts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("ticket_number"),
    )
    op.create_index("ix_tickets_site_id", "tickets", ["site_id"])
    op.create_index("ix_tickets_status", "tickets", ["status"])

    # Recurring jobs
    op.create_table(
        "job_templates",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("site_id", sa.UUID(), nullable=False),
        sa.Column("site_owner_company_id", sa.UUID(), nullable=False),
        sa.Column("ticket_type", sa.String(length=20), nullable=False, server_default="Job"),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="medium"),
        sa.Column("assigned_company_id", sa.UUID(), nullable=False),
        sa.Column("assigned_contact_id", sa.UUID(), nullable=False),
        sa.Column("subject_title", sa.String(length=500), nullable=False),
        sa.Column("description_template", sa.Text(), nullable=True),
        sa.Column("estimated_duration_days", sa.Integer(), nullable=False, server_default="7"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.UUID(), nullable=True),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["site_id"], ["sites.id"]),
        sa.ForeignKeyConstraint(["site_owner_company_id"], ["companies.id"]),
        sa.ForeignKeyConstraint(["assigned_company_id"], ["companies.id"]),
        sa.ForeignKeyConstraint(["assigned_contact_id"], ["company_contacts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "estimated_duration_days >= 0",
            name="ck_job_templates_duration_non_negative",
        ),
    )
    op.create_index("ix_job_templates_active", "job_templates", ["active"])

    op.create_table(
        "job_schedules",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("job_template_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("frequency_type", sa.String(length=20), nullable=False),
        sa.Column("frequency_value", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("advance_notice_days", sa.Integer(), nullable=False, server_default="14"),
        sa.Column("next_due_date", sa.Date(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.UUID(), nullable=True),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["job_template_id"], ["job_templates.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "advance_notice_days >= 0",
            name="ck_job_schedules_advance_notice_non_negative",
        ),
        sa.CheckConstraint(
            "frequency_value IS NULL OR frequency_value >= 1",
            name="ck_job_schedules_frequency_value_positive",
        ),
    )
    op.create_index("ix_job_schedules_active", "job_schedules", ["active"])
    op.create_index("ix_job_schedules_job_template_id", "job_schedules", ["job_template_id"])

    op.create_table(
        "scheduled_job_instances",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("job_schedule_id", sa.UUID(), nullable=False),
        sa.Column("ticket_id", sa.UUID(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("created_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="created"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["job_schedule_id"], ["job_schedules.id"]),
        sa.ForeignKeyConstraint(["ticket_id"], ["tickets.id"]),
        sa.PrimaryKeyConstraint("id"),
        # Storage-level guard against firing a schedule twice for one due date
        sa.UniqueConstraint(
            "job_schedule_id",
            "due_date",
            name="uq_scheduled_job_instances_schedule_due",
        ),
    )
    op.create_index("ix_scheduled_job_instances_ticket_id", "scheduled_job_instances", ["ticket_id"])
    op.create_index("ix_scheduled_job_instances_due_date", "scheduled_job_instances", ["due_date"])


def downgrade() -> None:
    op.drop_table("scheduled_job_instances")
    op.drop_table("job_schedules")
    op.drop_table("job_templates")
    op.drop_table("tickets")
    op.drop_table("company_contacts")
    op.drop_table("sites")
    op.drop_table("companies")
