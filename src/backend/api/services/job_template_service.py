"""Job template service.

Templates are never deleted. Setting `active=False` deactivates every
schedule bound to the template in the same transaction.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.job_template import (
    JobTemplateCreate,
    JobTemplateRead,
    JobTemplateUpdate,
)
from core.exceptions import NotFoundError, PersistenceError, ValidationError
from crud import job_template_crud, reference_data_crud
from db.enums import TicketType
from db.models import JobTemplate

logger = logging.getLogger(__name__)


class JobTemplateService:
    """Service for managing job templates."""

    async def list_templates(
        self, db: AsyncSession, include_inactive: bool = False
    ) -> List[JobTemplateRead]:
        """List job templates, newest first."""
        templates = await job_template_crud.list_templates(db, include_inactive)
        return [JobTemplateRead.from_model(t) for t in templates]

    async def get_template(self, db: AsyncSession, template_id: UUID) -> JobTemplateRead:
        """Get a job template by ID.

        Raises:
            NotFoundError: template does not exist
        """
        template = await job_template_crud.get_template(db, template_id)
        if not template:
            raise NotFoundError(f"Job template {template_id} not found")
        return JobTemplateRead.from_model(template)

    async def create_template(
        self,
        db: AsyncSession,
        template_data: JobTemplateCreate,
        created_by: Optional[UUID] = None,
    ) -> JobTemplateRead:
        """Create a job template.

        The site owner company is taken from the site; the assigned contact
        must work for the assigned company.

        Raises:
            ValidationError: unresolved references or non-Job ticket type
        """
        self._check_ticket_type(template_data.ticket_type)

        values = template_data.model_dump(exclude={"ticket_type"})
        values["site_owner_company_id"] = await self._resolve_references(db, values)
        values["priority"] = template_data.priority.value
        values["ticket_type"] = TicketType.JOB.value
        values["created_by"] = created_by

        template = JobTemplate(**values)
        db.add(template)

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to create job template {template_data.name}: {e}")
            raise PersistenceError("Failed to create job template") from e

        logger.info(f"Created job template: {template.name} ({template.id})")
        template = await job_template_crud.get_template(db, template.id, refresh=True)
        return JobTemplateRead.from_model(template)

    async def update_template(
        self,
        db: AsyncSession,
        template_id: UUID,
        template_data: JobTemplateUpdate,
    ) -> JobTemplateRead:
        """Apply a partial update to a job template.

        Raises:
            NotFoundError: template does not exist
            ValidationError: unresolved references or ticket type change
        """
        template = await job_template_crud.get_template(db, template_id)
        if not template:
            raise NotFoundError(f"Job template {template_id} not found")

        update_data = template_data.model_dump(exclude_unset=True)
        self._check_ticket_type(update_data.pop("ticket_type", None))

        for field in ("name", "site_id", "assigned_company_id", "assigned_contact_id",
                      "subject_title", "estimated_duration_days", "priority", "active"):
            if field in update_data and update_data[field] is None:
                raise ValidationError(f"{field} cannot be null")

        if "priority" in update_data:
            update_data["priority"] = update_data["priority"].value

        reference_fields = {"site_id", "site_owner_company_id",
                            "assigned_company_id", "assigned_contact_id"}
        if reference_fields & update_data.keys():
            merged = {
                "site_id": template.site_id,
                "assigned_company_id": template.assigned_company_id,
                "assigned_contact_id": template.assigned_contact_id,
                "site_owner_company_id": (
                    None if "site_id" in update_data else template.site_owner_company_id
                ),
            }
            merged.update(update_data)
            update_data["site_owner_company_id"] = await self._resolve_references(db, merged)

        deactivating = template.active and update_data.get("active") is False

        for field, value in update_data.items():
            setattr(template, field, value)

        try:
            if deactivating:
                schedule_ids = await job_template_crud.deactivate_schedules_for_template(
                    db, template_id
                )
                if schedule_ids:
                    logger.info(
                        f"Deactivated {len(schedule_ids)} schedule(s) of job template "
                        f"{template.name} ({template_id})"
                    )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to update job template {template_id}: {e}")
            raise PersistenceError("Failed to update job template") from e

        logger.info(f"Updated job template: {template_id}")
        template = await job_template_crud.get_template(db, template_id, refresh=True)
        return JobTemplateRead.from_model(template)

    @staticmethod
    def _check_ticket_type(ticket_type: Optional[str]) -> None:
        if ticket_type is not None and ticket_type != TicketType.JOB.value:
            raise ValidationError(
                f"Job templates always create '{TicketType.JOB.value}' tickets"
            )

    @staticmethod
    async def _resolve_references(db: AsyncSession, values: Dict[str, Any]) -> UUID:
        """Check site/company/contact references and return the site owner company id."""
        site = await reference_data_crud.get_site(db, values["site_id"])
        if not site:
            raise ValidationError(f"Site {values['site_id']} not found")

        owner_id = values.get("site_owner_company_id")
        if owner_id is not None and owner_id != site.owner_company_id:
            raise ValidationError(
                f"Company {owner_id} does not own site {site.name}"
            )

        company = await reference_data_crud.get_company(db, values["assigned_company_id"])
        if not company:
            raise ValidationError(
                f"Assigned company {values['assigned_company_id']} not found"
            )

        contact = await reference_data_crud.get_contact(db, values["assigned_contact_id"])
        if not contact:
            raise ValidationError(
                f"Assigned contact {values['assigned_contact_id']} not found"
            )
        if contact.company_id != company.id:
            raise ValidationError(
                f"Contact {contact.name} does not belong to company {company.name}"
            )

        return site.owner_company_id


job_template_service = JobTemplateService()
