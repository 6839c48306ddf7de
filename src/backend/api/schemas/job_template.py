"""
Job template schemas for API validation and serialization.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from core.schema_base import HTTPSchemaModel
from db.enums import Priority


class JobTemplateBase(HTTPSchemaModel):
    """Base job template schema with common fields."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    site_id: UUID
    site_owner_company_id: Optional[UUID] = Field(
        None, description="Derived from the site when omitted"
    )
    priority: Priority = Priority.MEDIUM
    assigned_company_id: UUID
    assigned_contact_id: UUID
    subject_title: str = Field(..., min_length=1, max_length=500)
    description_template: Optional[str] = None
    estimated_duration_days: int = Field(7, ge=0)


class JobTemplateCreate(JobTemplateBase):
    """Schema for creating a job template."""
    ticket_type: Optional[str] = Field(None, description="Always 'Job'")
    active: bool = True


class JobTemplateUpdate(HTTPSchemaModel):
    """Schema for a partial job template update."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    site_id: Optional[UUID] = None
    site_owner_company_id: Optional[UUID] = None
    ticket_type: Optional[str] = None
    priority: Optional[Priority] = None
    assigned_company_id: Optional[UUID] = None
    assigned_contact_id: Optional[UUID] = None
    subject_title: Optional[str] = Field(None, min_length=1, max_length=500)
    description_template: Optional[str] = None
    estimated_duration_days: Optional[int] = Field(None, ge=0)
    active: Optional[bool] = None


class JobTemplateRead(HTTPSchemaModel):
    """Job template with reference display names."""
    id: UUID
    name: str
    description: Optional[str] = None
    site_id: UUID
    site_name: Optional[str] = None
    site_owner_company_id: UUID
    site_owner_company_name: Optional[str] = None
    ticket_type: str
    priority: str
    assigned_company_id: UUID
    assigned_company_name: Optional[str] = None
    assigned_contact_id: UUID
    assigned_contact_name: Optional[str] = None
    subject_title: str
    description_template: Optional[str] = None
    estimated_duration_days: int
    active: bool
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, template) -> "JobTemplateRead":
        """Build from a JobTemplate row with its relationships loaded."""
        return cls(
            id=template.id,
            name=template.name,
            description=template.description,
            site_id=template.site_id,
            site_name=template.site.name if template.site else None,
            site_owner_company_id=template.site_owner_company_id,
            site_owner_company_name=(
                template.site_owner_company.name if template.site_owner_company else None
            ),
            ticket_type=template.ticket_type,
            priority=template.priority,
            assigned_company_id=template.assigned_company_id,
            assigned_company_name=(
                template.assigned_company.name if template.assigned_company else None
            ),
            assigned_contact_id=template.assigned_contact_id,
            assigned_contact_name=(
                template.assigned_contact.name if template.assigned_contact else None
            ),
            subject_title=template.subject_title,
            description_template=template.description_template,
            estimated_duration_days=template.estimated_duration_days,
            active=template.active,
            created_by=template.created_by,
            created_at=template.created_at,
            updated_at=template.updated_at,
        )


class JobTemplateListResponse(HTTPSchemaModel):
    """Response for listing job templates."""
    templates: List[JobTemplateRead]
    total: int
