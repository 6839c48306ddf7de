"""CRUD lookups for sites, companies and contacts (read-only here)."""
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from crud import base_crud
from db.models import Company, CompanyContact, Site


async def get_site(db: AsyncSession, site_id: UUID) -> Optional[Site]:
    return await base_crud.find_by_id(db, Site, site_id)


async def get_company(db: AsyncSession, company_id: UUID) -> Optional[Company]:
    return await base_crud.find_by_id(db, Company, company_id)


async def get_contact(db: AsyncSession, contact_id: UUID) -> Optional[CompanyContact]:
    return await base_crud.find_by_id(db, CompanyContact, contact_id)
