"""CRUD operations for tickets."""
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from crud import base_crud
from db.models import Ticket


async def get_ticket(
    db: AsyncSession, ticket_id: UUID, *, refresh: bool = False
) -> Optional[Ticket]:
    return await base_crud.find_by_id(db, Ticket, ticket_id, populate_existing=refresh)


async def ticket_number_exists(db: AsyncSession, ticket_number: str) -> bool:
    return await base_crud.exists(
        db, Ticket, filters={"ticket_number": ticket_number}
    )
