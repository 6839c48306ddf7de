"""
Base CRUD operations as plain functions.

Provides reusable database operations that can be used across different models.
"""
from typing import Any, Dict, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

ModelType = TypeVar("ModelType", bound=SQLModel)


async def find_by_id(
    db: AsyncSession,
    model: Type[ModelType],
    id_value: Any,
    *,
    populate_existing: bool = False,
) -> Optional[ModelType]:
    """
    Find a single record by ID.

    Args:
        db: Database session
        model: SQLModel class
        id_value: The ID value to search for
        populate_existing: Refresh an already-loaded identity (and its
            selectin relationships) from the row instead of reusing it

    Returns:
        Model instance or None if not found
    """
    stmt = select(model).where(model.id == id_value)
    if populate_existing:
        stmt = stmt.execution_options(populate_existing=True)

    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def count(
    db: AsyncSession,
    model: Type[ModelType],
    *,
    filters: Optional[Dict[str, Any]] = None,
) -> int:
    """Count records matching filters."""
    stmt = select(func.count(model.id))

    if filters:
        for field, value in filters.items():
            if value is not None:
                stmt = stmt.where(getattr(model, field) == value)

    result = await db.execute(stmt)
    return result.scalar()


async def create(
    db: AsyncSession,
    model: Type[ModelType],
    *,
    obj_in: Dict[str, Any],
    commit: bool = True,
) -> ModelType:
    """
    Create a new record.

    With commit=False the row is only flushed, so the caller's transaction
    (or savepoint) decides whether it persists.
    """
    db_obj = model(**obj_in)
    db.add(db_obj)

    if commit:
        await db.commit()
        await db.refresh(db_obj)
    else:
        await db.flush()

    return db_obj


async def exists(
    db: AsyncSession,
    model: Type[ModelType],
    *,
    filters: Dict[str, Any],
) -> bool:
    """Check if a record exists matching filters."""
    return await count(db, model, filters=filters) > 0
