"""Lookup helpers shared by the service classes."""

import logging
from typing import Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from harvous.exceptions import DatabaseError, NotFoundError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


async def get_owned(
    db: AsyncSession,
    model: Type[ModelT],
    user_id: str,
    obj_id: UUID,
    resource: str,
) -> ModelT:
    """
    Fetch a row by id that belongs to user_id.

    Raises:
        NotFoundError: No such row, or it belongs to someone else (→ 404)
        DatabaseError: Query execution failed (→ 500)
    """
    try:
        result = await db.execute(
            select(model).where(model.id == obj_id, model.user_id == user_id)
        )
        obj = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error("Database error fetching %s %s: %s", resource, obj_id, str(e))
        raise DatabaseError(
            message=f"Could not retrieve the {resource}. Please try again.",
            context={f"{resource}_id": str(obj_id)},
        )

    if obj is None:
        raise NotFoundError(resource=resource, resource_id=str(obj_id))
    return obj
