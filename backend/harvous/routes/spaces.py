"""Space route handlers: /api/spaces."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from harvous.database import get_db_session
from harvous.dependencies import get_current_user_id
from harvous.schemas.common import MessageResponse
from harvous.schemas.thread import SpaceCreate, SpaceResponse, SpaceUpdate
from harvous.services.thread_service import space_service

router = APIRouter(prefix="/api/spaces", tags=["Spaces"])


@router.post("", response_model=SpaceResponse, status_code=status.HTTP_201_CREATED)
async def create_space(
    body: SpaceCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SpaceResponse:
    return SpaceResponse.model_validate(await space_service.create_space(db, user_id, body))


@router.get("", response_model=List[SpaceResponse])
async def list_spaces(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[SpaceResponse]:
    spaces = await space_service.list_spaces(db, user_id)
    return [SpaceResponse.model_validate(space) for space in spaces]


@router.patch("/{space_id}", response_model=SpaceResponse)
async def update_space(
    space_id: UUID,
    body: SpaceUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SpaceResponse:
    space = await space_service.update_space(db, user_id, space_id, body)
    return SpaceResponse.model_validate(space)


@router.delete(
    "/{space_id}",
    response_model=MessageResponse,
    summary="Delete a space; its threads and notes are detached, not deleted",
)
async def delete_space(
    space_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await space_service.delete_space(db, user_id, space_id)
    return MessageResponse(message="Space deleted")
