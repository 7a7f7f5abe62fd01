"""
Tag route handlers.

    GET    /api/tags                         the user's tags
    POST   /api/tags                         create (name unique per user)
    DELETE /api/tags/{tag_id}                delete, unlinking it everywhere
    DELETE /api/notes/{note_id}/tags/{tag_id} remove one tag from one note

Auto tagging lives with the notes routes (POST /api/notes/auto-tags).
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from harvous.database import get_db_session
from harvous.dependencies import get_current_user_id
from harvous.schemas.common import ErrorResponse, MessageResponse
from harvous.schemas.tag import TagCreate, TagResponse
from harvous.services.tag_service import tag_service

router = APIRouter(prefix="/api", tags=["Tags"])


@router.get("/tags", response_model=List[TagResponse])
async def list_tags(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[TagResponse]:
    tags = await tag_service.list_tags(db, user_id)
    return [TagResponse.model_validate(tag) for tag in tags]


@router.post(
    "/tags",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Duplicate tag name", "model": ErrorResponse}},
)
async def create_tag(
    body: TagCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> TagResponse:
    return TagResponse.model_validate(await tag_service.create_tag(db, user_id, body))


@router.delete("/tags/{tag_id}", response_model=MessageResponse)
async def delete_tag(
    tag_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await tag_service.delete_tag(db, user_id, tag_id)
    return MessageResponse(message="Tag deleted")


@router.delete("/notes/{note_id}/tags/{tag_id}", response_model=MessageResponse)
async def remove_tag_from_note(
    note_id: UUID,
    tag_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await tag_service.remove_tag_from_note(db, user_id, note_id, tag_id)
    return MessageResponse(message="Tag removed from note")
