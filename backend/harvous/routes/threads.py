"""Thread route handlers: /api/threads."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from harvous.database import get_db_session
from harvous.dependencies import get_current_user_id
from harvous.schemas.common import ErrorResponse, MessageResponse
from harvous.schemas.thread import ThreadCreate, ThreadResponse, ThreadUpdate
from harvous.services.thread_service import thread_service

router = APIRouter(prefix="/api/threads", tags=["Threads"])


@router.post(
    "",
    response_model=ThreadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Space not found", "model": ErrorResponse}},
)
async def create_thread(
    body: ThreadCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ThreadResponse:
    thread = await thread_service.create_thread(db, user_id, body)
    return ThreadResponse.model_validate(thread)


@router.get("", response_model=List[ThreadResponse], summary="List threads, pinned first")
async def list_threads(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[ThreadResponse]:
    return await thread_service.list_threads(db, user_id)


@router.patch("/{thread_id}", response_model=ThreadResponse)
async def update_thread(
    thread_id: UUID,
    body: ThreadUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ThreadResponse:
    thread = await thread_service.update_thread(db, user_id, thread_id, body)
    return ThreadResponse.model_validate(thread)


@router.post("/{thread_id}/pin", response_model=ThreadResponse, summary="Toggle the pinned flag")
async def toggle_pin(
    thread_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ThreadResponse:
    thread = await thread_service.toggle_pin(db, user_id, thread_id)
    return ThreadResponse.model_validate(thread)


@router.delete(
    "/{thread_id}",
    response_model=MessageResponse,
    summary="Delete a thread; its notes are kept",
)
async def delete_thread(
    thread_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await thread_service.delete_thread(db, user_id, thread_id)
    return MessageResponse(message="Thread deleted")
