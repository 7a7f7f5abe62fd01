"""
Harvous Backend - Notes Route Handlers
=======================================

What:  Note CRUD, thread membership, scripture processing and auto tags.
How:   Thin handlers: resolve the user, call NoteService / TagService /
       ScriptureService, shape the response.
Who:   The Astro frontend (dashboard, note editor, thread views).

Route Inventory:
    POST   /api/notes                                     create
    GET    /api/notes                                     list (X-Total-Count)
    POST   /api/notes/auto-tags                           generate|apply|regenerate
    GET    /api/notes/{id}                                detail
    PATCH  /api/notes/{id}                                update
    DELETE /api/notes/{id}                                delete
    POST   /api/notes/{id}/threads                        add to thread
    DELETE /api/notes/{id}/threads/{thread_id}            remove from thread
    POST   /api/notes/{id}/process-scripture-references   link references
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from harvous.database import get_db_session
from harvous.dependencies import get_current_user_id
from harvous.exceptions import ValidationError
from harvous.models.note import Note
from harvous.schemas.common import ErrorResponse, MessageResponse
from harvous.schemas.note import (
    NoteCreate,
    NoteCreateResponse,
    NoteDetailResponse,
    NoteListResponse,
    NoteResponse,
    NoteUpdate,
    ThreadMembershipRequest,
)
from harvous.schemas.scripture import ProcessReferencesRequest, ProcessReferencesResponse
from harvous.schemas.tag import AutoTagRequest, AutoTagResponse, TagSuggestionResponse
from harvous.services.base import get_owned
from harvous.services.note_service import note_service
from harvous.services.scripture_service import scripture_service
from harvous.services.tag_service import tag_service
from harvous.tagging import AutoTagResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])

AUTO_TAG_ACTIONS = ("generate", "apply", "regenerate")


@router.post(
    "",
    response_model=NoteCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Content missing", "model": ErrorResponse},
        404: {"description": "Thread not found", "model": ErrorResponse},
    },
    summary="Create a note",
)
async def create_note(
    body: NoteCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteCreateResponse:
    note, thread_id, applied = await note_service.create_note(db, user_id, body)
    return NoteCreateResponse(
        note=NoteResponse.model_validate(note),
        thread_id=thread_id,
        auto_tags_applied=applied,
    )


@router.get(
    "",
    response_model=NoteListResponse,
    summary="List notes with cursor pagination",
)
async def list_notes(
    response: Response,
    limit: int = Query(default=20, ge=1, le=100),
    cursor: Optional[str] = Query(default=None, description="ISO created_at of the last note seen"),
    thread_id: Optional[UUID] = Query(default=None, alias="threadId"),
    sort: str = Query(default="created_at_desc", pattern="^created_at_(desc|asc)$"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    """
    Page 1: GET /api/notes?limit=20
    Page 2: GET /api/notes?limit=20&cursor=<nextCursor of page 1>
    """
    result = await note_service.list_notes(
        db, user_id, limit=limit, cursor=cursor, thread_id=thread_id, sort=sort,
    )
    response.headers["X-Total-Count"] = str(result.total_count)
    return result


def _suggestions_out(result: AutoTagResult):
    return [
        TagSuggestionResponse(
            keyword=s.keyword,
            category=s.category,
            confidence=s.confidence,
            is_existing=s.is_existing,
            tag_id=s.tag_id,
        )
        for s in result.suggestions
    ]


@router.post(
    "/auto-tags",
    response_model=AutoTagResponse,
    responses={
        400: {"description": "Unknown action or missing note id", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Suggest, apply or regenerate auto tags",
)
async def auto_tags(
    body: AutoTagRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> AutoTagResponse:
    """
    generate:   suggestions for noteTitle/noteContent, nothing is saved
    apply:      generate, then link the suggestions to noteId
    regenerate: drop noteId's auto tags, then apply fresh ones

    For apply/regenerate, a missing title or content falls back to the
    stored note.
    """
    if body.action not in AUTO_TAG_ACTIONS:
        raise ValidationError(
            f"Invalid action '{body.action}'. Must be one of: {', '.join(AUTO_TAG_ACTIONS)}",
            field="action",
        )

    title, content = body.note_title, body.note_content
    note: Optional[Note] = None
    if body.action != "generate":
        if body.note_id is None:
            raise ValidationError(f"noteId is required for action '{body.action}'", field="noteId")
        note = await get_owned(db, Note, user_id, body.note_id, "note")
        title = note.title if title is None else title
        content = note.content if content is None else content

    if body.action == "regenerate":
        result, applied, errors = await tag_service.regenerate_auto_tags(
            db, user_id, note.id, title, content
        )
    else:
        result = await tag_service.generate_auto_tags(db, user_id, title, content)
        applied, errors = None, []
        if body.action == "apply":
            applied, errors = await tag_service.apply_auto_tags(
                db, user_id, note.id, result.suggestions
            )

    return AutoTagResponse(
        action=body.action,
        suggestions=_suggestions_out(result),
        total_found=result.total_found,
        high_confidence=result.high_confidence,
        applied=applied,
        errors=errors,
    )


@router.get(
    "/{note_id}",
    response_model=NoteDetailResponse,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Get a note with tags, threads and scripture metadata",
)
async def get_note(
    note_id: UUID,
    response: Response,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteDetailResponse:
    # Notes are editable, so only the browser may cache and must revalidate.
    response.headers["Cache-Control"] = "private, no-cache"
    return await note_service.get_note_detail(db, user_id, note_id)


@router.patch(
    "/{note_id}",
    response_model=NoteResponse,
    summary="Update a note's title or content",
)
async def update_note(
    note_id: UUID,
    body: NoteUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.update_note(db, user_id, note_id, body)


@router.delete(
    "/{note_id}",
    response_model=MessageResponse,
    summary="Delete a note",
)
async def delete_note(
    note_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await note_service.delete_note(db, user_id, note_id)
    return MessageResponse(message="Note deleted")


@router.post(
    "/{note_id}/threads",
    response_model=MessageResponse,
    summary="Add a note to a thread",
)
async def add_note_to_thread(
    note_id: UUID,
    body: ThreadMembershipRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    added = await note_service.add_thread(db, user_id, note_id, body.thread_id)
    return MessageResponse(message="Note added to thread" if added else "Note already in thread")


@router.delete(
    "/{note_id}/threads/{thread_id}",
    response_model=MessageResponse,
    summary="Remove a note from a thread",
)
async def remove_note_from_thread(
    note_id: UUID,
    thread_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    removed = await note_service.remove_thread(db, user_id, note_id, thread_id)
    return MessageResponse(
        message="Note removed from thread" if removed else "Note was not in thread",
    )


@router.post(
    "/{note_id}/process-scripture-references",
    response_model=ProcessReferencesResponse,
    responses={404: {"description": "Note or thread not found", "model": ErrorResponse}},
    summary="Create or link scripture notes for every reference in a note",
)
async def process_scripture_references(
    note_id: UUID,
    body: Optional[ProcessReferencesRequest] = None,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProcessReferencesResponse:
    thread_id = body.thread_id if body else None
    return await scripture_service.process_note_references(db, user_id, note_id, thread_id)
