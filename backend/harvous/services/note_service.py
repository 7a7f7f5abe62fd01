"""
Harvous Backend - Note Service (Business Logic)
================================================

What:  Note CRUD, thread membership, simple-note-id allocation and scripture
       metadata for scripture notes.
How:   Stateless service; each call receives the request's AsyncSession and
       flushes, the get_db_session dependency commits.
Who:   routes/notes.py and ScriptureService (which creates scripture notes).

Create Flow (POST /api/notes):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────────┐
    │ Validate │───▶│ Allocate    │───▶│ Insert note  │───▶│ Auto tags    │
    │ + thread │    │ simple id   │    │ + thread     │    │ (best effort)│
    └──────────┘    └─────────────┘    │ + scripture  │    └──────────────┘
                                       └──────────────┘

    Auto tagging never fails note creation: its errors are logged and the
    note is returned with auto_tags_applied=0.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import asc, delete, desc, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from harvous.config import settings
from harvous.database import utcnow
from harvous.exceptions import DatabaseError, HarvousError, ParseError, ValidationError
from harvous.models.note import NOTE_TYPES, Note, NoteThread
from harvous.models.scripture import ScriptureMetadata
from harvous.models.thread import Thread
from harvous.models.user import UserMetadata
from harvous.schemas.note import (
    NoteCreate,
    NoteDetailResponse,
    NoteListItem,
    NoteListResponse,
    NoteResponse,
    NoteUpdate,
    ScriptureMetadataResponse,
)
from harvous.schemas.tag import TagResponse
from harvous.scripture import format_reference_for_api, parse_reference
from harvous.services.base import get_owned
from harvous.services.tag_service import tag_service
from harvous.utils.html import capitalize_first, html_to_plain_text

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 200


class NoteService:
    """
    Business logic layer for notes.

    Error Handling Strategy:
        HarvousError subclasses propagate unchanged. SQLAlchemy errors are
        logged and wrapped in DatabaseError so no SQL reaches the client.
    """

    # ── Simple note ids ───────────────────────────────────────────────────

    async def next_simple_note_id(self, db: AsyncSession, user_id: str) -> int:
        """
        Allocate the user's next simple note id.

        The counter lives in user_metadata and only increases. A user without
        a counter row starts after their highest existing note.
        """
        meta = await db.get(UserMetadata, user_id, with_for_update=True)
        if meta is None:
            result = await db.execute(
                select(func.max(Note.simple_note_id)).where(Note.user_id == user_id)
            )
            meta = UserMetadata(user_id=user_id, highest_simple_note_id=result.scalar() or 0)
            db.add(meta)

        meta.highest_simple_note_id += 1
        await db.flush()
        return meta.highest_simple_note_id

    # ── Threads ───────────────────────────────────────────────────────────

    async def thread_ids_for_note(self, db: AsyncSession, note_id: UUID) -> List[UUID]:
        result = await db.execute(
            select(NoteThread.thread_id)
            .where(NoteThread.note_id == note_id)
            .order_by(NoteThread.created_at)
        )
        return list(result.scalars().all())

    async def link_thread(self, db: AsyncSession, note_id: UUID, thread: Thread) -> bool:
        """Add note to thread and touch the thread. False if it was already there."""
        existing = await db.execute(
            select(NoteThread.id).where(
                NoteThread.note_id == note_id, NoteThread.thread_id == thread.id
            )
        )
        if existing.scalar_one_or_none() is not None:
            return False
        db.add(NoteThread(note_id=note_id, thread_id=thread.id))
        thread.updated_at = utcnow()
        await db.flush()
        return True

    async def add_thread(
        self, db: AsyncSession, user_id: str, note_id: UUID, thread_id: UUID
    ) -> bool:
        await get_owned(db, Note, user_id, note_id, "note")
        thread = await get_owned(db, Thread, user_id, thread_id, "thread")
        added = await self.link_thread(db, note_id, thread)
        logger.info("Note %s %s thread %s", note_id, "added to" if added else "already in", thread_id)
        return added

    async def remove_thread(
        self, db: AsyncSession, user_id: str, note_id: UUID, thread_id: UUID
    ) -> bool:
        await get_owned(db, Note, user_id, note_id, "note")
        thread = await get_owned(db, Thread, user_id, thread_id, "thread")
        result = await db.execute(
            delete(NoteThread).where(
                NoteThread.note_id == note_id, NoteThread.thread_id == thread_id
            )
        )
        removed = bool(result.rowcount)
        if removed:
            thread.updated_at = utcnow()
        await db.flush()
        return removed

    async def _touch_threads(self, db: AsyncSession, note_id: UUID) -> None:
        await db.execute(
            update(Thread)
            .where(Thread.id.in_(select(NoteThread.thread_id).where(NoteThread.note_id == note_id)))
            .values(updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )

    # ── Scripture metadata ────────────────────────────────────────────────

    def build_scripture_metadata(
        self,
        note_id: UUID,
        user_id: str,
        reference: str,
        original_text: Optional[str] = None,
        translation: Optional[str] = None,
    ) -> ScriptureMetadata:
        """
        Raises:
            ParseError: reference is not a valid scripture reference
        """
        parsed = parse_reference(format_reference_for_api(reference))
        return ScriptureMetadata(
            note_id=note_id,
            user_id=user_id,
            reference=parsed.reference,
            book=parsed.book,
            chapter=parsed.chapter,
            verse=parsed.verse_start,
            verse_end=parsed.verse_end,
            translation=translation or settings.bible_translation,
            original_text=original_text,
        )

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def create_note(
        self, db: AsyncSession, user_id: str, data: NoteCreate
    ) -> Tuple[Note, Optional[UUID], int]:
        """
        Create a note, optionally inside a thread.

        Returns:
            (note, thread id it was added to, number of auto tags applied)

        Raises:
            ValidationError: Content is empty (→ 400)
            NotFoundError: thread_id is not one of the user's threads (→ 404)
            DatabaseError: Insert failed (→ 500)
        """
        if not data.content or not data.content.strip():
            raise ValidationError("Note content is required", field="content")

        note_type = data.note_type if data.note_type in NOTE_TYPES else "default"

        try:
            thread = None
            if data.thread_id is not None:
                thread = await get_owned(db, Thread, user_id, data.thread_id, "thread")

            note = Note(
                user_id=user_id,
                title=capitalize_first(data.title.strip()) if data.title else data.title,
                content=capitalize_first(data.content),
                simple_note_id=await self.next_simple_note_id(db, user_id),
                note_type=note_type,
                space_id=thread.space_id if thread else None,
            )
            db.add(note)
            await db.flush()
            logger.info("Note created: %s (N%s, type=%s)", note.id, note.simple_note_id, note_type)

            if thread is not None:
                await self.link_thread(db, note.id, thread)

            if note_type == "scripture" and data.scripture_reference:
                try:
                    db.add(self.build_scripture_metadata(
                        note.id,
                        user_id,
                        data.scripture_reference,
                        original_text=html_to_plain_text(note.content),
                        translation=data.scripture_version,
                    ))
                    await db.flush()
                except ParseError as e:
                    logger.warning(
                        "Note %s: scripture reference '%s' not stored: %s",
                        note.id, data.scripture_reference, e.message,
                    )

        except HarvousError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"error_type": type(e).__name__},
            )

        applied = await self._apply_auto_tags_safely(db, user_id, note)
        return note, thread.id if thread else None, applied

    async def _apply_auto_tags_safely(self, db: AsyncSession, user_id: str, note: Note) -> int:
        try:
            result = await tag_service.generate_auto_tags(
                db, user_id, note.title, note.content,
                threshold=settings.auto_tag_save_threshold,
            )
            applied, _ = await tag_service.apply_auto_tags(db, user_id, note.id, result.suggestions)
            return applied
        except (HarvousError, SQLAlchemyError) as e:
            logger.warning("Auto tagging skipped for note %s: %s", note.id, str(e))
            return 0

    async def get_note_detail(
        self, db: AsyncSession, user_id: str, note_id: UUID
    ) -> NoteDetailResponse:
        """
        Raises:
            NotFoundError: Note does not exist for this user (→ 404)
        """
        note = await get_owned(db, Note, user_id, note_id, "note")
        try:
            tags = await tag_service.tags_for_note(db, note.id)
            thread_ids = await self.thread_ids_for_note(db, note.id)
            result = await db.execute(
                select(ScriptureMetadata).where(ScriptureMetadata.note_id == note.id)
            )
            scripture = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error loading note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": str(note_id)},
            )

        detail = NoteDetailResponse.model_validate(note)
        detail.tags = [
            TagResponse(
                id=tag.id,
                name=tag.name,
                color=tag.color,
                category=tag.category,
                is_system=tag.is_system,
                is_auto_generated=link.is_auto_generated,
                created_at=tag.created_at,
            )
            for tag, link in tags
        ]
        detail.thread_ids = thread_ids
        if scripture is not None:
            detail.scripture = ScriptureMetadataResponse.model_validate(scripture)
        return detail

    async def list_notes(
        self,
        db: AsyncSession,
        user_id: str,
        limit: int = 20,
        cursor: Optional[str] = None,
        thread_id: Optional[UUID] = None,
        sort: str = "created_at_desc",
    ) -> NoteListResponse:
        """
        Cursor-paginated notes of one user.

        cursor is the ISO created_at of the last item already seen; an
        unreadable cursor restarts from the first page. One extra row is
        fetched to compute has_more without a second query.
        """
        try:
            filters = [Note.user_id == user_id]
            if thread_id is not None:
                filters.append(
                    Note.id.in_(select(NoteThread.note_id).where(NoteThread.thread_id == thread_id))
                )

            query = select(Note).where(*filters)

            if cursor:
                try:
                    cursor_dt = datetime.fromisoformat(cursor)
                except ValueError:
                    cursor_dt = None

                if cursor_dt:
                    if sort == "created_at_desc":
                        query = query.where(Note.created_at < cursor_dt)
                    else:
                        query = query.where(Note.created_at > cursor_dt)

            if sort == "created_at_asc":
                query = query.order_by(asc(Note.created_at))
            else:
                query = query.order_by(desc(Note.created_at))

            result = await db.execute(query.limit(limit + 1))
            notes = list(result.scalars().all())

            count_result = await db.execute(select(func.count(Note.id)).where(*filters))
            total_count = count_result.scalar() or 0

        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            )

        has_more = len(notes) > limit
        if has_more:
            notes = notes[:limit]
        next_cursor = notes[-1].created_at.isoformat() if has_more and notes else None

        return NoteListResponse(
            notes=[
                NoteListItem(
                    id=note.id,
                    title=note.title,
                    content_preview=html_to_plain_text(note.content)[:PREVIEW_LENGTH],
                    simple_note_id=note.simple_note_id,
                    note_type=note.note_type,
                    created_at=note.created_at,
                )
                for note in notes
            ],
            total_count=total_count,
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def update_note(
        self, db: AsyncSession, user_id: str, note_id: UUID, data: NoteUpdate
    ) -> NoteResponse:
        """
        Update title and/or content, touch every parent thread and regenerate
        the note's auto tags.
        """
        note = await get_owned(db, Note, user_id, note_id, "note")

        if data.content is not None and not data.content.strip():
            raise ValidationError("Note content is required", field="content")

        try:
            if data.title is not None:
                note.title = capitalize_first(data.title.strip())
            if data.content is not None:
                note.content = capitalize_first(data.content)
            note.updated_at = utcnow()
            await self._touch_threads(db, note.id)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not update the note. Please try again.",
                context={"note_id": str(note_id)},
            )

        try:
            await tag_service.regenerate_auto_tags(
                db, user_id, note.id, note.title, note.content,
                threshold=settings.auto_tag_save_threshold,
            )
        except (HarvousError, SQLAlchemyError) as e:
            logger.warning("Auto tag refresh skipped for note %s: %s", note.id, str(e))

        logger.info("Note updated: %s", note.id)
        return NoteResponse.model_validate(note)

    async def delete_note(self, db: AsyncSession, user_id: str, note_id: UUID) -> None:
        note = await get_owned(db, Note, user_id, note_id, "note")
        try:
            await self._touch_threads(db, note.id)
            await db.delete(note)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": str(note_id)},
            )
        logger.info("Note deleted: %s", note_id)


note_service = NoteService()
