"""
Harvous Backend - Thread and Space Services
============================================

What:  CRUD for threads (note collections) and spaces (thread collections).
Who:   routes/threads.py and routes/spaces.py.

Deletion semantics:
    Deleting a thread removes its note_threads rows; the notes survive and
    become unorganized when they belong to no other thread.
    Deleting a space detaches its threads and notes (space_id → NULL).
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from harvous.database import utcnow
from harvous.exceptions import DatabaseError
from harvous.models.note import Note, NoteThread
from harvous.models.space import DEFAULT_SPACE_COLOR, Space
from harvous.models.thread import DEFAULT_THREAD_COLOR, Thread
from harvous.schemas.thread import (
    SpaceCreate,
    SpaceUpdate,
    ThreadCreate,
    ThreadResponse,
    ThreadUpdate,
)
from harvous.services.base import get_owned

logger = logging.getLogger(__name__)


class ThreadService:

    async def create_thread(self, db: AsyncSession, user_id: str, data: ThreadCreate) -> Thread:
        if data.space_id is not None:
            await get_owned(db, Space, user_id, data.space_id, "space")
        thread = Thread(
            user_id=user_id,
            title=data.title.strip(),
            subtitle=data.subtitle,
            color=data.color or DEFAULT_THREAD_COLOR,
            space_id=data.space_id,
            is_public=data.is_public,
        )
        db.add(thread)
        await db.flush()
        logger.info("Thread created: %s", thread.id)
        return thread

    async def list_threads(self, db: AsyncSession, user_id: str) -> List[ThreadResponse]:
        """All threads of a user with note counts, pinned first, then most recently active."""
        note_count = (
            select(func.count(NoteThread.id))
            .where(NoteThread.thread_id == Thread.id)
            .correlate(Thread)
            .scalar_subquery()
        )
        try:
            result = await db.execute(
                select(Thread, note_count.label("note_count"))
                .where(Thread.user_id == user_id)
                .order_by(
                    Thread.is_pinned.desc(),
                    func.coalesce(Thread.updated_at, Thread.created_at).desc(),
                )
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Database error listing threads: %s", str(e))
            raise DatabaseError(message="Could not retrieve threads. Please try again.")

        threads = []
        for thread, count in rows:
            item = ThreadResponse.model_validate(thread)
            item.note_count = count or 0
            threads.append(item)
        return threads

    async def update_thread(
        self, db: AsyncSession, user_id: str, thread_id: UUID, data: ThreadUpdate
    ) -> Thread:
        thread = await get_owned(db, Thread, user_id, thread_id, "thread")
        changes = data.model_dump(exclude_unset=True)
        if changes.get("space_id") is not None:
            await get_owned(db, Space, user_id, changes["space_id"], "space")
        for field, value in changes.items():
            if field in ("title", "color", "is_public") and value is None:
                continue
            setattr(thread, field, value)
        thread.updated_at = utcnow()
        await db.flush()
        return thread

    async def toggle_pin(self, db: AsyncSession, user_id: str, thread_id: UUID) -> Thread:
        thread = await get_owned(db, Thread, user_id, thread_id, "thread")
        thread.is_pinned = not thread.is_pinned
        await db.flush()
        logger.info("Thread %s pinned=%s", thread_id, thread.is_pinned)
        return thread

    async def delete_thread(self, db: AsyncSession, user_id: str, thread_id: UUID) -> None:
        thread = await get_owned(db, Thread, user_id, thread_id, "thread")
        try:
            await db.execute(delete(NoteThread).where(NoteThread.thread_id == thread.id))
            await db.delete(thread)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting thread %s: %s", thread_id, str(e))
            raise DatabaseError(
                message="Could not delete the thread. Please try again.",
                context={"thread_id": str(thread_id)},
            )
        logger.info("Thread deleted: %s", thread_id)


class SpaceService:

    async def create_space(self, db: AsyncSession, user_id: str, data: SpaceCreate) -> Space:
        space = Space(
            user_id=user_id,
            title=data.title.strip(),
            description=data.description,
            color=data.color or DEFAULT_SPACE_COLOR,
        )
        db.add(space)
        await db.flush()
        logger.info("Space created: %s", space.id)
        return space

    async def list_spaces(self, db: AsyncSession, user_id: str) -> List[Space]:
        result = await db.execute(
            select(Space).where(Space.user_id == user_id).order_by(Space.created_at)
        )
        return list(result.scalars().all())

    async def update_space(
        self, db: AsyncSession, user_id: str, space_id: UUID, data: SpaceUpdate
    ) -> Space:
        space = await get_owned(db, Space, user_id, space_id, "space")
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field != "description":
                continue
            setattr(space, field, value)
        space.updated_at = utcnow()
        await db.flush()
        return space

    async def delete_space(self, db: AsyncSession, user_id: str, space_id: UUID) -> None:
        space = await get_owned(db, Space, user_id, space_id, "space")
        try:
            await db.execute(
                update(Thread).where(Thread.space_id == space.id).values(space_id=None)
            )
            await db.execute(
                update(Note).where(Note.space_id == space.id).values(space_id=None)
            )
            await db.delete(space)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting space %s: %s", space_id, str(e))
            raise DatabaseError(
                message="Could not delete the space. Please try again.",
                context={"space_id": str(space_id)},
            )
        logger.info("Space deleted: %s", space_id)


thread_service = ThreadService()
space_service = SpaceService()
