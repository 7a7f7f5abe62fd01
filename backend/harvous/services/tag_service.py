"""
Harvous Backend - Tag Service
==============================

What:  User tags, note/tag links and the database side of auto-tagging.
How:   Suggestions come from the pure harvous.tagging.suggest_tags(); this
       service loads the user's existing tags for it and persists accepted
       suggestions as system tags and auto-generated note_tags links.
Who:   routes/tags.py, the auto-tags endpoint and NoteService (create/update).

Auto-tag lifecycle:
    generate    → suggestions only, nothing written
    apply       → reuse a case-insensitive existing tag or create a system tag
                  colored by category, then link it (is_auto_generated=True)
                  unless the note already has that tag
    regenerate  → delete the note's auto-generated links, then generate + apply
                  (manual links are never touched)
"""

import logging
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from harvous.config import settings
from harvous.exceptions import DatabaseError, NotFoundError, ValidationError
from harvous.models.note import Note
from harvous.models.tag import NoteTag, Tag
from harvous.schemas.tag import TagCreate
from harvous.services.base import get_owned
from harvous.tagging import AutoTagResult, TagSuggestion, suggest_tags, tag_color

logger = logging.getLogger(__name__)


class TagService:

    # ── Tags ──────────────────────────────────────────────────────────────

    async def list_tags(self, db: AsyncSession, user_id: str) -> List[Tag]:
        result = await db.execute(
            select(Tag).where(Tag.user_id == user_id).order_by(Tag.name)
        )
        return list(result.scalars().all())

    async def find_tag_by_name(self, db: AsyncSession, user_id: str, name: str) -> Optional[Tag]:
        """Newest tag of this user whose name matches case-insensitively."""
        result = await db.execute(
            select(Tag)
            .where(Tag.user_id == user_id, func.lower(Tag.name) == name.strip().lower())
            .order_by(Tag.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create_tag(self, db: AsyncSession, user_id: str, data: TagCreate) -> Tag:
        """
        Raises:
            ValidationError: The user already has a tag with this name (→ 400)
        """
        name = data.name.strip()
        if not name:
            raise ValidationError("Tag name is required", field="name")
        if await self.find_tag_by_name(db, user_id, name) is not None:
            raise ValidationError(f"A tag named '{name}' already exists", field="name")

        tag = Tag(
            user_id=user_id,
            name=name,
            color=data.color or tag_color(data.category or ""),
            category=data.category,
            is_system=False,
        )
        db.add(tag)
        await db.flush()
        logger.info("Tag created: %s (%s)", tag.id, name)
        return tag

    async def delete_tag(self, db: AsyncSession, user_id: str, tag_id: UUID) -> None:
        tag = await get_owned(db, Tag, user_id, tag_id, "tag")
        await db.execute(delete(NoteTag).where(NoteTag.tag_id == tag.id))
        await db.delete(tag)
        await db.flush()
        logger.info("Tag deleted: %s", tag_id)

    async def tags_for_note(self, db: AsyncSession, note_id: UUID) -> List[Tuple[Tag, NoteTag]]:
        result = await db.execute(
            select(Tag, NoteTag)
            .join(NoteTag, NoteTag.tag_id == Tag.id)
            .where(NoteTag.note_id == note_id)
            .order_by(Tag.name)
        )
        return [(tag, link) for tag, link in result.all()]

    async def remove_tag_from_note(
        self, db: AsyncSession, user_id: str, note_id: UUID, tag_id: UUID
    ) -> None:
        """
        Raises:
            NotFoundError: Note, tag or link does not exist for this user
        """
        await get_owned(db, Note, user_id, note_id, "note")
        await get_owned(db, Tag, user_id, tag_id, "tag")
        result = await db.execute(
            delete(NoteTag).where(NoteTag.note_id == note_id, NoteTag.tag_id == tag_id)
        )
        if not result.rowcount:
            raise NotFoundError(resource="note tag", resource_id=f"{note_id}/{tag_id}")
        await db.flush()

    # ── Auto tags ─────────────────────────────────────────────────────────

    async def generate_auto_tags(
        self,
        db: AsyncSession,
        user_id: str,
        title: Optional[str],
        content: Optional[str],
        threshold: Optional[float] = None,
    ) -> AutoTagResult:
        existing = await self.list_tags(db, user_id)
        result = suggest_tags(
            title,
            content,
            existing_tags=existing,
            threshold=settings.auto_tag_confidence_threshold if threshold is None else threshold,
            max_suggestions=settings.auto_tag_max_suggestions,
        )
        logger.info(
            "Auto-tag suggestions for user %s: %d found, %d high confidence, kept %s",
            user_id, result.total_found, result.high_confidence,
            [s.keyword for s in result.suggestions],
        )
        return result

    async def apply_auto_tags(
        self,
        db: AsyncSession,
        user_id: str,
        note_id: UUID,
        suggestions: Sequence[TagSuggestion],
    ) -> Tuple[int, List[str]]:
        """
        Link suggested tags to a note.

        Returns:
            (number of new links, per-suggestion error messages)
        """
        applied = 0
        errors: List[str] = []

        for suggestion in suggestions:
            try:
                tag = await self.find_tag_by_name(db, user_id, suggestion.keyword)
                if tag is None:
                    tag = Tag(
                        user_id=user_id,
                        name=suggestion.keyword,
                        color=tag_color(suggestion.category),
                        category=suggestion.category,
                        is_system=True,
                    )
                    db.add(tag)
                    await db.flush()

                linked = await db.execute(
                    select(NoteTag.id).where(NoteTag.note_id == note_id, NoteTag.tag_id == tag.id)
                )
                if linked.scalar_one_or_none() is not None:
                    continue

                db.add(NoteTag(
                    note_id=note_id,
                    tag_id=tag.id,
                    is_auto_generated=True,
                    confidence=suggestion.confidence,
                ))
                await db.flush()
                applied += 1
            except SQLAlchemyError as e:
                logger.error(
                    "Failed to apply auto tag '%s' to note %s: %s",
                    suggestion.keyword, note_id, str(e),
                )
                errors.append(f"{suggestion.keyword}: {type(e).__name__}")

        logger.info("Applied %d auto tag(s) to note %s", applied, note_id)
        return applied, errors

    async def remove_auto_tags(self, db: AsyncSession, note_id: UUID) -> int:
        try:
            result = await db.execute(
                delete(NoteTag).where(
                    NoteTag.note_id == note_id,
                    NoteTag.is_auto_generated.is_(True),
                )
            )
        except SQLAlchemyError as e:
            logger.error("Failed to remove auto tags from note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not update the note's tags. Please try again.",
                context={"note_id": str(note_id)},
            )
        return result.rowcount or 0

    async def regenerate_auto_tags(
        self,
        db: AsyncSession,
        user_id: str,
        note_id: UUID,
        title: Optional[str],
        content: Optional[str],
        threshold: Optional[float] = None,
    ) -> Tuple[AutoTagResult, int, List[str]]:
        removed = await self.remove_auto_tags(db, note_id)
        logger.info("Removed %d auto tag(s) from note %s", removed, note_id)
        result = await self.generate_auto_tags(db, user_id, title, content, threshold)
        applied, errors = await self.apply_auto_tags(db, user_id, note_id, result.suggestions)
        return result, applied, errors


tag_service = TagService()
