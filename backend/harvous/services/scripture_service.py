"""
Harvous Backend - Scripture Service
====================================

What:  Everything the API does with scripture references beyond pure
       detection: verse lookup, duplicate checks and turning references found
       in a note into linked scripture notes.
How:   Detection and parsing come from harvous.scripture (pure, no I/O);
       verse text comes from a VerseProvider (Bible.org in production);
       persistence goes through NoteService helpers.
Who:   routes/scripture.py and the process-scripture-references endpoint.

Processing Flow (POST /api/notes/{id}/process-scripture-references):
    ┌────────────┐    ┌──────────┐    ┌────────────────────────────────┐
    │ Strip HTML │───▶│  Detect  │───▶│ Per reference (own savepoint): │
    └────────────┘    └──────────┘    │   no scripture note → created  │
                                      │   in target thread  → skipped  │
                                      │   target thread     → added    │
                                      │   no target thread  → unorg.   │
                                      └───────────────┬────────────────┘
                                                      ▼
                                      ┌────────────────────────────────┐
                                      │ Highlight references in source │
                                      └────────────────────────────────┘

    Verse fetch failures never stop note creation; the scripture note is
    created with the reference as its content instead.
"""

import html
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from harvous.config import settings
from harvous.database import utcnow
from harvous.exceptions import (
    CircuitBreakerOpenError,
    HarvousError,
    NotFoundError,
    VerseServiceError,
)
from harvous.models.note import Note
from harvous.models.scripture import ScriptureMetadata
from harvous.models.thread import Thread
from harvous.schemas.scripture import (
    CheckExistingResponse,
    DetectResponse,
    ParsedReferenceOut,
    ProcessReferencesResponse,
    ProcessResult,
    ScriptureMatchOut,
    VerseGroupOut,
    VerseResponse,
)
from harvous.scripture import (
    DetectorConfig,
    ParsedReference,
    ScriptureDetector,
    format_reference_for_api,
    format_reference_for_display,
    highlight_references,
    normalize_reference,
    parse_reference,
    select_primary,
)
from harvous.services.base import get_owned
from harvous.services.bible_service import bible_service
from harvous.services.note_service import note_service
from harvous.services.verse_provider import PassageText, VerseProvider
from harvous.utils.html import html_to_plain_text

logger = logging.getLogger(__name__)


def build_detector() -> ScriptureDetector:
    return ScriptureDetector(
        config=DetectorConfig(
            allow_chapter_only=settings.detector_allow_chapter_only,
            chapter_only_requires_capital=settings.detector_chapter_only_requires_capital,
            allow_verse_lists=settings.detector_allow_verse_lists,
        )
    )


def _parsed_out(parsed: ParsedReference) -> ParsedReferenceOut:
    return ParsedReferenceOut(
        book=parsed.book,
        chapter=parsed.chapter,
        verse_start=parsed.verse_start,
        verse_end=parsed.verse_end,
        verse_groups=[VerseGroupOut(start=g.start, end=g.end) for g in parsed.verse_groups],
        reference=parsed.reference,
    )


class ScriptureService:

    def __init__(
        self,
        provider: Optional[VerseProvider] = None,
        detector: Optional[ScriptureDetector] = None,
    ):
        self.provider = provider or bible_service
        self.detector = detector or build_detector()

    # ── Detection ─────────────────────────────────────────────────────────

    def detect_in_text(self, text: str) -> DetectResponse:
        """
        Detect references in editor content.

        HTML is reduced to its visible text first; offsets in the response
        refer to that plain text.
        """
        plain = html_to_plain_text(text)
        result = self.detector.detect(plain)
        primary = select_primary(result)
        if primary is None:
            return DetectResponse()

        return DetectResponse(
            matches=[
                ScriptureMatchOut(
                    raw_text=m.raw_text,
                    book=m.book,
                    chapter=m.chapter,
                    verse_start=m.verse_start,
                    verse_end=m.verse_end,
                    start_offset=m.start_offset,
                    end_offset=m.end_offset,
                )
                for m in result
            ],
            primary_reference=primary.raw_text,
            parsed_reference=_parsed_out(self.detector.parser.parse(primary.raw_text)),
            is_scripture=True,
            type="reference",
            confidence=settings.detect_confidence,
        )

    # ── Verse text ────────────────────────────────────────────────────────

    async def fetch_verse(self, reference: str) -> VerseResponse:
        """
        Raises:
            ParseError: reference is not a scripture reference (→ 400)
            NotFoundError: the provider has no verses for it (→ 404)
            VerseServiceError, CircuitBreakerOpenError: provider down (→ 503)
        """
        parsed = parse_reference(format_reference_for_api(reference))
        passage = await self.provider.fetch_reference(parsed)
        if passage.is_empty:
            raise NotFoundError(resource="verse", resource_id=parsed.reference)

        return VerseResponse(
            reference=parsed.reference,
            book=parsed.book,
            chapter=parsed.chapter,
            verse=parsed.verse_start,
            verse_end=parsed.verse_end,
            translation=passage.translation,
            text=passage.text,
        )

    async def _fetch_text_or_none(self, parsed: ParsedReference) -> Optional[PassageText]:
        try:
            passage = await self.provider.fetch_reference(parsed)
        except (VerseServiceError, CircuitBreakerOpenError) as e:
            logger.warning("Verse text unavailable for %s: %s", parsed.reference, e.message)
            return None
        return None if passage.is_empty else passage

    # ── Existing scripture notes ──────────────────────────────────────────

    async def find_scripture_note(
        self, db: AsyncSession, user_id: str, normalized: str
    ) -> Optional[UUID]:
        """Oldest scripture note of this user for an already-normalized reference."""
        result = await db.execute(
            select(ScriptureMetadata.note_id)
            .join(Note, Note.id == ScriptureMetadata.note_id)
            .where(
                ScriptureMetadata.user_id == user_id,
                Note.user_id == user_id,
                ScriptureMetadata.reference == normalized,
            )
            .order_by(Note.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def check_existing(
        self,
        db: AsyncSession,
        user_id: str,
        reference: str,
        thread_id: Optional[UUID] = None,
    ) -> CheckExistingResponse:
        normalized = normalize_reference(reference)
        note_id = await self.find_scripture_note(db, user_id, normalized)
        if note_id is None:
            return CheckExistingResponse(exists=False, reference=normalized)

        thread_ids = await note_service.thread_ids_for_note(db, note_id)
        return CheckExistingResponse(
            exists=True,
            note_id=note_id,
            reference=normalized,
            in_thread=thread_id is not None and thread_id in thread_ids,
            in_unorganized=not thread_ids,
        )

    # ── Processing pipeline ───────────────────────────────────────────────

    async def create_scripture_note(
        self,
        db: AsyncSession,
        user_id: str,
        parsed: ParsedReference,
        thread: Optional[Thread],
    ) -> Note:
        passage = await self._fetch_text_or_none(parsed)
        display = format_reference_for_display(parsed.reference)
        content = passage.text if passage else f"<p>{html.escape(display)}</p>"

        note = Note(
            user_id=user_id,
            title=display,
            content=content,
            simple_note_id=await note_service.next_simple_note_id(db, user_id),
            note_type="scripture",
            space_id=thread.space_id if thread else None,
        )
        db.add(note)
        await db.flush()

        db.add(note_service.build_scripture_metadata(
            note.id,
            user_id,
            parsed.reference,
            original_text=html_to_plain_text(passage.text) if passage else None,
            translation=passage.translation if passage else None,
        ))
        if thread is not None:
            await note_service.link_thread(db, note.id, thread)
        await db.flush()

        logger.info("Scripture note created: %s for %s", note.id, parsed.reference)
        return note

    async def _resolve_thread(
        self, db: AsyncSession, user_id: str, note: Note, thread_id: Optional[UUID]
    ) -> Optional[Thread]:
        if thread_id is not None:
            return await get_owned(db, Thread, user_id, thread_id, "thread")
        thread_ids = await note_service.thread_ids_for_note(db, note.id)
        if not thread_ids:
            return None
        return await get_owned(db, Thread, user_id, thread_ids[0], "thread")

    async def _process_one(
        self,
        db: AsyncSession,
        user_id: str,
        parsed: ParsedReference,
        thread: Optional[Thread],
    ) -> ProcessResult:
        existing_id = await self.find_scripture_note(db, user_id, parsed.reference)
        if existing_id is None:
            note = await self.create_scripture_note(db, user_id, parsed, thread)
            return ProcessResult(action="created", note_id=note.id, reference=parsed.reference)

        if thread is None:
            return ProcessResult(action="unorganized", note_id=existing_id, reference=parsed.reference)

        added = await note_service.link_thread(db, existing_id, thread)
        return ProcessResult(
            action="added" if added else "skipped",
            note_id=existing_id,
            reference=parsed.reference,
        )

    async def process_note_references(
        self,
        db: AsyncSession,
        user_id: str,
        note_id: UUID,
        thread_id: Optional[UUID] = None,
    ) -> ProcessReferencesResponse:
        """
        Create or link a scripture note for every reference in a note, then
        highlight the references in the note's content.

        Raises:
            NotFoundError: note or thread does not belong to the user (→ 404)
        """
        note = await get_owned(db, Note, user_id, note_id, "note")
        thread = await self._resolve_thread(db, user_id, note, thread_id)

        detected = self.detector.detect(html_to_plain_text(note.content))
        logger.info("Note %s: %d scripture reference(s) detected", note.id, len(detected))

        results: List[ProcessResult] = []
        links: List[Tuple[str, str]] = []
        for match in detected:
            try:
                parsed = self.detector.parser.parse(match.raw_text)
                async with db.begin_nested():
                    outcome = await self._process_one(db, user_id, parsed, thread)
            except (HarvousError, SQLAlchemyError) as e:
                logger.error(
                    "Note %s: failed to process reference '%s': %s",
                    note.id, match.raw_text, str(e),
                )
                continue
            results.append(outcome)
            links.append((match.raw_text, str(outcome.note_id)))

        updated = highlight_references(note.content, links)
        if updated != note.content:
            note.content = updated
            note.updated_at = utcnow()
            await db.flush()

        logger.info(
            "Note %s: processed references %s",
            note.id, [(r.reference, r.action) for r in results],
        )
        return ProcessReferencesResponse(results=results, updated_content=note.content)


scripture_service = ScriptureService()
