"""
ORM model for `scripture_metadata`: the passage behind a scripture note.

Exactly one row per scripture note. `reference` holds the normalized form
(see harvous.scripture.normalize_reference) and is what duplicate checks
compare against.
"""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP

from harvous.database import Base, utcnow


class ScriptureMetadata(Base):
    __tablename__ = "scripture_metadata"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    note_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    reference: Mapped[str] = mapped_column(String(200), nullable=False)
    book: Mapped[str] = mapped_column(String(50), nullable=False)
    chapter: Mapped[int] = mapped_column(Integer, nullable=False)
    # NULL for chapter-only references
    verse: Mapped[int | None] = mapped_column(Integer, nullable=True)
    verse_end: Mapped[int | None] = mapped_column(Integer, nullable=True)
    translation: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="NET",
        server_default=text("'NET'"),
    )
    original_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_scripture_metadata_user_reference", "user_id", "reference"),
    )

    def __repr__(self) -> str:
        return f"<ScriptureMetadata(note_id={self.note_id}, reference='{self.reference}')>"
