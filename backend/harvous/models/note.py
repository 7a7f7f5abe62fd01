"""
Harvous Backend - Note SQLAlchemy Models
=========================================

What:  The `notes` table and the `note_threads` junction table.
How:   Plain columns and foreign keys, no ORM relationships; services join
       explicitly so every query is visible at its call site.
Who:   NoteService, ThreadService, ScriptureService, TagService, Alembic.

Table Design:
    - UUID primary key, generated server-side on PostgreSQL
    - user_id: opaque id from the auth gateway (X-User-ID header)
    - simple_note_id: per-user sequence number shown in the UI ("N42"),
      never reused, allocated from user_metadata.highest_simple_note_id
    - note_type: default | scripture | resource
    - a note with no note_threads rows is "unorganized"

Indexes:
    (user_id, created_at) backs the note list, the most common query.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP

from harvous.database import Base, utcnow

NOTE_TYPES = ("default", "scripture", "resource")


class Note(Base):
    """
    A user's note: a title plus rich-text (HTML) content.

    Lifecycle:
        1. Created with the next simple_note_id for the user
        2. Optionally added to threads, tagged and processed for scripture
        3. Deleted with its junction rows and scripture metadata (CASCADE)
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    title: Mapped[str | None] = mapped_column(String(500), nullable=True)

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Editor HTML",
    )

    simple_note_id: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Per-user sequential id, never reused",
    )

    note_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="default",
        server_default=text("'default'"),
        comment="default, scripture or resource",
    )

    space_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("spaces.id", ondelete="SET NULL"),
        nullable=True,
    )

    is_public: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false"),
    )
    is_featured: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
        onupdate=utcnow,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "simple_note_id", name="uq_notes_user_simple_note_id"),
        Index("idx_notes_user_created_at", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, simple_note_id={self.simple_note_id}, "
            f"note_type='{self.note_type}')>"
        )


class NoteThread(Base):
    """Membership of a note in a thread. A note may belong to many threads."""

    __tablename__ = "note_threads"

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
        index=True,
    )
    thread_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("threads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        UniqueConstraint("note_id", "thread_id", name="uq_note_threads_note_thread"),
    )

    def __repr__(self) -> str:
        return f"<NoteThread(note_id={self.note_id}, thread_id={self.thread_id})>"
