"""Initial Harvous schema

Revision ID: 001
Revises: None
Create Date: 2025-01-10 00:00:00.000000+00:00

What:  Creates every table: spaces, threads, notes, note_threads, tags,
       note_tags, scripture_metadata, user_metadata.
How:   Tables are created parents first so foreign keys resolve; downgrade
       drops them in reverse. PostgreSQL only (gen_random_uuid, TIMESTAMPTZ).

Rollback: downgrade() drops all tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        postgresql.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", postgresql.TIMESTAMP(timezone=True), nullable=True)


def _flag(name: str, default: bool) -> sa.Column:
    return sa.Column(
        name, sa.Boolean(), server_default=sa.text("true" if default else "false"), nullable=False,
    )


def _fk(name: str, target: str, ondelete: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    op.create_table(
        "spaces",
        _id(),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(50), server_default=sa.text("'paper'"), nullable=False),
        _flag("is_active", True),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_spaces_user_id", "spaces", ["user_id"])

    op.create_table(
        "threads",
        _id(),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("subtitle", sa.String(500), nullable=True),
        sa.Column("color", sa.String(50), server_default=sa.text("'blessed-blue'"), nullable=False),
        _fk("space_id", "spaces.id", "SET NULL", nullable=True),
        _flag("is_pinned", False),
        _flag("is_public", False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_threads_user_id", "threads", ["user_id"])

    op.create_table(
        "notes",
        _id(),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("content", sa.Text(), nullable=False, comment="Editor HTML"),
        sa.Column(
            "simple_note_id", sa.Integer(), nullable=True,
            comment="Per-user sequential id, never reused",
        ),
        sa.Column(
            "note_type", sa.String(20), server_default=sa.text("'default'"), nullable=False,
            comment="default, scripture or resource",
        ),
        _fk("space_id", "spaces.id", "SET NULL", nullable=True),
        _flag("is_public", False),
        _flag("is_featured", False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "simple_note_id", name="uq_notes_user_simple_note_id"),
    )
    op.create_index("ix_notes_user_id", "notes", ["user_id"])
    op.create_index("idx_notes_user_created_at", "notes", ["user_id", "created_at"])

    op.create_table(
        "note_threads",
        _id(),
        _fk("note_id", "notes.id", "CASCADE"),
        _fk("thread_id", "threads.id", "CASCADE"),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("note_id", "thread_id", name="uq_note_threads_note_thread"),
    )
    op.create_index("ix_note_threads_note_id", "note_threads", ["note_id"])
    op.create_index("ix_note_threads_thread_id", "note_threads", ["thread_id"])

    op.create_table(
        "tags",
        _id(),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("color", sa.String(20), server_default=sa.text("'#006eff'"), nullable=False),
        sa.Column("category", sa.String(50), nullable=True),
        _flag("is_system", False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tags_user_id", "tags", ["user_id"])

    op.create_table(
        "note_tags",
        _id(),
        _fk("note_id", "notes.id", "CASCADE"),
        _fk("tag_id", "tags.id", "CASCADE"),
        _flag("is_auto_generated", False),
        sa.Column("confidence", sa.Float(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("note_id", "tag_id", name="uq_note_tags_note_tag"),
    )
    op.create_index("ix_note_tags_note_id", "note_tags", ["note_id"])
    op.create_index("ix_note_tags_tag_id", "note_tags", ["tag_id"])

    op.create_table(
        "scripture_metadata",
        _id(),
        _fk("note_id", "notes.id", "CASCADE"),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("reference", sa.String(200), nullable=False),
        sa.Column("book", sa.String(50), nullable=False),
        sa.Column("chapter", sa.Integer(), nullable=False),
        sa.Column("verse", sa.Integer(), nullable=True),
        sa.Column("verse_end", sa.Integer(), nullable=True),
        sa.Column("translation", sa.String(20), server_default=sa.text("'NET'"), nullable=False),
        sa.Column("original_text", sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("note_id"),
    )
    op.create_index(
        "idx_scripture_metadata_user_reference", "scripture_metadata", ["user_id", "reference"],
    )

    op.create_table(
        "user_metadata",
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("highest_simple_note_id", sa.Integer(), server_default=sa.text("0"), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("user_id"),
    )


def downgrade() -> None:
    op.drop_table("user_metadata")
    op.drop_index("idx_scripture_metadata_user_reference", table_name="scripture_metadata")
    op.drop_table("scripture_metadata")
    op.drop_index("ix_note_tags_tag_id", table_name="note_tags")
    op.drop_index("ix_note_tags_note_id", table_name="note_tags")
    op.drop_table("note_tags")
    op.drop_index("ix_tags_user_id", table_name="tags")
    op.drop_table("tags")
    op.drop_index("ix_note_threads_thread_id", table_name="note_threads")
    op.drop_index("ix_note_threads_note_id", table_name="note_threads")
    op.drop_table("note_threads")
    op.drop_index("idx_notes_user_created_at", table_name="notes")
    op.drop_index("ix_notes_user_id", table_name="notes")
    op.drop_table("notes")
    op.drop_index("ix_threads_user_id", table_name="threads")
    op.drop_table("threads")
    op.drop_index("ix_spaces_user_id", table_name="spaces")
    op.drop_table("spaces")
