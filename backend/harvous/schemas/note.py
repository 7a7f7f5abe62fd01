"""
Harvous Backend - Note Request/Response Schemas
================================================

What:  Pydantic models defining the notes API contract.
How:   FastAPI validates request bodies against the *Create/*Update models and
       serializes responses through the *Response models (camelCase JSON).
Who:   routes/notes.py and NoteService.

Validation split:
    Shape (types, lengths, UUID format) is checked here and reported as 422.
    Business rules (content required, thread ownership) are checked by
    NoteService and reported as 400/404.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from harvous.schemas.common import ApiModel
from harvous.schemas.tag import TagResponse


# ══════════════════════════════════════════════════════════════════════════
# Request Schemas
# ══════════════════════════════════════════════════════════════════════════

class NoteCreate(ApiModel):
    """
    Body of POST /api/notes.

    note_type outside default/scripture/resource falls back to "default".
    scripture_reference is only used when note_type == "scripture".
    """
    title: Optional[str] = Field(default=None, max_length=500)
    content: Optional[str] = None
    thread_id: Optional[uuid.UUID] = None
    note_type: Optional[str] = None
    scripture_reference: Optional[str] = Field(default=None, max_length=200)
    scripture_version: Optional[str] = Field(default=None, max_length=20)

    @field_validator("thread_id", mode="before")
    @classmethod
    def unorganized_means_none(cls, v):
        """The client sends the pseudo-thread "thread_unorganized" for no thread."""
        if v in ("", "thread_unorganized"):
            return None
        return v


class NoteUpdate(ApiModel):
    title: Optional[str] = Field(default=None, max_length=500)
    content: Optional[str] = None


class ThreadMembershipRequest(ApiModel):
    thread_id: uuid.UUID


# ══════════════════════════════════════════════════════════════════════════
# Response Schemas
# ══════════════════════════════════════════════════════════════════════════

class ScriptureMetadataResponse(ApiModel):
    reference: str
    book: str
    chapter: int
    verse: Optional[int] = None
    verse_end: Optional[int] = None
    translation: str


class NoteResponse(ApiModel):
    id: uuid.UUID
    title: Optional[str] = None
    content: str
    simple_note_id: Optional[int] = None
    note_type: str
    space_id: Optional[uuid.UUID] = None
    is_public: bool = False
    is_featured: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None


class NoteDetailResponse(NoteResponse):
    """Single note with its tags, thread memberships and scripture metadata."""
    tags: List[TagResponse] = Field(default_factory=list)
    thread_ids: List[uuid.UUID] = Field(default_factory=list)
    scripture: Optional[ScriptureMetadataResponse] = None


class NoteListItem(ApiModel):
    """Compact note for list views; content_preview is plain text, 200 chars max."""
    id: uuid.UUID
    title: Optional[str] = None
    content_preview: str
    simple_note_id: Optional[int] = None
    note_type: str
    created_at: datetime


class NoteListResponse(ApiModel):
    notes: List[NoteListItem]
    total_count: int
    next_cursor: Optional[str] = None
    has_more: bool


class NoteCreateResponse(ApiModel):
    success: bool = True
    note: NoteResponse
    thread_id: Optional[uuid.UUID] = None
    auto_tags_applied: int = 0
