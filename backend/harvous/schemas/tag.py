"""Tag and auto-tag request/response schemas."""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from harvous.schemas.common import ApiModel


class TagCreate(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, max_length=20)
    category: Optional[str] = Field(default=None, max_length=50)


class TagResponse(ApiModel):
    id: uuid.UUID
    name: str
    color: str
    category: Optional[str] = None
    is_system: bool = False
    is_auto_generated: Optional[bool] = None
    created_at: Optional[datetime] = None


class AutoTagRequest(ApiModel):
    """
    Body of POST /api/notes/auto-tags.

    action is checked by the route, not here, so that an unknown action is a
    400 like the other business-rule failures.
    """
    note_id: Optional[uuid.UUID] = None
    note_title: Optional[str] = None
    note_content: Optional[str] = None
    action: str = "generate"


class TagSuggestionResponse(ApiModel):
    keyword: str
    category: str
    confidence: float
    is_existing: bool = False
    tag_id: Optional[uuid.UUID] = None


class AutoTagResponse(ApiModel):
    action: Literal["generate", "apply", "regenerate"]
    suggestions: List[TagSuggestionResponse] = Field(default_factory=list)
    total_found: int = 0
    high_confidence: int = 0
    applied: Optional[int] = None
    errors: List[str] = Field(default_factory=list)
