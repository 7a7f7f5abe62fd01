"""
Harvous Backend - Scripture Schemas
====================================

Request and response bodies for /api/scripture/* and the note scripture
processing endpoint. JSON field names are camelCase (see ApiModel).
"""

import uuid
from typing import List, Literal, Optional

from pydantic import Field

from harvous.schemas.common import ApiModel


class ScriptureMatchOut(ApiModel):
    raw_text: str
    book: str
    chapter: int
    verse_start: Optional[int] = None
    verse_end: Optional[int] = None
    start_offset: int
    end_offset: int


class VerseGroupOut(ApiModel):
    start: int
    end: int


class ParsedReferenceOut(ApiModel):
    book: str
    chapter: int
    verse_start: Optional[int] = None
    verse_end: Optional[int] = None
    verse_groups: List[VerseGroupOut] = Field(default_factory=list)
    reference: str


class DetectResponse(ApiModel):
    """
    Response of POST /api/scripture/detect.

    primary_reference is the raw text of the first match; parsed_reference is
    its structured form. confidence is 0 when nothing was found.
    """
    matches: List[ScriptureMatchOut] = Field(default_factory=list)
    primary_reference: Optional[str] = None
    parsed_reference: Optional[ParsedReferenceOut] = None
    is_scripture: bool = False
    type: Optional[Literal["reference"]] = None
    confidence: float = 0.0


class FetchVerseRequest(ApiModel):
    reference: str = Field(min_length=1, max_length=200)


class VerseResponse(ApiModel):
    reference: str
    book: str
    chapter: int
    verse: Optional[int] = None
    verse_end: Optional[int] = None
    translation: str
    text: str


class CheckExistingRequest(ApiModel):
    reference: str = Field(min_length=1, max_length=200)
    thread_id: Optional[uuid.UUID] = None


class CheckExistingResponse(ApiModel):
    exists: bool
    note_id: Optional[uuid.UUID] = None
    reference: str
    in_thread: bool = False
    in_unorganized: bool = False


class ProcessReferencesRequest(ApiModel):
    thread_id: Optional[uuid.UUID] = None


class ProcessResult(ApiModel):
    action: Literal["created", "added", "skipped", "unorganized"]
    note_id: uuid.UUID
    reference: str


class ProcessReferencesResponse(ApiModel):
    results: List[ProcessResult] = Field(default_factory=list)
    updated_content: str
