"""ORM models. Importing this package registers every table on Base.metadata."""

from harvous.models.note import NOTE_TYPES, Note, NoteThread
from harvous.models.scripture import ScriptureMetadata
from harvous.models.space import Space
from harvous.models.tag import NoteTag, Tag
from harvous.models.thread import Thread
from harvous.models.user import UserMetadata

__all__ = [
    "NOTE_TYPES",
    "Note",
    "NoteTag",
    "NoteThread",
    "ScriptureMetadata",
    "Space",
    "Tag",
    "Thread",
    "UserMetadata",
]
