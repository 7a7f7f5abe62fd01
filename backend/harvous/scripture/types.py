"""Value objects produced by the scripture detector and parser."""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class VerseGroup:
    """One comma-separated piece of a verse list, e.g. (17, 30) in "26:6-13, 17-30"."""
    start: int
    end: int

    def __str__(self) -> str:
        if self.start == self.end:
            return str(self.start)
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class ParsedReference:
    """
    Structured form of a reference such as "1 Jn 3:16-18".

    verse_start and verse_end are None for chapter-only references; verse_end
    is None for a single verse. verse_groups is empty for chapter-only
    references and holds one group per comma-separated piece otherwise.
    """
    book: str
    chapter: int
    verse_start: Optional[int] = None
    verse_end: Optional[int] = None
    verse_groups: Tuple[VerseGroup, ...] = field(default_factory=tuple)

    @property
    def is_chapter_only(self) -> bool:
        return self.verse_start is None

    @property
    def reference(self) -> str:
        """Canonical text form: "John 3:16-18", "Matthew 26:6-13,17-30", "Genesis 1"."""
        if self.is_chapter_only:
            return f"{self.book} {self.chapter}"
        if len(self.verse_groups) > 1:
            verses = ",".join(str(group) for group in self.verse_groups)
        elif self.verse_end is not None:
            verses = f"{self.verse_start}-{self.verse_end}"
        else:
            verses = str(self.verse_start)
        return f"{self.book} {self.chapter}:{verses}"


@dataclass(frozen=True)
class ScriptureMatch:
    """
    A reference found in scanned text.

    text[start_offset:end_offset] == raw_text for the text the match came from.
    """
    raw_text: str
    book: str
    chapter: int
    verse_start: Optional[int]
    verse_end: Optional[int]
    start_offset: int
    end_offset: int

    @property
    def length(self) -> int:
        return self.end_offset - self.start_offset

    def overlaps(self, other: "ScriptureMatch") -> bool:
        return self.start_offset < other.end_offset and other.start_offset < self.end_offset


@dataclass(frozen=True)
class DetectionResult:
    """All matches found in one scan, ordered by start_offset."""
    matches: Tuple[ScriptureMatch, ...] = ()

    def __len__(self) -> int:
        return len(self.matches)

    def __iter__(self):
        return iter(self.matches)

    def __bool__(self) -> bool:
        return bool(self.matches)
