"""
Harvous Backend - Scripture Reference Parser
=============================================

What:  Turns reference text ("1 Jn 3:16-18", "Matthew 26:6-13, 17-30",
       "Genesis 1") into a ParsedReference with a canonical book name.
How:   A permissive shape regex splits book / chapter / verses, the book is
       resolved through the BookTable, and every number is checked to be a
       positive integer. Verse lists become VerseGroups; verse_start and
       verse_end span the whole list.
Who:   ScriptureDetector (validation of every candidate), the fetch-verse
       endpoint, note creation and the processing pipeline.

Raises ParseError for anything it cannot turn into a valid reference. A
reversed range ("John 3:18-16") is an error, never silently swapped.
"""

import re
from typing import List, Optional

from harvous.exceptions import ParseError
from harvous.scripture.books import DEFAULT_BOOK_TABLE, BookTable
from harvous.scripture.types import ParsedReference, VerseGroup

_REFERENCE_SHAPE = re.compile(
    r"^\s*(?P<book>\S(?:.*?\S)?)\.?\s*(?P<chapter>\d+)"
    r"(?:\s*:\s*(?P<verses>.*?))?\s*$",
    re.DOTALL,
)
_VERSE_GROUP = re.compile(r"^(?P<start>\d+)(?:\s*[-–—]\s*(?P<end>\d+))?$")
_DASH = re.compile(r"[-–—]")


class ReferenceParser:
    """Parser bound to one immutable book table."""

    def __init__(self, book_table: BookTable = DEFAULT_BOOK_TABLE):
        self.book_table = book_table

    def parse(self, raw_text: str) -> ParsedReference:
        """
        Parse a single reference.

        Args:
            raw_text: Reference text, e.g. a detector match's raw_text.

        Returns:
            ParsedReference with the canonical book name.

        Raises:
            ParseError: Unknown book, malformed text, a non-positive number
                or a reversed verse range.
        """
        if not isinstance(raw_text, str) or not raw_text.strip():
            raise ParseError("Scripture reference is empty", reference=raw_text)

        shape = _REFERENCE_SHAPE.match(raw_text)
        if shape is None:
            raise ParseError(
                f"'{raw_text}' is not a scripture reference", reference=raw_text
            )

        book = self.book_table.canonical(shape.group("book"))
        if book is None:
            raise ParseError(
                f"Unrecognized book '{shape.group('book')}'", reference=raw_text
            )

        chapter = _positive(shape.group("chapter"), "chapter", raw_text)

        verses = shape.group("verses")
        if verses is None:
            return ParsedReference(book=book, chapter=chapter)

        groups = self._parse_verse_list(verses, raw_text)
        verse_start = min(group.start for group in groups)
        verse_end: Optional[int] = max(group.end for group in groups)
        if len(groups) == 1 and not _DASH.search(verses):
            verse_end = None

        return ParsedReference(
            book=book,
            chapter=chapter,
            verse_start=verse_start,
            verse_end=verse_end,
            verse_groups=tuple(groups),
        )

    def _parse_verse_list(self, verses: str, raw_text: str) -> List[VerseGroup]:
        groups = []
        for piece in verses.split(","):
            match = _VERSE_GROUP.match(piece.strip())
            if match is None:
                raise ParseError(
                    f"Invalid verse specification '{piece.strip()}'", reference=raw_text
                )
            start = _positive(match.group("start"), "verse", raw_text)
            end = start
            if match.group("end") is not None:
                end = _positive(match.group("end"), "verse", raw_text)
                if end < start:
                    raise ParseError(
                        f"Verse range {start}-{end} is reversed", reference=raw_text
                    )
            groups.append(VerseGroup(start=start, end=end))
        return groups


def _positive(digits: str, label: str, raw_text: str) -> int:
    value = int(digits)
    if value <= 0:
        raise ParseError(f"{label.capitalize()} must be a positive number", reference=raw_text)
    return value


reference_parser = ReferenceParser()


def parse_reference(raw_text: str) -> ParsedReference:
    """Parse with the default 66-book table."""
    return reference_parser.parse(raw_text)
