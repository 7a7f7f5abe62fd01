"""
Harvous Backend - Scripture Reference Detector
===============================================

What:  Finds every scripture reference in arbitrary text and reports where
       it sits.
How:   1. Collect candidates by re-running the grammar pattern from one
          character past each candidate start, so a shorter reading inside a
          longer one ("John 3:16" inside "1 John 3:16") is also considered.
       2. Validate each candidate with ReferenceParser; failures are dropped.
       3. Resolve overlaps: longest candidate wins, ties go to the earlier one.
       4. Return survivors ordered by start offset.
Who:   POST /api/scripture/detect, the scripture processing pipeline and the
       note create flow.

detect() never raises. Every ScriptureMatch it returns satisfies
text[m.start_offset:m.end_offset] == m.raw_text, and parse(m.raw_text)
succeeds for it.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from harvous.exceptions import ParseError
from harvous.scripture.books import DEFAULT_BOOK_TABLE, BookTable
from harvous.scripture.grammar import ReferenceGrammar
from harvous.scripture.parser import ReferenceParser
from harvous.scripture.types import DetectionResult, ScriptureMatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectorConfig:
    """
    Detector switches.

    Attributes:
        allow_chapter_only:            Accept "Genesis 1" without a verse.
        chapter_only_requires_capital: Chapter-only references must start with
                                       a capital letter or a digit, so prose
                                       such as "mark 2 items" is ignored.
        allow_verse_lists:             Accept "John 3:16, 18, 20-22".
    """
    allow_chapter_only: bool = True
    chapter_only_requires_capital: bool = True
    allow_verse_lists: bool = True


class ScriptureDetector:
    """Stateless scanner bound to one book table and one configuration."""

    def __init__(
        self,
        book_table: BookTable = DEFAULT_BOOK_TABLE,
        config: Optional[DetectorConfig] = None,
    ):
        self.config = config or DetectorConfig()
        self.book_table = book_table
        self.grammar = ReferenceGrammar(book_table, allow_verse_lists=self.config.allow_verse_lists)
        self.parser = ReferenceParser(book_table)

    def detect(self, text: str) -> DetectionResult:
        """
        Scan text for scripture references.

        Args:
            text: Any string. Empty or non-string input yields no matches.

        Returns:
            DetectionResult with non-overlapping matches in order of appearance.
        """
        if not text or not isinstance(text, str):
            return DetectionResult()

        candidates: List[ScriptureMatch] = []
        pattern = self.grammar.pattern
        position = 0
        while True:
            found = pattern.search(text, position)
            if found is None:
                break
            candidate = self._to_match(found)
            if candidate is not None:
                candidates.append(candidate)
            position = found.start() + 1

        matches = _resolve_overlaps(candidates)
        if matches:
            logger.debug(
                "Detected %d scripture reference(s): %s",
                len(matches), [m.raw_text for m in matches],
            )
        return DetectionResult(matches=tuple(matches))

    def _to_match(self, found) -> Optional[ScriptureMatch]:
        raw_text = found.group(0)
        chapter_only = found.group("verses") is None

        if chapter_only:
            if not self.config.allow_chapter_only:
                return None
            first = found.group("book")[0]
            if self.config.chapter_only_requires_capital and not (first.isupper() or first.isdigit()):
                return None

        try:
            parsed = self.parser.parse(raw_text)
        except ParseError:
            return None

        return ScriptureMatch(
            raw_text=raw_text,
            book=parsed.book,
            chapter=parsed.chapter,
            verse_start=parsed.verse_start,
            verse_end=parsed.verse_end,
            start_offset=found.start(),
            end_offset=found.end(),
        )


def _resolve_overlaps(candidates: Iterable[ScriptureMatch]) -> List[ScriptureMatch]:
    chosen: List[ScriptureMatch] = []
    for candidate in sorted(candidates, key=lambda m: (-m.length, m.start_offset)):
        if not any(candidate.overlaps(kept) for kept in chosen):
            chosen.append(candidate)
    return sorted(chosen, key=lambda m: m.start_offset)


default_detector = ScriptureDetector()


def detect(text: str) -> DetectionResult:
    """Scan with the default book table and configuration."""
    return default_detector.detect(text)
