"""
Harvous Backend - Verse Provider Interface
===========================================

What:  Abstract contract for services that return Bible passage text.
How:   Concrete providers implement fetch_passage() for a passage string and
       inherit fetch_reference(), which turns a ParsedReference into display
       text (one request per verse group when there are several).
Who:   ScriptureService and the fetch-verse endpoint depend on this interface;
       BibleOrgService is the production implementation.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from harvous.scripture.types import ParsedReference, VerseGroup

GROUP_DIVIDER = (
    '<hr style="margin: 1rem 0; border: none; '
    'border-top: 1px solid var(--color-stone-grey); opacity: 0.3;" />'
)


@dataclass(frozen=True)
class Verse:
    book: str
    chapter: int
    verse: int
    text: str


@dataclass(frozen=True)
class PassageText:
    """Text of a reference, ready to store as note content."""
    reference: str
    translation: str
    verses: List[Verse]
    text: str

    @property
    def is_empty(self) -> bool:
        return not self.verses


def _group_label(group: VerseGroup) -> str:
    if group.start == group.end:
        return f"Verse {group.start}:"
    return f"Verses {group.start}-{group.end}:"


class VerseProvider(ABC):
    """
    Contract:
        - fetch_passage() returns the verses of one passage ("John 3:16-18")
        - implementations handle their own retries and circuit breaking
        - upstream failures surface as VerseServiceError or
          CircuitBreakerOpenError, never as transport exceptions
    """

    translation: str = "NET"

    @abstractmethod
    async def fetch_passage(self, passage: str) -> List[Verse]:
        """
        Verses of a single passage, in order. Empty when the passage has none.

        Raises:
            VerseServiceError: The provider failed after all retries.
            CircuitBreakerOpenError: Recent failures opened the circuit.
        """
        ...

    @abstractmethod
    async def health_check(self) -> str:
        """One of "available", "recovering", "circuit_open"."""
        ...

    async def fetch_reference(self, parsed: ParsedReference) -> PassageText:
        """
        Text for a parsed reference.

        A single verse or range is fetched in one call and joined with spaces.
        A verse list ("26:6-13,17-30") is fetched group by group, concurrently,
        and rendered as labelled HTML paragraphs separated by dividers.
        """
        groups = list(parsed.verse_groups)
        if len(groups) <= 1:
            verses = await self.fetch_passage(parsed.reference)
            text = " ".join(verse.text for verse in verses)
            return PassageText(parsed.reference, self.translation, verses, text)

        passages = [
            f"{parsed.book} {parsed.chapter}:{group.start}-{group.end}" for group in groups
        ]
        results = await asyncio.gather(*(self.fetch_passage(p) for p in passages))

        verses: List[Verse] = []
        parts: List[str] = []
        for index, (group, group_verses) in enumerate(zip(groups, results)):
            in_group = [v for v in group_verses if group.start <= v.verse <= group.end]
            verses.extend(in_group)
            if not in_group:
                continue
            parts.append(f"<p><strong>{_group_label(group)}</strong></p>")
            parts.append(f"<p>{' '.join(v.text for v in in_group)}</p>")
            if index < len(groups) - 1:
                parts.append(GROUP_DIVIDER)

        return PassageText(parsed.reference, self.translation, verses, "".join(parts))
