"""
Harvous Backend - Scripture Reference Grammar
==============================================

What:  The textual shapes recognized as scripture references:
           <book> <chapter>
           <book> <chapter>:<verse>
           <book> <chapter>:<verse>-<verse>
           <book> <chapter>:<verse>[-<verse>], <verse>[-<verse>], ...
How:   A single case-insensitive regular expression is compiled from a
       BookTable. Book names are tried longest first ("Song of Solomon"
       before "Song", "Philippians" before "Phil"). Numbered books accept a
       digit, roman or spelled ordinal prefix ("1 John", "1John", "I John",
       "First John", "1st John").
Who:   ScriptureDetector scans with `pattern`; ReferenceParser validates what
       it finds.

Guards built into the pattern:
    - numbers are at most three digits and never cut out of a longer number
    - a chapter followed by ":<digit>" that cannot be read as verses is not a
      chapter-only reference
    - a list item is rejected when it is immediately followed by a book name,
      so "Hebrews 13:2, 1 Peter 4:9" leaves "1" to the second reference
    - a range end or list item followed by ":<digit>" (a new chapter) is
      rejected; cross-chapter ranges are not part of the grammar
"""

import re
from typing import Iterable, Pattern

from harvous.scripture.books import DEFAULT_BOOK_TABLE, BookTable

ORDINAL = r"(?:[123](?:st|nd|rd)?\s*|(?:iii|ii|i|first|second|third)\s+)"
NUMBER = r"\d{1,3}(?!\d)"
DASH = r"[-–—]"
NEW_CHAPTER = r"(?!\s*:\s*\d)"


def _alternation(spellings: Iterable[str]) -> str:
    return "|".join(re.escape(s).replace(r"\ ", r"\s+") for s in spellings)


class ReferenceGrammar:
    """
    Compiled reference pattern for one book table.

    Named groups in `pattern`:
        book     - book spelling as written, including any ordinal prefix
        chapter  - chapter digits
        verses   - everything after the colon, or None for chapter-only
    """

    def __init__(
        self,
        book_table: BookTable = DEFAULT_BOOK_TABLE,
        allow_verse_lists: bool = True,
    ):
        self.book_table = book_table
        self.allow_verse_lists = allow_verse_lists
        self.pattern: Pattern[str] = re.compile(self._build(), re.IGNORECASE)

    def _build(self) -> str:
        names = _alternation(self.book_table.base_spellings())

        book = rf"(?P<book>{ORDINAL}?(?:{names}))\b"
        separator = r"(?:\.\s*|\s+)"
        chapter = rf"(?P<chapter>{NUMBER})"

        verse_range = rf"{NUMBER}(?:\s*{DASH}\s*{NUMBER}{NEW_CHAPTER})?"
        verses = verse_range
        if self.allow_verse_lists:
            next_book = rf"(?:st|nd|rd)?\.?\s*(?:{names})\b"
            verses += rf"(?:\s*,\s*{verse_range}{NEW_CHAPTER}(?!{next_book}))*"

        return (
            rf"(?<!\w){book}{separator}{chapter}"
            rf"(?:\s*:\s*(?P<verses>{verses}))?"
            rf"{NEW_CHAPTER}"
        )

    def __repr__(self) -> str:
        return (
            f"ReferenceGrammar(books={len(self.book_table)}, "
            f"allow_verse_lists={self.allow_verse_lists})"
        )
