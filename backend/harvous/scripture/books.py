"""
Harvous Backend - Canonical Book Table
=======================================

What:  The fixed mapping from every accepted spelling of a Bible book to its
       canonical name, for the 66 books of the Protestant canon.
How:   BOOKS lists each book once with its common abbreviations. BookTable
       turns that list into an immutable lookup keyed by a normalized form of
       the name (lowercase, no periods, no spaces, ordinal prefix folded to a
       digit), so "1 Jn", "1Jn.", "I Jn" and "First John" all resolve to
       "1 John".
Who:   Owned by ReferenceGrammar, ReferenceParser and ScriptureDetector, and
       read by the auto-tag keyword table.

The table is built once and never mutated. Instances are passed in at
construction time instead of being read from module state, which keeps the
detector testable with a reduced table.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Book:
    """A canonical book and the abbreviations it is commonly written with."""
    name: str
    order: int
    testament: str
    abbreviations: Tuple[str, ...] = ()

    @property
    def is_numbered(self) -> bool:
        return self.name[0].isdigit()


def _book(order: int, name: str, *abbreviations: str) -> Book:
    return Book(
        name=name,
        order=order,
        testament="old" if order <= 39 else "new",
        abbreviations=tuple(abbreviations),
    )


# Two-letter forms that collide with everyday English ("is", "am") are left
# out on purpose; "Isa" and "Amos" still resolve.
BOOKS: Tuple[Book, ...] = (
    _book(1, "Genesis", "Gen", "Ge", "Gn"),
    _book(2, "Exodus", "Exod", "Exo", "Ex"),
    _book(3, "Leviticus", "Lev", "Lv"),
    _book(4, "Numbers", "Num", "Nm", "Nu"),
    _book(5, "Deuteronomy", "Deut", "Deu", "Dt"),
    _book(6, "Joshua", "Josh", "Jos"),
    _book(7, "Judges", "Judg", "Jdg", "Jg"),
    _book(8, "Ruth", "Rth", "Ru"),
    _book(9, "1 Samuel", "1 Sam", "1 Sa", "1 Sm"),
    _book(10, "2 Samuel", "2 Sam", "2 Sa", "2 Sm"),
    _book(11, "1 Kings", "1 Kgs", "1 Ki"),
    _book(12, "2 Kings", "2 Kgs", "2 Ki"),
    _book(13, "1 Chronicles", "1 Chron", "1 Chr", "1 Ch"),
    _book(14, "2 Chronicles", "2 Chron", "2 Chr", "2 Ch"),
    _book(15, "Ezra", "Ezr"),
    _book(16, "Nehemiah", "Neh", "Ne"),
    _book(17, "Esther", "Esth", "Est"),
    _book(18, "Job", "Jb"),
    _book(19, "Psalms", "Psalm", "Psa", "Pss", "Psm", "Ps"),
    _book(20, "Proverbs", "Proverb", "Prov", "Pro", "Prv", "Pr"),
    _book(21, "Ecclesiastes", "Eccles", "Eccl", "Ecc", "Qoh"),
    _book(22, "Song of Songs", "Song of Solomon", "Canticles", "Song", "SOS", "Sg"),
    _book(23, "Isaiah", "Isa"),
    _book(24, "Jeremiah", "Jer", "Je"),
    _book(25, "Lamentations", "Lam", "La"),
    _book(26, "Ezekiel", "Ezek", "Eze", "Ezk"),
    _book(27, "Daniel", "Dan", "Dn", "Da"),
    _book(28, "Hosea", "Hos", "Ho"),
    _book(29, "Joel", "Jl"),
    _book(30, "Amos"),
    _book(31, "Obadiah", "Obad", "Ob"),
    _book(32, "Jonah", "Jon", "Jnh"),
    _book(33, "Micah", "Mic", "Mc"),
    _book(34, "Nahum", "Nah", "Na"),
    _book(35, "Habakkuk", "Hab", "Hb"),
    _book(36, "Zephaniah", "Zeph", "Zep"),
    _book(37, "Haggai", "Hag", "Hg"),
    _book(38, "Zechariah", "Zech", "Zec"),
    _book(39, "Malachi", "Mal"),
    _book(40, "Matthew", "Matt", "Mat", "Mt"),
    _book(41, "Mark", "Mrk", "Mk", "Mr"),
    _book(42, "Luke", "Luk", "Lk"),
    _book(43, "John", "Jhn", "Joh", "Jn"),
    _book(44, "Acts", "Acts of the Apostles", "Act", "Ac"),
    _book(45, "Romans", "Rom", "Ro", "Rm"),
    _book(46, "1 Corinthians", "1 Cor", "1 Co"),
    _book(47, "2 Corinthians", "2 Cor", "2 Co"),
    _book(48, "Galatians", "Gal", "Ga"),
    _book(49, "Ephesians", "Ephes", "Eph"),
    _book(50, "Philippians", "Phil", "Php", "Pp"),
    _book(51, "Colossians", "Col"),
    _book(52, "1 Thessalonians", "1 Thess", "1 Thes", "1 Th"),
    _book(53, "2 Thessalonians", "2 Thess", "2 Thes", "2 Th"),
    _book(54, "1 Timothy", "1 Tim", "1 Ti"),
    _book(55, "2 Timothy", "2 Tim", "2 Ti"),
    _book(56, "Titus", "Tit"),
    _book(57, "Philemon", "Philem", "Phlm", "Phm"),
    _book(58, "Hebrews", "Heb"),
    _book(59, "James", "Jas", "Jm"),
    _book(60, "1 Peter", "1 Pet", "1 Pe", "1 Pt"),
    _book(61, "2 Peter", "2 Pet", "2 Pe", "2 Pt"),
    _book(62, "1 John", "1 Jhn", "1 Joh", "1 Jn"),
    _book(63, "2 John", "2 Jhn", "2 Joh", "2 Jn"),
    _book(64, "3 John", "3 Jhn", "3 Joh", "3 Jn"),
    _book(65, "Jude", "Jud", "Jd"),
    _book(66, "Revelation", "Revelations", "Apocalypse", "Rev", "Rv", "Re"),
)


# Ordinal spellings accepted in front of numbered books ("1st John", "II Kings").
ORDINALS: Mapping[str, str] = MappingProxyType({
    "1": "1", "2": "2", "3": "3",
    "1st": "1", "2nd": "2", "3rd": "3",
    "first": "1", "second": "2", "third": "3",
    "i": "1", "ii": "2", "iii": "3",
})

_ORDINAL_PREFIX = re.compile(
    r"^(?P<ordinal>1st|2nd|3rd|first|second|third|iii|ii|i|1|2|3)"
    r"(?:\s+|(?<=\d)(?=[a-z]))"
)


def book_key(name: str) -> str:
    """
    Normalize a book spelling into the lookup key used by BookTable.

    Examples:
        "1 John"     -> "1john"
        "I Jn."      -> "1jn"
        "First John" -> "1john"
        "Song of Solomon" -> "songofsolomon"
    """
    key = " ".join(name.lower().replace(".", " ").split())
    match = _ORDINAL_PREFIX.match(key)
    if match:
        key = ORDINALS[match.group("ordinal")] + key[match.end():]
    return key.replace(" ", "")


def strip_ordinal(name: str) -> str:
    """Drop a leading "1 "/"2 "/"3 " from a numbered book spelling."""
    if name[:1].isdigit():
        return name[1:].lstrip()
    return name


@dataclass(frozen=True)
class BookTable:
    """
    Immutable lookup from any accepted book spelling to its canonical name.

    Build with BookTable.from_books(); the default 66-book table is available
    as DEFAULT_BOOK_TABLE.
    """
    books: Tuple[Book, ...]
    _index: Mapping[str, str] = field(repr=False, compare=False, default_factory=dict)

    @classmethod
    def from_books(cls, books: Iterable[Book]) -> "BookTable":
        books = tuple(books)
        index: Dict[str, str] = {}
        for book in books:
            for spelling in (book.name, *book.abbreviations):
                key = book_key(spelling)
                existing = index.get(key)
                if existing is not None and existing != book.name:
                    raise ValueError(
                        f"Book spelling '{spelling}' is ambiguous between "
                        f"'{existing}' and '{book.name}'"
                    )
                index[key] = book.name
        return cls(books=books, _index=MappingProxyType(index))

    def canonical(self, name: str) -> Optional[str]:
        """Canonical name for a spelling, or None when it is not a book."""
        if not name or not name.strip():
            return None
        return self._index.get(book_key(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.canonical(name) is not None

    def __len__(self) -> int:
        return len(self.books)

    @property
    def names(self) -> List[str]:
        return [book.name for book in self.books]

    def base_spellings(self) -> List[str]:
        """
        Every spelling with its numeric prefix removed, longest first.

        The grammar matches an optional ordinal followed by one of these, so
        "Samuel" and "Sam" appear here once even though they belong to both
        1 and 2 Samuel.
        """
        spellings = set()
        for book in self.books:
            for spelling in (book.name, *book.abbreviations):
                spellings.add(strip_ordinal(spelling))
        return sorted(spellings, key=lambda s: (-len(s), s.lower()))

    def spellings_for(self, name: str) -> Tuple[str, ...]:
        """All spellings (canonical first) of the book with the given canonical name."""
        for book in self.books:
            if book.name == name:
                return (book.name, *book.abbreviations)
        return ()


DEFAULT_BOOK_TABLE = BookTable.from_books(BOOKS)
