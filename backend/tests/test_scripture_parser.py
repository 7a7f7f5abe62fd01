"""
Harvous Backend - Scripture Parser Unit Tests
==============================================

What we test:
    ✅ Canonical book names from abbreviations and ordinal spellings
    ✅ Single verse, range, verse list, chapter-only
    ✅ Canonical reference strings
    ✅ ParseError for unknown books, malformed input, zero and reversed ranges
"""

import pytest

from harvous.exceptions import ParseError
from harvous.scripture import DEFAULT_BOOK_TABLE, BookTable, VerseGroup, parse_reference
from harvous.scripture.books import Book, book_key


class TestParseReference:

    def test_single_verse(self):
        parsed = parse_reference("John 3:16")
        assert parsed.book == "John"
        assert parsed.chapter == 3
        assert parsed.verse_start == 16
        assert parsed.verse_end is None
        assert parsed.verse_groups == (VerseGroup(16, 16),)
        assert parsed.reference == "John 3:16"

    def test_range(self):
        parsed = parse_reference("1 Jn 3:16-18")
        assert parsed.book == "1 John"
        assert (parsed.verse_start, parsed.verse_end) == (16, 18)
        assert parsed.reference == "1 John 3:16-18"

    def test_verse_list(self):
        parsed = parse_reference("Matthew 26:6-13, 17-30")
        assert parsed.verse_groups == (VerseGroup(6, 13), VerseGroup(17, 30))
        assert (parsed.verse_start, parsed.verse_end) == (6, 30)
        assert parsed.reference == "Matthew 26:6-13,17-30"

    def test_chapter_only(self):
        parsed = parse_reference("Genesis 1")
        assert parsed.is_chapter_only
        assert parsed.verse_groups == ()
        assert parsed.reference == "Genesis 1"

    @pytest.mark.parametrize("text,book", [
        ("First John 1:9", "1 John"),
        ("I John 1:9", "1 John"),
        ("1st John 1:9", "1 John"),
        ("1John 1:9", "1 John"),
        ("Song of Solomon 2:4", "Song of Songs"),
        ("Psalm 23", "Psalms"),
        ("Rev. 21:4", "Revelation"),
        ("phil 4:13", "Philippians"),
    ])
    def test_book_spellings(self, text, book):
        assert parse_reference(text).book == book

    def test_whitespace_and_dashes_are_tolerated(self):
        parsed = parse_reference("  John 3 : 16 – 18 ")
        assert parsed.reference == "John 3:16-18"

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        "John",
        "Hezekiah 3:16",
        "John 0:1",
        "John 3:0",
        "John 3:abc",
        "John 3:18-16",
    ])
    def test_invalid_references_raise(self, text):
        with pytest.raises(ParseError):
            parse_reference(text)

    def test_parse_error_carries_reference(self):
        with pytest.raises(ParseError) as exc_info:
            parse_reference("Hezekiah 3:16")
        assert exc_info.value.context["reference"] == "Hezekiah 3:16"


class TestBookTable:

    def test_has_sixty_six_books(self):
        assert len(DEFAULT_BOOK_TABLE) == 66

    def test_canonical_lookup(self):
        assert DEFAULT_BOOK_TABLE.canonical("Jn") == "John"
        assert DEFAULT_BOOK_TABLE.canonical("nope") is None
        assert "Romans" in DEFAULT_BOOK_TABLE

    def test_book_key_folds_ordinals(self):
        assert book_key("1 John") == "1john"
        assert book_key("First John") == "1john"
        assert book_key("I Jn.") == "1jn"

    def test_ambiguous_spelling_rejected(self):
        books = [
            Book(name="Alpha", order=1, testament="old", abbreviations=("Ab",)),
            Book(name="Beta", order=2, testament="old", abbreviations=("Ab",)),
        ]
        with pytest.raises(ValueError):
            BookTable.from_books(books)

    def test_base_spellings_longest_first(self):
        spellings = DEFAULT_BOOK_TABLE.base_spellings()
        assert spellings.index("Song of Solomon") < spellings.index("Song")
