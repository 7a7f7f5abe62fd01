"""
Harvous Backend - Reference Formatting and Highlighting Tests
==============================================================

What we test:
    ✅ normalize_reference canonical form and whitespace fallback
    ✅ display <-> API forms of verse lists
    ✅ highlight_references wraps, matches flexible whitespace, never nests
"""

import pytest

from harvous.scripture import (
    format_reference_for_api,
    format_reference_for_display,
    highlight_references,
    normalize_reference,
)
from harvous.scripture.highlighter import note_link


class TestNormalizeReference:

    @pytest.mark.parametrize("raw,expected", [
        ("Jn 3: 16 - 17", "John 3:16-17"),
        ("Matthew 26:6-13, 17-30", "Matthew 26:6-13,17-30"),
        ("Matthew 26:6-13 | 17-30", "Matthew 26:6-13,17-30"),
        ("gen 1", "Genesis 1"),
        ("John 3:16", "John 3:16"),
    ])
    def test_canonical_form(self, raw, expected):
        assert normalize_reference(raw) == expected

    def test_unparseable_reference_only_gets_spacing_fixed(self):
        assert normalize_reference("Foo  1:  2 -  3") == "Foo 1:2-3"

    def test_empty(self):
        assert normalize_reference("") == ""


class TestDisplayAndApiForms:

    def test_display_separates_groups_with_pipes(self):
        assert format_reference_for_display("Matthew 26:6-13,17-30") == "Matthew 26:6-13 | 17-30"

    def test_display_leaves_single_range_alone(self):
        assert format_reference_for_display("John 3:16-18") == "John 3:16-18"

    def test_api_form_is_inverse_of_display(self):
        display = format_reference_for_display("Matthew 26:6-13,17-30")
        assert format_reference_for_api(display) == "Matthew 26:6-13,17-30"


class TestHighlightReferences:

    def test_wraps_reference_in_note_link(self):
        content = "<p>Read John 3:16 today</p>"
        result = highlight_references(content, [("John 3:16", "note-1")])
        assert result == f"<p>Read {note_link('John 3:16', 'note-1')} today</p>"
        assert 'class="note-link"' in result
        assert 'data-note-id="note-1"' in result

    def test_whitespace_in_reference_is_flexible(self):
        content = "<p>Read John\n 3:16</p>"
        result = highlight_references(content, [("John 3:16", "note-1")])
        assert 'data-note-id="note-1"' in result
        assert "John\n 3:16</span>" in result

    def test_case_insensitive(self):
        result = highlight_references("<p>john 3:16</p>", [("John 3:16", "n")])
        assert ">john 3:16</span>" in result

    def test_running_twice_does_not_nest(self):
        once = highlight_references("<p>Romans 8:28</p>", [("Romans 8:28", "n1")])
        twice = highlight_references(once, [("Romans 8:28", "n1")])
        assert twice == once
        assert twice.count("note-link") == 1

    def test_text_inside_other_link_is_left_alone(self):
        content = f"<p>{note_link('See Romans 8:28', 'other')}</p>"
        assert highlight_references(content, [("Romans 8:28", "n1")]) == content

    def test_several_references(self):
        content = "<p>John 3:16 and Romans 8:28</p>"
        result = highlight_references(content, [("John 3:16", "a"), ("Romans 8:28", "b")])
        assert 'data-note-id="a"' in result
        assert 'data-note-id="b"' in result

    def test_note_id_is_escaped(self):
        result = highlight_references("<p>John 3:16</p>", [("John 3:16", '"><script>')])
        assert "<script>" not in result

    @pytest.mark.parametrize("content,refs", [("", [("John 3:16", "a")]), ("<p>x</p>", [])])
    def test_nothing_to_do(self, content, refs):
        assert highlight_references(content, refs) == content

    def test_reference_is_not_matched_inside_a_longer_verse(self):
        content = "<p>John 3:1 and John 3:16</p>"
        result = highlight_references(content, [("John 3:1", "A"), ("John 3:16", "B")])
        assert result == (
            f"<p>{note_link('John 3:1', 'A')} and {note_link('John 3:16', 'B')}</p>"
        )

    def test_only_shorter_reference_leaves_longer_verse_alone(self):
        content = "<p>John 3:16</p>"
        assert highlight_references(content, [("John 3:1", "A")]) == content

    def test_numbered_book_is_not_split(self):
        content = "<p>1 John 3:1 and John 3:1</p>"
        result = highlight_references(content, [("John 3:1", "A"), ("1 John 3:1", "B")])
        assert result == (
            f"<p>{note_link('1 John 3:1', 'B')} and {note_link('John 3:1', 'A')}</p>"
        )

    def test_numbered_book_alone_is_not_matched_by_plain_book(self):
        content = "<p>1 John 3:1</p>"
        assert highlight_references(content, [("John 3:1", "A")]) == content
