"""
Harvous Backend - Auto-Tagging Unit Tests
==========================================

What we test:
    ✅ Keyword scoring: name hits, synonym-only hits, title boost
    ✅ Word-boundary matching for books and characters
    ✅ Suggestion filters: implied "God", overlaps, threshold, list size
    ✅ Existing user tags are recognized (newest wins)
"""

from datetime import datetime
from types import SimpleNamespace

import pytest

from harvous.tagging import (
    find_keywords,
    find_keywords_with_priority,
    is_tag_overlapping,
    suggest_tags,
    tag_color,
)


def _hit(hits, name):
    return next((hit for hit in hits if hit.keyword.name == name), None)


def _names(result):
    return [s.keyword for s in result.suggestions]


class TestFindKeywords:

    def test_name_hit_uses_base_confidence(self):
        hit = _hit(find_keywords("A morning of prayer"), "Prayer")
        assert hit is not None
        assert hit.confidence == pytest.approx(0.8)

    def test_synonym_only_hit_is_discounted(self):
        hit = _hit(find_keywords("Learning to trust again"), "Faith")
        assert hit is not None
        assert hit.confidence == pytest.approx(0.64)

    def test_characters_match_whole_words_only(self):
        hits = find_keywords("She was adamant about every detail")
        assert _hit(hits, "Adam") is None
        assert _hit(hits, "Eve") is None

    def test_character_found_as_whole_word(self):
        assert _hit(find_keywords("Adam and Eve in the garden"), "Eve") is not None

    def test_books_come_from_book_table(self):
        hit = _hit(find_keywords("Notes on Romans"), "Romans")
        assert hit is not None
        assert hit.keyword.category == "book"

    def test_sorted_by_confidence(self):
        hits = find_keywords("Jesus taught about family")
        confidences = [hit.confidence for hit in hits]
        assert confidences == sorted(confidences, reverse=True)

    def test_empty_text(self):
        assert find_keywords("") == []


class TestTitlePriority:

    def test_title_hit_is_boosted(self):
        hit = _hit(find_keywords_with_priority("Prayer", "some notes"), "Prayer")
        assert hit.confidence == pytest.approx(0.9)

    def test_content_hit_is_not_boosted(self):
        hit = _hit(find_keywords_with_priority("Sunday", "about prayer"), "Prayer")
        assert hit.confidence == pytest.approx(0.8)

    def test_boost_is_capped(self):
        hit = _hit(find_keywords_with_priority("Jesus", ""), "Jesus")
        assert hit.confidence == pytest.approx(1.0)


class TestSuggestTags:

    def test_god_is_never_suggested(self):
        result = suggest_tags("", "<p>God is love</p>")
        assert "God" not in _names(result)
        assert "Love" in _names(result)

    def test_overlapping_themes_keep_one(self):
        names = _names(suggest_tags("", "grace and mercy"))
        assert not ("Grace" in names and "Mercy" in names)
        assert "Grace" in names or "Mercy" in names

    def test_multi_word_keywords_skipped(self):
        assert "Holy Spirit" not in _names(suggest_tags("", "the holy spirit moves"))

    def test_bible_study_categories_boosted(self):
        result = suggest_tags("", "prayer")
        assert result.suggestions[0].keyword == "Prayer"
        assert result.suggestions[0].confidence == pytest.approx(0.85)

    def test_life_category_not_boosted(self):
        result = suggest_tags("", "family")
        assert result.suggestions[0].confidence == pytest.approx(0.7)

    def test_threshold_filters(self):
        assert suggest_tags("", "family", threshold=0.75).suggestions == []

    def test_max_suggestions_cuts_list_but_not_totals(self):
        result = suggest_tags("", "prayer faith joy worship covenant family", max_suggestions=2)
        assert len(result.suggestions) == 2
        assert result.total_found > 2
        assert result.high_confidence >= 2

    def test_existing_tag_marked_newest_wins(self):
        older = SimpleNamespace(id="old", name="Prayer", created_at=datetime(2024, 1, 1))
        newer = SimpleNamespace(id="new", name="prayer", created_at=datetime(2025, 1, 1))
        result = suggest_tags("", "prayer", existing_tags=[older, newer])
        suggestion = result.suggestions[0]
        assert suggestion.is_existing is True
        assert suggestion.tag_id == "new"

    def test_new_tag_not_marked_existing(self):
        suggestion = suggest_tags("", "prayer").suggestions[0]
        assert suggestion.is_existing is False
        assert suggestion.tag_id is None

    @pytest.mark.parametrize("title,content", [(None, None), ("", "<p>  </p>")])
    def test_nothing_to_tag(self, title, content):
        result = suggest_tags(title, content)
        assert result.suggestions == []
        assert result.total_found == 0


class TestHelpers:

    @pytest.mark.parametrize("new,existing,expected", [
        ("Faith", "Faithfulness", True),
        ("Grace", "Mercy", True),
        ("mercy", "GRACE", True),
        ("Hope", "Love", False),
    ])
    def test_is_tag_overlapping(self, new, existing, expected):
        assert is_tag_overlapping(new, existing) is expected

    def test_tag_color(self):
        assert tag_color("book") == "#6f42c1"
        assert tag_color("unknown") == "#006eff"
