"""
Harvous Backend - Auto-Tag Suggestion
======================================

What:  Picks up to N tag suggestions for a note from its title and content.
How:   1. Strip HTML, find keyword hits (title hits boosted).
       2. Walk hits best first and keep those that pass every filter:
            - not "God"
            - single word
            - confidence >= threshold
            - no overlap with a suggestion already kept
       3. Mark suggestions that match one of the user's tags (newest wins).
       4. Boost Bible-study categories by +0.05, re-sort, keep the top N.
Who:   TagService.generate_auto_tags (and through it note create/update and
       POST /api/notes/auto-tags).

Pure: no database access. Existing tags are passed in by the caller.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Protocol, Sequence

from harvous.tagging.keywords import KeywordHit, find_keywords_with_priority
from harvous.utils.html import html_to_plain_text

DEFAULT_THRESHOLD = 0.7
DEFAULT_MAX_SUGGESTIONS = 8
HIGH_CONFIDENCE = 0.8
BIBLE_STUDY_BOOST = 0.05
BIBLE_STUDY_CATEGORIES = frozenset({"spiritual", "biblical", "character", "book", "theme"})

# Always present in this kind of note, so never worth a tag
IMPLIED_KEYWORDS = frozenset({"god"})

OVERLAPPING_PAIRS = frozenset(
    frozenset(pair)
    for pair in (
        ("goodness", "righteousness"),
        ("grace", "mercy"),
        ("love", "mercy"),
        ("faith", "belief"),
        ("hope", "faith"),
        ("peace", "joy"),
        ("kingdom of god", "heaven"),
        ("resurrection", "eternal life"),
        ("eternal life", "everlasting life"),
        ("holy spirit", "spirit"),
        ("jesus", "christ"),
        ("jesus", "lord"),
        ("god", "father"),
        ("god", "lord"),
    )
)

CATEGORY_COLORS = {
    "spiritual": "#006eff",
    "biblical": "#28a745",
    "character": "#ffc107",
    "place": "#17a2b8",
    "book": "#6f42c1",
    "theme": "#fd7e14",
    "life": "#e83e8c",
}
DEFAULT_TAG_COLOR = "#006eff"


class ExistingTag(Protocol):
    id: object
    name: str
    created_at: Optional[datetime]


@dataclass
class TagSuggestion:
    keyword: str
    category: str
    confidence: float
    is_existing: bool = False
    tag_id: Optional[object] = None


@dataclass
class AutoTagResult:
    suggestions: List[TagSuggestion] = field(default_factory=list)
    total_found: int = 0
    high_confidence: int = 0


def tag_color(category: str) -> str:
    return CATEGORY_COLORS.get(category, DEFAULT_TAG_COLOR)


def is_tag_overlapping(new_tag: str, existing_tag: str) -> bool:
    """True when two tag names mean (nearly) the same thing."""
    new_lower = new_tag.lower()
    existing_lower = existing_tag.lower()
    if new_lower in existing_lower or existing_lower in new_lower:
        return True
    return frozenset((new_lower, existing_lower)) in OVERLAPPING_PAIRS


def _newest_tag(tags: Iterable[ExistingTag], name: str) -> Optional[ExistingTag]:
    same_name = [tag for tag in tags if tag.name.lower() == name.lower()]
    if not same_name:
        return None
    return max(same_name, key=lambda tag: tag.created_at or datetime.min)


def _accepts(hit: KeywordHit, threshold: float, kept: Sequence[TagSuggestion]) -> bool:
    name = hit.keyword.name
    if name.lower() in IMPLIED_KEYWORDS or " " in name:
        return False
    if hit.confidence < threshold:
        return False
    return not any(is_tag_overlapping(name, suggestion.keyword) for suggestion in kept)


def suggest_tags(
    title: Optional[str],
    content: Optional[str],
    existing_tags: Iterable[ExistingTag] = (),
    threshold: float = DEFAULT_THRESHOLD,
    max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
) -> AutoTagResult:
    """
    Suggest tags for a note.

    Args:
        title:           Note title (plain text).
        content:         Note content (HTML or plain text).
        existing_tags:   The user's tags; used to mark suggestions as existing.
        threshold:       Minimum keyword confidence.
        max_suggestions: Size of the returned list.

    Returns:
        AutoTagResult. total_found and high_confidence count every accepted
        suggestion, before the list is cut to max_suggestions.
    """
    clean_title = (title or "").strip()
    clean_content = html_to_plain_text(content or "")
    if not clean_title and not clean_content:
        return AutoTagResult()

    existing_tags = list(existing_tags)
    kept: List[TagSuggestion] = []
    high_confidence = 0

    for hit in find_keywords_with_priority(clean_title, clean_content):
        if not _accepts(hit, threshold, kept):
            continue
        existing = _newest_tag(existing_tags, hit.keyword.name)
        kept.append(TagSuggestion(
            keyword=hit.keyword.name,
            category=hit.keyword.category,
            confidence=hit.confidence,
            is_existing=existing is not None,
            tag_id=existing.id if existing is not None else None,
        ))
        if hit.confidence >= HIGH_CONFIDENCE:
            high_confidence += 1

    for suggestion in kept:
        if suggestion.category in BIBLE_STUDY_CATEGORIES:
            suggestion.confidence = min(1.0, suggestion.confidence + BIBLE_STUDY_BOOST)
    kept.sort(key=lambda s: s.confidence, reverse=True)

    return AutoTagResult(
        suggestions=kept[:max_suggestions],
        total_found=len(kept),
        high_confidence=high_confidence,
    )
