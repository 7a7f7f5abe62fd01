from harvous.tagging.generator import (
    AutoTagResult,
    TagSuggestion,
    is_tag_overlapping,
    suggest_tags,
    tag_color,
)
from harvous.tagging.keywords import KEYWORDS, Keyword, KeywordHit, find_keywords, find_keywords_with_priority

__all__ = [
    "AutoTagResult",
    "KEYWORDS",
    "Keyword",
    "KeywordHit",
    "TagSuggestion",
    "find_keywords",
    "find_keywords_with_priority",
    "is_tag_overlapping",
    "suggest_tags",
    "tag_color",
]
