"""
Harvous Backend - Bible Study Keyword Table
============================================

What:  The vocabulary auto-tagging looks for: books, characters, places,
       spiritual and biblical themes, and everyday life themes, each with
       synonyms and a base confidence.
How:   Book keywords come straight from the scripture BookTable (canonical
       name plus abbreviations of three or more letters) so the two stay in
       step. Book and character names are matched on word boundaries; every
       other category is a plain substring test on lowercased text.

Scoring:
    name hit              → base confidence
    synonym-only hit      → base confidence × 0.8
    hit inside the title  → +0.1 (capped at 1.0), see find_keywords_with_priority
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Pattern, Tuple

from harvous.scripture.books import DEFAULT_BOOK_TABLE, BookTable

SYNONYM_FACTOR = 0.8
TITLE_BOOST = 0.1

WORD_BOUNDARY_CATEGORIES = frozenset({"book", "character"})


@dataclass(frozen=True)
class Keyword:
    name: str
    category: str
    synonyms: Tuple[str, ...]
    confidence: float

    def terms(self) -> Tuple[str, ...]:
        return (self.name.lower(), *(s.lower() for s in self.synonyms))


@dataclass(frozen=True)
class KeywordHit:
    keyword: Keyword
    confidence: float


def _kw(name: str, category: str, confidence: float, *synonyms: str) -> Keyword:
    return Keyword(name=name, category=category, synonyms=tuple(synonyms), confidence=confidence)


def book_keywords(book_table: BookTable = DEFAULT_BOOK_TABLE) -> Tuple[Keyword, ...]:
    keywords = []
    for book in book_table.books:
        synonyms = tuple(
            abbreviation.lower()
            for abbreviation in book.abbreviations
            if len(abbreviation.replace(" ", "").lstrip("123")) >= 3
        )
        keywords.append(_kw(book.name, "book", 0.9, *synonyms))
    return tuple(keywords)


CHARACTERS: Tuple[Keyword, ...] = (
    _kw("Jesus", "character", 0.95, "christ", "jesus christ", "lord", "savior", "messiah"),
    _kw("God", "character", 0.95, "lord", "father", "almighty", "creator"),
    _kw("Holy Spirit", "character", 0.9, "spirit", "holy ghost", "comforter"),
    _kw("Moses", "character", 0.9),
    _kw("Abraham", "character", 0.9, "abram"),
    _kw("David", "character", 0.9),
    _kw("Paul", "character", 0.9, "apostle paul", "saul"),
    _kw("Peter", "character", 0.9, "simon peter", "simon"),
    _kw("John", "character", 0.9, "apostle john", "john the apostle"),
    _kw("Mary", "character", 0.9, "virgin mary", "mary mother of jesus"),
    _kw("Noah", "character", 0.9),
    _kw("Adam", "character", 0.9),
    _kw("Eve", "character", 0.9),
    _kw("Joseph", "character", 0.9, "joseph son of jacob", "joseph of egypt"),
    _kw("Jacob", "character", 0.9, "israel"),
    _kw("Isaac", "character", 0.9),
    _kw("Sarah", "character", 0.9, "sarah wife of abraham"),
    _kw("Elijah", "character", 0.9),
    _kw("Elisha", "character", 0.9),
    _kw("Daniel", "character", 0.9, "prophet daniel"),
    _kw("Esther", "character", 0.9),
    _kw("Ruth", "character", 0.9),
    _kw("Samson", "character", 0.9),
    _kw("Samuel", "character", 0.9),
    _kw("Solomon", "character", 0.9),
    _kw("Isaiah", "character", 0.9, "prophet isaiah"),
    _kw("Jeremiah", "character", 0.9, "prophet jeremiah"),
    _kw("Ezekiel", "character", 0.9, "prophet ezekiel"),
    _kw("Jonah", "character", 0.9, "prophet jonah"),
    _kw("John the Baptist", "character", 0.9, "john baptist", "baptist"),
    _kw("Mary Magdalene", "character", 0.9, "magdalene"),
    _kw("Thomas", "character", 0.9, "doubting thomas"),
    _kw("Judas", "character", 0.9, "judas iscariot"),
    _kw("Pilate", "character", 0.9, "pontius pilate"),
)

PLACES: Tuple[Keyword, ...] = (
    _kw("Jerusalem", "place", 0.9, "holy city", "zion"),
    _kw("Bethlehem", "place", 0.9),
    _kw("Nazareth", "place", 0.9),
    _kw("Galilee", "place", 0.9),
    _kw("Capernaum", "place", 0.9),
    _kw("Gethsemane", "place", 0.9),
    _kw("Golgotha", "place", 0.9, "calvary"),
    _kw("Garden of Eden", "place", 0.9, "eden"),
    _kw("Mount Sinai", "place", 0.9, "sinai"),
    _kw("Red Sea", "place", 0.9),
    _kw("Jordan River", "place", 0.9, "jordan"),
    _kw("Dead Sea", "place", 0.9),
    _kw("Mount of Olives", "place", 0.9, "olives"),
    _kw("Rome", "place", 0.9),
    _kw("Corinth", "place", 0.9),
    _kw("Ephesus", "place", 0.9),
    _kw("Philippi", "place", 0.9),
    _kw("Thessalonica", "place", 0.9),
    _kw("Antioch", "place", 0.9),
)

SPIRITUAL_THEMES: Tuple[Keyword, ...] = (
    _kw("Prayer", "spiritual", 0.8, "praying", "intercession", "petition"),
    _kw("Faith", "spiritual", 0.8, "belief", "trust", "confidence"),
    _kw("Love", "spiritual", 0.8, "charity", "agape", "compassion"),
    _kw("Hope", "spiritual", 0.8, "expectation", "anticipation"),
    _kw("Grace", "spiritual", 0.8, "favor", "mercy", "unmerited favor"),
    _kw("Mercy", "spiritual", 0.8, "compassion", "forgiveness", "pity"),
    _kw("Forgiveness", "spiritual", 0.8, "pardon", "absolution", "reconciliation"),
    _kw("Salvation", "spiritual", 0.8, "redemption", "deliverance", "rescue"),
    _kw("Repentance", "spiritual", 0.8, "turning", "conversion", "change of heart"),
    _kw("Worship", "spiritual", 0.8, "praise", "adoration", "reverence"),
    _kw("Praise", "spiritual", 0.8, "worship", "glorify", "exalt"),
    _kw("Thanksgiving", "spiritual", 0.8, "gratitude", "thankfulness"),
    _kw("Peace", "spiritual", 0.8, "tranquility", "serenity", "shalom"),
    _kw("Joy", "spiritual", 0.8, "gladness", "happiness", "rejoicing"),
    _kw("Patience", "spiritual", 0.8, "endurance", "perseverance", "longsuffering"),
    _kw("Kindness", "spiritual", 0.8, "gentleness", "goodness", "compassion"),
    _kw("Goodness", "spiritual", 0.8, "virtue", "righteousness", "moral excellence"),
    _kw("Faithfulness", "spiritual", 0.8, "loyalty", "reliability", "steadfastness"),
    _kw("Gentleness", "spiritual", 0.8, "meekness", "humility", "mildness"),
    _kw("Self-control", "spiritual", 0.8, "temperance", "discipline", "restraint"),
)

BIBLICAL_THEMES: Tuple[Keyword, ...] = (
    _kw("Covenant", "biblical", 0.8, "agreement", "promise", "pact"),
    _kw("Redemption", "biblical", 0.8, "salvation", "deliverance", "ransom"),
    _kw("Atonement", "biblical", 0.8, "reconciliation", "propitiation"),
    _kw("Resurrection", "biblical", 0.8, "rising", "new life"),
    _kw("Incarnation", "biblical", 0.8, "god becoming man", "enfleshment"),
    _kw("Trinity", "biblical", 0.8, "godhead", "three in one"),
    _kw("Kingdom of God", "biblical", 0.8, "kingdom of heaven", "god's kingdom"),
    _kw("Gospel", "biblical", 0.8, "good news", "evangel"),
    _kw("Discipleship", "biblical", 0.8, "following christ", "being a disciple"),
    _kw("Mission", "biblical", 0.8, "evangelism", "witnessing", "sharing faith"),
    _kw("Parables", "biblical", 0.8, "stories", "teachings"),
    _kw("Miracles", "biblical", 0.8, "wonders", "signs"),
    _kw("Prophecy", "biblical", 0.8, "prophecies", "foretelling"),
    _kw("Law", "biblical", 0.8, "commandments", "statutes"),
    _kw("Sacrifice", "biblical", 0.8, "offering", "giving up"),
    _kw("Temple", "biblical", 0.8, "sanctuary", "holy place"),
    _kw("Sabbath", "biblical", 0.8, "day of rest"),
    _kw("Baptism", "biblical", 0.8, "immersion", "washing"),
    _kw("Communion", "biblical", 0.8, "lord's supper", "eucharist"),
    _kw("Marriage", "biblical", 0.8, "wedding", "union"),
)

LIFE_THEMES: Tuple[Keyword, ...] = (
    _kw("Family", "life", 0.7, "relatives", "household"),
    _kw("Parenting", "life", 0.7, "childrearing", "raising children"),
    _kw("Friendship", "life", 0.7, "companionship", "fellowship"),
    _kw("Work", "life", 0.7, "labor", "employment", "vocation"),
    _kw("Money", "life", 0.7, "finances", "wealth", "prosperity"),
    _kw("Health", "life", 0.7, "wellness", "healing"),
    _kw("Suffering", "life", 0.7, "pain", "trial", "hardship"),
    _kw("Death", "life", 0.7, "dying", "mortality"),
    _kw("Grief", "life", 0.7, "mourning", "sorrow", "loss"),
    _kw("Fear", "life", 0.7, "anxiety", "worry", "concern"),
    _kw("Anger", "life", 0.7, "wrath", "rage", "fury"),
    _kw("Pride", "life", 0.7, "arrogance", "conceit", "vanity"),
    _kw("Humility", "life", 0.7, "meekness", "modesty"),
    _kw("Wisdom", "life", 0.7, "understanding", "insight"),
    _kw("Knowledge", "life", 0.7, "learning", "education"),
    _kw("Truth", "life", 0.7, "honesty", "veracity"),
    _kw("Justice", "life", 0.7, "righteousness", "fairness"),
)

KEYWORDS: Tuple[Keyword, ...] = (
    book_keywords()
    + CHARACTERS
    + PLACES
    + SPIRITUAL_THEMES
    + BIBLICAL_THEMES
    + LIFE_THEMES
)


@lru_cache(maxsize=1024)
def _word_pattern(term: str) -> Pattern[str]:
    return re.compile(rf"\b{re.escape(term)}\b")


def _contains(keyword: Keyword, term: str, text_lower: str) -> bool:
    if keyword.category in WORD_BOUNDARY_CATEGORIES:
        return _word_pattern(term).search(text_lower) is not None
    return term in text_lower


def _score(keyword: Keyword, text_lower: str) -> float:
    """Confidence of a keyword in already-lowercased text, 0.0 when absent."""
    name, *synonyms = keyword.terms()
    if _contains(keyword, name, text_lower):
        return keyword.confidence
    if any(_contains(keyword, synonym, text_lower) for synonym in synonyms):
        return keyword.confidence * SYNONYM_FACTOR
    return 0.0


def find_keywords(text: str, keywords: Tuple[Keyword, ...] = KEYWORDS) -> List[KeywordHit]:
    """All keywords present in text, highest confidence first."""
    if not text:
        return []
    text_lower = text.lower()
    hits = []
    for keyword in keywords:
        confidence = _score(keyword, text_lower)
        if confidence > 0:
            hits.append(KeywordHit(keyword=keyword, confidence=confidence))
    hits.sort(key=lambda hit: hit.confidence, reverse=True)
    return hits


def find_keywords_with_priority(
    title: str,
    content: str,
    keywords: Tuple[Keyword, ...] = KEYWORDS,
) -> List[KeywordHit]:
    """
    Like find_keywords over "title content", with title hits boosted.

    A keyword whose name or synonym appears in the title gains TITLE_BOOST,
    capped at 1.0.
    """
    full_text = f"{title or ''} {content or ''}".strip()
    title_lower = (title or "").lower()
    hits = []
    for hit in find_keywords(full_text, keywords):
        confidence = hit.confidence
        if title_lower and _score(hit.keyword, title_lower) > 0:
            confidence = min(1.0, confidence + TITLE_BOOST)
        hits.append(KeywordHit(keyword=hit.keyword, confidence=confidence))
    hits.sort(key=lambda hit: hit.confidence, reverse=True)
    return hits
