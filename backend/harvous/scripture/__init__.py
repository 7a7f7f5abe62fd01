"""
Scripture reference detection.

    from harvous.scripture import detect, select_primary, parse_reference

    result = detect("Read Jn 3:16-18 and Romans 8:28")
    primary = select_primary(result)          # Jn 3:16-18
    parse_reference(primary.raw_text).book    # "John"
"""

from harvous.scripture.books import BOOKS, DEFAULT_BOOK_TABLE, Book, BookTable
from harvous.scripture.detector import DetectorConfig, ScriptureDetector, detect
from harvous.scripture.formatting import (
    format_reference_for_api,
    format_reference_for_display,
    normalize_reference,
)
from harvous.scripture.grammar import ReferenceGrammar
from harvous.scripture.highlighter import highlight_references
from harvous.scripture.parser import ReferenceParser, parse_reference
from harvous.scripture.selector import select_primary
from harvous.scripture.types import (
    DetectionResult,
    ParsedReference,
    ScriptureMatch,
    VerseGroup,
)

__all__ = [
    "BOOKS",
    "Book",
    "BookTable",
    "DEFAULT_BOOK_TABLE",
    "DetectionResult",
    "DetectorConfig",
    "ParsedReference",
    "ReferenceGrammar",
    "ReferenceParser",
    "ScriptureDetector",
    "ScriptureMatch",
    "VerseGroup",
    "detect",
    "format_reference_for_api",
    "format_reference_for_display",
    "highlight_references",
    "normalize_reference",
    "parse_reference",
    "select_primary",
]
