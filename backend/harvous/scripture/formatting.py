"""
Harvous Backend - Reference Formatting Helpers
===============================================

What:  String-level conversions between the forms a reference takes:
           storage  "Matthew 26:6-13,17-30"   (normalize_reference)
           display  "Matthew 26:6-13 | 17-30" (format_reference_for_display)
           API      "Matthew 26:6-13,17-30"   (format_reference_for_api)
Who:   Scripture processing pipeline, note creation, check-existing and
       fetch-verse endpoints.

These helpers are lenient on purpose: they accept user-edited strings and
never raise.
"""

import re

from harvous.exceptions import ParseError
from harvous.scripture.parser import reference_parser

_COLON_SPACING = re.compile(r":\s+")
_COMMA_SPACING = re.compile(r",\s+")
_RANGE_SPACING = re.compile(r"(\d+)\s*[-–—]\s*(\d+)")
_GROUP_COMMA = re.compile(r"\s*,\s*(?=\d)")
_GROUP_PIPE = re.compile(r"\s*\|\s*")


def normalize_reference(reference: str) -> str:
    """
    Canonical storage form of a reference.

    "Jn 3: 16 - 17"          -> "John 3:16-17"
    "Matthew 26:6-13, 17-30" -> "Matthew 26:6-13,17-30"

    When the reference does not parse, only spacing is normalized so that the
    same user text always maps to the same key.
    """
    if not reference:
        return ""
    try:
        return reference_parser.parse(format_reference_for_api(reference)).reference
    except ParseError:
        normalized = " ".join(reference.split())
        normalized = _COLON_SPACING.sub(":", normalized)
        normalized = _COMMA_SPACING.sub(",", normalized)
        normalized = _RANGE_SPACING.sub(r"\1-\2", normalized)
        return normalized


def format_reference_for_display(reference: str) -> str:
    """Separate verse groups with " | " for titles: "Matthew 26:6-13 | 17-30"."""
    if not reference:
        return ""
    return _GROUP_COMMA.sub(" | ", reference)


def format_reference_for_api(reference: str) -> str:
    """Inverse of format_reference_for_display."""
    if not reference:
        return ""
    return _GROUP_PIPE.sub(",", reference)

