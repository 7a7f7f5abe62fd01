"""
Highlighting of scripture references inside note HTML.

Each occurrence of a reference is wrapped in a note-link span that points at
the scripture note holding its text. Occurrences already inside a note-link
span, or already linked to the same note nearby, are left alone, so running
the highlighter twice does not nest spans.
"""

import html
import re
from typing import Iterable, Tuple

NOTE_LINK_STYLE = "background-color: rgba(255, 235, 59, 0.4); cursor: pointer;"

_NOTE_LINK_OPEN = re.compile(r'<span[^>]*class="note-link"[^>]*>', re.IGNORECASE)
_SPAN_CLOSE = re.compile(r"</span>", re.IGNORECASE)
# Characters inspected on each side of a match for an existing link
_CONTEXT_WINDOW = 100


def note_link(text: str, note_id: str) -> str:
    return (
        f'<span class="note-link" data-note-id="{html.escape(str(note_id))}" '
        f'style="{NOTE_LINK_STYLE}">{text}</span>'
    )


def highlight_references(content: str, references: Iterable[Tuple[str, str]]) -> str:
    """
    Wrap scripture references in note-link spans.

    Args:
        content:    Note HTML.
        references: (reference text, scripture note id) pairs. Whitespace in
                    the reference matches any run of whitespace in content;
                    matching is case-insensitive.

    Returns:
        The rewritten HTML (unchanged when there is nothing to do).
    """
    references = list(references)
    if not content or not references:
        return content

    updated = content
    # Longest first, so a reference that prefixes another ("John 3:1" in
    # "1 John 3:1" or "John 3:16") finds the longer one already linked.
    for reference, note_id in sorted(references, key=lambda r: len(r[0] or ""), reverse=True):
        if not reference or not reference.strip():
            continue
        pattern = re.compile(
            r"(?<![\w:])(?<!\d\s)"
            + r"\s+".join(re.escape(word) for word in reference.split())
            + r"(?!\w)",
            re.IGNORECASE,
        )
        marker = f'data-note-id="{html.escape(str(note_id))}"'

        # Right to left so earlier offsets stay valid while splicing.
        for match in reversed(list(pattern.finditer(updated))):
            before = updated[:match.start()]
            if len(_NOTE_LINK_OPEN.findall(before)) > len(_SPAN_CLOSE.findall(before)):
                continue
            context = updated[
                max(0, match.start() - _CONTEXT_WINDOW):match.end() + _CONTEXT_WINDOW
            ]
            if marker in context:
                continue
            updated = before + note_link(match.group(0), note_id) + updated[match.end():]

    return updated
