"""Primary reference selection."""

from typing import Optional

from harvous.scripture.types import DetectionResult, ScriptureMatch


def select_primary(result: DetectionResult) -> Optional[ScriptureMatch]:
    """
    Pick the reference a note is "about".

    The first reference in the text wins, regardless of how long or specific
    later references are. Returns None when nothing was detected.
    """
    if not result.matches:
        return None
    return min(result.matches, key=lambda m: m.start_offset)
