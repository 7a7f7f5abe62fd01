"""HTML helpers for editor content."""

from bs4 import BeautifulSoup


def html_to_plain_text(content: str) -> str:
    """
    Visible text of an HTML fragment, whitespace collapsed to single spaces.

    Block and inline boundaries both become a space, entities are decoded.
    Plain text passes through with only its whitespace normalized.
    """
    if not content:
        return ""
    soup = BeautifulSoup(content, "html.parser")
    return " ".join(soup.get_text(" ").split())


def capitalize_first(text: str) -> str:
    """Upper-case the first visible letter, skipping over any leading markup."""
    if not text:
        return text
    in_tag = False
    for index, char in enumerate(text):
        if char == "<":
            in_tag = True
        elif char == ">" and in_tag:
            in_tag = False
        elif not in_tag and not char.isspace():
            if char.isalpha():
                return text[:index] + char.upper() + text[index + 1:]
            return text
    return text
