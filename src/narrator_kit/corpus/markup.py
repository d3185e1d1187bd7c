# src/narrator_kit/corpus/markup.py

import re

from bs4 import BeautifulSoup

_WHITESPACE = re.compile(r"\s+")
# Decoded text that would read as a tag or an entity on a second pass.
_TAG_OPEN = re.compile(r"<(?=[A-Za-z/!?])")
_ENTITY_START = re.compile(r"&(?=[#A-Za-z])")


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def strip_markup(markup: object) -> str:
    """Plain text of an HTML fragment.

    Tags are removed, entities decoded, whitespace runs collapsed to a
    single space and the result trimmed. A decoded `<` or `&` that would
    open a tag or an entity is followed by a space, so stripping the output
    again changes nothing. Non-string input yields an empty string.
    """
    if not isinstance(markup, str) or not markup:
        return ""
    if "<" not in markup and "&" not in markup:
        return normalize_whitespace(markup)

    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    text = soup.get_text(" ")
    text = _ENTITY_START.sub("& ", _TAG_OPEN.sub("< ", text))
    return normalize_whitespace(text)
