"""
Identifier sanitization helpers.

Task names and group names are reduced to a safe canonical token set
before they reach the job store.
"""

import re

_KEY_INVALID = re.compile(r"[^a-z0-9_\-]")
_TAGS = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")


def sanitize_key(text: str) -> str:
    """Lowercase and drop everything outside [a-z0-9_-]."""
    if not text:
        return ""
    return _KEY_INVALID.sub("", str(text).lower())


def sanitize_text_field(text: str) -> str:
    """Strip tags, collapse whitespace (tabs and line breaks included), trim."""
    if not text:
        return ""
    text = _TAGS.sub("", str(text))
    return _WHITESPACE.sub(" ", text).strip()
