from __future__ import annotations

import re

_TAG_RE = re.compile(r"<[^>]*>")
_DISALLOWED_RE = re.compile(r"[^a-z0-9\u00c0-\u017f\s\-]")
_SPACE_RE = re.compile(r"\s+")

# "-" is what an empty artist and an empty title join to.
_EMPTY_KEYS = {"", "-"}


def track_key(artist: str, title: str) -> str:
    """Canonical de-duplication key for an artist/title pair.

    Latin-1 and Latin Extended-A letters survive, so "Beyoncé" and "Beyonce"
    stay distinct while "MONACO" and "monaco " collapse together.
    """
    text = f"{artist or ''} - {title or ''}"
    text = _TAG_RE.sub(" ", text).lower()
    text = _DISALLOWED_RE.sub("", text)
    return _SPACE_RE.sub(" ", text).strip()


def is_valid_key(key: str) -> bool:
    return key not in _EMPTY_KEYS
