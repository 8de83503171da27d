"""Input sanitising helpers shared by abilities and stores.

Validation never coerces values, so executors cast and clean the fields
they read with these functions.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any

_TAG_RE = re.compile(r"<[^>]*>")
_SCRIPT_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_EVENT_ATTR_RE = re.compile(r"\s+on[a-z]+\s*=\s*(\"[^\"]*\"|'[^']*'|[^\s>]+)", re.IGNORECASE)
_WS_RE = re.compile(r"[\r\n\t ]+")
_LEADING_INT_RE = re.compile(r"^\s*[+-]?\d+")
_EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+\-']+@[A-Za-z0-9\-]+(\.[A-Za-z0-9\-]+)+$")
_FILENAME_BAD_CHARS = set("?[]/\\=<>:;,'\"&$#*()|~`!{}%+")


def absint(value: Any) -> int:
    """Non-negative integer from *value*; unparsable input becomes 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return abs(value)
    if isinstance(value, float):
        return abs(int(value))
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        return abs(int(match.group())) if match else 0
    return 0


def sanitize_text(value: Any) -> str:
    """Strip tags, collapse whitespace and trim."""
    text = _TAG_RE.sub("", str(value))
    return _WS_RE.sub(" ", text).strip()


def sanitize_title(value: Any) -> str:
    """Lowercase, dash-separated slug made of ``[a-z0-9_-]``."""
    text = _TAG_RE.sub("", str(value))
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode()
    text = text.lower().strip()
    text = re.sub(r"[\s.]+", "-", text)
    text = re.sub(r"[^a-z0-9_\-]", "", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def sanitize_email(value: Any) -> str:
    """Return the trimmed address, or ``""`` if it is not a plausible email."""
    email = str(value).strip()
    return email if _EMAIL_RE.match(email) else ""


def sanitize_user(value: Any) -> str:
    text = _TAG_RE.sub("", str(value))
    text = re.sub(r"[^A-Za-z0-9 _.\-@]", "", text)
    return _WS_RE.sub(" ", text).strip()


def sanitize_file_name(value: Any) -> str:
    name = "".join(ch for ch in str(value) if ch not in _FILENAME_BAD_CHARS)
    name = re.sub(r"\s+", "-", name)
    name = re.sub(r"-+", "-", name)
    return name.strip(".-_")


def kses_post(value: Any) -> str:
    """Allow post HTML but drop scripts, styles and inline event handlers."""
    html = _SCRIPT_RE.sub("", str(value))
    return _EVENT_ATTR_RE.sub("", html)
