"""Clean-up of user supplied strings before validation and storage."""
from __future__ import annotations

import re

__all__ = ["sanitize_string"]

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_string(value: str) -> str:
    """Drop ASCII control characters and surrounding whitespace."""

    return _CONTROL_CHARS_RE.sub("", value).strip()
