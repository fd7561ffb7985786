"""Decoding helpers for model text output."""
from __future__ import annotations

import json
import re
from typing import Any, Dict

_FENCED_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)
_JSON_RE = re.compile(r"\{.*\}", re.DOTALL)


def _extract_json_block(text: str) -> str | None:
    match = _FENCED_RE.search(text)
    if match:
        return match.group(1)
    match = _JSON_RE.search(text)
    if match:
        return match.group(0)
    return None


def extract_json_object(text: str) -> Dict[str, Any]:
    """Parse the JSON object contained in ``text``.

    Structured output normally arrives as bare JSON, but some providers wrap it
    in a markdown fence. Raises ``ValueError`` when no object can be decoded.
    """

    stripped = (text or "").strip()
    candidates = [stripped]
    block = _extract_json_block(stripped)
    if block and block != stripped:
        candidates.append(block)
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    raise ValueError("Response is not valid JSON")
