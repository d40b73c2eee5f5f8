"""Cleaning and parsing of LLM CV replies."""

import json
import re
from typing import Any

_JSON_FENCE_OPEN = re.compile(r"^```json\s*")
_FENCE_OPEN = re.compile(r"^```\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


class CvParseError(ValueError):
    """The LLM reply could not be read as a CV data object."""


def strip_code_fences(text: str) -> str:
    """Remove a leading markdown code fence and its closing fence.

    Only a fence at the very start counts; text without one comes back
    trimmed and otherwise unchanged.
    """
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = _FENCE_CLOSE.sub("", _JSON_FENCE_OPEN.sub("", cleaned))
    elif cleaned.startswith("```"):
        cleaned = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", cleaned))
    return cleaned.strip()


def parse_cv_json(text: str) -> dict[str, Any]:
    """Parse an LLM reply into a CV data object.

    Raises:
        CvParseError: If the reply is not JSON or not a JSON object
    """
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise CvParseError(f"LLM response is not valid JSON: {exc.msg}.") from exc

    if not isinstance(parsed, dict):
        raise CvParseError("LLM response must be a JSON object.")
    return parsed
