"""JSON extraction for generated text.

Model output often wraps JSON in markdown fences or surrounds it with prose.
``extract_json`` strips the fences, cuts out the outermost object or array
and parses it, repairing trailing commas once if the first parse fails.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from .llm.types import EmptyInputError, MalformedJsonError
from .utils import preview

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
# Greedy: first opening bracket through the last matching closing one.
_SPAN_RE = re.compile(r"(\{[\s\S]*\}|\[[\s\S]*\])")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def repair_json(text: str) -> str:
    """Removes trailing commas before closing braces and brackets."""
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def extract_json(text: str | None) -> Any:
    if not text or not text.strip():
        logger.error("Empty response received for JSON parsing")
        raise EmptyInputError("Empty response from AI - cannot parse JSON")

    cleaned = strip_code_fences(text)
    match = _SPAN_RE.search(cleaned)
    if match:
        cleaned = match.group(1)

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse JSON response (%s): %s", exc, preview(cleaned))

    try:
        return json.loads(repair_json(cleaned))
    except json.JSONDecodeError as exc:
        logger.error("Failed to repair and parse JSON")
        raise MalformedJsonError("Invalid JSON response from AI") from exc
