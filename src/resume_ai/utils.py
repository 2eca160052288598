"""Utility helpers."""

from __future__ import annotations

import json
from typing import Any


def preview(value: Any, limit: int = 500) -> str:
    """Short single-string rendering of a payload for log lines and error messages."""
    if isinstance(value, str):
        text = value
    else:
        try:
            text = json.dumps(value, ensure_ascii=True, default=str)
        except (TypeError, ValueError):
            text = repr(value)
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."
