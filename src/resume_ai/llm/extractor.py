"""Locates generated text inside a provider-keyed EdenAI response."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from ..config import base_provider
from ..utils import preview
from .types import (
    EmptyResponseError,
    NoProviderResponseError,
    ProviderReportedError,
    ProviderResponse,
)

logger = logging.getLogger(__name__)

EXACT = "exact"
BASE_NAME = "base_name"
SCAN = "scan"


@dataclass(frozen=True)
class ProviderMatch:
    key: str
    entry: Mapping[str, Any]
    via: str


def _has_text(entry: Any) -> bool:
    if not isinstance(entry, Mapping):
        return False
    text = entry.get("generated_text")
    return isinstance(text, str) and bool(text.strip())


def resolve_provider_entry(data: ProviderResponse, provider: str) -> ProviderMatch | None:
    """Exact key, then the base name, then the first entry that has text."""
    if not isinstance(data, Mapping):
        return None

    entry = data.get(provider)
    if isinstance(entry, Mapping):
        return ProviderMatch(key=provider, entry=entry, via=EXACT)

    if "/" in provider:
        base = base_provider(provider)
        entry = data.get(base)
        if isinstance(entry, Mapping):
            return ProviderMatch(key=base, entry=entry, via=BASE_NAME)

    for key, entry in data.items():
        if _has_text(entry):
            return ProviderMatch(key=str(key), entry=entry, via=SCAN)
    return None


def extract_generated_text(data: ProviderResponse, provider: str) -> str:
    match = resolve_provider_entry(data, provider)
    if match is None:
        keys = list(data.keys()) if isinstance(data, Mapping) else []
        logger.error("No response from provider %s; available keys: %s", provider, keys)
        raise NoProviderResponseError(
            f"No response from provider: {provider}. Response: {preview(data)}"
        )
    if match.via == SCAN:
        logger.warning("Provider %s missing from response, using %s", provider, match.key)

    entry = match.entry
    error = entry.get("error")
    if entry.get("status") == "fail" or error:
        message = error.get("message") if isinstance(error, Mapping) else error
        message = str(message or "Unknown error")
        logger.error("Provider %s returned error: %s", match.key, message)
        raise ProviderReportedError(message, provider=match.key)

    text = entry.get("generated_text")
    if not isinstance(text, str) or not text.strip():
        logger.error("Empty response from provider %s: %s", match.key, preview(entry))
        raise EmptyResponseError("Empty response from AI provider")
    return text
