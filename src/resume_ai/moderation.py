"""EdenAI moderation and spell check for resume text.

Both calls are advisory: when the API key is missing or the call fails, text
is treated as safe and returned uncorrected so the resume flow never blocks.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .config import DEFAULT_SETTINGS, ClientConfig
from .llm.dispatcher import Dispatcher
from .llm.types import ProviderError

logger = logging.getLogger(__name__)

MODERATION_PATH = "text/moderation"
SPELL_CHECK_PATH = "text/spell_check"

METRIC_PATTERNS = (
    re.compile(r"\d+%"),
    re.compile(r"\$[\d,]+[KMB]?", re.IGNORECASE),
    re.compile(r"[\d,]+\+?"),
    re.compile(r"\d+x", re.IGNORECASE),
    re.compile(r"\d+\s*(?:years?|months?|weeks?|days?)", re.IGNORECASE),
)


@dataclass
class ModerationResult:
    is_safe: bool
    flagged_categories: List[str] = field(default_factory=list)
    confidence: float = 0.0
    raw_response: Dict[str, Any] | None = None


@dataclass
class SpellCorrection:
    original: str
    corrected: str
    offset: int = 0
    length: int = 0
    type: str = "spelling"


@dataclass
class SpellCheckResult:
    corrected_text: str
    corrections: List[SpellCorrection] = field(default_factory=list)
    has_corrections: bool = False
    raw_response: Dict[str, Any] | None = None


@dataclass
class ProcessedResumeText:
    processed_text: str
    moderation: ModerationResult
    spell_check: SpellCheckResult
    is_approved: bool


def preserve_metrics(original: str, corrected: str) -> str:
    """Puts back numbers like '40%', '$1M', '10,000+' that spell check altered."""
    result = corrected
    for pattern in METRIC_PATTERNS:
        original_matches = pattern.findall(original)
        corrected_matches = pattern.findall(result)
        for metric in original_matches:
            if metric in corrected_matches:
                continue
            index = original.find(metric)
            context = original[max(0, index - 20):index]
            context_index = result.find(context)
            if context_index == -1:
                continue
            search_start = context_index + len(context)
            search_area = result[search_start:search_start + 30]
            for changed in corrected_matches:
                if changed != metric and changed in search_area:
                    result = result.replace(changed, metric, 1)
                    break
    return result


class ModerationClient:
    def __init__(
        self,
        config: ClientConfig,
        settings: Mapping[str, Any] | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        self.config = config
        self.settings = dict(DEFAULT_SETTINGS["moderation"])
        self.settings.update(settings or {})
        self.dispatcher = dispatcher or Dispatcher(config)

    @property
    def provider(self) -> str:
        return str(self.settings["provider"])

    def _payload(self, text: str) -> Dict[str, Any]:
        return {
            "providers": self.provider,
            "text": text[: int(self.settings["max_chars"])],
            "language": self.settings["language"],
        }

    def _too_short(self, text: str) -> bool:
        return not text or len(text.strip()) < int(self.settings["min_chars"])

    def _provider_result(self, result: Any) -> Mapping[str, Any]:
        entry = result.get(self.provider) if isinstance(result, Mapping) else None
        return entry if isinstance(entry, Mapping) else {}

    def moderate_text(self, text: str) -> ModerationResult:
        if not self.config.has_api_key:
            logger.warning("EdenAI API key not configured. Skipping moderation.")
            return ModerationResult(is_safe=True, confidence=0.0)
        if self._too_short(text):
            return ModerationResult(is_safe=True, confidence=1.0)

        try:
            result = self.dispatcher.post(MODERATION_PATH, self._payload(text))
        except ProviderError as exc:
            logger.error("EdenAI moderation error: %s", exc)
            return ModerationResult(is_safe=True, confidence=0.0)

        provider_result = self._provider_result(result)
        threshold = float(self.settings["flag_threshold"])
        nsfw = float(provider_result.get("nsfw_likelihood") or 0)

        flagged = []
        for item in provider_result.get("items") or []:
            likelihood = item.get("likelihood") if isinstance(item, Mapping) else None
            if likelihood and float(likelihood) > threshold:
                flagged.append(str(item.get("label") or "unknown"))

        return ModerationResult(
            is_safe=nsfw < threshold and not flagged,
            flagged_categories=flagged,
            confidence=1 - nsfw,
            raw_response=result if isinstance(result, dict) else None,
        )

    def spell_check(self, text: str) -> SpellCheckResult:
        if not self.config.has_api_key:
            logger.warning("EdenAI API key not configured. Skipping spell check.")
            return SpellCheckResult(corrected_text=text)
        if self._too_short(text):
            return SpellCheckResult(corrected_text=text)

        try:
            result = self.dispatcher.post(SPELL_CHECK_PATH, self._payload(text))
        except ProviderError as exc:
            logger.error("EdenAI spell check error: %s", exc)
            return SpellCheckResult(corrected_text=text)

        provider_result = self._provider_result(result)
        corrected_text = provider_result.get("text") or text

        corrections = []
        for item in provider_result.get("items") or []:
            if not isinstance(item, Mapping):
                continue
            correction = SpellCorrection(
                original=item.get("text") or "",
                corrected=item.get("suggestion") or "",
                offset=int(item.get("offset") or 0),
                length=int(item.get("length") or 0),
                type=item.get("type") or "spelling",
            )
            if correction.original and correction.corrected and correction.original != correction.corrected:
                corrections.append(correction)

        return SpellCheckResult(
            corrected_text=preserve_metrics(text, corrected_text),
            corrections=corrections,
            has_corrections=bool(corrections),
            raw_response=result if isinstance(result, dict) else None,
        )

    def process_resume_text(self, text: str) -> ProcessedResumeText:
        """Moderates first; only safe text is spell-checked."""
        moderation = self.moderate_text(text)
        if not moderation.is_safe:
            return ProcessedResumeText(
                processed_text=text,
                moderation=moderation,
                spell_check=SpellCheckResult(corrected_text=text),
                is_approved=False,
            )

        spell = self.spell_check(text)
        return ProcessedResumeText(
            processed_text=spell.corrected_text,
            moderation=moderation,
            spell_check=spell,
            is_approved=True,
        )

    def is_input_safe(self, text: str) -> bool:
        return self.moderate_text(text).is_safe
