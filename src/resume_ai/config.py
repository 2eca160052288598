"""Configuration loading and defaults."""

from __future__ import annotations

import os
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping

import yaml

from .llm.types import ConfigurationError

DEFAULT_SETTINGS: Dict[str, Any] = {
    "edenai": {
        "base_url": "https://api.edenai.run/v2",
        "timeout_seconds": 60,
    },
    "generation": {
        "provider": "openai/gpt-4o-mini",
        "temperature": 0.3,
        "max_tokens": 4000,
        "max_retries": 3,
        "base_delay_seconds": 1.0,
    },
    # Provider (exact id or base name) -> fallback provider, or null for none.
    "fallbacks": {
        "openai": "google/gemini-1.5-flash",
    },
    "moderation": {
        "provider": "openai",
        "language": "en",
        "min_chars": 10,
        "max_chars": 10000,
        "flag_threshold": 0.5,
    },
    "summarizer": {
        "provider": "openai",
        "language": "en",
        "min_chars": 50,
        "output_sentences": 3,
    },
    "logging": {
        "level": "INFO",
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(settings_path: str = "config/settings.yaml") -> Dict[str, Any]:
    """Loads settings.yaml and merges it onto defaults."""
    merged = deepcopy(DEFAULT_SETTINGS)
    config_path = Path(settings_path)
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as f:
            user_cfg = yaml.safe_load(f) or {}
        merged = _deep_merge(merged, user_cfg)
    return merged


def base_provider(provider: str) -> str:
    """Returns the vendor part of a 'vendor/model' provider string."""
    return provider.split("/", 1)[0]


@dataclass(frozen=True)
class ClientConfig:
    api_key: str | None
    base_url: str = DEFAULT_SETTINGS["edenai"]["base_url"]
    timeout_seconds: float = 60.0
    base_delay_seconds: float = 1.0
    default_provider: str = "openai/gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 4000
    max_retries: int = 3
    fallbacks: Mapping[str, str | None] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fallbacks", MappingProxyType(dict(self.fallbacks)))

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("EDENAI_API_KEY missing")
        return self.api_key

    def endpoint(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def fallback_for(self, provider: str) -> str | None:
        """Declared fallback for a provider: exact id first, then its base name."""
        if provider in self.fallbacks:
            target = self.fallbacks[provider]
        else:
            target = self.fallbacks.get(base_provider(provider))
        if not target or target == provider:
            return None
        return target


def build_client_config(
    settings: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ClientConfig:
    """Builds the immutable client config from settings plus environment secrets."""
    settings = settings if settings is not None else DEFAULT_SETTINGS
    env = os.environ if environ is None else environ
    eden_cfg = settings.get("edenai", {})
    gen_cfg = settings.get("generation", {})

    return ClientConfig(
        api_key=env.get("EDENAI_API_KEY") or None,
        base_url=env.get("EDENAI_BASE_URL") or str(eden_cfg.get("base_url", DEFAULT_SETTINGS["edenai"]["base_url"])),
        timeout_seconds=float(eden_cfg.get("timeout_seconds", 60)),
        base_delay_seconds=float(gen_cfg.get("base_delay_seconds", 1.0)),
        default_provider=str(gen_cfg.get("provider", "openai/gpt-4o-mini")),
        temperature=float(gen_cfg.get("temperature", 0.3)),
        max_tokens=int(gen_cfg.get("max_tokens", 4000)),
        max_retries=int(gen_cfg.get("max_retries", 3)),
        fallbacks=dict(settings.get("fallbacks") or {}),
    )
