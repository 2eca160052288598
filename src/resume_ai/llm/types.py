"""Shared text-generation data structures and errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

ROLES = ("user", "assistant", "system")

ProviderResponse = Mapping[str, Any]


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role}")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class GenerationOptions:
    provider: str
    temperature: float = 0.3
    max_tokens: int = 4000
    max_retries: int = 3
    global_action: str | None = None

    def __post_init__(self) -> None:
        if not self.provider:
            raise ValueError("provider must not be empty")
        if not 0.0 <= float(self.temperature) <= 1.0:
            raise ValueError(f"temperature must be within [0, 1], got {self.temperature}")
        if not _is_int(self.max_tokens) or self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be a positive integer, got {self.max_tokens}")
        if not _is_int(self.max_retries) or self.max_retries < 0:
            raise ValueError(f"max_retries must be a non-negative integer, got {self.max_retries}")


@dataclass(frozen=True)
class GenerationRequest:
    text: str
    global_action: str
    options: GenerationOptions
    history: List[Dict[str, str]] = field(default_factory=list)

    @property
    def provider(self) -> str:
        return self.options.provider


@dataclass
class GenerationResult:
    text: str
    provider: str
    attempts: int = 1
    used_fallback: bool = False
    latency_ms: int = 0


class ProviderError(RuntimeError):
    """Provider failed to return a valid generation."""

    retryable = False


class ConfigurationError(ProviderError):
    """Required configuration is missing."""


class TransportError(ProviderError):
    """The HTTP exchange failed: non-2xx status, connection error or bad body."""

    retryable = True

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NoProviderResponseError(ProviderError):
    """No entry of the response carried generated text."""


class ProviderReportedError(ProviderError):
    """The provider entry reported an explicit failure."""

    retryable = True

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(f"Provider error: {message}")
        self.message = message
        self.provider = provider


class EmptyResponseError(ProviderError):
    """The provider reported success with blank text."""

    retryable = True


class GenerationCancelled(ProviderError):
    """The caller cancelled the call."""


class MalformedJsonError(ValueError):
    """Generated text did not contain parseable JSON."""


class EmptyInputError(ValueError):
    """Nothing to parse."""


def is_retryable(exc: BaseException) -> bool:
    return bool(getattr(exc, "retryable", False))
