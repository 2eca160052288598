"""EdenAI text generation with retries and provider fallback."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, Sequence

from ..config import ClientConfig, build_client_config, load_settings
from .dispatcher import Dispatcher, flatten_messages
from .extractor import extract_generated_text
from .retry import AttemptState, RetryController
from .types import (
    ChatMessage,
    GenerationCancelled,
    GenerationOptions,
    GenerationRequest,
    GenerationResult,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_GLOBAL_ACTION = "You are a helpful AI assistant for resume optimization and career guidance."
DEFAULT_CHAT_ACTION = "You are a helpful AI assistant."


def _as_messages(messages: Iterable[ChatMessage | Dict[str, str]]) -> list[ChatMessage]:
    converted = []
    for message in messages:
        if isinstance(message, ChatMessage):
            converted.append(message)
        else:
            converted.append(ChatMessage(role=message["role"], content=message["content"]))
    return converted


class TextGenerationClient:
    def __init__(
        self,
        config: ClientConfig,
        dispatcher: Dispatcher | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.config = config
        self.dispatcher = dispatcher or Dispatcher(config)
        self._sleep = sleep

    def default_options(self, **overrides: Any) -> GenerationOptions:
        values = {
            "provider": self.config.default_provider,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "max_retries": self.config.max_retries,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return GenerationOptions(**values)

    def _prompt_request(self, prompt: str, options: GenerationOptions | None) -> GenerationRequest:
        options = options or self.default_options()
        return GenerationRequest(
            text=prompt,
            global_action=options.global_action or DEFAULT_GLOBAL_ACTION,
            options=options,
        )

    def _chat_request(
        self, messages: Sequence[ChatMessage | Dict[str, str]], options: GenerationOptions | None
    ) -> GenerationRequest:
        options = options or self.default_options()
        text, global_action, history = flatten_messages(
            _as_messages(messages), options.global_action or DEFAULT_CHAT_ACTION
        )
        return GenerationRequest(text=text, global_action=global_action, options=options, history=history)

    def _call(self, request: GenerationRequest) -> str:
        data = self.dispatcher.send(request)
        text = extract_generated_text(data, request.provider)
        logger.info("EdenAI response received from %s (%d chars)", request.provider, len(text))
        return text

    def generate(self, prompt: str, options: GenerationOptions | None = None) -> str:
        """Single request, no retries."""
        return self._call(self._prompt_request(prompt, options))

    def chat(self, messages: Sequence[ChatMessage | Dict[str, str]], options: GenerationOptions | None = None) -> str:
        return self._call(self._chat_request(messages, options))

    def run_with_retry(
        self, request: GenerationRequest, cancel_event: threading.Event | None = None
    ) -> GenerationResult:
        """Retries the primary provider, then tries its declared fallback once.

        When the fallback also fails, the primary's last error is raised.
        """
        cancel_event = cancel_event or threading.Event()
        start = time.perf_counter()
        controller = RetryController(
            max_attempts=request.options.max_retries,
            base_delay=self.config.base_delay_seconds,
            sleep=self._sleep,
            cancel_event=cancel_event,
            label=f"EdenAI {request.provider} attempt",
        )
        outcome = controller.run(lambda: self._call(request))

        if outcome.state is AttemptState.SUCCEEDED:
            return GenerationResult(
                text=outcome.value,
                provider=request.provider,
                attempts=outcome.attempts,
                latency_ms=int((time.perf_counter() - start) * 1000),
            )

        primary_error = outcome.last_error
        if outcome.state is AttemptState.FAILED:
            raise primary_error
        if primary_error is None:
            # max_retries=0: no primary attempt was made
            primary_error = TransportError("Failed to generate text after retries")

        fallback = self.config.fallback_for(request.provider)
        if fallback is None:
            raise primary_error

        if cancel_event.is_set():
            raise GenerationCancelled("generation cancelled")
        logger.info("Trying %s as fallback provider for %s", fallback, request.provider)
        fallback_request = replace(request, options=replace(request.options, provider=fallback))
        try:
            text = self._call(fallback_request)
        except Exception as exc:
            logger.warning("Fallback provider %s also failed: %s", fallback, exc)
            raise primary_error from exc

        return GenerationResult(
            text=text,
            provider=fallback,
            attempts=outcome.attempts + 1,
            used_fallback=True,
            latency_ms=int((time.perf_counter() - start) * 1000),
        )

    def generate_result(
        self,
        prompt: str,
        options: GenerationOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> GenerationResult:
        return self.run_with_retry(self._prompt_request(prompt, options), cancel_event)

    def generate_with_retry(
        self,
        prompt: str,
        options: GenerationOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> str:
        return self.generate_result(prompt, options, cancel_event).text

    def chat_with_retry(
        self,
        messages: Sequence[ChatMessage | Dict[str, str]],
        options: GenerationOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> str:
        return self.run_with_retry(self._chat_request(messages, options), cancel_event).text


_default_client: TextGenerationClient | None = None
_default_lock = threading.Lock()


def configure(config: ClientConfig, **kwargs: Any) -> TextGenerationClient:
    """Installs the process-wide client. Call once at startup."""
    global _default_client
    with _default_lock:
        _default_client = TextGenerationClient(config, **kwargs)
        return _default_client


def get_default_client() -> TextGenerationClient:
    """The configured client, or one built from settings.yaml and the environment."""
    global _default_client
    with _default_lock:
        if _default_client is None:
            _default_client = TextGenerationClient(build_client_config(load_settings()))
        return _default_client


def generate(prompt: str, options: GenerationOptions | None = None) -> str:
    return get_default_client().generate(prompt, options)


def chat(messages: Sequence[ChatMessage | Dict[str, str]], options: GenerationOptions | None = None) -> str:
    return get_default_client().chat(messages, options)


def generate_with_retry(
    prompt: str,
    options: GenerationOptions | None = None,
    cancel_event: threading.Event | None = None,
) -> str:
    return get_default_client().generate_with_retry(prompt, options, cancel_event)


def chat_with_retry(
    messages: Sequence[ChatMessage | Dict[str, str]],
    options: GenerationOptions | None = None,
    cancel_event: threading.Event | None = None,
) -> str:
    return get_default_client().chat_with_retry(messages, options, cancel_event)
