"""Builds EdenAI chat payloads and posts them."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Tuple

import requests

from ..config import ClientConfig
from ..utils import preview
from .types import ChatMessage, GenerationRequest, ProviderResponse, TransportError

logger = logging.getLogger(__name__)

CHAT_PATH = "text/chat"


def flatten_messages(
    messages: Iterable[ChatMessage], default_action: str
) -> Tuple[str, str, List[Dict[str, str]]]:
    """Splits a chat history into (last turn text, global action, prior turns)."""
    messages = list(messages)
    if not messages:
        raise ValueError("messages must not be empty")
    last = messages[-1]
    if last.role == "system":
        raise ValueError("the last message must not be a system message")

    system = next((m.content for m in messages if m.role == "system"), "")
    turns = [m for m in messages if m.role != "system"]
    history = [{"role": m.role, "message": m.content} for m in turns[:-1]]
    return last.content, system or default_action, history


def build_chat_payload(request: GenerationRequest) -> Dict[str, Any]:
    options = request.options
    return {
        "providers": options.provider,
        "text": request.text,
        "chatbot_global_action": request.global_action,
        "previous_history": [dict(turn) for turn in request.history],
        "temperature": options.temperature,
        "max_tokens": options.max_tokens,
    }


class Dispatcher:
    def __init__(self, config: ClientConfig) -> None:
        self.config = config

    def post(self, path: str, payload: Dict[str, Any]) -> ProviderResponse:
        """Posts JSON to an EdenAI endpoint and returns the decoded body."""
        api_key = self.config.require_api_key()
        url = self.config.endpoint(path)
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        try:
            res = requests.post(url, headers=headers, json=payload, timeout=self.config.timeout_seconds)
        except requests.RequestException as exc:
            raise TransportError(f"EdenAI request failed: {exc}") from exc

        if not 200 <= res.status_code < 300:
            body = res.text or ""
            logger.error("EdenAI %s returned %s: %s", path, res.status_code, preview(body))
            raise TransportError(
                f"EdenAI API error: {res.status_code} - {preview(body)}",
                status_code=res.status_code,
                body=body,
            )

        try:
            data = res.json()
        except ValueError as exc:
            raise TransportError(
                "EdenAI returned a non-JSON body",
                status_code=res.status_code,
                body=res.text or "",
            ) from exc
        logger.debug("EdenAI %s raw response: %s", path, preview(data, 1000))
        return data

    def send(self, request: GenerationRequest) -> ProviderResponse:
        logger.info(
            "EdenAI text generation: provider=%s temperature=%s max_tokens=%s prompt_chars=%d",
            request.provider,
            request.options.temperature,
            request.options.max_tokens,
            len(request.text),
        )
        return self.post(CHAT_PATH, build_chat_payload(request))
