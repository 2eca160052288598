import pytest
import requests

from resume_ai.config import ClientConfig
from resume_ai.llm.dispatcher import Dispatcher, build_chat_payload, flatten_messages
from resume_ai.llm.types import (
    ChatMessage,
    ConfigurationError,
    GenerationOptions,
    GenerationRequest,
    TransportError,
)


class DummyResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _request(text="Improve this bullet"):
    options = GenerationOptions(provider="openai/gpt-4o-mini", temperature=0.2, max_tokens=256)
    return GenerationRequest(text=text, global_action="Be helpful.", options=options)


def test_payload_fields():
    payload = build_chat_payload(_request())
    assert payload == {
        "providers": "openai/gpt-4o-mini",
        "text": "Improve this bullet",
        "chatbot_global_action": "Be helpful.",
        "previous_history": [],
        "temperature": 0.2,
        "max_tokens": 256,
    }


def test_send_posts_with_bearer_token(monkeypatch):
    captured = {}

    def fake_post(url, headers, json, timeout):
        captured.update(url=url, headers=headers, json=json, timeout=timeout)
        return DummyResponse(payload={"openai/gpt-4o-mini": {"generated_text": "ok"}})

    monkeypatch.setattr("resume_ai.llm.dispatcher.requests.post", fake_post)

    config = ClientConfig(api_key="secret", base_url="https://eden.test/v2/", timeout_seconds=12)
    data = Dispatcher(config).send(_request())

    assert data["openai/gpt-4o-mini"]["generated_text"] == "ok"
    assert captured["url"] == "https://eden.test/v2/text/chat"
    assert captured["headers"]["Authorization"] == "Bearer secret"
    assert captured["timeout"] == 12
    assert captured["json"]["providers"] == "openai/gpt-4o-mini"


def test_non_success_status_raises_transport_error(monkeypatch):
    def fake_post(url, headers, json, timeout):
        return DummyResponse(status_code=429, text='{"detail": "rate limited"}')

    monkeypatch.setattr("resume_ai.llm.dispatcher.requests.post", fake_post)

    with pytest.raises(TransportError) as info:
        Dispatcher(ClientConfig(api_key="k")).send(_request())
    assert info.value.status_code == 429
    assert info.value.body == '{"detail": "rate limited"}'
    assert info.value.retryable is True


def test_connection_errors_are_wrapped(monkeypatch):
    def fake_post(url, headers, json, timeout):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr("resume_ai.llm.dispatcher.requests.post", fake_post)

    with pytest.raises(TransportError) as info:
        Dispatcher(ClientConfig(api_key="k")).send(_request())
    assert info.value.status_code is None


def test_non_json_body_is_transport_error(monkeypatch):
    monkeypatch.setattr(
        "resume_ai.llm.dispatcher.requests.post",
        lambda url, headers, json, timeout: DummyResponse(status_code=200, payload=None, text="<html>"),
    )
    with pytest.raises(TransportError):
        Dispatcher(ClientConfig(api_key="k")).send(_request())


def test_missing_api_key_fails_before_network(monkeypatch):
    def fake_post(*args, **kwargs):
        raise AssertionError("network should not be touched")

    monkeypatch.setattr("resume_ai.llm.dispatcher.requests.post", fake_post)
    with pytest.raises(ConfigurationError):
        Dispatcher(ClientConfig(api_key=None)).send(_request())


def test_flatten_messages_uses_default_action_without_system():
    text, action, history = flatten_messages(
        [ChatMessage("user", "first"), ChatMessage("assistant", "reply"), ChatMessage("user", "second")],
        "default action",
    )
    assert text == "second"
    assert action == "default action"
    assert history == [{"role": "user", "message": "first"}, {"role": "assistant", "message": "reply"}]


def test_flatten_messages_rejects_bad_histories():
    with pytest.raises(ValueError):
        flatten_messages([], "x")
    with pytest.raises(ValueError):
        flatten_messages([ChatMessage("user", "hi"), ChatMessage("system", "late")], "x")
