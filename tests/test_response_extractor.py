import pytest

from resume_ai.llm.extractor import (
    BASE_NAME,
    EXACT,
    SCAN,
    extract_generated_text,
    resolve_provider_entry,
)
from resume_ai.llm.types import (
    EmptyResponseError,
    NoProviderResponseError,
    ProviderReportedError,
)


def test_exact_key_is_used():
    data = {"openai/gpt-4o-mini": {"generated_text": "hi"}}
    assert extract_generated_text(data, "openai/gpt-4o-mini") == "hi"
    assert resolve_provider_entry(data, "openai/gpt-4o-mini").via == EXACT


def test_base_name_fallback():
    data = {"openai": {"generated_text": "hi"}}
    assert extract_generated_text(data, "openai/gpt-4o-mini") == "hi"
    match = resolve_provider_entry(data, "openai/gpt-4o-mini")
    assert match.via == BASE_NAME
    assert match.key == "openai"


def test_scan_picks_first_entry_with_text():
    data = {
        "mistral": {"status": "fail"},
        "google/gemini-1.5-flash": {"generated_text": "from google"},
        "cohere": {"generated_text": "from cohere"},
    }
    match = resolve_provider_entry(data, "openai/gpt-4o-mini")
    assert match.via == SCAN
    assert match.key == "google/gemini-1.5-flash"
    assert extract_generated_text(data, "openai/gpt-4o-mini") == "from google"


def test_extraction_is_idempotent():
    data = {"openai": {"generated_text": "same text"}}
    first = extract_generated_text(data, "openai/gpt-4o-mini")
    second = extract_generated_text(data, "openai/gpt-4o-mini")
    assert first == second == "same text"


def test_no_provider_response():
    with pytest.raises(NoProviderResponseError):
        extract_generated_text({"mistral": {"status": "fail"}}, "openai/gpt-4o-mini")
    with pytest.raises(NoProviderResponseError):
        extract_generated_text({}, "openai")
    assert resolve_provider_entry(["not", "a", "mapping"], "openai") is None


def test_provider_reported_error_carries_message():
    data = {"openai/gpt-4o-mini": {"status": "fail", "error": {"message": "quota exceeded"}}}
    with pytest.raises(ProviderReportedError) as info:
        extract_generated_text(data, "openai/gpt-4o-mini")
    assert info.value.message == "quota exceeded"
    assert "quota exceeded" in str(info.value)


def test_failure_without_message_uses_placeholder():
    with pytest.raises(ProviderReportedError) as info:
        extract_generated_text({"openai": {"status": "fail"}}, "openai")
    assert info.value.message == "Unknown error"


def test_blank_text_is_empty_response():
    with pytest.raises(EmptyResponseError):
        extract_generated_text({"openai": {"generated_text": "   "}}, "openai")
    with pytest.raises(EmptyResponseError):
        extract_generated_text({"openai": {"status": "success"}}, "openai")
