from resume_ai.config import ClientConfig
from resume_ai.summarizer import (
    JobDescriptionSummarizer,
    detect_domain,
    extract_core_skills,
    extract_responsibilities,
)


class DummyResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self):
        return self._payload


JOB_DESCRIPTION = """Senior Backend Engineer - Payments Platform
We are a fintech company building payment infrastructure.
- Design and build scalable microservices in Python and Go
- Collaborate with product managers to define the roadmap
- Maintain PostgreSQL and Redis clusters running on AWS with Docker
Nice to have: Kubernetes, Terraform
"""


def test_summarize_posts_and_reads_provider_result(monkeypatch):
    captured = {}

    def fake_post(url, headers, json, timeout):
        captured["url"] = url
        captured["json"] = json
        return DummyResponse(payload={"openai": {"result": "  Backend role on a payments team.  "}})

    monkeypatch.setattr("resume_ai.llm.dispatcher.requests.post", fake_post)

    summarizer = JobDescriptionSummarizer(ClientConfig(api_key="k"))
    assert summarizer.summarize(JOB_DESCRIPTION) == "Backend role on a payments team."
    assert captured["url"].endswith("/text/summarize")
    assert captured["json"]["output_sentences"] == 3


def test_summarize_returns_empty_on_failure(monkeypatch):
    monkeypatch.setattr(
        "resume_ai.llm.dispatcher.requests.post",
        lambda url, headers, json, timeout: DummyResponse(status_code=500, text="boom"),
    )
    summarizer = JobDescriptionSummarizer(ClientConfig(api_key="k"))
    assert summarizer.summarize(JOB_DESCRIPTION) == ""


def test_summarize_skips_short_text_and_missing_key():
    assert JobDescriptionSummarizer(ClientConfig(api_key="k")).summarize("too short") == ""
    assert JobDescriptionSummarizer(ClientConfig(api_key=None)).summarize(JOB_DESCRIPTION) == ""


def test_keyword_analysis():
    responsibilities = extract_responsibilities(JOB_DESCRIPTION)
    assert responsibilities[0] == "Design and build scalable microservices in Python and Go"
    assert "Collaborate with product managers to define the roadmap" in responsibilities

    skills = extract_core_skills(JOB_DESCRIPTION)
    for skill in ("Python", "Go", "PostgreSQL", "Redis", "AWS", "Docker", "Kubernetes", "Terraform", "microservices"):
        assert skill in skills

    assert detect_domain(JOB_DESCRIPTION) == "FinTech"
    assert detect_domain("Write firmware for routers") == "Technology"


def test_analyze_combines_summary_and_keywords():
    analysis = JobDescriptionSummarizer(ClientConfig(api_key=None)).analyze(JOB_DESCRIPTION)
    assert analysis.summary == ""
    assert analysis.domain == "FinTech"
    assert "Python" in analysis.core_skills
