"""Job description summarization and keyword analysis."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .config import DEFAULT_SETTINGS, ClientConfig
from .llm.dispatcher import Dispatcher
from .llm.types import ProviderError

logger = logging.getLogger(__name__)

SUMMARIZE_PATH = "text/summarize"

MAX_RESPONSIBILITIES = 8
MAX_SKILLS = 15

RESPONSIBILITY_PATTERNS = (
    re.compile(r"^[\s•\-\*]*(?:responsible for|will be responsible|duties include|responsibilities include)", re.IGNORECASE),
    re.compile(r"^[\s•\-\*]*(?:develop|design|implement|build|create|manage|lead|coordinate|analyze|optimize)", re.IGNORECASE),
    re.compile(r"^[\s•\-\*]*(?:work with|collaborate|partner|support|assist|maintain|ensure)", re.IGNORECASE),
)

SKILL_PATTERNS = (
    # languages
    re.compile(r"\b(javascript|typescript|python|java|c\+\+|c#|ruby|go|rust|php|swift|kotlin)\b", re.IGNORECASE),
    # frameworks
    re.compile(r"\b(react|angular|vue|node\.?js|express|django|flask|spring|\.net|rails)\b", re.IGNORECASE),
    # databases
    re.compile(r"\b(sql|mysql|postgresql|mongodb|redis|elasticsearch|dynamodb|oracle)\b", re.IGNORECASE),
    # cloud and devops
    re.compile(r"\b(aws|azure|gcp|docker|kubernetes|jenkins|terraform|ci/cd|devops)\b", re.IGNORECASE),
    # practices
    re.compile(r"\b(git|agile|scrum|rest\s?api|graphql|microservices|machine learning|ai|ml)\b", re.IGNORECASE),
)

DOMAIN_KEYWORDS: Dict[str, List[str]] = {
    "FinTech": ["fintech", "banking", "payment", "financial", "trading", "investment", "insurance"],
    "Healthcare": ["healthcare", "medical", "health", "hospital", "clinical", "pharma", "biotech"],
    "E-commerce": ["ecommerce", "e-commerce", "retail", "shopping", "marketplace", "commerce"],
    "AI/ML": ["machine learning", "artificial intelligence", "deep learning", "nlp", "computer vision", "data science"],
    "Cloud/Infrastructure": ["cloud", "infrastructure", "devops", "platform", "saas", "paas"],
    "Gaming": ["gaming", "game", "entertainment", "esports"],
    "EdTech": ["education", "edtech", "learning", "training", "lms"],
    "SaaS": ["saas", "software as a service", "subscription", "b2b", "enterprise"],
}
DEFAULT_DOMAIN = "Technology"


@dataclass
class JobDescriptionSummary:
    summary: str
    responsibilities: List[str] = field(default_factory=list)
    core_skills: List[str] = field(default_factory=list)
    domain: str = DEFAULT_DOMAIN


def extract_responsibilities(text: str) -> List[str]:
    found: List[str] = []
    for line in re.split(r"[\n\r]+", text):
        trimmed = line.strip()
        if not 20 < len(trimmed) < 200:
            continue
        if any(pattern.search(trimmed) for pattern in RESPONSIBILITY_PATTERNS):
            found.append(re.sub(r"^[\s•\-\*]+", "", trimmed).strip())
    return found[:MAX_RESPONSIBILITIES]


def extract_core_skills(text: str) -> List[str]:
    skills: List[str] = []
    for pattern in SKILL_PATTERNS:
        for match in pattern.finditer(text):
            skill = match.group(0).strip()
            if skill not in skills:
                skills.append(skill)
    return skills[:MAX_SKILLS]


def detect_domain(text: str) -> str:
    lowered = text.lower()
    for domain, keywords in DOMAIN_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return domain
    return DEFAULT_DOMAIN


class JobDescriptionSummarizer:
    def __init__(
        self,
        config: ClientConfig,
        settings: Mapping[str, Any] | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        self.config = config
        self.settings = dict(DEFAULT_SETTINGS["summarizer"])
        self.settings.update(settings or {})
        self.dispatcher = dispatcher or Dispatcher(config)

    def summarize(self, job_description: str) -> str:
        """A few-sentence summary, or '' when the call is skipped or fails."""
        if not self.config.has_api_key:
            logger.warning("EdenAI API key not configured. Skipping JD summarization.")
            return ""
        if not job_description or len(job_description.strip()) < int(self.settings["min_chars"]):
            logger.warning("Job description too short for summarization.")
            return ""

        provider = str(self.settings["provider"])
        payload = {
            "providers": provider,
            "text": job_description,
            "output_sentences": int(self.settings["output_sentences"]),
            "language": self.settings["language"],
        }
        try:
            result = self.dispatcher.post(SUMMARIZE_PATH, payload)
        except ProviderError as exc:
            logger.error("EdenAI JD summarization error: %s", exc)
            return ""

        if not isinstance(result, Mapping):
            return ""
        entry = result.get(provider)
        entry = entry if isinstance(entry, Mapping) else {}
        summary = entry.get("result") or entry.get("summary") or result.get("result") or ""
        return str(summary).strip()

    def analyze(self, job_description: str) -> JobDescriptionSummary:
        return JobDescriptionSummary(
            summary=self.summarize(job_description),
            responsibilities=extract_responsibilities(job_description),
            core_skills=extract_core_skills(job_description),
            domain=detect_domain(job_description),
        )
