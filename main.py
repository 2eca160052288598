"""Entrypoint: call the EdenAI resume services from the command line."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from resume_ai.config import build_client_config, load_settings
from resume_ai.json_utils import extract_json
from resume_ai.llm import client as generation
from resume_ai.llm.types import ChatMessage, ProviderError
from resume_ai.moderation import ModerationClient
from resume_ai.summarizer import JobDescriptionSummarizer


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="EdenAI services for the resume builder")
    parser.add_argument("--settings", default="config/settings.yaml", help="Path to settings.yaml")

    subparsers = parser.add_subparsers(dest="command", required=True)

    gen = subparsers.add_parser("generate", help="Generate text with retries and fallback")
    gen.add_argument("prompt", help="Prompt text, or '-' to read stdin")
    gen.add_argument("--provider")
    gen.add_argument("--temperature", type=float)
    gen.add_argument("--max-tokens", type=int)
    gen.add_argument("--max-retries", type=int)
    gen.add_argument("--json", action="store_true", help="Parse the generated text as JSON")

    chat = subparsers.add_parser("chat", help="Continue a chat history stored as JSON")
    chat.add_argument("messages_file", help="JSON file with a list of {role, content}")
    chat.add_argument("--provider")

    for name, help_text in (
        ("moderate", "Check text for unsafe content"),
        ("spell-check", "Correct spelling while keeping metrics"),
        ("summarize-jd", "Summarize and analyze a job description"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("file", help="Text file, or '-' to read stdin")
    return parser


def _read_input(value: str, is_path: bool = True) -> str:
    if value == "-":
        return sys.stdin.read()
    if is_path:
        return Path(value).read_text(encoding="utf-8")
    return value


def main() -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args()

    settings = load_settings(args.settings)
    logging.basicConfig(
        level=str(settings.get("logging", {}).get("level", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = build_client_config(settings)
    generation.configure(config)

    try:
        if args.command == "generate":
            options = generation.get_default_client().default_options(
                provider=args.provider,
                temperature=args.temperature,
                max_tokens=args.max_tokens,
                max_retries=args.max_retries,
            )
            text = generation.generate_with_retry(_read_input(args.prompt, is_path=False), options)
            if args.json:
                print(json.dumps(extract_json(text), indent=2))
            else:
                print(text)
        elif args.command == "chat":
            raw = json.loads(Path(args.messages_file).read_text(encoding="utf-8"))
            messages = [ChatMessage(role=m["role"], content=m["content"]) for m in raw]
            options = generation.get_default_client().default_options(provider=args.provider)
            print(generation.chat_with_retry(messages, options))
        elif args.command == "moderate":
            result = ModerationClient(config, settings.get("moderation")).moderate_text(_read_input(args.file))
            status = "safe" if result.is_safe else "flagged:" + ",".join(result.flagged_categories)
            print(f"{status} confidence={result.confidence:.2f}")
        elif args.command == "spell-check":
            result = ModerationClient(config, settings.get("moderation")).spell_check(_read_input(args.file))
            print(result.corrected_text)
            for c in result.corrections:
                print(f"- {c.original} -> {c.corrected} ({c.type})", file=sys.stderr)
        elif args.command == "summarize-jd":
            summarizer = JobDescriptionSummarizer(config, settings.get("summarizer"))
            analysis = summarizer.analyze(_read_input(args.file))
            print(f"Domain: {analysis.domain}")
            print(f"Summary: {analysis.summary or '(none)'}")
            print("Skills: " + ", ".join(analysis.core_skills))
            for item in analysis.responsibilities:
                print(f"- {item}")
    except (ProviderError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
