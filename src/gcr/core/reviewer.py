from __future__ import annotations

import json
import logging
import math
import time
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

import requests
from pydantic import ValidationError

from gcr.core.errors import (
    ConfigurationError,
    GeminiAPIError,
    ResponseParseError,
    ResponseValidationError,
    ReviewFailedError,
)
from gcr.core.schemas import FileToReview, ReviewConfig, ReviewResult

log = logging.getLogger(__name__)

GEMINI_URL_DEFAULT = "https://generativelanguage.googleapis.com"
RAW_PREVIEW_CHARS = 1000


def _load_prompt(name: str) -> str:
    here = Path(__file__).resolve().parents[1] / "prompts"
    return (here / name).read_text(encoding="utf-8")


SYSTEM_PROMPT = _load_prompt("system.txt")
REVIEW_PROMPT = _load_prompt("review.txt")


def response_schema() -> dict:
    """Structured-output schema declared to Gemini (OpenAPI subset, upper-case types)."""
    issue = {
        "type": "OBJECT",
        "properties": {
            "severity": {"type": "STRING", "enum": ["low", "medium", "high", "critical"]},
            "category": {
                "type": "STRING",
                "enum": ["correctness", "performance", "maintainability", "best-practice"],
            },
            "file": {"type": "STRING"},
            "line": {"type": "NUMBER", "nullable": True},
            "title": {"type": "STRING"},
            "description": {"type": "STRING"},
            "reasoning": {"type": "STRING"},
            "suggestion": {"type": "STRING", "nullable": True},
            "ruleId": {"type": "STRING", "nullable": True},
        },
        "required": ["severity", "category", "file", "title", "description", "reasoning"],
    }
    return {
        "type": "OBJECT",
        "properties": {
            "issues": {"type": "ARRAY", "items": issue},
            "summary": {"type": "STRING"},
            "overallScore": {"type": "NUMBER"},
        },
        "required": ["issues", "summary", "overallScore"],
    }


def gemini_generate(
    *,
    model: str,
    prompt: str,
    system: str,
    api_key: str,
    base_url: str = GEMINI_URL_DEFAULT,
    temperature: float = 0.1,
    max_output_tokens: int = 8192,
    schema: Optional[dict] = None,
    timeout: float = 300,
) -> dict:
    model_name = model.removeprefix("models/")
    url = f"{base_url.rstrip('/')}/v1beta/models/{model_name}:generateContent"
    generation_config: dict[str, Any] = {
        "temperature": temperature,
        "maxOutputTokens": max_output_tokens,
        "responseMimeType": "application/json",
    }
    if schema is not None:
        generation_config["responseSchema"] = schema

    payload = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "systemInstruction": {"parts": [{"text": system}]},
        "generationConfig": generation_config,
    }

    r = requests.post(url, json=payload, headers={"x-goog-api-key": api_key}, timeout=timeout)
    if not r.ok:
        raise GeminiAPIError(
            f"Gemini error {r.status_code} for model {model_name}\n"
            f"Response:\n{r.text[:RAW_PREVIEW_CHARS]}"
        )

    data = r.json()
    if not data.get("candidates"):
        reason = (data.get("promptFeedback") or {}).get("blockReason", "unknown reason")
        raise GeminiAPIError(f"Gemini returned no candidates ({reason})")
    return data


def _parts(response: dict) -> list[dict]:
    candidates = response.get("candidates") or []
    if not candidates:
        return []
    content = candidates[0].get("content") or {}
    return [p for p in content.get("parts") or [] if isinstance(p, dict)]


def _is_thought(part: dict) -> bool:
    return bool(part.get("thought") or part.get("thinking"))


def response_text(response: dict) -> str:
    return "".join(p.get("text", "") for p in _parts(response) if not _is_thought(p))


def extract_thinking_trace(response: dict) -> Optional[str]:
    """
    Collect the reasoning parts of the first candidate, if the model exposed any.
    Thought parts carry either `thought: true` next to their text, or the trace
    itself as a string under `thought`/`thinking`.
    """
    traces = []
    for part in _parts(response):
        if not _is_thought(part):
            continue
        marker = part.get("thought") or part.get("thinking")
        traces.append(marker if isinstance(marker, str) else str(part.get("text", "")))

    traces = [t for t in traces if t]
    return "\n".join(traces) if traces else None


def normalize_review_obj(obj: Any) -> dict:
    """
    Fill the top-level defaults and tidy enum casing.
    Field presence inside issues is left to ReviewResult validation.
    """
    if not isinstance(obj, dict):
        obj = {}

    if obj.get("issues") is None:
        obj["issues"] = []
    if not obj.get("summary"):
        obj["summary"] = "No summary provided"

    try:
        score = float(obj.get("overallScore") or 0)
    except (TypeError, ValueError):
        score = 0.0
    if not math.isfinite(score):
        score = 0.0
    obj["overallScore"] = max(0.0, min(100.0, score))

    for issue in obj["issues"] if isinstance(obj["issues"], list) else []:
        if not isinstance(issue, dict):
            continue
        for key in ("severity", "category"):
            if isinstance(issue.get(key), str):
                issue[key] = issue[key].lower().strip()
        if isinstance(issue.get("line"), float) and math.isfinite(issue["line"]):
            issue["line"] = int(round(issue["line"]))

    return obj


def _reject_constant(name: str):
    raise ValueError(f"non-standard JSON constant {name}")


def _finite_float(s: str) -> float:
    v = float(s)
    if not math.isfinite(v):
        raise ValueError(f"number out of range: {s}")
    return v


def parse_review_payload(raw: str) -> dict:
    try:
        obj = json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
    except ValueError as e:
        raise ResponseParseError(
            f"Gemini returned non-JSON output.\nError: {e}\nRaw:\n{raw[:RAW_PREVIEW_CHARS]}"
        ) from e
    return normalize_review_obj(obj)


def _files_section(files: Sequence[FileToReview]) -> str:
    return "\n".join(
        f"\n### File: {f.path}\n```{f.language}\n{f.content}\n```\n" for f in files
    )


def _rule_ids_section(known_rule_ids: Iterable[str]) -> str:
    ids = sorted(set(known_rule_ids))
    if not ids:
        return ""
    listed = "\n".join(f"- {i}" for i in ids)
    return (
        "## Known Rule IDs\n\n"
        "When an issue is covered by one of the rules above, set ruleId to its ID exactly as listed:\n"
        f"{listed}\n"
    )


def build_prompt(
    files: Sequence[FileToReview],
    rules_prompt: str,
    known_rule_ids: Iterable[str] = (),
) -> str:
    languages = sorted({f.language for f in files if f.language != "unknown"})
    return REVIEW_PROMPT.format(
        languages=", ".join(languages) or "software engineering",
        rules=rules_prompt,
        rule_ids=_rule_ids_section(known_rule_ids),
        files=_files_section(files),
    )


def review_code(
    files: Sequence[FileToReview],
    rules_prompt: str,
    *,
    config: ReviewConfig,
    known_rule_ids: Iterable[str] = (),
) -> ReviewResult:
    if not config.api_key:
        raise ConfigurationError("Google API key is required. Set GOOGLE_API_KEY environment variable.")

    prompt = build_prompt(files, rules_prompt, known_rule_ids)

    log.info("Using model: %s", config.model)
    log.info("Deep thinking: %s", "enabled" if config.enable_deep_thinking else "disabled")

    started = time.perf_counter()
    try:
        response = gemini_generate(
            model=config.model,
            prompt=prompt,
            system=SYSTEM_PROMPT,
            api_key=config.api_key,
            base_url=config.base_url,
            temperature=config.temperature,
            max_output_tokens=config.max_tokens,
            schema=response_schema(),
            timeout=config.timeout,
        )
    except (requests.RequestException, GeminiAPIError) as e:
        raise ReviewFailedError(f"Failed to review code: {e}") from e

    elapsed = time.perf_counter() - started
    log.info("Analysis completed in %.1fs", elapsed)

    obj = parse_review_payload(response_text(response))
    obj.update(
        thinkingTrace=extract_thinking_trace(response),
        filesReviewed=[f.path for f in files],
        totalLines=sum(len(f.content.split("\n")) for f in files),
        model=config.model,
        elapsed_seconds=round(elapsed, 1),
    )

    try:
        return ReviewResult.model_validate(obj)
    except ValidationError as e:
        raise ResponseValidationError(f"Gemini response does not match the review schema:\n{e}") from e
