from __future__ import annotations

import os
from typing import Optional

VERSION = "0.1.0"

API_KEY_ENV = "GOOGLE_API_KEY"
MODEL_ENV = "GEMINI_MODEL"

DEFAULT_MODEL = "gemini-2.0-flash-lite"
DEFAULT_TAGS = ["react", "typescript"]
DEFAULT_RULES_DIR = "rules"
DEFAULT_MAX_TOKENS = 8192
DEFAULT_TEMPERATURE = 0.1


def get_api_key() -> Optional[str]:
    return os.environ.get(API_KEY_ENV) or None


def resolve_model(flag: Optional[str] = None) -> str:
    """CLI flag wins over the environment, which wins over the built-in default."""
    if flag:
        return flag
    return os.environ.get(MODEL_ENV) or DEFAULT_MODEL


def parse_tags(raw: Optional[str]) -> list[str]:
    if not raw:
        return list(DEFAULT_TAGS)
    tags = [t.strip() for t in raw.split(",")]
    return [t for t in tags if t]
