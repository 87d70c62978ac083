from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

import yaml
from pydantic import ValidationError

from gcr.core.schemas import Rule
from gcr.utils.fs import iter_rule_files, read_text_file

log = logging.getLogger(__name__)

NO_RULES_PROMPT = "No specific rules loaded. Use general best practices for the language under review."

PRINCIPLES_HEADER = """
# GUIDING PRINCIPLES (Use these to guide your deep thinking)

These principles should inform your analysis. Use your expertise to discover
issues related to these concepts. Think deeply and reason about implications.

"""

REQUIREMENTS_HEADER = """
# STRICT REQUIREMENTS (Always enforce these)

These are team-specific standards that MUST be followed. Flag any violations.

"""


def split_frontmatter(text: str) -> tuple[dict, str]:
    """
    Split a '---' delimited YAML block off the top of a markdown document.
    Documents without a frontmatter block yield ({}, text).
    """
    text = text.lstrip("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != "---":
        return {}, text

    for idx in range(1, len(lines)):
        if lines[idx].strip() == "---":
            header = "".join(lines[1:idx])
            body = "".join(lines[idx + 1:])
            data = yaml.safe_load(header) or {}
            if not isinstance(data, dict):
                raise ValueError("frontmatter is not a mapping")
            return data, body

    return {}, text


def parse_rule(text: str, source: Optional[str] = None) -> Optional[Rule]:
    data, body = split_frontmatter(text)
    if not data.get("id") or not data.get("title"):
        return None

    fields = {
        "id": str(data["id"]),
        "title": str(data["title"]),
        "content": body.strip(),
        "source": source,
    }
    for key in ("type", "impact", "category", "tags"):
        if data.get(key) is not None:
            fields[key] = data[key]
    if "category" in fields:
        fields["category"] = str(fields["category"])

    return Rule(**fields)


class RuleLoader:
    def __init__(self, rules_dir: str | Path):
        self.rules_dir = Path(rules_dir)
        self._rules: list[Rule] = []

    def load_rules(self) -> list[Rule]:
        """Rebuild the rule collection from every markdown file under rules_dir."""
        rules: list[Rule] = []
        for fp in iter_rule_files(self.rules_dir):
            rule = self._load_rule_file(fp)
            if rule is not None:
                rules.append(rule)

        self._rules = rules
        log.debug("Loaded %d rules from %s", len(rules), self.rules_dir)
        return list(rules)

    def _load_rule_file(self, fp: Path) -> Optional[Rule]:
        try:
            rule = parse_rule(read_text_file(fp), source=str(fp))
        except (OSError, yaml.YAMLError, ValueError, ValidationError) as e:
            log.warning("Could not load rule %s: %s", fp, e)
            return None

        if rule is None:
            log.warning("Skipping %s: missing required frontmatter (id, title)", fp)
        return rule

    def get_rules(self) -> list[Rule]:
        return list(self._rules)

    def rule_ids(self, tags: Optional[Iterable[str]] = None) -> set[str]:
        rules = self._rules if tags is None else self.get_rules_by_tags(tags)
        return {r.id for r in rules}

    def get_rules_by_tags(self, tags: Iterable[str]) -> list[Rule]:
        """A rule matches when any of its tags is in tags."""
        wanted = set(tags)
        return [r for r in self._rules if wanted.intersection(r.tags)]

    def compile_rules_for_prompt(self, tags: Optional[Iterable[str]] = None) -> str:
        """
        Render the selected rules as prompt text: principles first, then requirements.
        An empty selection yields NO_RULES_PROMPT.
        """
        rules = self._rules if tags is None else self.get_rules_by_tags(tags)
        if not rules:
            return NO_RULES_PROMPT

        principles = [r for r in rules if r.type == "principle"]
        requirements = [r for r in rules if r.type == "requirement"]

        out = []
        if principles:
            out.append(PRINCIPLES_HEADER)
            for r in principles:
                out.append(
                    f"\n## {r.title}\n"
                    f"**Focus Area:** {r.category} | **Priority:** {r.impact}\n\n"
                    f"{r.content}\n\n---\n"
                )

        if requirements:
            out.append(REQUIREMENTS_HEADER)
            for r in requirements:
                out.append(
                    f"\n## {r.title}\n"
                    f"**Rule ID:** {r.id} | **Priority:** {r.impact}\n\n"
                    f"{r.content}\n\n---\n"
                )

        return "".join(out)
