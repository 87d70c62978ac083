import json
from pathlib import Path


def write_rule(base_dir: Path, name: str, frontmatter: str, body: str = "Rule body.") -> Path:
    p = base_dir / name
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(f"---\n{frontmatter}\n---\n\n{body}\n", encoding="utf-8")
    return p


def make_issue(severity="medium", rule_id=None, **overrides):
    issue = {
        "severity": severity,
        "category": "correctness",
        "file": "src/App.tsx",
        "line": 10,
        "title": f"{severity} issue",
        "description": "Something is wrong.",
        "reasoning": "It will break.",
        "suggestion": "Fix it.",
        "ruleId": rule_id,
    }
    issue.update(overrides)
    return issue


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        return self._payload


def gemini_payload(text: str, thoughts=()):
    parts = [{"text": t, "thought": True} for t in thoughts]
    parts.append({"text": text})
    return {"candidates": [{"content": {"role": "model", "parts": parts}}]}
