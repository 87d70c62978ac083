import pytest

from gcr.cli import main as cli
from gcr.core.errors import ResponseParseError
from gcr.core.schemas import ReviewResult
from gcr.core.settings import DEFAULT_MODEL, parse_tags, resolve_model
from tests.helpers import make_issue, write_rule


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    monkeypatch.setenv("GOOGLE_API_KEY", "test-key")
    monkeypatch.delenv("GEMINI_MODEL", raising=False)
    write_rule(tmp_path / "rules", "perf.md", "id: perf\ntitle: Perf\ntags: [react]")
    write_rule(tmp_path / "rules", "strict.md", "id: strict\ntitle: Strict\ntype: requirement\ntags: [typescript]")
    (tmp_path / "App.tsx").write_text("export const App = () => null;\n", encoding="utf-8")
    return tmp_path


def _fake_review(monkeypatch, *issues):
    seen = {}

    def fake(files, rules_prompt, *, config, known_rule_ids=()):
        seen.update(files=files, rules_prompt=rules_prompt, config=config, known_rule_ids=set(known_rule_ids))
        return ReviewResult.model_validate(
            {
                "issues": list(issues),
                "summary": "ok",
                "overallScore": 80,
                "filesReviewed": [f.path for f in files],
                "totalLines": 1,
            }
        )

    monkeypatch.setattr(cli, "review_code", fake)
    return seen


def test_missing_api_key_exits_1(workspace, monkeypatch, capsys):
    monkeypatch.delenv("GOOGLE_API_KEY")
    assert cli.main(["App.tsx"]) == 1
    assert "GOOGLE_API_KEY environment variable is required" in capsys.readouterr().out


def test_missing_rules_dir_exits_1(workspace, capsys):
    assert cli.main(["App.tsx", "--rules-dir", "nowhere"]) == 1
    assert "Rules directory not found" in capsys.readouterr().out


def test_missing_file_argument_exits_1(workspace, capsys):
    assert cli.main([]) == 1
    assert "File path required" in capsys.readouterr().out


def test_missing_file_exits_1(workspace, capsys):
    assert cli.main(["Missing.tsx"]) == 1
    assert "File not found: Missing.tsx" in capsys.readouterr().out


def test_critical_issue_exits_1(workspace, monkeypatch, capsys):
    _fake_review(monkeypatch, make_issue("critical", file="App.tsx"))
    assert cli.main(["App.tsx"]) == 1
    assert "Critical issues found" in capsys.readouterr().out


def test_high_issue_exits_0_with_warning(workspace, monkeypatch, capsys):
    _fake_review(monkeypatch, make_issue("high"), make_issue("low"))
    assert cli.main(["App.tsx"]) == 0
    assert "passed with warnings" in capsys.readouterr().out


def test_clean_review_passes(workspace, monkeypatch, capsys):
    seen = _fake_review(monkeypatch)
    assert cli.main(["App.tsx", "--model", "gemini-flag", "--no-thinking"]) == 0

    out = capsys.readouterr().out
    assert "Review passed!" in out
    assert seen["config"].model == "gemini-flag"
    assert seen["config"].enable_deep_thinking is False
    assert seen["config"].api_key == "test-key"
    assert seen["files"][0].language == "tsx"
    assert seen["known_rule_ids"] == {"perf", "strict"}
    assert "## Perf" in seen["rules_prompt"]
    assert "**Rule ID:** strict" in seen["rules_prompt"]


def test_tags_flag_filters_rules(workspace, monkeypatch):
    seen = _fake_review(monkeypatch)
    assert cli.main(["App.tsx", "--tags", "react"]) == 0
    assert "## Perf" in seen["rules_prompt"]
    assert "Strict" not in seen["rules_prompt"]


def test_gateway_failure_exits_1(workspace, monkeypatch, capsys):
    def boom(*a, **kw):
        raise ResponseParseError("Gemini returned non-JSON output.")

    monkeypatch.setattr(cli, "review_code", boom)
    assert cli.main(["App.tsx"]) == 1
    assert "non-JSON output" in capsys.readouterr().out


def test_model_resolution(monkeypatch):
    monkeypatch.delenv("GEMINI_MODEL", raising=False)
    assert resolve_model() == DEFAULT_MODEL
    monkeypatch.setenv("GEMINI_MODEL", "from-env")
    assert resolve_model() == "from-env"
    assert resolve_model("from-flag") == "from-flag"


def test_parse_tags():
    assert parse_tags("") == ["react", "typescript"]
    assert parse_tags(None) == ["react", "typescript"]
    assert parse_tags(" python , , api ") == ["python", "api"]
