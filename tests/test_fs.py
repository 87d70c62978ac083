import os

import pytest

from gcr.utils.fs import detect_language, iter_rule_files, load_file_to_review


def test_iter_rule_files_recurses(tmp_path):
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "top.md").write_text("x", encoding="utf-8")
    (tmp_path / "a" / "b" / "deep.MD").write_text("x", encoding="utf-8")
    (tmp_path / "a" / "skip.txt").write_text("x", encoding="utf-8")

    names = sorted(p.name for p in iter_rule_files(tmp_path))
    assert names == ["deep.MD", "top.md"]


def test_iter_rule_files_missing_root_is_logged(tmp_path, caplog):
    assert iter_rule_files(tmp_path / "missing") == []
    assert "Could not scan directory" in caplog.text


def test_detect_language():
    assert detect_language("src/App.tsx") == "tsx"
    assert detect_language("main.PY") == "python"
    assert detect_language("Makefile") == "unknown"


def test_load_file_to_review(tmp_path):
    (tmp_path / "mod.py").write_text("print('hi')\n", encoding="utf-8")
    f = load_file_to_review("mod.py", cwd=tmp_path)
    assert f.path == "mod.py"
    assert f.language == "python"
    assert f.content == "print('hi')\n"

    with pytest.raises(FileNotFoundError):
        load_file_to_review("nope.py", cwd=tmp_path)


def test_iter_rule_files_skips_unreadable_subdirectory(tmp_path, monkeypatch, caplog):
    (tmp_path / "locked").mkdir()
    (tmp_path / "open").mkdir()
    (tmp_path / "locked" / "hidden.md").write_text("x", encoding="utf-8")
    (tmp_path / "open" / "sibling.md").write_text("x", encoding="utf-8")
    (tmp_path / "top.md").write_text("x", encoding="utf-8")

    real_scandir = os.scandir

    def scandir(path="."):
        if os.path.basename(os.fspath(path)) == "locked":
            raise PermissionError(13, "Permission denied", os.fspath(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", scandir)

    names = sorted(p.name for p in iter_rule_files(tmp_path))
    assert names == ["sibling.md", "top.md"]
    assert "Could not scan directory" in caplog.text
