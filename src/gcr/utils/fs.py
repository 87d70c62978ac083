from __future__ import annotations

import logging
import os
from pathlib import Path

from gcr.core.schemas import FileToReview

log = logging.getLogger(__name__)

RULE_EXTS = {".md"}

LANGUAGES = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".java": "java",
    ".go": "go",
    ".rs": "rust",
    ".cpp": "cpp",
    ".c": "c",
    ".cs": "csharp",
}


def iter_rule_files(root: str | Path) -> list[Path]:
    """
    Walk root recursively and collect markdown files.
    Directories that cannot be listed are logged and skipped; order is whatever
    the filesystem yields.
    """
    def _on_error(err: OSError) -> None:
        log.warning("Could not scan directory %s: %s", err.filename, err)

    files = []
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_on_error):
        for name in filenames:
            fp = Path(dirpath) / name
            if fp.suffix.lower() in RULE_EXTS:
                files.append(fp)
    return files


def detect_language(path: str) -> str:
    return LANGUAGES.get(Path(path).suffix.lower(), "unknown")


def read_text_file(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def load_file_to_review(path: str, cwd: str | Path | None = None) -> FileToReview:
    resolved = Path(cwd or Path.cwd()) / path
    if not resolved.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    return FileToReview(
        path=path,
        content=read_text_file(resolved),
        language=detect_language(path),
    )
