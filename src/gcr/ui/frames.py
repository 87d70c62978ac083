from __future__ import annotations

from typing import Iterable

import pandas as pd

from gcr.core.schemas import ReviewResult

COLUMNS = ["origin", "severity", "category", "file", "line", "title", "description", "reasoning", "suggestion", "rule_id"]


def issues_frame(result: ReviewResult) -> pd.DataFrame:
    rows = []
    for issue in result.issues:
        row = issue.model_dump()
        row["origin"] = "rule" if issue.is_rule_based else "ai"
        rows.append(row)
    return pd.DataFrame(rows, columns=COLUMNS)


def filter_issues(df: pd.DataFrame, severities: Iterable[str], search: str = "") -> pd.DataFrame:
    """Keep rows whose severity is selected and whose title/description contains search."""
    out = df[df["severity"].isin(list(severities))]
    q = search.strip().lower()
    if q:
        title = out["title"].astype(str).str.lower()
        description = out["description"].astype(str).str.lower()
        out = out[title.str.contains(q, regex=False, na=False) | description.str.contains(q, regex=False, na=False)]
    return out
