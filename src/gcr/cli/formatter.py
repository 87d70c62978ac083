from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gcr.core.schemas import SEVERITY_ORDER, ReviewIssue, ReviewResult

SEVERITY_STYLE = {
    "critical": ("✖", "bright_red"),
    "high": ("⚠", "bright_yellow"),
    "medium": ("ℹ", "bright_blue"),
    "low": ("•", "bright_green"),
}


@dataclass(frozen=True)
class ExitDecision:
    code: int
    level: str  # "failed" | "warning" | "passed"
    message: str


def exit_decision(result: ReviewResult) -> ExitDecision:
    severities = {i.severity for i in result.issues}
    if "critical" in severities:
        return ExitDecision(1, "failed", "Review failed: Critical issues found")
    if "high" in severities:
        return ExitDecision(0, "warning", "Review passed with warnings: High-priority issues found")
    return ExitDecision(0, "passed", "Review passed!")


def group_by_severity(issues: Iterable[ReviewIssue]) -> dict[str, list[ReviewIssue]]:
    grouped: dict[str, list[ReviewIssue]] = {s: [] for s in SEVERITY_ORDER}
    for issue in issues:
        grouped[issue.severity].append(issue)
    return grouped


def severity_counts(issues: Iterable[ReviewIssue]) -> dict[str, int]:
    return {s: len(v) for s, v in group_by_severity(issues).items()}


def split_by_origin(issues: Iterable[ReviewIssue]) -> tuple[list[ReviewIssue], list[ReviewIssue]]:
    rule_based, ai_discovered = [], []
    for issue in issues:
        (rule_based if issue.is_rule_based else ai_discovered).append(issue)
    return rule_based, ai_discovered


def format_score(score: float) -> str:
    s = f"{score:g}/100"
    if score >= 90:
        return f"[bold green]{s}[/bold green] [green](Excellent ✔)[/green]"
    if score >= 70:
        return f"[bold blue]{s}[/bold blue] [blue](Good ✔)[/blue]"
    if score >= 50:
        return f"[bold yellow]{s}[/bold yellow] [yellow](Fair)[/yellow]"
    return f"[bold red]{s}[/bold red] [red](Needs Improvement)[/red]"


def _kv_table() -> Table:
    t = Table(box=None, show_header=False, padding=(0, 2, 0, 2))
    t.add_column(style="dim", width=18)
    t.add_column()
    return t


def severity_header(severity: str, count: int) -> str:
    icon, color = SEVERITY_STYLE.get(severity, ("•", "white"))
    return f"  [bold {color}]{icon} {severity.upper()}[/bold {color}] [dim]({count})[/dim]"


def print_issue(
    console: Console,
    issue: ReviewIssue,
    *,
    known_rule_ids: Optional[set[str]] = None,
) -> None:
    console.print(f"[bold]{escape(issue.title)}[/bold]")
    console.print(f"[bright_blue]❯[/bright_blue] [dim]{escape(issue.location)}[/dim]")
    console.print()
    console.print(issue.description, markup=False)

    if issue.reasoning:
        console.print()
        console.print("[bright_blue]→ Why:[/bright_blue]")
        console.print(issue.reasoning, style="dim", markup=False)

    if issue.suggestion:
        console.print()
        console.print("[green]✔ Fix:[/green]")
        console.print(issue.suggestion, style="bright_green", markup=False)

    console.print()
    if issue.is_rule_based:
        console.print(f"[yellow]ℹ Rule:[/yellow] {escape(issue.rule_id)}")
        if known_rule_ids is not None and issue.rule_id not in known_rule_ids:
            console.print("[magenta]? unknown rule (not among the loaded rules)[/magenta]")
    else:
        console.print("[magenta]★ AI Insight[/magenta]")

    console.print("─" * 70, style="dim")
    console.print()


def _print_group(
    console: Console,
    issues: Sequence[ReviewIssue],
    empty_message: str,
    known_rule_ids: Optional[set[str]],
) -> None:
    if not issues:
        console.print(f"  [dim]{empty_message}[/dim]")
        console.print()
        return

    for severity, bucket in group_by_severity(issues).items():
        if not bucket:
            continue
        console.print(severity_header(severity, len(bucket)))
        console.print()
        for issue in bucket:
            print_issue(console, issue, known_rule_ids=known_rule_ids)


def print_results(
    result: ReviewResult,
    console: Optional[Console] = None,
    known_rule_ids: Optional[set[str]] = None,
) -> None:
    console = console or Console()
    console.print()
    console.print("═" * 65, style="bold cyan")
    console.print()
    console.print("        🔍 Gemini Deep Code Review", style="bold white")
    console.print()
    console.print("═" * 65, style="bold cyan")
    console.print()
    console.print("[green]✔[/green] [bold]Review Complete[/bold]")
    console.print()

    counts = severity_counts(result.issues)
    console.print("[bold]Results[/bold]")
    t = _kv_table()
    t.add_row("Score", format_score(result.overall_score))
    t.add_row("Files", str(len(result.files_reviewed)))
    t.add_row("Lines", str(result.total_lines))
    t.add_row("Issues", str(len(result.issues)))
    t.add_row(
        "By severity",
        "  ".join(f"{s}: {counts[s]}" for s in SEVERITY_ORDER),
    )
    console.print(t)
    console.print()

    if result.summary:
        console.print("[bold]Summary[/bold]")
        console.print("  " + result.summary, style="dim", markup=False)
        console.print()

    if result.thinking_trace:
        console.print("[bold]Reasoning trace[/bold]")
        console.print(result.thinking_trace, style="dim", markup=False)
        console.print()

    rule_based, ai_discovered = split_by_origin(result.issues)

    console.print(f"[bold]📊 Issues Found ({len(result.issues)})[/bold]")
    console.print()
    console.print(f"[bold]🔖 From Team Rules ({len(rule_based)})[/bold]")
    console.print()
    _print_group(console, rule_based, "No rule violations found", known_rule_ids)

    console.print(f"[bold]✨ AI Insights ({len(ai_discovered)})[/bold]")
    console.print()
    _print_group(console, ai_discovered, "No additional issues discovered", known_rule_ids)

    if result.elapsed_seconds is not None:
        console.print(f"[dim]✔ Done in {result.elapsed_seconds:.1f}s[/dim]")
        console.print()


def print_config(
    *,
    model: str,
    rules: int,
    tags: Sequence[str],
    deep_thinking: bool,
    console: Optional[Console] = None,
) -> None:
    console = console or Console()
    console.print("[bold]Configuration[/bold]")
    t = _kv_table()
    t.add_row("Model", escape(model))
    t.add_row("Rules", f"{rules} loaded ({escape(', '.join(tags))})")
    t.add_row("Deep Mode", "[bright_green]enabled ✔[/bright_green]" if deep_thinking else "[dim]disabled[/dim]")
    console.print(t)
    console.print()


def print_exit_banner(decision: ExitDecision, console: Optional[Console] = None) -> None:
    console = console or Console()
    if decision.level == "failed":
        console.print(f"[bold red]❌ {decision.message}[/bold red]\n")
    elif decision.level == "warning":
        console.print(f"[bold yellow]⚠️  {decision.message}[/bold yellow]\n")
    else:
        console.print(f"[bold green]✅ {decision.message}[/bold green]\n")
