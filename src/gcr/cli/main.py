from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from gcr.cli.formatter import exit_decision, print_config, print_exit_banner, print_results
from gcr.core.errors import ReviewError
from gcr.core.reviewer import review_code
from gcr.core.rules import RuleLoader
from gcr.core.schemas import ReviewConfig
from gcr.core.settings import (
    API_KEY_ENV,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_RULES_DIR,
    DEFAULT_TAGS,
    DEFAULT_TEMPERATURE,
    MODEL_ENV,
    VERSION,
    get_api_key,
    parse_tags,
    resolve_model,
)
from gcr.utils.fs import load_file_to_review

console = Console()


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    logging.getLogger("gcr").setLevel(logging.DEBUG if verbose else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="gemini-review",
        description="AI-powered code review using Google Gemini and markdown team rules",
    )
    ap.add_argument("file", nargs="?", help="File to review")
    ap.add_argument(
        "-m", "--model", default=None,
        help=f"Gemini model to use (default: ${MODEL_ENV} or {DEFAULT_MODEL})",
    )
    ap.add_argument("--no-thinking", dest="thinking", action="store_false", help="Disable deep thinking mode")
    ap.add_argument(
        "-t", "--tags", default="",
        help=f"Filter rules by tags, comma-separated (default: {','.join(DEFAULT_TAGS)})",
    )
    ap.add_argument("--rules-dir", default=DEFAULT_RULES_DIR, help="Directory holding the markdown rules")
    ap.add_argument("--temperature", type=float, default=DEFAULT_TEMPERATURE, help="Sampling temperature")
    ap.add_argument("--max-tokens", type=int, default=DEFAULT_MAX_TOKENS, help="Maximum output tokens")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    ap.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    console.print("\n[bold cyan]🔍 Gemini Code Review[/bold cyan]\n")

    api_key = get_api_key()
    if not api_key:
        console.print(f"[red]❌ Error: {API_KEY_ENV} environment variable is required[/red]")
        console.print(f"[yellow]\nSet it with: export {API_KEY_ENV}=your_api_key_here[/yellow]")
        console.print("[dim]Or create a .env file (see .env.example)\n[/dim]")
        return 1

    rules_dir = Path(args.rules_dir).resolve()
    if not rules_dir.is_dir():
        console.print(f"[red]❌ Rules directory not found: {escape(str(rules_dir))}[/red]")
        return 1

    loader = RuleLoader(rules_dir)
    with console.status("Loading review rules..."):
        loader.load_rules()
    console.print(f"[green]✔ Loaded {len(loader.get_rules())} rules[/green]")

    tags = parse_tags(args.tags)
    selected = loader.get_rules_by_tags(tags)
    rules_prompt = loader.compile_rules_for_prompt(tags)
    console.print(f"[dim]Using rules tagged: {escape(', '.join(tags))}[/dim]")

    if not args.file:
        console.print("[red]❌ Error: File path required[/red]")
        console.print("[yellow]Usage: gemini-review <file-path>[/yellow]")
        console.print("[dim]Example: gemini-review src/components/UserProfile.tsx\n[/dim]")
        return 1

    try:
        files = [load_file_to_review(args.file)]
    except FileNotFoundError as e:
        console.print(f"[red]\n❌ Error:[/red] {escape(str(e))}")
        return 1

    console.print(f"[dim]Reviewing {len(files)} file(s)...\n[/dim]")

    config = ReviewConfig(
        model=resolve_model(args.model),
        enable_deep_thinking=args.thinking,
        max_tokens=args.max_tokens,
        temperature=args.temperature,
        api_key=api_key,
    )
    print_config(
        model=config.model,
        rules=len(selected),
        tags=tags,
        deep_thinking=config.enable_deep_thinking,
        console=console,
    )

    console.print("[bold cyan]🤖 AI Review Process\n[/bold cyan]")
    console.print("[yellow]📋 JOB 1: Checking against your team rules...[/yellow]")
    console.print("[dim]   - Enforcing strict requirements[/dim]")
    console.print("[dim]   - Applying guiding principles\n[/dim]")

    try:
        with console.status("[blue]🧠 JOB 2: Deep AI reasoning (discovering issues beyond rules)...[/blue]"):
            result = review_code(files, rules_prompt, config=config, known_rule_ids=loader.rule_ids(tags))
    except ReviewError as e:
        console.print("[red]Analysis failed[/red]")
        console.print(f"[red]\n❌ Error:[/red] {escape(str(e))}")
        return 1

    console.print("[green]✅ Analysis complete! (Both rule-based + AI discoveries)[/green]")

    print_results(result, console=console, known_rule_ids=loader.rule_ids())

    decision = exit_decision(result)
    print_exit_banner(decision, console=console)
    return decision.code


def main_entry() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    main_entry()
