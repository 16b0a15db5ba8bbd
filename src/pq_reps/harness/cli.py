"""
pq-reps-harness CLI - Prompt drift checks for the script generator.

Commands:
    pq-reps-harness run --system S --cases C --out DIR   Generate + validate every case
    pq-reps-harness validate SCRIPT_FILE                 Validate one script file
    pq-reps-harness export-prompt [--out FILE]           Write the generator system prompt
"""

import asyncio
import json
from pathlib import Path

import typer
from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.table import Table

from ..services.script import SCRIPT_SYSTEM_PROMPT
from ..validation import (
    RuleConfig,
    RuleConfigError,
    SessionConfig,
    Severity,
    ValidationFailure,
    load_rule_config,
    validate_script,
)
from .models import STATUS_FAIL, STATUS_PASS, HarnessError, Report
from .providers import get_provider
from .runner import run_harness

app = typer.Typer(help="Prompt drift harness for generated practice scripts")
console = Console()

DEFAULT_RULES_PATH = "rules/default_rules.json"
DEFAULT_SYSTEM_PROMPT_PATH = "prompt-drift/system.txt"

STATUS_STYLES = {STATUS_PASS: "green", "warn": "yellow", STATUS_FAIL: "red"}


def _load_rules(path: str | None) -> RuleConfig:
    if not path:
        return RuleConfig()
    try:
        return load_rule_config(path)
    except RuleConfigError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _print_summary(report: Report) -> None:
    table = Table(title="Prompt Drift Summary")
    table.add_column("Case", style="bold")
    table.add_column("Status")
    table.add_column("Fail", justify="right")
    table.add_column("Warn", justify="right")

    for result in report.results:
        style = STATUS_STYLES.get(result.status, "white")
        table.add_row(
            result.case_id,
            f"[{style}]{result.status}[/{style}]",
            str(result.fail_count),
            str(result.warn_count),
        )
    console.print(table)

    summary = report.summary
    console.print(
        f"\nTotal: {summary.total}  Passed: {summary.passed}  "
        f"Warnings: {summary.warned}  Failed: {summary.failed}"
    )


def _print_failures(failures: tuple[ValidationFailure, ...]) -> None:
    table = Table(title="Findings")
    table.add_column("Rule", style="bold")
    table.add_column("Severity")
    table.add_column("Message")
    table.add_column("Evidence")
    for failure in failures:
        style = "red" if failure.severity is Severity.FAIL else "yellow"
        table.add_row(
            failure.rule_id,
            f"[{style}]{failure.severity.value}[/{style}]",
            failure.message,
            failure.evidence,
        )
    console.print(table)


# =============================================================================
# RUN
# =============================================================================


@app.command()
def run(
    system: str = typer.Option(..., "--system", help="System prompt text file"),
    cases: str = typer.Option(..., "--cases", help="Cases file (JSON or YAML)"),
    out: str = typer.Option(..., "--out", help="Output directory"),
    model: str = typer.Option(None, "--model", help="Model name (default: OPENAI_MODEL or gpt-4o-mini)"),
    provider: str = typer.Option("mock", "--provider", help="mock | openai"),
    temperature: float = typer.Option(None, "--temperature", help="Sampling temperature"),
    rules: str = typer.Option(DEFAULT_RULES_PATH, "--rules", help="Rule config (JSON or YAML)"),
):
    """Generate a script for every case and validate it against the rules."""
    load_dotenv(".env.local")
    load_dotenv()

    console.print("\n[bold blue]pq-reps-harness run[/bold blue]")
    console.print(f"Provider: {provider}  Cases: {cases}\n")

    rule_config = _load_rules(rules)
    try:
        script_provider = get_provider(provider)
        report = asyncio.run(
            run_harness(
                system,
                cases,
                out,
                script_provider,
                rules=rule_config,
                model=model,
                temperature=temperature,
            )
        )
    except HarnessError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    _print_summary(report)
    console.print(f"Reports: {Path(out) / 'reports'}")

    if report.summary.failed:
        console.print(f"\n[bold red]{report.summary.failed} case(s) failed.[/bold red]")
        raise typer.Exit(1)
    console.print("\n[bold green]All cases passed![/bold green]")


# =============================================================================
# VALIDATE
# =============================================================================


@app.command()
def validate(
    script_file: str = typer.Argument(..., help="Script text file to check"),
    rules: str = typer.Option(DEFAULT_RULES_PATH, "--rules", help="Rule config (JSON or YAML)"),
    session: str = typer.Option(
        None, "--session", help="Session config as JSON (camelCase keys); omit for unconditional rules only"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Validate one script file and print its findings."""
    try:
        script = Path(script_file).read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[bold red]Error:[/bold red] Cannot read {script_file}: {e}")
        raise typer.Exit(1)

    session_config = None
    if session:
        try:
            session_config = SessionConfig.model_validate_json(session)
        except PydanticValidationError as e:
            console.print(f"[bold red]Error:[/bold red] Invalid --session: {e.error_count()} error(s)")
            raise typer.Exit(1)

    result = validate_script(script, session_config, _load_rules(rules))

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
    elif result.failures:
        _print_failures(result.failures)
    else:
        console.print("[bold green]No findings.[/bold green]")

    if not result.passed:
        console.print(f"\n[bold red]{result.fail_count} failing rule(s).[/bold red]")
        raise typer.Exit(1)


# =============================================================================
# EXPORT PROMPT
# =============================================================================


@app.command("export-prompt")
def export_prompt(
    out: str = typer.Option(DEFAULT_SYSTEM_PROMPT_PATH, "--out", help="Where to write the system prompt"),
):
    """Write the script generator's system prompt to a file for `run --system`."""
    path = Path(out).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"{SCRIPT_SYSTEM_PROMPT}\n", encoding="utf-8")
    console.print(f"[green]Wrote system prompt to {path}[/green]")


if __name__ == "__main__":
    app()
