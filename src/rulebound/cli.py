"""
rulebound CLI - validate change plans against engineering rules.

Commands:
    rulebound validate --plan TEXT | --file PATH   Validate a plan
    rulebound review --plan TEXT [--agents a,b]    Multi-agent review
    rulebound ci --diff-file PATH [--format F]     Validate a diff for CI
    rulebound find-rules [--title/--category/...]  Look up rules
    rulebound enforce                              Show enforcement settings
    rulebound lint [--dir PATH]                    Rule quality report
    rulebound score [--badge] [--output PATH]      Average rule quality and grade
    rulebound agents                               List agent profiles
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .agents.consensus import AgentReviewResult, review_with_agents
from .agents.registry import load_agents_config, select_agents
from .config import load_config
from .enforcement.policy import (
    BlockCheckInput,
    calculate_score,
    should_block,
    should_suggest_promotion,
    should_warn,
)
from .errors import RuleboundError
from .rules.inheritance import RuleResolver
from .rules.loader import filter_rules, load_local_rules
from .rules.models import Rule
from .rules.quality import average_score, category_breakdown, grade_for, score_rule
from .validation import (
    ValidationReport,
    extract_added_lines,
    extract_changed_files,
    format_annotation,
    validate_with_pipeline,
)
from .workspace import Workspace, load_workspace

app = typer.Typer(help="Validate change plans against your team's engineering rules")
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

STATUS_STYLE = {
    "PASS": ("[green]PASS[/green]", "green"),
    "VIOLATED": ("[red]VIOLATED[/red]", "red"),
    "NOT_COVERED": ("[yellow]NOT COVERED[/yellow]", "yellow"),
}
MAX_FILES_SHOWN = 10


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(message: str, code: int = 2) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(code)


def _read_plan(plan: str | None, file: Path | None) -> str:
    if file is not None:
        try:
            return sys.stdin.read() if str(file) == "-" else file.read_text(encoding="utf-8")
        except OSError as e:
            _fail(f"Failed to read {file}: {e}", code=1)
    if plan:
        return plan
    _fail("Provide --plan 'text' or --file path/to/plan.md", code=1)


def _load(rules_dir: Path | None) -> Workspace:
    workspace = load_workspace(Path.cwd(), rules_dir)
    if not workspace.rules:
        _fail("No rules found. Add rules under .rulebound/rules/ or pass --dir.")
    return workspace


def _run(coro):
    """Run a coroutine, turning delegated-layer failures into exit code 2."""
    try:
        return asyncio.run(coro)
    except RuleboundError as e:
        _fail(str(e))


def _print_report(report: ValidationReport, score: int) -> None:
    table = Table(title=f"Validation: {report.task}")
    table.add_column("Status")
    table.add_column("Rule", style="bold")
    table.add_column("Modality")
    table.add_column("Reason")

    for row in report.results:
        label, _ = STATUS_STYLE.get(row.status, (row.status, "white"))
        reason = row.reason
        if row.suggested_fix:
            reason += f"\n[yellow]-> {row.suggested_fix}[/yellow]"
        table.add_row(label, row.rule_title, row.modality.upper(), reason)

    console.print(table)
    console.print(
        f"  [green]{report.summary.pass_count} PASS[/green] | "
        f"[red]{report.summary.violated} VIOLATED[/red] | "
        f"[yellow]{report.summary.not_covered} NOT COVERED[/yellow]"
    )
    console.print(f"  Score: {score}/100  Layers: {', '.join(report.layers)}")


def _print_status(report: ValidationReport) -> None:
    if report.status == "FAILED":
        console.print("\n[bold red]FAILED - MUST violations detected[/bold red]")
    elif report.status == "PASSED_WITH_WARNINGS":
        console.print("\n[yellow]PASSED with warnings[/yellow]")
    else:
        console.print("\n[bold green]PASSED[/bold green]")


# =============================================================================
# VALIDATE
# =============================================================================


@app.command()
def validate(
    plan: str = typer.Option(None, "--plan", "-p", help="Plan text"),
    file: Path = typer.Option(None, "--file", "-f", help="Read the plan from a file ('-' for stdin)"),
    llm: bool = typer.Option(False, "--llm", help="Add the LLM judgment layer"),
    provider: str = typer.Option(None, "--provider", help="LLM provider: anthropic or openai"),
    model: str = typer.Option(None, "--model", help="LLM model override"),
    rules_dir: Path = typer.Option(None, "--dir", help="Rules directory (skips inheritance)"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
):
    """Validate a plan against the rules that apply to this project."""
    plan_text = _read_plan(plan, file)
    workspace = _load(rules_dir)
    rules = workspace.applicable(plan_text)

    report = _run(
        validate_with_pipeline(
            plan_text, rules, use_llm=llm, llm_provider=provider, llm_model=model
        )
    )
    score = calculate_score(report)

    if as_json:
        typer.echo(json.dumps({**report.to_dict(), "score": score}, indent=2))
    else:
        _print_report(report, score)
        if should_suggest_promotion(workspace.enforcement, score):
            console.print(
                f"[dim]Score {score} is consistently high. Consider a stricter "
                f"enforcement mode than '{workspace.enforcement.mode}'.[/dim]"
            )
        _print_status(report)

    if report.failed:
        raise typer.Exit(1)


# =============================================================================
# REVIEW
# =============================================================================


def _print_agent(result: AgentReviewResult) -> None:
    roles = f" [dim]({', '.join(result.roles)})[/dim]" if result.roles else ""
    console.print(f"\n[bold]{result.agent_name}[/bold]{roles}")
    for match in result.results:
        label, _ = STATUS_STYLE.get(match.status, (match.status, "white"))
        console.print(f"  {label} {match.rule_id}")
        console.print(f"    [dim]{match.reason}[/dim]")
        if match.suggested_fix:
            console.print(f"    [yellow]-> {match.suggested_fix}[/yellow]")
    console.print(
        f"  [green]{result.count('PASS')} pass[/green] | "
        f"[red]{result.count('VIOLATED')} violated[/red] | "
        f"[yellow]{result.count('NOT_COVERED')} not covered[/yellow]"
    )


@app.command()
def review(
    plan: str = typer.Option(None, "--plan", "-p", help="Plan text"),
    file: Path = typer.Option(None, "--file", "-f", help="Read the plan from a file"),
    agents: str = typer.Option(None, "--agents", "-a", help="Comma-separated agent names"),
    llm: bool = typer.Option(False, "--llm", help="Add the LLM judgment layer"),
    rules_dir: Path = typer.Option(None, "--dir", help="Rules directory (skips inheritance)"),
    as_json: bool = typer.Option(False, "--json", help="Print the consensus as JSON"),
):
    """Review a plan with every agent in .rulebound/agents.json and build a consensus."""
    plan_text = _read_plan(plan, file)
    workspace = _load(rules_dir)

    if not workspace.agents:
        _fail("No agents configured. Create .rulebound/agents.json to define agent profiles.", 1)
    selected = select_agents(workspace.agents, agents)
    if not selected:
        _fail(f"No matching agents. Available: {', '.join(a.name for a in workspace.agents)}", 1)

    consensus = _run(
        review_with_agents(plan_text, selected, workspace.rules, workspace.project, use_llm=llm)
    )

    if as_json:
        typer.echo(json.dumps(consensus.to_dict(), indent=2))
    else:
        console.print("[bold]MULTI-AGENT REVIEW[/bold]")
        for result in consensus.agent_results:
            _print_agent(result)
        color = {"PASS": "green", "FAIL": "red"}.get(consensus.status, "yellow")
        console.print(f"\n[bold]CONSENSUS[/bold]\n  [{color}]{consensus.summary}[/{color}]")

    if consensus.status == "FAIL":
        raise typer.Exit(1)


# =============================================================================
# CI
# =============================================================================


def _ci_notice(fmt: str, message: str, status: str = "PASSED") -> None:
    if fmt == "json":
        typer.echo(json.dumps({"status": status, "message": message}))
    elif fmt == "github":
        typer.echo(f"::notice::Rulebound CI: {message}")
    else:
        console.print(f"[dim]{message}[/dim]")


@app.command()
def ci(
    diff_file: Path = typer.Option(None, "--diff-file", "-d", help="Unified diff ('-' for stdin)"),
    plan: str = typer.Option(None, "--plan", "-p", help="Validate this text instead of a diff"),
    fmt: str = typer.Option("pretty", "--format", help="Output: pretty, github, or json"),
    llm: bool = typer.Option(False, "--llm", help="Add the LLM judgment layer"),
    rules_dir: Path = typer.Option(None, "--dir", help="Rules directory (skips inheritance)"),
):
    """Validate a change for CI. Exits 1 when enforcement blocks or a MUST rule fails."""
    if fmt not in ("pretty", "github", "json"):
        _fail(f"Invalid format '{fmt}'. Use pretty, github, or json.")

    if diff_file is not None:
        diff_text = _read_plan(None, diff_file)
        plan_text = extract_added_lines(diff_text)
        files_changed = extract_changed_files(diff_text)
    else:
        plan_text = _read_plan(plan, None)
        files_changed = []

    if not plan_text.strip():
        _ci_notice(fmt, "No changes detected")
        raise typer.Exit(0)

    workspace = load_workspace(Path.cwd(), rules_dir)
    if not workspace.rules:
        if fmt == "github":
            typer.echo("::warning::Rulebound CI: No rules found.")
        _fail("No rules found. Add rules under .rulebound/rules/ or pass --dir.")

    rules = workspace.applicable(plan_text)
    if not rules:
        _ci_notice(fmt, "No rules matched the changes")
        raise typer.Exit(0)

    report = _run(validate_with_pipeline(plan_text, rules, task="CI validation", use_llm=llm))
    score = calculate_score(report)
    enforcement = workspace.enforcement
    blocked = should_block(enforcement, BlockCheckInput.from_report(report))

    if fmt == "github":
        for row in report.results:
            annotation = format_annotation(row)
            if annotation:
                typer.echo(annotation)
        typer.echo(
            f"::notice::Rulebound CI: {report.summary.pass_count} passed, "
            f"{report.summary.violated} violated, "
            f"{report.summary.not_covered} not covered. Score: {score}/100"
        )
    elif fmt == "json":
        typer.echo(json.dumps(
            {**report.to_dict(), "files_changed": files_changed, "score": score, "blocked": blocked},
            indent=2,
        ))
    else:
        console.print(f"[bold]CI VALIDATION[/bold]  [dim]Files changed: {len(files_changed)}[/dim]")
        for path in files_changed[:MAX_FILES_SHOWN]:
            console.print(f"  [dim]{path}[/dim]")
        if len(files_changed) > MAX_FILES_SHOWN:
            console.print(f"  [dim]... and {len(files_changed) - MAX_FILES_SHOWN} more[/dim]")
        _print_report(report, score)
        if should_warn(enforcement, report.has_should_violation):
            console.print("[yellow]SHOULD violations found (strict mode)[/yellow]")

    if blocked:
        if fmt == "pretty":
            console.print(
                f"\n[bold red]BLOCKED by enforcement (mode: {enforcement.mode}, "
                f"threshold: {enforcement.score_threshold})[/bold red]"
            )
        raise typer.Exit(1)

    if fmt == "pretty":
        _print_status(report)
    if report.failed:
        raise typer.Exit(1)


# =============================================================================
# FIND-RULES
# =============================================================================


@app.command("find-rules")
def find_rules(
    title: str = typer.Option(None, "--title", "-t", help="Search title and content"),
    category: str = typer.Option(None, "--category", "-c", help="Exact category"),
    tags: str = typer.Option(None, "--tags", help="Comma-separated tags"),
    task: str = typer.Option(None, "--task", help="Rules relevant to this task description"),
    rules_dir: Path = typer.Option(None, "--dir", help="Rules directory (skips inheritance)"),
    as_json: bool = typer.Option(False, "--json", help="Print rules as JSON"),
):
    """Find rules by title, category, tags, or task."""
    workspace = _load(rules_dir)
    rules = filter_rules(workspace.rules, title=title, category=category, tags=tags, task=task)

    if as_json:
        typer.echo(json.dumps([r.to_dict() for r in rules], indent=2))
        return

    if not rules:
        console.print("[dim]No rules matched.[/dim]")
        return

    table = Table(title=f"{len(rules)} rule(s)")
    table.add_column("ID", style="bold")
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Modality")
    table.add_column("Severity")
    table.add_column("Tags")
    for rule in rules:
        table.add_row(
            rule.id, rule.title, rule.category, rule.modality.upper(),
            rule.severity, ", ".join(rule.tags),
        )
    console.print(table)


# =============================================================================
# ENFORCE
# =============================================================================


@app.command()
def enforce():
    """Show the effective enforcement configuration."""
    workspace = load_workspace(Path.cwd())
    current = workspace.enforcement

    table = Table(title="Enforcement Configuration")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Mode", current.mode)
    table.add_row("Score threshold", str(current.score_threshold))
    table.add_row("Auto-promote", "enabled" if current.auto_promote else "disabled")
    console.print(table)
    console.print(
        "[dim]Edit .rulebound/config.json: "
        '"enforcement": {"mode": "advisory|moderate|strict", "scoreThreshold": 0-100}[/dim]'
    )


# =============================================================================
# LINT / SCORE
# =============================================================================

BAR_WIDTH = 10
BADGE_COLORS = ((80, "4c1"), (60, "dfb317"))


def _local_rules(rules_dir: Path | None) -> list[Rule]:
    """Rules from the project's own rules directory (no inheritance)."""
    cwd = Path.cwd()
    directory = RuleResolver(load_config(cwd), cwd).local_rules_dir(rules_dir)
    if directory is None or not directory.is_dir():
        _fail("No rules directory found. Create .rulebound/rules/ or pass --dir.", 1)
    return load_local_rules(directory)


def _score_color(score: int, good: int = 80, fair: int = 50) -> str:
    if score >= good:
        return "green"
    return "yellow" if score >= fair else "red"


def _bar(value: int, maximum: int = 5) -> str:
    filled = int(value / maximum * BAR_WIDTH + 0.5)
    return "█" * filled + "[dim]" + "░" * (BAR_WIDTH - filled) + "[/dim]"


def badge_markdown(score: int) -> str:
    color = next((c for threshold, c in BADGE_COLORS if score >= threshold), "e05d44")
    url = f"https://img.shields.io/badge/rulebound-{score}%25-{color}?style=flat-square"
    return f"![Rulebound Score]({url})"


@app.command()
def lint(
    rules_dir: Path = typer.Option(None, "--dir", help="Rules directory"),
    as_json: bool = typer.Option(False, "--json", help="Print scores as JSON"),
):
    """Score how well each rule is written and suggest improvements."""
    rules = _local_rules(rules_dir)
    if not rules:
        console.print("[dim]No rules found.[/dim]")
        return

    scored = [(rule, score_rule(rule)) for rule in rules]
    if as_json:
        typer.echo(json.dumps(
            [{"id": r.id, "title": r.title, "file_path": r.file_path, **s.to_dict()} for r, s in scored],
            indent=2,
        ))
        return

    console.print("[bold]RULE QUALITY REPORT[/bold]\n")
    issue_count = 0
    for rule, score in scored:
        color = _score_color(score.total)
        console.print(f"  [{color}]{score.total}%[/{color}] [bold]{rule.title}[/bold]")
        console.print(f"    [dim]{rule.file_path}[/dim]")
        console.print(f"    Atomicity:    {_bar(score.atomicity)} {score.atomicity}/5")
        console.print(f"    Completeness: {_bar(score.completeness)} {score.completeness}/5")
        console.print(f"    Clarity:      {_bar(score.clarity)} {score.clarity}/5")
        for issue in score.issues:
            console.print(f"    [yellow]! {issue}[/yellow]")
        issue_count += len(score.issues)
        console.print()

    avg = average_score([s for _, s in scored])
    color = _score_color(avg)
    console.print(f"  Average: [{color}]{avg}%[/{color}] across {len(rules)} rules")
    console.print(
        f"  Issues:  [yellow]{issue_count} improvements suggested[/yellow]"
        if issue_count else "  Issues:  [green]None[/green]"
    )


@app.command()
def score(
    rules_dir: Path = typer.Option(None, "--dir", help="Rules directory"),
    badge: bool = typer.Option(True, "--badge/--no-badge", help="Print a README badge"),
    output: Path = typer.Option(None, "--output", "-o", help="Also write the badge markdown here"),
    as_json: bool = typer.Option(False, "--json", help="Print the score as JSON"),
):
    """Average rule quality with a letter grade and per-category breakdown."""
    rules = _local_rules(rules_dir)
    if not rules:
        console.print("[dim]No rules found.[/dim]")
        return

    avg = average_score([score_rule(rule) for rule in rules])
    grade = grade_for(avg)
    breakdown = category_breakdown(rules)

    if as_json:
        typer.echo(json.dumps({
            "score": avg,
            "rules": len(rules),
            "grade": grade,
            "categories": {
                category: {"count": count, "score": cat_avg}
                for category, (count, cat_avg) in breakdown.items()
            },
        }, indent=2))
    else:
        color = _score_color(avg, fair=60)
        console.print("[bold]RULE QUALITY SCORE[/bold]\n")
        console.print(f"  Score: [bold {color}]{avg}/100[/bold {color}]")
        console.print(f"  Rules: {len(rules)}")
        console.print(f"  Grade: {grade}\n")
        console.print("[dim]  This measures how well your rules are written, not plan compliance.[/dim]\n")
        console.print("[dim]  Category Breakdown:[/dim]")
        for category, (count, cat_avg) in breakdown.items():
            cat_color = _score_color(cat_avg, fair=60)
            console.print(f"    {category:<16} [{cat_color}]{cat_avg}%[/{cat_color}] ({count} rules)")

    if badge:
        markdown = badge_markdown(avg)
        if not as_json:
            console.print(f"\n[dim]  Badge (paste in README.md):[/dim]\n  {markdown}")
        if output is not None:
            output.write_text(markdown + "\n", encoding="utf-8")
            logger.info(f"[Score] Badge written to {output}")


# =============================================================================
# AGENTS
# =============================================================================


@app.command("agents")
def list_agents(
    as_json: bool = typer.Option(False, "--json", help="Print agent profiles as JSON"),
):
    """List the agent profiles in .rulebound/agents.json."""
    agents = load_agents_config(Path.cwd())

    if as_json:
        typer.echo(json.dumps([a.to_dict() for a in agents], indent=2))
        return

    if not agents:
        console.print("[dim]No agents configured.[/dim]")
        console.print("[dim]Create .rulebound/agents.json to define agent profiles.[/dim]")
        return

    console.print("[bold]AGENT PROFILES[/bold]\n")
    for agent in agents:
        console.print(f"  [bold]{agent.name}[/bold]")
        if agent.roles:
            console.print(f"    [dim]Roles: {', '.join(agent.roles)}[/dim]")
        console.print(f"    [dim]Rules: {', '.join(agent.rules)}[/dim]")
        console.print(f"    [dim]Enforcement: {agent.enforcement}[/dim]\n")


if __name__ == "__main__":
    app()
