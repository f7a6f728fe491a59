"""Rich console singleton and output helpers."""

from typing import Any, Dict, List, Mapping

import typer
from rich.console import Console
from rich.table import Table

from form_rules.schemas.field_state import FieldConfig
from form_rules.validation.rule_linter import LintReport, Severity

# Status messages go to stderr so piped JSON output stays clean
console = Console(stderr=True)

# Data output to stdout (pipeable to jq); resolved at print time
stdout_console = Console()

_SEVERITY_STYLE = {
    Severity.CRITICAL: "red",
    Severity.WARNING: "yellow",
}


def print_ok(msg: str) -> None:
    """Print a success message to stderr."""
    console.print(f"[green]✓[/green] {msg}")


def print_err(msg: str) -> None:
    """Print an error message to stderr."""
    console.print(f"[red]✗[/red] {msg}")


def print_warn(msg: str) -> None:
    """Print a warning message to stderr."""
    console.print(f"[yellow]![/yellow] {msg}")


def wants_json(ctx: typer.Context) -> bool:
    return bool(ctx.obj and ctx.obj.get("json"))


def output_json(data: Any) -> None:
    stdout_console.print_json(data=data)


def output_table(rows: List[Dict[str, Any]], *, ctx: typer.Context, title: str = "", columns: List[str] | None = None) -> None:
    """Print rows as a JSON array or a Rich table."""
    if wants_json(ctx):
        output_json(rows)
        return

    if not rows:
        console.print("[dim]No data[/dim]")
        return

    cols = columns or list(rows[0].keys())
    table = Table(title=title, show_lines=False)
    for col in cols:
        table.add_column(col)
    for row in rows:
        table.add_row(*[str(row.get(c, "")) for c in cols])
    stdout_console.print(table)


def _flag(value: bool) -> str:
    return "[green]yes[/green]" if value else "[dim]no[/dim]"


def output_field_configs(configs: Mapping[str, FieldConfig], *, ctx: typer.Context, title: str = "Field configuration") -> None:
    """Print per-field rule state as JSON or a Rich table."""
    if wants_json(ctx):
        output_json({name: config.model_dump() for name, config in configs.items()})
        return

    table = Table(title=title)
    for col in ("field", "visible", "required", "disabled", "warnings", "errors", "classes", "options"):
        table.add_column(col)
    for name, config in configs.items():
        table.add_row(
            name,
            _flag(config.visible),
            _flag(config.required),
            _flag(config.disabled),
            "; ".join(config.warnings),
            "; ".join(config.errors),
            " ".join(config.classes),
            ", ".join(str(option) for option in config.options),
        )
    stdout_console.print(table)


def output_lint_report(report: LintReport, *, ctx: typer.Context) -> None:
    """Print lint violations grouped in one table, followed by the summary."""
    if wants_json(ctx):
        output_json(report.to_dict())
        return

    if report.violations:
        table = Table(title="Rule lint")
        for col in ("rule", "severity", "type", "location", "message"):
            table.add_column(col)
        for violation in report.violations:
            style = _SEVERITY_STYLE.get(violation.severity, "")
            table.add_row(
                violation.rule_id,
                f"[{style}]{violation.severity.value}[/{style}]",
                violation.type.value,
                violation.location or "",
                violation.message,
            )
        stdout_console.print(table)

    summary = report.summary
    console.print(
        f"{summary['total_rules']} rules, {summary['clean_rules']} clean, "
        f"{summary['critical_violations']} critical, {summary['warnings']} warnings"
    )
