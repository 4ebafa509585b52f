"""Rich terminal reporter — colour, icons, severity pills."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from flashaudit.engine.report import AuditReport

_SEVERITY_STYLE = {
    "critical": "bold white on red",
    "high": "bold white on dark_orange",
    "medium": "bold black on yellow",
    "low": "bold black on bright_cyan",
}

_SEVERITY_ICON = {
    "critical": "🔴",
    "high": "🟠",
    "medium": "🟡",
    "low": "🔵",
}

_RISK_STYLE = {
    "Critical": "bold red",
    "High": "bold dark_orange",
    "Medium": "bold yellow",
    "Low": "bold green",
}


def _severity_pill(severity: str) -> Text:
    style = _SEVERITY_STYLE.get(severity, "")
    icon = _SEVERITY_ICON.get(severity, "")
    return Text(f" {icon} {severity.upper()} ", style=style)


def render(report: AuditReport, *, show_summary: bool = True, console: Console | None = None) -> None:
    """Print an audit report to the terminal using Rich."""
    console = console or Console(stderr=True)

    console.print()
    if not report.findings:
        console.print("[bold green]✅ No issues detected.[/bold green]")
    else:
        table = Table(
            title="flashaudit Findings",
            show_lines=True,
            title_style="bold",
            border_style="dim",
        )
        table.add_column("Severity", justify="center", width=12)
        table.add_column("Kind", style="cyan")
        table.add_column("Category", style="magenta")
        table.add_column("Line", justify="right", style="green")
        table.add_column("Source", style="dim")
        table.add_column("Message", min_width=30)

        for finding in report.findings:
            table.add_row(
                _severity_pill(finding.severity),
                finding.kind,
                finding.category,
                str(finding.line) if finding.line is not None else "-",
                finding.source,
                Text(finding.message),
            )
        console.print(table)

    scores = report.scores
    console.print()
    console.print(
        f"[bold]Security[/bold] {scores.security}/100   "
        f"[bold]Quality[/bold] {scores.quality}/100   "
        f"[bold]Gas[/bold] {scores.gas}/100   "
        f"Risk: [{_RISK_STYLE.get(scores.risk_level, 'bold')}]{scores.risk_level}[/]"
    )

    if show_summary:
        _print_summary(console, report)


def _print_summary(console: Console, report: AuditReport) -> None:
    info = report.source
    console.print()
    console.print(f"[dim]Audit:[/dim]          {report.audit_id}")
    console.print(f"[dim]Contracts:[/dim]      {', '.join(info.contracts) or '-'}")
    console.print(f"[dim]Functions:[/dim]      {len(info.functions)}")
    console.print(f"[dim]Complexity:[/dim]     {info.complexity.value}")
    console.print(f"[dim]Findings:[/dim]       {report.total_findings}")
    console.print(f"[dim]Suppressed:[/dim]     {report.suppressed}")
    console.print(f"[dim]Duration:[/dim]       {report.execution_time_ms:.0f}ms")
    if report.estimated_gas_savings:
        console.print(f"[dim]Gas savings:[/dim]    ~{report.estimated_gas_savings} gas")
    console.print()
    console.print(report.summary, markup=False)
    if report.quality.strengths:
        console.print()
        console.print("[bold]Strengths[/bold]")
        for strength in report.quality.strengths:
            console.print(f"  • {strength}", markup=False)
    if report.recommendations:
        console.print()
        console.print("[bold]Recommendations[/bold]")
        for rec in report.recommendations:
            console.print(f"  • {rec}", markup=False)
