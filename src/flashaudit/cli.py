"""flashaudit CLI — Typer application with audit, rules, history, and init commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from flashaudit import __version__

app = typer.Typer(
    name="flashaudit",
    help="Audit smart-contract source for security, quality, and gas issues.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _configure_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config: Optional[str]):
    from flashaudit.config.loader import ConfigError, load_config

    try:
        return load_config(Path.cwd(), config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    p = Path(path)
    if not p.is_file():
        console.print(f"[bold red]Error:[/bold red] file not found: {path}")
        raise typer.Exit(code=2)
    try:
        return p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        console.print(f"[bold red]Error:[/bold red] cannot read {path}: {exc}")
        raise typer.Exit(code=2) from exc


# ── audit ─────────────────────────────────────────────────────────────────────


@app.command()
def audit(
    path: str = typer.Argument(..., help="Solidity source file, or - for stdin"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .flashaudit.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json | sarif"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write report to file"),
    chain: Optional[str] = typer.Option(None, "--chain", help="Target chain (ethereum, polygon, ...)"),
    mode: Optional[str] = typer.Option(None, "--mode", help="Analysis mode: comprehensive | security | gas | quality"),
    fail_on: Optional[str] = typer.Option(None, "--fail-on", help="Severity threshold: low | medium | high | critical"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Semantic analysis timeout in seconds"),
    semantic: bool = typer.Option(True, "--semantic/--no-semantic", help="Ask the semantic collaborator"),
    save: Optional[bool] = typer.Option(None, "--save/--no-save", help="Persist the report to audit history"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output"),
) -> None:
    """Audit a contract source file and print the report."""
    from flashaudit.config.schema import AuditOptions, severity_at_or_above
    from flashaudit.engine.pipeline import audit_source_sync
    from flashaudit.output import json_report, sarif, terminal
    from flashaudit.rules.registry import RuleLoadError, build_registry
    from flashaudit.semantic.client import build_collaborator
    from flashaudit.source.parser import InputError
    from flashaudit.storage import JsonlAuditStore, StorageError

    _configure_logging(verbose, debug)
    cfg = _load_config(config)

    # --- CLI overrides ---
    if format:
        if format not in ("terminal", "json", "sarif"):
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]
    if fail_on:
        if fail_on not in ("low", "medium", "high", "critical"):
            console.print(f"[bold red]Invalid fail-on level:[/bold red] {fail_on}")
            raise typer.Exit(code=2)
        cfg.engine.fail_on = fail_on  # type: ignore[assignment]
    if timeout is not None:
        if timeout <= 0:
            console.print("[bold red]Timeout must be greater than 0[/bold red]")
            raise typer.Exit(code=2)
        cfg.engine.semantic_timeout_sec = timeout
    if chain:
        cfg.chain = chain
    if mode:
        cfg.analysis_mode = mode
    if not semantic:
        cfg.semantic.enabled = False

    try:
        registry = build_registry(cfg, Path.cwd())
    except RuleLoadError as exc:
        console.print(f"[bold red]Rule error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    source_text = _read_source(path)

    try:
        report = audit_source_sync(
            source_text,
            AuditOptions.from_config(cfg),
            config=cfg,
            registry=registry,
            collaborator=build_collaborator(cfg),
        )
    except InputError as exc:
        console.print(f"[bold red]Input rejected:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    # --- Output ---
    report_text: Optional[str] = None
    artifact = "stdin.sol" if path == "-" else path
    if cfg.output.format == "terminal":
        terminal.render(report, show_summary=cfg.output.show_summary)
    elif cfg.output.format == "json":
        report_text = json_report.render(report)
        print(report_text)
    elif cfg.output.format == "sarif":
        report_text = sarif.render(report, artifact)
        print(report_text)

    if output:
        Path(output).write_text(report_text or json_report.render(report), encoding="utf-8")
        if verbose:
            console.print(f"[dim]Report written to {output}[/dim]")

    # --- History (best effort) ---
    if cfg.storage.enabled if save is None else save:
        try:
            JsonlAuditStore(Path(cfg.storage.path)).persist(report)
        except StorageError as exc:
            logging.getLogger(__name__).warning("Audit history not saved: %s", exc)

    # --- Exit code ---
    if any(
        f.scored and severity_at_or_above(f.severity, cfg.engine.fail_on)
        for f in report.findings
    ):
        raise typer.Exit(code=1)
    raise typer.Exit(code=0)


# ── rules ─────────────────────────────────────────────────────────────────────


@app.command()
def rules(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .flashaudit.toml"),
) -> None:
    """List the static rules and whether each is enabled."""
    from flashaudit.rules.registry import RuleLoadError, build_registry

    cfg = _load_config(config)
    try:
        registry = build_registry(cfg, Path.cwd())
    except RuleLoadError as exc:
        console.print(f"[bold red]Rule error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    table = Table(title="flashaudit Rules", border_style="dim")
    table.add_column("Rule", style="cyan")
    table.add_column("Kind")
    table.add_column("Category", style="magenta")
    table.add_column("Severity")
    table.add_column("Enabled", justify="center")
    for rule in registry.all_rules:
        table.add_row(
            rule.id,
            rule.kind,
            rule.category,
            rule.severity,
            "[green]yes[/green]" if rule.enabled else "[red]no[/red]",
        )
    Console().print(table)


# ── history ───────────────────────────────────────────────────────────────────


@app.command()
def history(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .flashaudit.toml"),
    risk: Optional[str] = typer.Option(None, "--risk", help="Only reports with this risk level"),
    chain: Optional[str] = typer.Option(None, "--chain", help="Only reports for this chain"),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Show at most N most recent reports"),
) -> None:
    """Show previously saved audit reports."""
    from flashaudit.storage import JsonlAuditStore, StorageError

    cfg = _load_config(config)
    store = JsonlAuditStore(Path(cfg.storage.path))
    try:
        records = store.query({"risk_level": risk, "chain": chain})
    except StorageError as exc:
        console.print(f"[bold red]History error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if not records:
        console.print("[dim]No saved audits.[/dim]")
        raise typer.Exit(code=0)

    table = Table(title="Audit History", border_style="dim")
    table.add_column("Audit", style="cyan")
    table.add_column("Timestamp")
    table.add_column("Security", justify="right")
    table.add_column("Risk")
    table.add_column("Findings", justify="right")
    for rec in records[-limit:]:
        scores = rec.get("scores", {})
        table.add_row(
            str(rec.get("auditId", "-")),
            str(rec.get("timestamp", "-")),
            str(scores.get("security", "-")),
            str(scores.get("riskLevel", "-")),
            str(rec.get("findingCounts", {}).get("total", "-")),
        )
    Console().print(table)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .flashaudit.toml in the current directory."""
    from flashaudit.config.defaults import DEFAULT_TOML
    from flashaudit.config.loader import CONFIG_FILENAME

    config_path = Path.cwd() / CONFIG_FILENAME
    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"flashaudit {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """flashaudit — smart-contract audit engine."""
