"""OhMyBug CLI — Typer application with check, tools and init commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from ohmybug import __version__
from ohmybug.config.schema import REPORT_FORMATS
from ohmybug.pipeline.events import LogEntry, LogLevel, ScanPhase

app = typer.Typer(
    name="ohmybug",
    help="Build, lint, auto-fix and verify your project in one pass.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)

_SEVERITY_LEVELS = ("info", "low", "medium", "high", "critical")

_LOG_STYLE = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "bold red",
}


class ConsoleObserver:
    """Prints engine progress to stderr so stdout stays clean for reports."""

    def __init__(self, console: Console, verbose: bool = False, echo_logs: bool = True) -> None:
        self.console = console
        self.verbose = verbose
        self.echo_logs = echo_logs

    def on_phase_change(self, phase: ScanPhase) -> None:
        if phase in ScanPhase.active_phases():
            self.console.print(f"[bold cyan]▶ {phase.value}[/bold cyan]")

    def on_log(self, entry: LogEntry) -> None:
        if not self.echo_logs:
            return
        if entry.level is LogLevel.DEBUG or entry.message.startswith("Phase: "):
            return
        if not self.verbose and entry.level in (LogLevel.INFO, LogLevel.SUCCESS):
            return
        style = _LOG_STYLE[entry.level]
        text = f"  {entry.message}"
        self.console.print(f"[{style}]{text}[/{style}]" if style else text, highlight=False)

    def on_progress(self, fraction: float) -> None:
        pass


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=debug, markup=False)],
        force=True,
    )
    # without --debug the console observer prints engine messages itself
    engine_level = logging.DEBUG if debug else logging.CRITICAL
    logging.getLogger("ohmybug.pipeline.engine").setLevel(engine_level)


def _resolve_project(path: str) -> Path:
    project = Path(path).expanduser().resolve()
    if not project.is_dir():
        console.print(f"[bold red]Error:[/bold red] not a directory: {path}")
        raise typer.Exit(code=2)
    return project


def _exceeds_threshold(report, fail_on: str) -> bool:
    from ohmybug.findings.models import Severity
    from ohmybug.output.common import report_issues

    threshold = Severity.parse(fail_on)
    return any(issue.severity >= threshold for issue in report_issues(report))


# ── check ─────────────────────────────────────────────────────────────────────


@app.command()
def check(
    path: str = typer.Argument(".", help="Project directory"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .ohmybug.toml"),
    format: Optional[str] = typer.Option(
        None, "--format", "-f",
        help="Output format: terminal | text | markdown | json | sarif | html",
    ),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write report to file"),
    fix: bool = typer.Option(False, "--fix", help="Apply fixes after scanning"),
    ai_key: Optional[str] = typer.Option(None, "--ai-key", help="API key enabling the AI fixer"),
    project_type: Optional[str] = typer.Option(
        None, "--project-type", "-t",
        help="auto | swift | javascript | flutter | python | mixed",
    ),
    no_build: bool = typer.Option(False, "--no-build", help="Skip the build check"),
    fail_on: Optional[str] = typer.Option(
        None, "--fail-on", help="Severity threshold: info | low | medium | high | critical",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug logging"),
) -> None:
    """Scan a project (and optionally fix it), then report the issues found."""
    from ohmybug.config.loader import ConfigError, load_config
    from ohmybug.config.schema import ProjectConfig, ProjectType
    from ohmybug.output import json_report, render_report, terminal
    from ohmybug.pipeline.engine import PipelineEngine
    from ohmybug.pipeline.errors import PipelineError
    from ohmybug.pipeline.registration import register_ai_fixer, register_all_tools
    from ohmybug.tools.custom import CustomToolError

    _configure_logging(debug)
    project_root = _resolve_project(path)

    # --- Load config ---
    try:
        cfg = load_config(project_root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    # --- CLI overrides ---
    if format:
        if format not in REPORT_FORMATS:
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]
    if fail_on:
        if fail_on not in _SEVERITY_LEVELS:
            console.print(f"[bold red]Invalid fail-on level:[/bold red] {fail_on}")
            raise typer.Exit(code=2)
        cfg.output.fail_on = fail_on
    if project_type:
        if project_type not in {t.value for t in ProjectType}:
            console.print(f"[bold red]Invalid project type:[/bold red] {project_type}")
            raise typer.Exit(code=2)
        cfg.scan.project_type = project_type
    if no_build:
        cfg.scan.build_check = False
    if ai_key:
        cfg.ai.api_key = ai_key

    project_config = ProjectConfig.from_file_config(str(project_root), cfg)
    if fix:
        project_config.auto_apply_fixes = True

    observer = ConsoleObserver(console, verbose, echo_logs=not debug)
    engine = PipelineEngine(project_config, observer=observer)
    try:
        register_all_tools(engine)
    except CustomToolError as exc:
        console.print(f"[bold red]Custom tool error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    if project_config.auto_apply_fixes and project_config.ai_api_key:
        register_ai_fixer(engine, project_config.ai_api_key, project_config.ai_max_issues)

    if verbose or debug:
        console.print(f"[dim]Project: {project_root}[/dim]")
        console.print(f"[dim]Scanners: {', '.join(s.name for s in engine.scanners)}[/dim]")

    # --- Run pipeline ---
    try:
        scan_report = engine.scan()
        report = scan_report
        if project_config.auto_apply_fixes:
            pipeline_report = engine.fix()
            report = pipeline_report
            if pipeline_report.build_succeeded is False:
                restored = engine.rollback()
                console.print(
                    f"[bold yellow]⚠  Build failed after fixing; rolled back {restored} files.[/bold yellow]"
                )
                report = scan_report
    except PipelineError as exc:
        console.print(f"[bold red]Pipeline error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    finally:
        engine.cleanup_backup()

    # --- Output ---
    fmt = cfg.output.format
    report_text: Optional[str] = None
    if fmt == "terminal":
        terminal.render(report, console)
    else:
        report_text = render_report(report, fmt)
        print(report_text)

    if output:
        if report_text is None:
            # terminal output has no file form; write JSON instead
            report_text = json_report.render(report)
        Path(output).write_text(report_text, encoding="utf-8")
        if verbose:
            console.print(f"[dim]Report written to {output}[/dim]")

    # --- Exit code ---
    if cfg.output.fail_on and _exceeds_threshold(report, cfg.output.fail_on):
        raise typer.Exit(code=1)
    raise typer.Exit(code=0)


# ── tools ─────────────────────────────────────────────────────────────────────


@app.command()
def tools(
    path: str = typer.Argument(".", help="Project directory"),
) -> None:
    """List the registered scanners and fixers and whether they can run here."""
    from rich.table import Table

    from ohmybug.config.schema import ProjectConfig
    from ohmybug.pipeline.engine import PipelineEngine
    from ohmybug.pipeline.registration import register_all_tools
    from ohmybug.tools.base import supports
    from ohmybug.tools.custom import CustomToolError
    from ohmybug.tools.detector import detect_project_type

    project_root = _resolve_project(path)
    detected = detect_project_type(str(project_root))

    engine = PipelineEngine(ProjectConfig(project_path=str(project_root)))
    try:
        register_all_tools(engine)
    except CustomToolError as exc:
        console.print(f"[bold red]Custom tool error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    fixer_names = {f.name for f in engine.fixers}
    table = Table(title=f"Tools (detected project type: {detected.value})", title_style="bold")
    table.add_column("Tool", style="cyan")
    table.add_column("Project types")
    table.add_column("Fixes", justify="center")
    table.add_column("Applies", justify="center")
    table.add_column("Available", justify="center")

    for scanner in engine.scanners:
        types = ", ".join(t.value for t in scanner.supported_project_types)
        table.add_row(
            scanner.name,
            types,
            "✓" if scanner.name in fixer_names else "",
            "✓" if supports(scanner, detected) else "",
            "[green]✓[/green]" if scanner.is_available() else "[red]✗[/red]",
        )
    console.print(table)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init(
    path: str = typer.Argument(".", help="Project directory"),
) -> None:
    """Generate a starter .ohmybug.toml in the project directory."""
    from ohmybug.config.defaults import DEFAULT_TOML
    from ohmybug.config.loader import CONFIG_FILENAME

    project_root = _resolve_project(path)
    config_path = project_root / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"ohmybug {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """OhMyBug — build, lint, auto-fix and verify your project in one pass."""
