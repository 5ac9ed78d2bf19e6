"""Rich terminal reporter — colour, icons, severity pills."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from ohmybug.findings.models import IssueSummary, PipelineReport, ScanReport, Severity
from ohmybug.output.common import SEVERITY_ICON, Report, relative_path, report_issues

_SEVERITY_STYLE = {
    Severity.CRITICAL: "bold white on red",
    Severity.HIGH: "bold white on dark_orange",
    Severity.MEDIUM: "bold black on yellow",
    Severity.LOW: "bold black on bright_cyan",
    Severity.INFO: "bold black on white",
}


def _severity_pill(severity: Severity) -> Text:
    icon = SEVERITY_ICON[severity]
    return Text(f" {icon} {severity.value.upper()} ", style=_SEVERITY_STYLE[severity])


def _summary_line(summary: IssueSummary) -> str:
    return (
        f"[bold]{summary.total}[/bold] issues  "
        f"[red]{summary.critical} critical[/red]  "
        f"[dark_orange]{summary.high} high[/dark_orange]  "
        f"[yellow]{summary.medium} medium[/yellow]  "
        f"[cyan]{summary.low} low[/cyan]"
    )


def _print_issues(console: Console, report: Report, title: str) -> None:
    issues = report_issues(report)
    if not issues:
        return
    table = Table(title=title, show_lines=False, title_style="bold", border_style="dim")
    table.add_column("Severity", justify="center", width=14)
    table.add_column("Rule", style="cyan")
    table.add_column("File", style="magenta")
    table.add_column("Line", justify="right", style="green")
    table.add_column("Message")

    for issue in issues:
        table.add_row(
            _severity_pill(issue.severity),
            issue.rule,
            relative_path(issue.file_path, report.project_path),
            str(issue.line) if issue.line is not None else "-",
            issue.message,
        )
    console.print()
    console.print(table)


def _print_build(console: Console, build_succeeded: Optional[bool]) -> None:
    if build_succeeded is None:
        return
    if build_succeeded:
        console.print("[dim]Build:[/dim]     [green]succeeded[/green]")
    else:
        console.print("[dim]Build:[/dim]     [bold red]failed[/bold red]")


def render(report: Report, console: Optional[Console] = None) -> None:
    """Print a scan or pipeline report to the terminal using Rich."""
    console = console or Console(stderr=True)

    if isinstance(report, ScanReport):
        if not report.issues:
            console.print()
            console.print("[bold green]✅ No issues found.[/bold green]")
        else:
            _print_issues(console, report, "OhMyBug Issues")
        console.print()
        console.print(f"[dim]Summary:[/dim]   {_summary_line(report.summary)}")
        console.print(f"[dim]Files:[/dim]     {len(report.affected_files)} affected")
        _print_build(console, report.build_succeeded)
        console.print(f"[dim]Duration:[/dim]  {report.duration:.1f}s")
        return

    _print_pipeline(console, report)


def _print_pipeline(console: Console, report: PipelineReport) -> None:
    _print_issues(console, report, "Remaining Issues")
    console.print()
    if report.fix_results:
        fixes = Table(title="Fixes", title_style="bold", border_style="dim")
        fixes.add_column("Tool", style="cyan")
        fixes.add_column("Files", justify="right")
        fixes.add_column("Issues fixed", justify="right", style="green")
        for fix in report.fix_results:
            fixes.add_row(fix.tool, f"{fix.fixed_files}/{fix.total_files}", str(fix.fixed_issue_count))
        console.print(fixes)
        console.print()
    console.print(f"[dim]Before:[/dim]    {_summary_line(report.before_issues)}")
    console.print(f"[dim]After:[/dim]     {_summary_line(report.after_issues)}")
    console.print(f"[dim]Reduction:[/dim] [bold]{report.reduction_percentage:.0f}%[/bold]")
    _print_build(console, report.build_succeeded)
    console.print(f"[dim]Duration:[/dim]  {report.duration:.1f}s")
