"""Plain-text report."""

from __future__ import annotations

from typing import List

from ohmybug.findings.models import IssueSummary, PipelineReport, ScanReport
from ohmybug.output.common import Report, format_timestamp


def _severity_counts(summary: IssueSummary) -> str:
    return f"(Critical: {summary.critical}, High: {summary.high}, Medium: {summary.medium})"


def _render_scan(report: ScanReport) -> str:
    summary = report.summary
    lines: List[str] = [
        "=== OhMyBug Scan Report ===",
        f"Project: {report.project_path}",
        f"Date: {format_timestamp(report)}",
        "",
        f"Total: {summary.total} issues",
        f"  Critical: {summary.critical}",
        f"  High: {summary.high}",
        f"  Medium: {summary.medium}",
        f"  Low: {summary.low}",
        f"Affected files: {len(report.affected_files)}",
    ]
    if report.build_succeeded is not None:
        lines.append(f"Build: {'SUCCEEDED' if report.build_succeeded else 'FAILED'}")

    if report.issues:
        lines.extend(["", "--- Issues ---"])
        for issue in report.issues:
            location = f":{issue.line}" if issue.line is not None else ""
            lines.append(f"[{issue.severity.value.upper()}] {issue.file_path}{location}")
            lines.append(f"  Rule: {issue.rule}")
            lines.append(f"  {issue.message}")
            lines.append("")
    return "\n".join(lines) + "\n"


def _render_pipeline(report: PipelineReport) -> str:
    lines: List[str] = [
        "=== OhMyBug Pipeline Report ===",
        f"Project: {report.project_path}",
        f"Duration: {report.duration:.1f}s",
        "",
        f"Before: {report.before_issues.total} issues {_severity_counts(report.before_issues)}",
        f"After:  {report.after_issues.total} issues {_severity_counts(report.after_issues)}",
        f"Reduction: {report.reduction_percentage:.0f}%",
    ]
    if report.fix_results:
        lines.extend(["", "--- Fixes ---"])
        for fix in report.fix_results:
            lines.append(
                f"{fix.tool}: {fix.fixed_issue_count} issues fixed in "
                f"{fix.fixed_files}/{fix.total_files} files"
            )
    if report.build_succeeded is not None:
        lines.extend(["", f"Build: {'SUCCEEDED' if report.build_succeeded else 'FAILED'}"])
    return "\n".join(lines) + "\n"


def render(report: Report) -> str:
    if isinstance(report, ScanReport):
        return _render_scan(report)
    return _render_pipeline(report)
