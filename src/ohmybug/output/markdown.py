"""Markdown report, suitable for PR comments and wikis."""

from __future__ import annotations

from typing import List

from ohmybug.findings.models import Issue, PipelineReport, ScanReport
from ohmybug.output.common import (
    SEVERITY_ICON,
    Report,
    format_timestamp,
    group_by_file,
    relative_path,
)


def _escape_cell(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ")


def _issue_rows(issues: List[Issue], project_path: str) -> List[str]:
    lines: List[str] = []
    for file_path, file_issues in group_by_file(issues).items():
        lines.append(f"### `{relative_path(file_path, project_path)}`")
        lines.append("")
        lines.append("| Severity | Line | Rule | Message |")
        lines.append("|----------|------|------|---------|")
        for issue in file_issues:
            icon = SEVERITY_ICON[issue.severity]
            line = str(issue.line) if issue.line is not None else "-"
            lines.append(
                f"| {icon} {issue.severity.value} | {line} | `{_escape_cell(issue.rule)}` "
                f"| {_escape_cell(issue.message)} |"
            )
        lines.append("")
    return lines


def _render_scan(report: ScanReport) -> str:
    summary = report.summary
    lines = [
        "# OhMyBug Scan Report",
        "",
        f"**Project:** `{report.project_path}`  ",
        f"**Date:** {format_timestamp(report)}",
        "",
        "## Summary",
        "",
        "| Severity | Count |",
        "|----------|-------|",
        f"| 🔴 Critical | {summary.critical} |",
        f"| 🟠 High | {summary.high} |",
        f"| 🟡 Medium | {summary.medium} |",
        f"| 🔵 Low | {summary.low} |",
        f"| **Total** | **{summary.total}** |",
        "",
    ]
    if report.build_succeeded is not None:
        status = "✅ succeeded" if report.build_succeeded else "❌ failed"
        lines.extend([f"**Build:** {status}", ""])

    if report.issues:
        lines.extend(["## Issues", ""])
        lines.extend(_issue_rows(report.issues, report.project_path))
    else:
        lines.extend(["No issues found.", ""])
    return "\n".join(lines)


def _render_pipeline(report: PipelineReport) -> str:
    before, after = report.before_issues, report.after_issues
    lines = [
        "# OhMyBug Pipeline Report",
        "",
        f"**Project:** `{report.project_path}`  ",
        f"**Duration:** {report.duration:.1f}s",
        "",
        "## Before / After",
        "",
        "| | Total | Critical | High | Medium | Low |",
        "|---|---|---|---|---|---|",
        f"| Before | {before.total} | {before.critical} | {before.high} | {before.medium} | {before.low} |",
        f"| After | {after.total} | {after.critical} | {after.high} | {after.medium} | {after.low} |",
        "",
        f"**Reduction:** {report.reduction_percentage:.0f}%",
        "",
    ]
    if report.fix_results:
        lines.extend([
            "## Fixes",
            "",
            "| Tool | Files fixed | Issues fixed |",
            "|------|-------------|--------------|",
        ])
        for fix in report.fix_results:
            lines.append(
                f"| {fix.tool} | {fix.fixed_files}/{fix.total_files} | {fix.fixed_issue_count} |"
            )
        lines.append("")
    if report.build_succeeded is not None:
        status = "✅ succeeded" if report.build_succeeded else "❌ failed"
        lines.extend([f"**Build after fix:** {status}", ""])

    remaining = report.remaining_issues
    if remaining:
        lines.extend(["## Remaining issues", ""])
        lines.extend(_issue_rows(remaining, report.project_path))
    return "\n".join(lines)


def render(report: Report) -> str:
    """Return the report as GitHub-flavoured Markdown."""
    if isinstance(report, ScanReport):
        return _render_scan(report)
    return _render_pipeline(report)
