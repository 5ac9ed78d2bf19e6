"""Helpers shared by the report renderers."""

from __future__ import annotations

from typing import Dict, List, Sequence, Union

from ohmybug.findings.models import Issue, PipelineReport, ScanReport, Severity

Report = Union[ScanReport, PipelineReport]

SEVERITY_ICON = {
    Severity.CRITICAL: "🔴",
    Severity.HIGH: "🟠",
    Severity.MEDIUM: "🟡",
    Severity.LOW: "🔵",
    Severity.INFO: "⚪",
}


def relative_path(file_path: str, project_path: str) -> str:
    prefix = project_path.rstrip("/") + "/"
    return file_path[len(prefix):] if file_path.startswith(prefix) else file_path


def group_by_file(issues: Sequence[Issue]) -> Dict[str, List[Issue]]:
    """Issues grouped by file path, files sorted, issues sorted by line."""
    groups: Dict[str, List[Issue]] = {}
    for issue in issues:
        groups.setdefault(issue.file_path, []).append(issue)
    return {
        path: sorted(groups[path], key=lambda i: i.line or 0)
        for path in sorted(groups)
    }


def report_issues(report: Report) -> List[Issue]:
    """Issues shown for *report*: the normalized set, or what remains of it after fixing."""
    return list(report.issues)


def format_timestamp(report: Report) -> str:
    return report.completed_at.strftime("%Y-%m-%dT%H:%M:%SZ")
