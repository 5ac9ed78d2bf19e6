"""Self-contained HTML report (inline CSS, no external assets)."""

from __future__ import annotations

import html
from typing import List

from ohmybug.findings.models import IssueSummary, PipelineReport, ScanReport
from ohmybug.output.common import (
    Report,
    format_timestamp,
    group_by_file,
    relative_path,
    report_issues,
)

_STYLE = """
body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
       margin: 2rem auto; max-width: 1100px; color: #1f2328; }
h1 { margin-bottom: 0.2rem; }
.meta { color: #656d76; margin-bottom: 1.5rem; }
.cards { display: flex; gap: 1rem; margin-bottom: 2rem; }
.card { flex: 1; border-radius: 8px; padding: 1rem; background: #f6f8fa; text-align: center; }
.card .count { font-size: 2rem; font-weight: 600; }
.card.critical { border-top: 4px solid #cf222e; }
.card.high { border-top: 4px solid #bc4c00; }
.card.medium { border-top: 4px solid #bf8700; }
.card.low { border-top: 4px solid #0969da; }
.card.total { border-top: 4px solid #1f2328; }
table { border-collapse: collapse; width: 100%; margin-bottom: 1.5rem; }
th, td { border-bottom: 1px solid #d0d7de; padding: 0.4rem 0.6rem; text-align: left; vertical-align: top; }
th { background: #f6f8fa; }
.sev { font-weight: 600; text-transform: uppercase; font-size: 0.8rem; }
.sev.critical { color: #cf222e; } .sev.high { color: #bc4c00; }
.sev.medium { color: #bf8700; } .sev.low, .sev.info { color: #0969da; }
code { font-size: 0.85rem; }
.ok { color: #1a7f37; } .fail { color: #cf222e; }
"""


def _cards(summary: IssueSummary) -> str:
    cells = [
        ("critical", "Critical", summary.critical),
        ("high", "High", summary.high),
        ("medium", "Medium", summary.medium),
        ("low", "Low", summary.low),
        ("total", "Total", summary.total),
    ]
    parts = [
        f'<div class="card {css}"><div class="count">{count}</div><div>{label}</div></div>'
        for css, label, count in cells
    ]
    return '<div class="cards">' + "".join(parts) + "</div>"


def _build_line(build_succeeded) -> str:
    if build_succeeded is None:
        return ""
    if build_succeeded:
        return '<p>Build: <span class="ok">succeeded</span></p>'
    return '<p>Build: <span class="fail">failed</span></p>'


def _issue_tables(report: Report) -> str:
    issues = report_issues(report)
    if not issues:
        return "<p>No issues found.</p>"
    parts: List[str] = []
    for file_path, file_issues in group_by_file(issues).items():
        parts.append(f"<h3><code>{html.escape(relative_path(file_path, report.project_path))}</code></h3>")
        parts.append("<table><tr><th>Severity</th><th>Line</th><th>Rule</th><th>Message</th><th>Scanner</th></tr>")
        for issue in file_issues:
            sev = issue.severity.value
            line = str(issue.line) if issue.line is not None else "-"
            parts.append(
                f'<tr><td class="sev {sev}">{sev}</td><td>{line}</td>'
                f"<td><code>{html.escape(issue.rule)}</code></td>"
                f"<td>{html.escape(issue.message)}</td>"
                f"<td>{html.escape(issue.scanner)}</td></tr>"
            )
        parts.append("</table>")
    return "\n".join(parts)


def _fix_table(report: PipelineReport) -> str:
    if not report.fix_results:
        return ""
    rows = "".join(
        f"<tr><td>{html.escape(fix.tool)}</td><td>{fix.fixed_files}/{fix.total_files}</td>"
        f"<td>{fix.fixed_issue_count}</td><td>{fix.duration:.1f}s</td></tr>"
        for fix in report.fix_results
    )
    return (
        "<h2>Fixes</h2><table><tr><th>Tool</th><th>Files fixed</th>"
        f"<th>Issues fixed</th><th>Duration</th></tr>{rows}</table>"
    )


def render(report: Report) -> str:
    """Return a complete HTML document for *report*."""
    project = html.escape(report.project_path)
    if isinstance(report, ScanReport):
        title = "OhMyBug Scan Report"
        body = [
            _cards(report.summary),
            _build_line(report.build_succeeded),
            "<h2>Issues</h2>",
            _issue_tables(report),
        ]
    else:
        title = "OhMyBug Pipeline Report"
        body = [
            "<h2>Before</h2>",
            _cards(report.before_issues),
            "<h2>After</h2>",
            _cards(report.after_issues),
            f"<p>Reduction: <strong>{report.reduction_percentage:.0f}%</strong></p>",
            _build_line(report.build_succeeded),
            _fix_table(report),
            "<h2>Remaining issues</h2>",
            _issue_tables(report),
        ]

    return "\n".join([
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="utf-8">',
        f"<title>{title}</title>",
        f"<style>{_STYLE}</style>",
        "</head>",
        "<body>",
        f"<h1>{title}</h1>",
        f'<div class="meta">{project} &middot; {format_timestamp(report)}</div>',
        *[part for part in body if part],
        "</body>",
        "</html>",
        "",
    ])
