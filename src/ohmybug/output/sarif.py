"""SARIF v2.1.0 reporter — GitHub Code Scanning and other SARIF consumers."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Set

from ohmybug import __version__
from ohmybug.findings.models import Severity
from ohmybug.output.common import Report, relative_path, report_issues

SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"

_SEVERITY_MAP = {
    Severity.CRITICAL: "error",
    Severity.HIGH: "error",
    Severity.MEDIUM: "warning",
    Severity.LOW: "note",
    Severity.INFO: "note",
}


def level_for(severity: Severity) -> str:
    return _SEVERITY_MAP[severity]


def to_dict(report: Report) -> Dict[str, Any]:
    """Convert a report to a SARIF v2.1.0 dict with a single run."""
    rules: List[Dict[str, Any]] = []
    seen_rules: Set[str] = set()
    results: List[Dict[str, Any]] = []

    for issue in report_issues(report):
        if issue.rule not in seen_rules:
            seen_rules.add(issue.rule)
            rules.append({
                "id": issue.rule,
                "shortDescription": {"text": issue.rule},
                "properties": {"scanner": issue.scanner},
            })

        results.append({
            "ruleId": issue.rule,
            "level": level_for(issue.severity),
            "message": {"text": issue.message},
            "locations": [
                {
                    "physicalLocation": {
                        "artifactLocation": {
                            "uri": relative_path(issue.file_path, report.project_path),
                        },
                        "region": {
                            "startLine": max(issue.line or 1, 1),
                            "startColumn": max(issue.column or 1, 1),
                        },
                    }
                }
            ],
        })

    return {
        "$schema": SARIF_SCHEMA,
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "ohmybug",
                        "version": __version__,
                        "rules": rules,
                    }
                },
                "results": results,
            }
        ],
    }


def render(report: Report) -> str:
    """Return SARIF JSON string."""
    return json.dumps(to_dict(report), indent=2)
