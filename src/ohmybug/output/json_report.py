"""JSON reporter for CI pipelines and other tooling."""

from __future__ import annotations

import json
from typing import Any, Dict

from ohmybug import __version__
from ohmybug.output.common import Report


def to_dict(report: Report) -> Dict[str, Any]:
    """Convert a scan or pipeline report to a JSON-serialisable dict."""
    return {"version": __version__, **report.to_dict()}


def render(report: Report) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(report), indent=2, ensure_ascii=False)
