"""Report renderers."""

from __future__ import annotations

from ohmybug.output import html_report, json_report, markdown, sarif, text
from ohmybug.output.common import Report

_RENDERERS = {
    "text": text.render,
    "terminal": text.render,
    "markdown": markdown.render,
    "json": json_report.render,
    "sarif": sarif.render,
    "html": html_report.render,
}

_EXTENSIONS = {
    "text": "txt",
    "terminal": "txt",
    "markdown": "md",
    "json": "json",
    "sarif": "sarif",
    "html": "html",
}


def render_report(report: Report, fmt: str) -> str:
    """Render *report* as a string in *fmt*.

    ``terminal`` has no string form of its own and falls back to plain text.
    """
    try:
        renderer = _RENDERERS[fmt]
    except KeyError:
        raise ValueError(f"Unknown report format: {fmt}") from None
    return renderer(report)


def suggested_extension(fmt: str) -> str:
    return _EXTENSIONS.get(fmt, "txt")


__all__ = ["Report", "render_report", "suggested_extension"]
