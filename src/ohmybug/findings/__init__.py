"""Issue models, normalization and summaries."""

from ohmybug.findings.models import (
    FixDetail,
    FixResult,
    Issue,
    IssueSummary,
    PipelineReport,
    ScanReport,
    ScanResult,
    Severity,
)
from ohmybug.findings.normalizer import affected_files, deduplicate, normalize

__all__ = [
    "FixDetail",
    "FixResult",
    "Issue",
    "IssueSummary",
    "PipelineReport",
    "ScanReport",
    "ScanResult",
    "Severity",
    "affected_files",
    "deduplicate",
    "normalize",
]
