"""Issue, result and report data models."""

from __future__ import annotations

import functools
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


@functools.total_ordering
class Severity(Enum):
    """Issue severity. Ordered by ``weight`` (critical is the greatest)."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def weight(self) -> int:
        return _SEVERITY_WEIGHT[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.weight < other.weight

    @classmethod
    def parse(cls, value: str, default: Optional["Severity"] = None) -> "Severity":
        """Parse a severity name case-insensitively."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            if default is None:
                raise
            return default


_SEVERITY_WEIGHT = {
    Severity.CRITICAL: 5,
    Severity.HIGH: 4,
    Severity.MEDIUM: 3,
    Severity.LOW: 2,
    Severity.INFO: 1,
}


def _isoformat(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Issue:
    """A single finding reported by a scanner.

    Only ``severity`` (downgraded by the normalizer) and ``is_fixed`` change
    after creation.
    """

    rule: str
    message: str
    severity: Severity
    file_path: str
    scanner: str
    line: Optional[int] = None
    column: Optional[int] = None
    is_fixed: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "rule": self.rule,
            "message": self.message,
            "severity": self.severity.value,
            "filePath": self.file_path,
            "scanner": self.scanner,
            "isFixed": self.is_fixed,
        }
        if self.line is not None:
            data["line"] = self.line
        if self.column is not None:
            data["column"] = self.column
        return data


@dataclass(frozen=True)
class ScanResult:
    """One scanner's output for one scan pass."""

    scanner: str
    issues: List[Issue] = field(default_factory=list)
    scanned_files: int = 0
    duration: float = 0.0
    fixed_count: int = 0

    @property
    def total_count(self) -> int:
        return len(self.issues)

    @property
    def critical_count(self) -> int:
        return sum(1 for i in self.issues if i.severity is Severity.CRITICAL)

    @property
    def high_count(self) -> int:
        return sum(1 for i in self.issues if i.severity is Severity.HIGH)

    @property
    def medium_count(self) -> int:
        return sum(1 for i in self.issues if i.severity is Severity.MEDIUM)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scanner": self.scanner,
            "issues": [i.to_dict() for i in self.issues],
            "fixedCount": self.fixed_count,
            "scannedFiles": self.scanned_files,
            "duration": round(self.duration, 3),
        }


@dataclass(frozen=True)
class FixDetail:
    rule: str
    count: int
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"rule": self.rule, "count": self.count, "description": self.description}


@dataclass(frozen=True)
class FixResult:
    """One fixer's outcome."""

    tool: str
    total_files: int = 0
    fixed_files: int = 0
    fixed_issue_count: int = 0
    duration: float = 0.0
    details: List[FixDetail] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool": self.tool,
            "totalFiles": self.total_files,
            "fixedFiles": self.fixed_files,
            "fixedIssueCount": self.fixed_issue_count,
            "duration": round(self.duration, 3),
            "details": [d.to_dict() for d in self.details],
        }


@dataclass(frozen=True)
class IssueSummary:
    """Issue counts by severity. ``info`` issues only count toward ``total``."""

    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @classmethod
    def from_issues(cls, issues: Iterable[Issue]) -> "IssueSummary":
        counts = {s: 0 for s in Severity}
        total = 0
        for issue in issues:
            counts[issue.severity] += 1
            total += 1
        return cls(
            total=total,
            critical=counts[Severity.CRITICAL],
            high=counts[Severity.HIGH],
            medium=counts[Severity.MEDIUM],
            low=counts[Severity.LOW],
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
        }


@dataclass(frozen=True)
class ScanReport:
    """Result of ``PipelineEngine.scan()``."""

    project_path: str
    started_at: datetime
    completed_at: datetime
    issues: List[Issue] = field(default_factory=list)
    scan_results: List[ScanResult] = field(default_factory=list)
    build_succeeded: Optional[bool] = None
    affected_files: List[str] = field(default_factory=list)

    @property
    def summary(self) -> IssueSummary:
        return IssueSummary.from_issues(self.issues)

    @property
    def duration(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "projectPath": self.project_path,
            "startedAt": _isoformat(self.started_at),
            "completedAt": _isoformat(self.completed_at),
            "summary": self.summary.to_dict(),
            "issues": [i.to_dict() for i in self.issues],
            "scanResults": [r.to_dict() for r in self.scan_results],
            "affectedFiles": list(self.affected_files),
        }
        if self.build_succeeded is not None:
            data["buildSucceeded"] = self.build_succeeded
        return data


@dataclass(frozen=True)
class PipelineReport:
    """Result of ``PipelineEngine.fix()``."""

    project_path: str
    started_at: datetime
    completed_at: datetime
    before_issues: IssueSummary
    after_issues: IssueSummary
    # normalized issues left after fixing; after_issues summarizes these
    issues: List[Issue] = field(default_factory=list)
    scan_results: List[ScanResult] = field(default_factory=list)
    fix_results: List[FixResult] = field(default_factory=list)
    build_succeeded: Optional[bool] = None

    @property
    def reduction_percentage(self) -> float:
        if self.before_issues.total <= 0:
            return 0.0
        delta = self.before_issues.total - self.after_issues.total
        return delta / self.before_issues.total * 100

    @property
    def duration(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def remaining_issues(self) -> List[Issue]:
        return list(self.issues)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "projectPath": self.project_path,
            "startedAt": _isoformat(self.started_at),
            "completedAt": _isoformat(self.completed_at),
            "beforeIssues": self.before_issues.to_dict(),
            "afterIssues": self.after_issues.to_dict(),
            "reductionPercentage": round(self.reduction_percentage, 1),
            "issues": [i.to_dict() for i in self.issues],
            "scanResults": [r.to_dict() for r in self.scan_results],
            "fixResults": [f.to_dict() for f in self.fix_results],
        }
        if self.build_succeeded is not None:
            data["buildSucceeded"] = self.build_succeeded
        return data
