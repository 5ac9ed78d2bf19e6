"""Tests for severity ordering, summaries and report serialisation."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_issue
from ohmybug.findings.models import (
    FixResult,
    IssueSummary,
    PipelineReport,
    ScanReport,
    ScanResult,
    Severity,
)

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestSeverity:
    def test_ordering(self):
        assert Severity.CRITICAL > Severity.HIGH > Severity.MEDIUM > Severity.LOW > Severity.INFO

    def test_sorting_most_severe_first(self):
        levels = [Severity.LOW, Severity.CRITICAL, Severity.INFO, Severity.HIGH]
        assert sorted(levels, reverse=True) == [
            Severity.CRITICAL, Severity.HIGH, Severity.LOW, Severity.INFO,
        ]

    def test_parse_case_insensitive(self):
        assert Severity.parse(" High ") is Severity.HIGH

    def test_parse_unknown_uses_default(self):
        assert Severity.parse("fatal", default=Severity.LOW) is Severity.LOW

    def test_parse_unknown_without_default_raises(self):
        with pytest.raises(ValueError):
            Severity.parse("fatal")


class TestScanResult:
    def test_counts(self):
        result = ScanResult(
            scanner="Fake",
            issues=[
                make_issue("/p/a", Severity.CRITICAL),
                make_issue("/p/b", Severity.HIGH),
                make_issue("/p/c", Severity.HIGH),
                make_issue("/p/d", Severity.LOW),
            ],
        )
        assert result.total_count == 4
        assert result.critical_count == 1
        assert result.high_count == 2
        assert result.medium_count == 0


class TestIssueSummary:
    def test_info_only_counts_toward_total(self):
        summary = IssueSummary.from_issues([
            make_issue("/p/a", Severity.INFO),
            make_issue("/p/b", Severity.MEDIUM),
        ])
        assert summary == IssueSummary(total=2, critical=0, high=0, medium=1, low=0)

    def test_empty(self):
        assert IssueSummary.from_issues([]) == IssueSummary()


class TestScanReport:
    def test_summary_and_duration(self):
        report = ScanReport(
            project_path="/p",
            started_at=T0,
            completed_at=T0 + timedelta(seconds=3),
            issues=[make_issue("/p/a", Severity.CRITICAL)],
            affected_files=["/p/a"],
        )
        assert report.summary.critical == 1
        assert report.duration == 3.0

    def test_to_dict_uses_camel_case(self):
        issue = make_issue("/p/a.swift", Severity.HIGH, line=7)
        report = ScanReport(
            project_path="/p",
            started_at=T0,
            completed_at=T0,
            issues=[issue],
            affected_files=["/p/a.swift"],
            build_succeeded=True,
        )
        data = report.to_dict()
        assert data["projectPath"] == "/p"
        assert data["startedAt"] == "2024-05-01T12:00:00Z"
        assert data["buildSucceeded"] is True
        assert data["affectedFiles"] == ["/p/a.swift"]
        assert data["issues"][0]["filePath"] == "/p/a.swift"
        assert data["issues"][0]["severity"] == "high"
        assert data["issues"][0]["line"] == 7
        assert "column" not in data["issues"][0]

    def test_build_status_omitted_when_not_checked(self):
        report = ScanReport(project_path="/p", started_at=T0, completed_at=T0)
        assert "buildSucceeded" not in report.to_dict()


class TestPipelineReport:
    def _report(self, before: int, after: int) -> PipelineReport:
        return PipelineReport(
            project_path="/p",
            started_at=T0,
            completed_at=T0 + timedelta(seconds=10),
            before_issues=IssueSummary(total=before),
            after_issues=IssueSummary(total=after),
            fix_results=[FixResult(tool="Fake", fixed_issue_count=before - after)],
        )

    def test_reduction_percentage(self):
        assert self._report(10, 4).reduction_percentage == pytest.approx(60.0)

    def test_reduction_zero_when_nothing_before(self):
        assert self._report(0, 0).reduction_percentage == 0.0

    def test_reduction_can_be_negative(self):
        assert self._report(2, 3).reduction_percentage == pytest.approx(-50.0)

    def test_to_dict(self):
        data = self._report(10, 4).to_dict()
        assert data["beforeIssues"]["total"] == 10
        assert data["afterIssues"]["total"] == 4
        assert data["reductionPercentage"] == 60.0
        assert data["fixResults"][0]["fixedIssueCount"] == 6
