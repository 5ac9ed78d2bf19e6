"""Shared test fixtures — sample projects, fake tools and a recording observer."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from ohmybug.config.schema import ProjectConfig, ProjectType
from ohmybug.findings.models import FixResult, Issue, ScanResult, Severity
from ohmybug.pipeline.backup import BackupManager
from ohmybug.pipeline.engine import PipelineEngine


def make_issue(
    file_path: str,
    severity: Severity = Severity.MEDIUM,
    message: str = "something is wrong",
    line: Optional[int] = 1,
    rule: str = "rule",
    scanner: str = "Fake",
) -> Issue:
    return Issue(
        rule=rule,
        message=message,
        severity=severity,
        file_path=file_path,
        line=line,
        scanner=scanner,
    )


class FakeScanner:
    """Returns canned issues; a list of lists gives one batch per scan call."""

    def __init__(
        self,
        name: str = "Fake",
        issues: Sequence[Issue] = (),
        supported_project_types: Sequence[ProjectType] = (ProjectType.SWIFT, ProjectType.MIXED),
        available: bool = True,
        batches: Optional[List[List[Issue]]] = None,
    ) -> None:
        self.name = name
        self.supported_project_types = tuple(supported_project_types)
        self.available = available
        self._issues = list(issues)
        self._batches = batches
        self.calls = 0

    def is_available(self) -> bool:
        return self.available

    def scan(self, project_path: str) -> ScanResult:
        self.calls += 1
        if self._batches:
            issues = self._batches[min(self.calls, len(self._batches)) - 1]
        else:
            issues = self._issues
        return ScanResult(
            scanner=self.name,
            issues=list(issues),
            scanned_files=len({i.file_path for i in issues}),
        )


class FailingScanner(FakeScanner):
    def scan(self, project_path: str) -> ScanResult:
        self.calls += 1
        raise RuntimeError("tool crashed")


class FakeFixer:
    """Overwrites the given files with ``replacement`` when asked to fix."""

    def __init__(self, files: Sequence[str] = (), replacement: str = "fixed\n", name: str = "FakeFix") -> None:
        self.name = name
        self.files = list(files)
        self.replacement = replacement
        self.calls = 0

    def is_available(self) -> bool:
        return True

    def fix(self, project_path: str) -> FixResult:
        self.calls += 1
        for path in self.files:
            Path(path).write_text(self.replacement)
        return FixResult(
            tool=self.name,
            total_files=len(self.files),
            fixed_files=len(self.files),
            fixed_issue_count=len(self.files),
        )


class RecordingObserver:
    def __init__(self) -> None:
        self.phases = []
        self.logs = []
        self.progress = []

    def on_phase_change(self, phase) -> None:
        self.phases.append(phase)

    def on_log(self, entry) -> None:
        self.logs.append(entry)

    def on_progress(self, fraction: float) -> None:
        self.progress.append(fraction)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small project tree with sources and a test file."""
    root = tmp_path / "project"
    (root / "Sources").mkdir(parents=True)
    (root / "tests").mkdir()
    (root / "Sources" / "App.swift").write_text("let a = 1\n")
    (root / "Sources" / "Model.swift").write_text("struct Model {}\n")
    (root / "tests" / "x_test.swift").write_text("func testX() {}\n")
    return root


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def make_engine(project: Path, tmp_path: Path, observer: RecordingObserver):
    """Factory for engines over ``project`` with builds disabled and a private backup dir."""

    def factory(**overrides) -> PipelineEngine:
        settings = dict(
            project_path=str(project),
            project_type=ProjectType.SWIFT,
            run_build_check=False,
        )
        settings.update(overrides)
        config = ProjectConfig(**settings)
        backup = BackupManager(config.project_path, backup_root=tmp_path / "backups")
        return PipelineEngine(config, observer=observer, backup_manager=backup)

    return factory
