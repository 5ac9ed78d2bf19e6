"""Build targets and the build-check scanner."""

from __future__ import annotations

import re
import shlex
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ohmybug.config.schema import ProjectType
from ohmybug.findings.models import Issue, ScanResult, Severity
from ohmybug.tools.detector import SKIP_DIRS, find_source_files
from ohmybug.tools.shell import ShellOutput, run_shell

_SWIFT_DIAGNOSTIC = re.compile(
    r"(?P<file>.+\.swift):(?P<line>\d+):(?P<col>\d+):\s*(?P<sev>error|warning):\s*(?P<msg>.*)"
)
_DART_DIAGNOSTIC = re.compile(
    r"^\s*(?P<sev>error|warning)\s+•\s+(?P<msg>.+?)\s+•\s+(?P<file>.+?):(?P<line>\d+):(?P<col>\d+)\s+•\s+\S+"
)


@dataclass(frozen=True)
class BuildTarget:
    path: str
    kind: str  # pubspec | spm | xcodeproj | python
    command: str

    @property
    def name(self) -> str:
        return Path(self.path).name


def _targets_in(directory: Path) -> List[BuildTarget]:
    targets: List[BuildTarget] = []
    path = str(directory)
    if (directory / "pubspec.yaml").is_file():
        targets.append(BuildTarget(path, "pubspec", "flutter analyze --no-pub 2>&1"))
    if (directory / "Package.swift").is_file():
        targets.append(BuildTarget(path, "spm", "swift build 2>&1"))
    try:
        has_xcodeproj = any(e.name.endswith(".xcodeproj") for e in directory.iterdir())
    except OSError:
        has_xcodeproj = False
    if has_xcodeproj:
        targets.append(BuildTarget(
            path, "xcodeproj", "xcodebuild -project *.xcodeproj -scheme * build 2>&1 | tail -50"
        ))
    if (directory / "pyproject.toml").is_file():
        targets.append(BuildTarget(
            path, "python", f"{shlex.quote(sys.executable)} -m compileall -q . 2>&1"
        ))
    return targets


def find_build_targets(project_path: str) -> List[BuildTarget]:
    """Buildable targets at the project root, else in its direct subdirectories."""
    root = Path(project_path)
    targets = _targets_in(root)
    if targets:
        return targets

    try:
        children = sorted(root.iterdir())
    except OSError:
        return []
    for child in children:
        if child.name in SKIP_DIRS or not child.is_dir():
            continue
        targets.extend(_targets_in(child))
    return targets


def run_build(target: BuildTarget, timeout: Optional[float] = None) -> ShellOutput:
    return run_shell(target.command, cwd=target.path, timeout=timeout)


def parse_build_output(output: str, project_path: str, scanner: str) -> List[Issue]:
    """Turn Swift and Dart compiler diagnostics into issues."""
    issues: List[Issue] = []
    for line in output.splitlines():
        m = _SWIFT_DIAGNOSTIC.search(line) or _DART_DIAGNOSTIC.search(line)
        if m is None:
            continue
        sev = m.group("sev")
        file_path = m.group("file").strip()
        if not file_path.startswith("/"):
            file_path = str(Path(project_path) / file_path)
        issues.append(Issue(
            rule=f"build_{sev}",
            message=m.group("msg").strip(),
            severity=Severity.CRITICAL if sev == "error" else Severity.MEDIUM,
            file_path=file_path,
            line=int(m.group("line")),
            column=int(m.group("col")),
            scanner=scanner,
        ))
    return issues


class BuildChecker:
    """Reports compiler errors and warnings as issues."""

    name = "Build Check"
    supported_project_types = (ProjectType.SWIFT, ProjectType.FLUTTER, ProjectType.MIXED)

    def is_available(self) -> bool:
        return True

    def scan(self, project_path: str) -> ScanResult:
        start = time.perf_counter()
        issues: List[Issue] = []
        scanned = 0
        for target in find_build_targets(project_path):
            if target.kind == "python":
                continue
            output = run_build(target)
            issues.extend(parse_build_output(output.combined, target.path, self.name))
            ext = ("dart",) if target.kind == "pubspec" else ("swift",)
            scanned += len(find_source_files(target.path, ext))
        return ScanResult(
            scanner=self.name,
            issues=issues,
            scanned_files=scanned,
            duration=time.perf_counter() - start,
        )
