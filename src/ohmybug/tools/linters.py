"""Adapters for external linters, analyzers and formatters.

Linters (Ruff, ESLint, SwiftLint) report rule violations and fix them with
their own `--fix` mode. Formatters (Ruff Format, Prettier, SwiftFormat, Dart
Format) report one low-severity issue per unformatted file. The Dart and
Flutter analyzers only report.
"""

from __future__ import annotations

import json
import logging
import os
import re
import time
from abc import ABC, abstractmethod
from collections import Counter
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from ohmybug.config.schema import ProjectType
from ohmybug.findings.models import FixResult, Issue, ScanResult, Severity
from ohmybug.tools.detector import SKIP_DIRS, find_source_files, is_python_project
from ohmybug.tools.shell import run_shell, which

logger = logging.getLogger(__name__)


def fixed_counts(before: Sequence[Issue], after: Sequence[Issue]) -> Tuple[int, int]:
    """Return (files with fewer issues, issues resolved) between two scans."""
    before_by_file = Counter(i.file_path for i in before)
    after_by_file = Counter(i.file_path for i in after)
    fixed_files = sum(
        1 for path, count in before_by_file.items() if after_by_file.get(path, 0) < count
    )
    return fixed_files, max(0, len(before) - len(after))


def _load_json(text: str, tool: str) -> Any:
    text = text.strip()
    if not text:
        return []
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.debug("%s produced non-JSON output: %.200s", tool, text)
        return []


class LintTool(ABC):
    """A command-line tool with a machine-readable report and a fix mode.

    Subclasses provide the commands and the output parser.
    """

    name = ""
    executable = ""
    supported_project_types: Tuple[ProjectType, ...] = ()
    extensions: Tuple[str, ...] = ()
    scan_command = ""
    fix_command = ""
    # parse stdout and stderr together
    combined_output = False

    def is_available(self) -> bool:
        return which(self.executable) is not None

    def applies_to(self, project_path: str) -> bool:
        return True

    @abstractmethod
    def parse_output(self, output: str, project_path: str) -> List[Issue]:
        """Turn the scan command's output into issues."""

    def _collect(self, project_path: str) -> List[Issue]:
        result = run_shell(self.scan_command, cwd=project_path)
        output = result.combined if self.combined_output else result.stdout
        return self.parse_output(output, project_path)

    def scan(self, project_path: str) -> ScanResult:
        start = time.perf_counter()
        if not self.applies_to(project_path):
            return ScanResult(scanner=self.name)
        issues = self._collect(project_path)
        return ScanResult(
            scanner=self.name,
            issues=issues,
            scanned_files=len({i.file_path for i in issues}),
            duration=time.perf_counter() - start,
        )

    def fix(self, project_path: str) -> FixResult:
        start = time.perf_counter()
        if not self.fix_command or not self.applies_to(project_path):
            return FixResult(tool=self.name)
        before = self._collect(project_path)
        run_shell(self.fix_command, cwd=project_path)
        after = self._collect(project_path)
        fixed_files, fixed_issues = fixed_counts(before, after)
        return FixResult(
            tool=self.name,
            total_files=len(find_source_files(project_path, self.extensions)),
            fixed_files=fixed_files,
            fixed_issue_count=fixed_issues,
            duration=time.perf_counter() - start,
        )


def _absolute(path: str, project_path: str) -> str:
    return path if os.path.isabs(path) else os.path.join(project_path, path)


class RuffScanner(LintTool):
    name = "Ruff"
    executable = "ruff"
    supported_project_types = (ProjectType.PYTHON, ProjectType.MIXED)
    extensions = ("py",)
    scan_command = "ruff check --output-format json . 2>/dev/null || true"
    fix_command = "ruff check --fix . 2>/dev/null || true"

    def applies_to(self, project_path: str) -> bool:
        return is_python_project(Path(project_path))

    @staticmethod
    def severity_for(code: Optional[str]) -> Severity:
        if not code:
            return Severity.MEDIUM
        if code[0] in ("E", "F"):
            return Severity.HIGH
        if code[0] == "W":
            return Severity.MEDIUM
        if code[0] in ("C", "N"):
            return Severity.LOW
        return Severity.MEDIUM

    def parse_output(self, output: str, project_path: str) -> List[Issue]:
        issues: List[Issue] = []
        for diag in _load_json(output, self.name):
            location = diag.get("location") or {}
            issues.append(Issue(
                rule=diag.get("code") or "unknown",
                message=diag.get("message", ""),
                severity=self.severity_for(diag.get("code")),
                file_path=_absolute(diag.get("filename", ""), project_path),
                line=location.get("row"),
                column=location.get("column"),
                scanner=self.name,
            ))
        return issues


class ESLintScanner(LintTool):
    name = "ESLint"
    executable = "npx"
    supported_project_types = (ProjectType.JAVASCRIPT, ProjectType.MIXED)
    extensions = ("js", "jsx", "ts", "tsx")
    scan_command = "npx eslint . --format json 2>/dev/null || true"
    fix_command = "npx eslint . --fix 2>/dev/null || true"

    def parse_output(self, output: str, project_path: str) -> List[Issue]:
        issues: List[Issue] = []
        for file_entry in _load_json(output, self.name):
            file_path = _absolute(file_entry.get("filePath", ""), project_path)
            for msg in file_entry.get("messages", []):
                issues.append(Issue(
                    rule=msg.get("ruleId") or "unknown",
                    message=msg.get("message", ""),
                    severity=Severity.HIGH if msg.get("severity", 0) >= 2 else Severity.MEDIUM,
                    file_path=file_path,
                    line=msg.get("line"),
                    column=msg.get("column"),
                    scanner=self.name,
                ))
        return issues


_SWIFTLINT_EXCLUDES = "--exclude .build --exclude DerivedData --exclude Pods --exclude .dart_tool"


class SwiftLintScanner(LintTool):
    name = "SwiftLint"
    executable = "swiftlint"
    supported_project_types = (ProjectType.SWIFT, ProjectType.MIXED)
    extensions = ("swift",)
    scan_command = f"swiftlint lint --reporter json --quiet {_SWIFTLINT_EXCLUDES}"
    fix_command = f"swiftlint lint --fix --quiet {_SWIFTLINT_EXCLUDES}"

    def parse_output(self, output: str, project_path: str) -> List[Issue]:
        issues: List[Issue] = []
        for entry in _load_json(output, self.name):
            issues.append(Issue(
                rule=entry.get("rule_id") or "unknown",
                message=entry.get("reason", ""),
                severity=Severity.HIGH if entry.get("severity") == "Error" else Severity.MEDIUM,
                file_path=_absolute(entry.get("file", ""), project_path),
                line=entry.get("line"),
                column=entry.get("character"),
                scanner=self.name,
            ))
        return issues


# ── formatters ────────────────────────────────────────────────────────────────


def _skipped(path: str) -> bool:
    return any(part in SKIP_DIRS for part in re.split(r"[\\/]", path))


def _format_issue(tool: str, path: str, project_path: str) -> Issue:
    return Issue(
        rule="formatting",
        message="File is not formatted",
        severity=Severity.LOW,
        file_path=_absolute(path, project_path),
        scanner=tool,
    )


class RuffFormatScanner(LintTool):
    name = "Ruff Format"
    executable = "ruff"
    supported_project_types = (ProjectType.PYTHON, ProjectType.MIXED)
    extensions = ("py",)
    scan_command = "ruff format --check . 2>&1 || true"
    fix_command = "ruff format . 2>&1 || true"

    def applies_to(self, project_path: str) -> bool:
        return is_python_project(Path(project_path))

    def parse_output(self, output: str, project_path: str) -> List[Issue]:
        issues: List[Issue] = []
        for line in output.splitlines():
            if not line.startswith("Would reformat:"):
                continue
            path = line[len("Would reformat:"):].strip()
            if path and not _skipped(path):
                issues.append(_format_issue(self.name, path, project_path))
        return issues


_PRETTIER_GLOB = "--ignore-path .gitignore '**/*.{js,jsx,ts,tsx,json,css}'"


class PrettierScanner(LintTool):
    name = "Prettier"
    executable = "npx"
    supported_project_types = (ProjectType.JAVASCRIPT, ProjectType.MIXED)
    extensions = ("js", "jsx", "ts", "tsx", "json", "css")
    scan_command = f"npx prettier --check {_PRETTIER_GLOB} 2>&1 || true"
    fix_command = f"npx prettier --write {_PRETTIER_GLOB} 2>&1 || true"

    def parse_output(self, output: str, project_path: str) -> List[Issue]:
        issues: List[Issue] = []
        for line in output.splitlines():
            # the summary line reads "[warn] Code style issues found ..."
            if "[warn]" not in line or "Code style" in line:
                continue
            path = line.replace("[warn]", "", 1).strip()
            if path and not _skipped(path):
                issues.append(_format_issue(self.name, path, project_path))
        return issues


_SWIFTFORMAT_LINT = re.compile(
    r"(?P<file>.+?):(?P<line>\d+):\d*:?\s*(?:warning|error):\s*\((?P<rule>\w+)\)\s*(?P<msg>.*)"
)


class SwiftFormatScanner(LintTool):
    name = "SwiftFormat"
    executable = "swiftformat"
    supported_project_types = (ProjectType.SWIFT, ProjectType.MIXED)
    extensions = ("swift",)
    scan_command = "swiftformat --lint ."
    fix_command = "swiftformat ."
    combined_output = True

    def is_available(self) -> bool:
        return os.name != "nt" and super().is_available()

    def parse_output(self, output: str, project_path: str) -> List[Issue]:
        issues: List[Issue] = []
        for line in output.splitlines():
            m = _SWIFTFORMAT_LINT.search(line)
            if m is None:
                continue
            issues.append(Issue(
                rule=m.group("rule"),
                message=m.group("msg").strip(),
                severity=Severity.LOW,
                file_path=_absolute(m.group("file").strip(), project_path),
                line=int(m.group("line")),
                scanner=self.name,
            ))
        return issues


class DartFormatScanner(LintTool):
    name = "Dart Format"
    executable = "dart"
    supported_project_types = (ProjectType.FLUTTER, ProjectType.MIXED)
    extensions = ("dart",)
    scan_command = "dart format --output=none --set-exit-if-changed . 2>&1 || true"
    fix_command = "dart format . 2>&1"

    def parse_output(self, output: str, project_path: str) -> List[Issue]:
        issues: List[Issue] = []
        for line in output.splitlines():
            path = line.strip()
            if not path.endswith(".dart") or path.startswith(("Formatted", "Unchanged")):
                continue
            if path.startswith("Changed "):
                path = path[len("Changed "):].strip()
            if path and not _skipped(path):
                issues.append(_format_issue(self.name, path, project_path))
        return issues


# ── Dart / Flutter analyzers ──────────────────────────────────────────────────

_DART_SEVERITY = {"ERROR": Severity.HIGH, "WARNING": Severity.MEDIUM, "INFO": Severity.LOW}


class DartAnalyzerScanner(LintTool):
    """``dart analyze --format=machine``: ``SEVERITY|TYPE|CODE|file|line|col|length|message``."""

    name = "Dart Analyzer"
    executable = "dart"
    supported_project_types = (ProjectType.FLUTTER, ProjectType.MIXED)
    extensions = ("dart",)
    scan_command = "dart analyze --format=machine 2>&1 || true"

    def parse_output(self, output: str, project_path: str) -> List[Issue]:
        issues: List[Issue] = []
        for line in output.splitlines():
            raw = line.split("|")
            parts = [p.strip() for p in raw]
            if len(parts) < 8 or parts[0] not in _DART_SEVERITY:
                continue
            issues.append(Issue(
                rule=parts[2] or "unknown",
                # the message itself may contain pipes
                message="|".join(raw[7:]).strip(),
                severity=_DART_SEVERITY[parts[0]],
                file_path=_absolute(parts[3], project_path),
                line=int(parts[4]) if parts[4].isdigit() else None,
                column=int(parts[5]) if parts[5].isdigit() else None,
                scanner=self.name,
            ))
        return issues


_FLUTTER_DIAGNOSTIC = re.compile(
    r"^\s*(?P<sev>info|warning|error)\s+•\s+(?P<msg>.+?)\s+•\s+"
    r"(?P<file>.+?):(?P<line>\d+):(?P<col>\d+)\s+•\s+(?P<rule>\S+)"
)

_FLUTTER_SEVERITY = {"error": Severity.HIGH, "warning": Severity.MEDIUM, "info": Severity.LOW}


class FlutterAnalyzerScanner(LintTool):
    name = "Flutter Analyzer"
    executable = "flutter"
    supported_project_types = (ProjectType.FLUTTER,)
    extensions = ("dart",)
    scan_command = "flutter analyze --no-pub 2>&1 || true"

    def parse_output(self, output: str, project_path: str) -> List[Issue]:
        issues: List[Issue] = []
        for line in output.splitlines():
            m = _FLUTTER_DIAGNOSTIC.search(line)
            if m is None:
                continue
            issues.append(Issue(
                rule=m.group("rule"),
                message=m.group("msg"),
                severity=_FLUTTER_SEVERITY[m.group("sev")],
                file_path=_absolute(m.group("file"), project_path),
                line=int(m.group("line")),
                column=int(m.group("col")),
                scanner=self.name,
            ))
        return issues
