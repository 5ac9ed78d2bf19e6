"""User-defined command-line tools loaded from ``.ohmybug-tools/*.yaml``.

Each YAML document (or each item of a YAML list) describes one tool::

    name: mypy
    command: mypy --no-color-output --show-column-numbers .
    project_types: [python, mixed]   # optional, defaults to every project type
    pattern: '^(?P<file>[^:]+):(?P<line>\\d+):(?P<col>\\d+): (?P<severity>\\w+): (?P<message>.*)$'
    severity: medium
    severity_map: {error: high, note: info}
    fix_command: null
"""

from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ohmybug.config.schema import ProjectType
from ohmybug.findings.models import FixResult, Issue, ScanResult, Severity
from ohmybug.tools.base import ToolExecutionError
from ohmybug.tools.linters import fixed_counts
from ohmybug.tools.shell import run_shell, which

logger = logging.getLogger(__name__)

CUSTOM_TOOLS_DIR = ".ohmybug-tools"

ALL_PROJECT_TYPES: Tuple[ProjectType, ...] = tuple(ProjectType)


class CustomToolError(Exception):
    """Raised when a tool definition file is malformed."""


@dataclass
class CommandTool:
    """A scanner (and, with ``fix_command``, a fixer) driven by a regex over tool output."""

    name: str
    command: str
    pattern: str
    supported_project_types: Tuple[ProjectType, ...] = ALL_PROJECT_TYPES
    default_severity: Severity = Severity.MEDIUM
    severity_map: Dict[str, Severity] = field(default_factory=dict)
    fix_command: Optional[str] = None
    rule: Optional[str] = None

    _compiled: Optional[re.Pattern[str]] = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def compiled_pattern(self) -> re.Pattern[str]:
        if self._compiled is None:
            self._compiled = re.compile(self.pattern)
        return self._compiled

    @property
    def can_fix(self) -> bool:
        return bool(self.fix_command)

    def is_available(self) -> bool:
        executable = self.command.split()[0] if self.command.strip() else ""
        return bool(executable) and which(executable) is not None

    def _severity(self, raw: Optional[str]) -> Severity:
        if not raw:
            return self.default_severity
        key = raw.strip().lower()
        if key in self.severity_map:
            return self.severity_map[key]
        return Severity.parse(key, default=self.default_severity)

    def parse_output(self, output: str, project_path: str) -> List[Issue]:
        issues: List[Issue] = []
        for line_text in output.splitlines():
            m = self.compiled_pattern.search(line_text)
            if not m:
                continue
            groups = m.groupdict()
            file_path = (groups.get("file") or "").strip()
            if not file_path:
                continue
            if not os.path.isabs(file_path):
                file_path = os.path.join(project_path, file_path)
            line = groups.get("line")
            col = groups.get("col")
            issues.append(Issue(
                rule=groups.get("rule") or self.rule or self.name,
                message=(groups.get("message") or "").strip(),
                severity=self._severity(groups.get("severity")),
                file_path=file_path,
                line=int(line) if line else None,
                column=int(col) if col else None,
                scanner=self.name,
            ))
        return issues

    def _collect(self, project_path: str) -> List[Issue]:
        output = run_shell(self.command, cwd=project_path)
        return self.parse_output(output.combined, project_path)

    def scan(self, project_path: str) -> ScanResult:
        start = time.perf_counter()
        issues = self._collect(project_path)
        return ScanResult(
            scanner=self.name,
            issues=issues,
            scanned_files=len({i.file_path for i in issues}),
            duration=time.perf_counter() - start,
        )

    def fix(self, project_path: str) -> FixResult:
        if not self.fix_command:
            raise ToolExecutionError(self.name, "no fix_command configured")
        start = time.perf_counter()
        before = self._collect(project_path)
        result = run_shell(self.fix_command, cwd=project_path)
        # linters exit non-zero when issues remain after fixing
        if not result.succeeded:
            logger.info("%s: fix command exited with %d", self.name, result.exit_code)
        after = self._collect(project_path)
        fixed_files, fixed_issues = fixed_counts(before, after)
        return FixResult(
            tool=self.name,
            total_files=len({i.file_path for i in before}),
            fixed_files=fixed_files,
            fixed_issue_count=fixed_issues,
            duration=time.perf_counter() - start,
        )


def _parse_severity(value: Any, where: str) -> Severity:
    try:
        return Severity.parse(str(value))
    except ValueError as exc:
        raise CustomToolError(f"{where}: unknown severity {value!r}") from exc


def tool_from_dict(entry: Dict[str, Any], source: str = "<dict>") -> CommandTool:
    """Build a CommandTool from one YAML mapping."""
    if not isinstance(entry, dict):
        raise CustomToolError(f"{source}: tool definition must be a mapping")
    for key in ("name", "command", "pattern"):
        if not entry.get(key):
            raise CustomToolError(f"{source}: missing required key {key!r}")

    try:
        raw_types = entry.get("project_types")
        types = (
            tuple(ProjectType(t) for t in raw_types) if raw_types else ALL_PROJECT_TYPES
        )
    except ValueError as exc:
        raise CustomToolError(f"{source}: {exc}") from exc

    severity_map = {
        str(k).lower(): _parse_severity(v, source)
        for k, v in (entry.get("severity_map") or {}).items()
    }
    tool = CommandTool(
        name=str(entry["name"]),
        command=str(entry["command"]),
        pattern=str(entry["pattern"]),
        supported_project_types=types,
        default_severity=_parse_severity(entry.get("severity", "medium"), source),
        severity_map=severity_map,
        fix_command=entry.get("fix_command"),
        rule=entry.get("rule"),
    )
    try:
        _ = tool.compiled_pattern
    except re.error as exc:
        raise CustomToolError(f"{source}: invalid pattern: {exc}") from exc
    return tool


def load_tool_file(path: Path) -> List[CommandTool]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise CustomToolError(f"Failed to read {path}: {exc}") from exc
    if data is None:
        return []
    if not isinstance(data, list):
        data = [data]
    return [tool_from_dict(entry, str(path)) for entry in data]


def load_custom_tools(project_path: str) -> List[CommandTool]:
    """Load every ``*.yaml`` / ``*.yml`` definition under the project's tools dir."""
    directory = Path(project_path) / CUSTOM_TOOLS_DIR
    if not directory.is_dir():
        return []
    tools: List[CommandTool] = []
    for path in sorted(directory.iterdir()):
        if path.suffix in (".yaml", ".yml"):
            tools.extend(load_tool_file(path))
    return tools
