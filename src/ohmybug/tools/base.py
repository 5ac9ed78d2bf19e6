"""Scanner / fixer contracts shared by every tool adapter."""

from __future__ import annotations

from typing import Collection, Protocol, runtime_checkable

from ohmybug.config.schema import ProjectType
from ohmybug.findings.models import FixResult, ScanResult


class ToolExecutionError(Exception):
    """An external tool could not run, or failed in a way worth surfacing."""

    def __init__(self, tool: str, message: str) -> None:
        super().__init__(f"{tool}: {message}")
        self.tool = tool


@runtime_checkable
class Scanner(Protocol):
    """Inspects a project and reports issues without changing it."""

    name: str
    supported_project_types: Collection[ProjectType]

    def is_available(self) -> bool: ...

    def scan(self, project_path: str) -> ScanResult: ...


@runtime_checkable
class Fixer(Protocol):
    """Rewrites project files in place to resolve issues."""

    name: str

    def is_available(self) -> bool: ...

    def fix(self, project_path: str) -> FixResult: ...


def supports(scanner: Scanner, project_type: ProjectType) -> bool:
    """Return True if *scanner* should run for a project of *project_type*."""
    types = scanner.supported_project_types
    if project_type in types:
        return True
    return project_type is ProjectType.MIXED and ProjectType.MIXED in types
