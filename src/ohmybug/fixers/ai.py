"""AI fixer — sends the most severe issues to an LLM, one file at a time."""

from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Sequence

from ohmybug.config.schema import ProjectType
from ohmybug.findings.models import FixResult, Issue
from ohmybug.findings.normalizer import normalize
from ohmybug.fixers.llm import LLMClient, LLMError
from ohmybug.tools.base import Scanner, supports
from ohmybug.tools.detector import detect_project_type

logger = logging.getLogger(__name__)


def prioritize(issues: Sequence[Issue]) -> List[Issue]:
    """Unfixed issues, most severe first."""
    return sorted((i for i in issues if not i.is_fixed), key=lambda i: i.severity, reverse=True)


class AIFixer:
    """Rewrites files with an LLM, driven by the issues other scanners report.

    Only the most severe issue of each file is described to the model; all
    issues of a rewritten file are counted as fixed. The client's connection
    pool is released when each fix pass ends.
    """

    name = "AI Auto-Fix"

    def __init__(
        self,
        client: LLMClient,
        scanners: Optional[Sequence[Scanner]] = None,
        max_issues: int = 20,
        project_type: ProjectType = ProjectType.AUTO,
    ) -> None:
        self.client = client
        self.scanners = list(scanners or [])
        self.max_issues = max_issues
        self.project_type = project_type

    def is_available(self) -> bool:
        return bool(self.client.api_key)

    def _collect(self, project_path: str) -> List[Issue]:
        project_type = self.project_type
        if project_type is ProjectType.AUTO:
            project_type = detect_project_type(project_path)
        issues: List[Issue] = []
        for scanner in self.scanners:
            if not supports(scanner, project_type):
                continue
            try:
                issues.extend(scanner.scan(project_path).issues)
            except Exception as exc:
                logger.warning("%s: skipping %s: %s", self.name, scanner.name, exc)
        return normalize(issues)

    def fix(self, project_path: str) -> FixResult:
        start = time.perf_counter()
        selected = prioritize(self._collect(project_path))[: self.max_issues]

        by_file: Dict[str, List[Issue]] = {}
        for issue in selected:
            by_file.setdefault(issue.file_path, []).append(issue)

        fixed_files = 0
        fixed_issues = 0
        with self.client:
            for file_path, issues in by_file.items():
                try:
                    with open(file_path, encoding="utf-8") as f:
                        content = f.read()
                except (OSError, UnicodeDecodeError) as exc:
                    logger.warning("%s: cannot read %s: %s", self.name, file_path, exc)
                    continue

                try:
                    fixed = self.client.request_fix(issues[0], content)
                except LLMError as exc:
                    logger.warning("%s: %s: %s", self.name, file_path, exc)
                    continue
                if not fixed or fixed == content:
                    continue

                with open(file_path, "w", encoding="utf-8") as f:
                    f.write(fixed)
                fixed_files += 1
                fixed_issues += len(issues)
                for issue in issues:
                    issue.is_fixed = True

        return FixResult(
            tool=self.name,
            total_files=len(by_file),
            fixed_files=fixed_files,
            fixed_issue_count=fixed_issues,
            duration=time.perf_counter() - start,
        )
