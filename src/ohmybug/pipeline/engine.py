"""Pipeline engine — build, tool check, scan, fix, verify and rollback.

Scanners and fixers run one at a time in registration order. A failing tool
is logged and skipped; only the engine's own preconditions (a prior scan, a
snapshot to roll back to, a successful backup) abort an operation.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

from ohmybug.config.schema import ProjectConfig, ProjectType
from ohmybug.findings.models import (
    FixResult,
    Issue,
    IssueSummary,
    PipelineReport,
    ScanReport,
    ScanResult,
    utcnow,
)
from ohmybug.findings.normalizer import affected_files, normalize
from ohmybug.pipeline.backup import BackupManager
from ohmybug.pipeline.errors import NoBackupError, NoScanReportError
from ohmybug.pipeline.events import LogEntry, LogLevel, PipelineObserver, ScanPhase
from ohmybug.tools.base import Fixer, Scanner, ToolExecutionError, supports
from ohmybug.tools.build import find_build_targets, run_build
from ohmybug.tools.detector import detect_project_type

logger = logging.getLogger(__name__)

_LOGGING_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.SUCCESS: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class PipelineEngine:
    """Coordinates registered scanners and fixers over one project.

    ``scan()``, ``fix()``, ``rollback()`` and ``cleanup_backup()`` are
    mutually exclusive; concurrent callers are serialized.
    """

    def __init__(
        self,
        config: ProjectConfig,
        observer: Optional[PipelineObserver] = None,
        backup_manager: Optional[BackupManager] = None,
    ) -> None:
        self.config = config
        self._observer = observer
        self._scanners: List[Scanner] = []
        self._fixers: List[Fixer] = []
        self._phase = ScanPhase.IDLE
        self._backup = backup_manager or BackupManager(config.project_path)
        self._last_report: Optional[ScanReport] = None
        self._lock = threading.RLock()

    # ---- registration ----

    def set_observer(self, observer: Optional[PipelineObserver]) -> None:
        self._observer = observer

    def register_scanner(self, scanner: Scanner) -> None:
        with self._lock:
            self._scanners.append(scanner)

    def register_fixer(self, fixer: Fixer) -> None:
        with self._lock:
            self._fixers.append(fixer)

    # ---- queries ----

    @property
    def phase(self) -> ScanPhase:
        return self._phase

    @property
    def scanners(self) -> List[Scanner]:
        return list(self._scanners)

    @property
    def fixers(self) -> List[Fixer]:
        return list(self._fixers)

    @property
    def last_scan_report(self) -> Optional[ScanReport]:
        return self._last_report

    @property
    def backup_manager(self) -> BackupManager:
        return self._backup

    @property
    def can_rollback(self) -> bool:
        return self._backup.snapshot_exists

    # ---- operations ----

    def scan(self) -> ScanReport:
        """Build, check tool availability, run every applicable scanner and normalize the results."""
        with self._lock:
            started_at = utcnow()

            self._set_phase(ScanPhase.BUILD)
            build_succeeded: Optional[bool] = None
            if self.config.run_build_check:
                build_succeeded = self._run_build_check()

            self._set_phase(ScanPhase.TOOLS)
            self._check_tools()

            self._set_phase(ScanPhase.SCAN)
            scan_results: List[ScanResult] = []
            issues = self._run_scan_phase(scan_results)
            files = affected_files(issues)

            report = ScanReport(
                project_path=self.config.project_path,
                started_at=started_at,
                completed_at=utcnow(),
                issues=issues,
                scan_results=scan_results,
                build_succeeded=build_succeeded,
                affected_files=files,
            )
            self._last_report = report
            self._set_phase(ScanPhase.IDLE)
            self._log(
                LogLevel.SUCCESS,
                f"Scan complete: {len(issues)} issues found in {len(files)} files",
            )
            return report

    def fix(self) -> PipelineReport:
        """Back up affected files, run fixers, re-scan and re-verify.

        Raises NoScanReportError without a prior scan, and SnapshotError if
        the backup cannot be created; no file is touched in either case.
        """
        with self._lock:
            scan_report = self._last_report
            if scan_report is None:
                raise NoScanReportError()

            self._set_phase(ScanPhase.AI_FIX)
            self._log(
                LogLevel.INFO,
                f"Creating backup of {len(scan_report.affected_files)} affected files...",
            )
            try:
                self._backup.create_snapshot(scan_report.affected_files)
            except Exception:
                self._log(LogLevel.ERROR, "Backup failed, no fixes applied")
                self._set_phase(ScanPhase.IDLE)
                raise
            self._log(
                LogLevel.SUCCESS,
                f"Backup created ({self._backup.backed_up_file_count} files)",
            )

            fix_results: List[FixResult] = []
            self._run_fix_phase(fix_results)

            self._set_phase(ScanPhase.SCAN)
            post_results: List[ScanResult] = []
            after_issues = self._run_scan_phase(post_results)

            self._set_phase(ScanPhase.VERIFY)
            build_succeeded: Optional[bool] = None
            if self.config.run_build_check:
                build_succeeded = self._run_build_check()
                if not build_succeeded:
                    self._log(LogLevel.ERROR, "Build failed after fix. Use rollback to restore.")

            self._set_phase(ScanPhase.COMPLETE)
            return PipelineReport(
                project_path=self.config.project_path,
                started_at=scan_report.started_at,
                completed_at=utcnow(),
                before_issues=scan_report.summary,
                after_issues=IssueSummary.from_issues(after_issues),
                issues=after_issues,
                scan_results=post_results,
                fix_results=fix_results,
                build_succeeded=build_succeeded,
            )

    def run(self) -> PipelineReport:
        """Scan, then fix when ``auto_apply_fixes`` is set."""
        scan_report = self.scan()
        if not self.config.auto_apply_fixes:
            return PipelineReport(
                project_path=self.config.project_path,
                started_at=scan_report.started_at,
                completed_at=utcnow(),
                before_issues=scan_report.summary,
                after_issues=scan_report.summary,
                issues=list(scan_report.issues),
                scan_results=scan_report.scan_results,
                fix_results=[],
                build_succeeded=scan_report.build_succeeded,
            )
        return self.fix()

    def rollback(self) -> int:
        """Restore the pre-fix snapshot. Returns the number of files restored."""
        with self._lock:
            if not self._backup.snapshot_exists:
                raise NoBackupError()
            self._log(LogLevel.WARNING, "Rolling back changes...")
            restored = self._backup.rollback()
            self._log(LogLevel.SUCCESS, f"Rolled back {restored} files")
            self._set_phase(ScanPhase.IDLE)
            return restored

    def cleanup_backup(self) -> None:
        with self._lock:
            self._backup.cleanup()
            self._log(LogLevel.DEBUG, "Backup removed")

    def dismiss(self) -> None:
        """Forget the last scan report."""
        with self._lock:
            self._last_report = None

    # ---- events ----

    def _notify(self, method: str, *args) -> None:
        observer = self._observer
        if observer is None:
            return
        try:
            getattr(observer, method)(*args)
        except Exception:
            logger.exception("Observer %s failed", method)

    def _set_phase(self, phase: ScanPhase) -> None:
        self._phase = phase
        self._notify("on_phase_change", phase)
        self._log(LogLevel.INFO, f"Phase: {phase.value}")

    def _log(self, level: LogLevel, message: str, source: Optional[str] = None) -> None:
        logger.log(_LOGGING_LEVELS[level], message)
        self._notify("on_log", LogEntry(message=message, level=level, source=source))

    def _progress(self, done: int, total: int) -> None:
        fraction = 1.0 if total <= 0 else min(1.0, max(0.0, done / total))
        self._notify("on_progress", fraction)

    # ---- phases ----

    def _project_type(self) -> ProjectType:
        if self.config.project_type is ProjectType.AUTO:
            return detect_project_type(self.config.project_path)
        return self.config.project_type

    def _run_build_check(self) -> bool:
        targets = find_build_targets(self.config.project_path)
        if not targets:
            self._log(LogLevel.WARNING, "No buildable targets found")
            return True

        all_succeeded = True
        for target in targets:
            self._log(LogLevel.INFO, f"Building {target.name}...", source=target.kind)
            try:
                result = run_build(target)
            except ToolExecutionError as exc:
                self._log(LogLevel.ERROR, f"{target.name}: {exc}", source=target.kind)
                all_succeeded = False
                continue
            if result.succeeded:
                self._log(LogLevel.SUCCESS, f"{target.name}: BUILD SUCCEEDED", source=target.kind)
            else:
                self._log(LogLevel.ERROR, f"{target.name}: BUILD FAILED", source=target.kind)
                all_succeeded = False
        return all_succeeded

    def _check_tools(self) -> None:
        for scanner in self._scanners:
            try:
                available = scanner.is_available()
            except Exception as exc:
                self._log(LogLevel.WARNING, f"{scanner.name} availability check failed: {exc}")
                continue
            if available:
                self._log(LogLevel.SUCCESS, f"{scanner.name} is available", source=scanner.name)
            else:
                self._log(LogLevel.WARNING, f"{scanner.name} is not available", source=scanner.name)

    def _run_scan_phase(self, results: List[ScanResult]) -> List[Issue]:
        project_type = self._project_type()
        eligible = [s for s in self._scanners if supports(s, project_type)]
        self._log(
            LogLevel.DEBUG,
            f"Project type {project_type.value}: {len(eligible)} of {len(self._scanners)} scanners apply",
        )

        collected: List[Issue] = []
        self._progress(0, len(eligible))
        for done, scanner in enumerate(eligible, start=1):
            self._log(LogLevel.INFO, f"Running {scanner.name}...", source=scanner.name)
            try:
                result = scanner.scan(self.config.project_path)
            except Exception as exc:
                self._log(LogLevel.ERROR, f"{scanner.name} failed: {exc}", source=scanner.name)
            else:
                results.append(result)
                collected.extend(result.issues)
                self._log(
                    LogLevel.SUCCESS,
                    f"{scanner.name}: {result.total_count} issues found in {result.scanned_files} files",
                    source=scanner.name,
                )
            self._progress(done, len(eligible))

        return normalize(collected)

    def _run_fix_phase(self, results: List[FixResult]) -> None:
        self._progress(0, len(self._fixers))
        for done, fixer in enumerate(self._fixers, start=1):
            self._log(LogLevel.INFO, f"Running {fixer.name} auto-fix...", source=fixer.name)
            try:
                result = fixer.fix(self.config.project_path)
            except Exception as exc:
                self._log(LogLevel.ERROR, f"{fixer.name} fix failed: {exc}", source=fixer.name)
            else:
                results.append(result)
                self._log(
                    LogLevel.SUCCESS,
                    f"{fixer.name}: fixed {result.fixed_issue_count} issues in "
                    f"{result.fixed_files}/{result.total_files} files",
                    source=fixer.name,
                )
            self._progress(done, len(self._fixers))
