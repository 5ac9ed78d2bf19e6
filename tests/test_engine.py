"""Tests for the pipeline engine: scan, fix, verify, rollback and events."""

from pathlib import Path

import pytest

from conftest import FailingScanner, FakeFixer, FakeScanner, make_issue
from ohmybug.config.schema import ProjectType
from ohmybug.findings.models import IssueSummary, Severity
from ohmybug.pipeline.errors import NoBackupError, NoScanReportError, SnapshotError
from ohmybug.pipeline.events import LogLevel, ScanPhase
from ohmybug.tools.build import BuildTarget
from ohmybug.tools.shell import ShellOutput


def _paths(project: Path):
    return (
        str(project / "Sources" / "App.swift"),
        str(project / "Sources" / "Model.swift"),
        str(project / "tests" / "x_test.swift"),
    )


class TestPreconditions:
    def test_fix_before_scan(self, make_engine, observer):
        engine = make_engine()
        with pytest.raises(NoScanReportError):
            engine.fix()
        assert engine.phase is ScanPhase.IDLE
        assert observer.phases == []

    def test_rollback_without_snapshot(self, make_engine):
        engine = make_engine()
        assert not engine.can_rollback
        with pytest.raises(NoBackupError):
            engine.rollback()

    def test_error_messages(self):
        assert str(NoScanReportError()) == "No scan report available. Run scan() first."
        assert str(NoBackupError()) == "No backup available to rollback."


class TestScan:
    def test_summary_after_normalization(self, make_engine, project):
        app, model, test_file = _paths(project)
        engine = make_engine()
        engine.register_scanner(FakeScanner(issues=[
            make_issue(app, Severity.CRITICAL, message="first"),
            make_issue(model, Severity.CRITICAL, message="second"),
            make_issue(test_file, Severity.MEDIUM, message="third"),
        ]))

        report = engine.scan()

        assert report.summary == IssueSummary(total=3, critical=2, high=0, medium=1, low=0)
        assert report.affected_files == [app, model, test_file]
        assert report.build_succeeded is None
        assert engine.last_scan_report is report

    def test_critical_in_test_file_reported_as_high(self, make_engine, project):
        engine = make_engine()
        engine.register_scanner(FakeScanner(issues=[
            make_issue(str(project / "tests" / "x_test.go"), Severity.CRITICAL),
        ]))
        report = engine.scan()
        assert [i.severity for i in report.issues] == [Severity.HIGH]

    def test_duplicates_across_scanners_collapse(self, make_engine, project):
        app = _paths(project)[0]
        engine = make_engine()
        engine.register_scanner(FakeScanner(name="A", issues=[make_issue(app, Severity.LOW, message="Oops")]))
        engine.register_scanner(FakeScanner(name="B", issues=[make_issue(app, Severity.HIGH, message="oops.")]))
        report = engine.scan()
        assert len(report.issues) == 1
        assert report.issues[0].severity is Severity.HIGH
        assert len(report.scan_results) == 2

    def test_failing_scanner_is_skipped(self, make_engine, project, observer):
        app = _paths(project)[0]
        engine = make_engine()
        engine.register_scanner(FailingScanner(name="Broken"))
        engine.register_scanner(FakeScanner(name="Works", issues=[make_issue(app)]))

        report = engine.scan()

        assert [r.scanner for r in report.scan_results] == ["Works"]
        assert report.summary.total == 1
        errors = [e for e in observer.logs if e.level is LogLevel.ERROR]
        assert any("Broken" in e.message for e in errors)

    def test_scanners_filtered_by_project_type(self, make_engine):
        swift = FakeScanner(name="Swift")
        js = FakeScanner(name="JS", supported_project_types=[ProjectType.JAVASCRIPT])
        engine = make_engine()
        engine.register_scanner(swift)
        engine.register_scanner(js)
        engine.scan()
        assert swift.calls == 1
        assert js.calls == 0

    def test_mixed_runs_mixed_capable_scanners(self, make_engine):
        swift = FakeScanner(name="Swift")
        js_only = FakeScanner(name="JS", supported_project_types=[ProjectType.JAVASCRIPT])
        engine = make_engine(project_type=ProjectType.MIXED)
        engine.register_scanner(swift)
        engine.register_scanner(js_only)
        engine.scan()
        assert swift.calls == 1
        assert js_only.calls == 0

    def test_auto_detects_project_type(self, make_engine, project):
        (project / "package.json").write_text("{}")
        js = FakeScanner(name="JS", supported_project_types=[ProjectType.JAVASCRIPT])
        engine = make_engine(project_type=ProjectType.AUTO)
        engine.register_scanner(js)
        engine.scan()
        assert js.calls == 1

    def test_phase_sequence(self, make_engine, observer):
        engine = make_engine()
        engine.register_scanner(FakeScanner())
        engine.scan()
        assert observer.phases == [ScanPhase.BUILD, ScanPhase.TOOLS, ScanPhase.SCAN, ScanPhase.IDLE]
        assert engine.phase is ScanPhase.IDLE

    def test_progress_reaches_one(self, make_engine, observer):
        engine = make_engine()
        engine.register_scanner(FakeScanner(name="A"))
        engine.register_scanner(FakeScanner(name="B"))
        engine.scan()
        assert observer.progress == [0.0, 0.5, 1.0]

    def test_unavailable_tool_logged_as_warning(self, make_engine, observer):
        engine = make_engine()
        engine.register_scanner(FakeScanner(name="Missing", available=False))
        engine.scan()
        assert any(
            e.level is LogLevel.WARNING and "Missing is not available" in e.message
            for e in observer.logs
        )

    def test_observer_errors_do_not_abort(self, make_engine, project):
        class Exploding:
            def on_phase_change(self, phase):
                raise RuntimeError("ui gone")

            def on_log(self, entry):
                raise RuntimeError("ui gone")

            def on_progress(self, fraction):
                raise RuntimeError("ui gone")

        engine = make_engine()
        engine.set_observer(Exploding())
        engine.register_scanner(FakeScanner(issues=[make_issue(_paths(project)[0])]))
        assert engine.scan().summary.total == 1

    def test_dismiss_forgets_report(self, make_engine):
        engine = make_engine()
        engine.scan()
        engine.dismiss()
        assert engine.last_scan_report is None
        with pytest.raises(NoScanReportError):
            engine.fix()


class TestBuildCheck:
    def _patch_build(self, monkeypatch, project, exit_code):
        target = BuildTarget(str(project), "spm", "swift build")
        monkeypatch.setattr("ohmybug.pipeline.engine.find_build_targets", lambda path: [target])
        monkeypatch.setattr(
            "ohmybug.pipeline.engine.run_build",
            lambda target, timeout=None: ShellOutput(exit_code, "", ""),
        )

    def test_success(self, make_engine, project, monkeypatch):
        self._patch_build(monkeypatch, project, 0)
        report = make_engine(run_build_check=True).scan()
        assert report.build_succeeded is True

    def test_failure(self, make_engine, project, monkeypatch):
        self._patch_build(monkeypatch, project, 65)
        report = make_engine(run_build_check=True).scan()
        assert report.build_succeeded is False

    def test_no_targets_counts_as_success(self, make_engine, monkeypatch, observer):
        monkeypatch.setattr("ohmybug.pipeline.engine.find_build_targets", lambda path: [])
        report = make_engine(run_build_check=True).scan()
        assert report.build_succeeded is True
        assert any("No buildable targets" in e.message for e in observer.logs)

    def test_post_fix_build_failure_reported(self, make_engine, project, monkeypatch):
        self._patch_build(monkeypatch, project, 0)
        engine = make_engine(run_build_check=True)
        engine.register_scanner(FakeScanner(issues=[make_issue(_paths(project)[0])]))
        engine.scan()

        self._patch_build(monkeypatch, project, 1)
        report = engine.fix()
        assert report.build_succeeded is False
        assert engine.can_rollback


class TestFix:
    def _engine_with_fix(self, make_engine, project):
        app, model, test_file = _paths(project)
        before = [
            make_issue(app, Severity.CRITICAL, message="first"),
            make_issue(model, Severity.HIGH, message="second"),
            make_issue(test_file, Severity.MEDIUM, message="third"),
        ]
        engine = make_engine()
        engine.register_scanner(FakeScanner(batches=[before, before[1:2]]))
        fixer = FakeFixer(files=[app, test_file])
        engine.register_fixer(fixer)
        return engine, fixer

    def test_before_and_after(self, make_engine, project, observer):
        engine, fixer = self._engine_with_fix(make_engine, project)
        engine.scan()
        observer.phases.clear()

        report = engine.fix()

        assert fixer.calls == 1
        assert report.before_issues.total == 3
        assert report.after_issues.total == 1
        assert report.reduction_percentage == pytest.approx(200 / 3)
        assert [f.tool for f in report.fix_results] == ["FakeFix"]
        assert observer.phases == [ScanPhase.AI_FIX, ScanPhase.SCAN, ScanPhase.VERIFY, ScanPhase.COMPLETE]
        assert engine.phase is ScanPhase.COMPLETE

    def test_report_lists_normalized_remaining_issues(self, make_engine, project):
        app, _, test_file = _paths(project)
        vendored = str(project / "node_modules" / "x" / "a.js")
        after = [
            make_issue(test_file, Severity.CRITICAL, message="still here", line=2),
            make_issue(test_file, Severity.CRITICAL, message="Still here.", line=2),
            make_issue(vendored, Severity.CRITICAL, message="vendored"),
        ]
        engine = make_engine()
        engine.register_scanner(FakeScanner(batches=[[make_issue(app, Severity.CRITICAL)], after]))
        engine.register_fixer(FakeFixer(files=[app]))
        engine.scan()

        report = engine.fix()

        assert sum(len(r.issues) for r in report.scan_results) == 3
        assert [(i.file_path, i.severity) for i in report.remaining_issues] == [(test_file, Severity.HIGH)]
        assert report.after_issues == IssueSummary(total=1, high=1)

    def test_affected_files_backed_up_before_fixing(self, make_engine, project):
        engine, _ = self._engine_with_fix(make_engine, project)
        engine.scan()
        engine.fix()
        assert engine.backup_manager.backed_up_file_count == 3
        assert engine.can_rollback

    def test_rollback_restores_originals(self, make_engine, project):
        app, _, test_file = _paths(project)
        engine, _ = self._engine_with_fix(make_engine, project)
        engine.scan()
        engine.fix()
        assert Path(app).read_text() == "fixed\n"

        restored = engine.rollback()

        assert restored == 3
        assert Path(app).read_text() == "let a = 1\n"
        assert Path(test_file).read_text() == "func testX() {}\n"
        assert engine.phase is ScanPhase.IDLE

    def test_failing_fixer_is_skipped(self, make_engine, project):
        class BrokenFixer(FakeFixer):
            def fix(self, project_path):
                raise RuntimeError("fixer crashed")

        engine, fixer = self._engine_with_fix(make_engine, project)
        engine.register_fixer(BrokenFixer(name="Broken"))
        engine.scan()
        report = engine.fix()
        assert [f.tool for f in report.fix_results] == ["FakeFix"]
        assert fixer.calls == 1

    def test_snapshot_failure_aborts_before_fixing(self, make_engine, project, monkeypatch):
        engine, fixer = self._engine_with_fix(make_engine, project)
        engine.scan()

        def refuse(files):
            raise SnapshotError("no space left")

        monkeypatch.setattr(engine.backup_manager, "create_snapshot", refuse)
        with pytest.raises(SnapshotError):
            engine.fix()
        assert fixer.calls == 0
        assert engine.phase is ScanPhase.IDLE
        assert Path(_paths(project)[0]).read_text() == "let a = 1\n"

    def test_cleanup_backup_disables_rollback(self, make_engine, project):
        engine, _ = self._engine_with_fix(make_engine, project)
        engine.scan()
        engine.fix()
        engine.cleanup_backup()
        assert not engine.can_rollback
        with pytest.raises(NoBackupError):
            engine.rollback()


class TestRun:
    def test_scan_only_by_default(self, make_engine, project):
        app = _paths(project)[0]
        engine = make_engine()
        engine.register_scanner(FakeScanner(issues=[make_issue(app)]))
        fixer = FakeFixer(files=[app])
        engine.register_fixer(fixer)

        report = engine.run()

        assert fixer.calls == 0
        assert report.before_issues == report.after_issues
        assert report.fix_results == []

    def test_auto_apply_fixes(self, make_engine, project):
        app = _paths(project)[0]
        engine = make_engine(auto_apply_fixes=True)
        engine.register_scanner(FakeScanner(issues=[make_issue(app)]))
        fixer = FakeFixer(files=[app])
        engine.register_fixer(fixer)

        engine.run()

        assert fixer.calls == 1

    def test_scan_only_report_keeps_normalized_issues(self, make_engine, project):
        app = _paths(project)[0]
        engine = make_engine()
        engine.register_scanner(FakeScanner(issues=[
            make_issue(app, Severity.HIGH),
            make_issue(str(project / "Pods" / "Lib.swift"), Severity.CRITICAL),
        ]))

        report = engine.run()

        assert [i.file_path for i in report.remaining_issues] == [app]
