"""Tests for snapshot creation, rollback and cleanup."""

import shutil
from pathlib import Path

import pytest

from ohmybug.pipeline.backup import BackupManager, default_backup_root
from ohmybug.pipeline.errors import SnapshotError


@pytest.fixture
def manager(project: Path, tmp_path: Path) -> BackupManager:
    return BackupManager(str(project), backup_root=tmp_path / "backups")


def _sources(project: Path):
    return [
        str(project / "Sources" / "App.swift"),
        str(project / "Sources" / "Model.swift"),
        str(project / "tests" / "x_test.swift"),
    ]


class TestSnapshot:
    def test_round_trip_restores_all_files(self, manager: BackupManager, project: Path):
        files = _sources(project)
        originals = {f: Path(f).read_text() for f in files}

        assert manager.create_snapshot(files) == 3
        for f in files:
            Path(f).write_text("garbage\n")

        assert manager.rollback() == 3
        for f in files:
            assert Path(f).read_text() == originals[f]

    def test_missing_files_skipped(self, manager: BackupManager, project: Path):
        added = manager.create_snapshot([str(project / "nope.swift"), *_sources(project)[:1]])
        assert added == 1
        assert manager.backed_up_file_count == 1

    def test_backup_mirrors_relative_layout(self, manager: BackupManager, project: Path, tmp_path: Path):
        manager.create_snapshot(_sources(project)[:1])
        assert (tmp_path / "backups" / "Sources" / "App.swift").is_file()

    def test_file_outside_project(self, manager: BackupManager, tmp_path: Path):
        outside = tmp_path / "elsewhere.txt"
        outside.write_text("outside\n")
        manager.create_snapshot([str(outside)])
        outside.write_text("changed\n")
        manager.rollback()
        assert outside.read_text() == "outside\n"

    def test_calls_are_cumulative_and_keep_first_copy(self, manager: BackupManager, project: Path):
        app, model, _ = _sources(project)
        manager.create_snapshot([app])
        Path(app).write_text("after first fix\n")
        manager.create_snapshot([app, model])

        assert manager.backed_up_file_count == 2
        Path(app).write_text("broken\n")
        manager.rollback()
        assert Path(app).read_text() == "let a = 1\n"

    def test_empty_snapshot_still_exists(self, manager: BackupManager):
        assert manager.create_snapshot([]) == 0
        assert manager.snapshot_exists
        assert manager.rollback() == 0

    def test_failed_copy_leaves_no_partial_snapshot(self, manager: BackupManager, project: Path, monkeypatch):
        real_copy = shutil.copy2
        calls = []

        def flaky_copy(src, dst, *args, **kwargs):
            calls.append(src)
            if len(calls) == 2:
                raise OSError("disk full")
            return real_copy(src, dst, *args, **kwargs)

        monkeypatch.setattr(shutil, "copy2", flaky_copy)
        with pytest.raises(SnapshotError):
            manager.create_snapshot(_sources(project))

        assert not manager.snapshot_exists
        assert manager.backed_up_file_count == 0
        assert not (manager.backup_root / "Sources" / "App.swift").exists()

    def test_failure_keeps_earlier_snapshot(self, manager: BackupManager, project: Path, monkeypatch):
        app, model, _ = _sources(project)
        manager.create_snapshot([app])

        def broken_copy(*args, **kwargs):
            raise OSError("read-only")

        monkeypatch.setattr(shutil, "copy2", broken_copy)
        with pytest.raises(SnapshotError):
            manager.create_snapshot([model])

        assert manager.snapshot_exists
        assert list(manager.backed_up_files) == [app]


class TestRollback:
    def test_without_snapshot_returns_zero(self, manager: BackupManager):
        assert manager.rollback() == 0

    def test_deleted_original_is_recreated(self, manager: BackupManager, project: Path):
        app = _sources(project)[0]
        manager.create_snapshot([app])
        Path(app).unlink()
        assert manager.rollback() == 1
        assert Path(app).read_text() == "let a = 1\n"

    def test_missing_backup_copy_skipped(self, manager: BackupManager, project: Path):
        app, model, _ = _sources(project)
        manager.create_snapshot([app, model])
        Path(manager.backed_up_files[app]).unlink()
        assert manager.rollback() == 1

    def test_repeatable(self, manager: BackupManager, project: Path):
        app = _sources(project)[0]
        manager.create_snapshot([app])
        assert manager.rollback() == 1
        assert manager.rollback() == 1


class TestCleanup:
    def test_removes_directory_and_state(self, manager: BackupManager, project: Path):
        manager.create_snapshot(_sources(project))
        manager.cleanup()
        assert not manager.backup_root.exists()
        assert not manager.snapshot_exists
        assert manager.rollback() == 0

    def test_cleanup_without_snapshot(self, manager: BackupManager):
        manager.cleanup()
        assert not manager.snapshot_exists


def test_default_root_is_unique_per_session():
    first, second = default_backup_root(), default_backup_root()
    assert first != second
    assert first.parent.name == "ohmybug"
