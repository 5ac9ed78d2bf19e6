"""Copy-based file snapshots taken before fixing, restored on rollback."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Optional

from ohmybug.pipeline.errors import SnapshotError

logger = logging.getLogger(__name__)


def _session_id() -> str:
    stamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")
    return f"{stamp}-{uuid.uuid4().hex[:8]}"


def default_backup_root() -> Path:
    return Path(tempfile.gettempdir()) / "ohmybug" / _session_id()


class BackupManager:
    """Owns one session-scoped backup directory for a project.

    Originals are only ever read here, except by ``rollback()`` which
    overwrites them from their backup copies.
    """

    def __init__(self, project_path: str, backup_root: Optional[Path] = None) -> None:
        self.project_path = os.path.abspath(project_path)
        self.backup_root = Path(backup_root) if backup_root else default_backup_root()
        self._snapshot: Dict[str, str] = {}
        self._has_snapshot = False
        self._lock = threading.Lock()

    @property
    def snapshot_exists(self) -> bool:
        return self._has_snapshot

    @property
    def backed_up_file_count(self) -> int:
        return len(self._snapshot)

    @property
    def backed_up_files(self) -> Dict[str, str]:
        return dict(self._snapshot)

    def _backup_path_for(self, original: str) -> Path:
        original = os.path.abspath(original)
        try:
            common = os.path.commonpath([self.project_path, original])
        except ValueError:
            common = ""
        if common == self.project_path:
            return self.backup_root / os.path.relpath(original, self.project_path)
        parts = Path(original).parts[1:]
        return self.backup_root.joinpath("_external", *parts)

    def create_snapshot(self, files: Iterable[str]) -> int:
        """Back up every existing file in *files*. Returns how many were added.

        Calls are cumulative. A file already in the snapshot keeps its first
        backup. If any copy fails, the copies made by this call are removed,
        the snapshot is left as it was, and SnapshotError is raised.
        """
        with self._lock:
            added: Dict[str, str] = {}
            try:
                self.backup_root.mkdir(parents=True, exist_ok=True)
                for original in files:
                    original = os.path.abspath(original)
                    if original in self._snapshot or original in added:
                        continue
                    if not os.path.isfile(original):
                        continue
                    backup = self._backup_path_for(original)
                    backup.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(original, backup)
                    added[original] = str(backup)
            except OSError as exc:
                self._discard(added.values())
                raise SnapshotError(f"Failed to back up files: {exc}") from exc

            self._snapshot.update(added)
            self._has_snapshot = True
            logger.debug("Backed up %d files to %s", len(added), self.backup_root)
            return len(added)

    def _discard(self, backups: Iterable[str]) -> None:
        for backup in backups:
            try:
                os.remove(backup)
            except OSError as exc:
                logger.warning("Could not remove partial backup %s: %s", backup, exc)

    def rollback(self) -> int:
        """Restore every backed-up file. Returns the number restored.

        Files whose backup copy has disappeared are skipped. The snapshot is
        kept, so calling this again is safe.
        """
        with self._lock:
            if not self._has_snapshot:
                return 0
            restored = 0
            for original, backup in self._snapshot.items():
                if not os.path.isfile(backup):
                    logger.warning("Backup missing for %s, skipping", original)
                    continue
                os.makedirs(os.path.dirname(original), exist_ok=True)
                shutil.copy2(backup, original)
                restored += 1
            return restored

    def cleanup(self) -> None:
        """Delete the backup directory. Rollback is impossible afterwards."""
        with self._lock:
            shutil.rmtree(self.backup_root, ignore_errors=True)
            self._snapshot = {}
            self._has_snapshot = False
