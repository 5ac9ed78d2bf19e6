"""Pipeline engine, phases, backups and errors."""

from ohmybug.pipeline.backup import BackupManager
from ohmybug.pipeline.engine import PipelineEngine
from ohmybug.pipeline.errors import (
    NoBackupError,
    NoScanReportError,
    PipelineError,
    SnapshotError,
)
from ohmybug.pipeline.events import LogEntry, LogLevel, PipelineObserver, ScanPhase

__all__ = [
    "BackupManager",
    "LogEntry",
    "LogLevel",
    "NoBackupError",
    "NoScanReportError",
    "PipelineEngine",
    "PipelineError",
    "PipelineObserver",
    "ScanPhase",
    "SnapshotError",
]
