"""Hard failures raised by the pipeline engine to its caller."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for failures of the engine's own preconditions."""


class NoScanReportError(PipelineError):
    def __init__(self) -> None:
        super().__init__("No scan report available. Run scan() first.")


class NoBackupError(PipelineError):
    def __init__(self) -> None:
        super().__init__("No backup available to rollback.")


class SnapshotError(PipelineError):
    """The pre-fix backup could not be created; fixing is refused."""
