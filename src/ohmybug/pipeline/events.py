"""Pipeline phases, log entries and the observer contract."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Protocol

from ohmybug.findings.models import utcnow


class ScanPhase(Enum):
    IDLE = "Idle"
    BUILD = "Build"
    TOOLS = "Tools"
    SCAN = "Scan"
    AI_FIX = "AI Fix"
    VERIFY = "Verify"
    COMPLETE = "Complete"

    @property
    def index(self) -> int:
        return _PHASE_ORDER.index(self)

    @classmethod
    def active_phases(cls) -> List["ScanPhase"]:
        return [cls.BUILD, cls.TOOLS, cls.SCAN, cls.AI_FIX, cls.VERIFY]


_PHASE_ORDER = list(ScanPhase)


class LogLevel(Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


@dataclass(frozen=True)
class LogEntry:
    message: str
    level: LogLevel = LogLevel.INFO
    source: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


class PipelineObserver(Protocol):
    """Receives engine events. Any object with these three methods will do."""

    def on_phase_change(self, phase: ScanPhase) -> None: ...

    def on_log(self, entry: LogEntry) -> None: ...

    def on_progress(self, fraction: float) -> None: ...
