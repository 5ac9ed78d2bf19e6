"""Configuration schema — project type, engine config and file sections."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

ReportFormat = Literal["terminal", "text", "markdown", "json", "sarif", "html"]

REPORT_FORMATS: tuple[str, ...] = ("terminal", "text", "markdown", "json", "sarif", "html")

DEFAULT_AI_ENDPOINT = "https://open.bigmodel.cn/api/paas/v4/chat/completions"
DEFAULT_AI_MODEL = "codegeex-4"


class ProjectType(str, Enum):
    SWIFT = "swift"
    JAVASCRIPT = "javascript"
    FLUTTER = "flutter"
    PYTHON = "python"
    MIXED = "mixed"
    AUTO = "auto"


@dataclass
class ScanConfig:
    project_type: str = "auto"
    build_check: bool = True


@dataclass
class FixConfig:
    auto_apply: bool = False
    ai_max_issues: int = 20


@dataclass
class AIConfig:
    api_key: Optional[str] = None
    endpoint: str = DEFAULT_AI_ENDPOINT
    model: str = DEFAULT_AI_MODEL
    timeout: float = 60.0


@dataclass
class OutputConfig:
    format: ReportFormat = "terminal"
    fail_on: Optional[str] = None  # exit 1 when issues at or above this remain


@dataclass
class OhMyBugConfig:
    """Contents of ``.ohmybug.toml`` after env overrides."""

    version: str = "1.0"
    scan: ScanConfig = field(default_factory=ScanConfig)
    fix: FixConfig = field(default_factory=FixConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


@dataclass
class ProjectConfig:
    """Everything the pipeline engine needs, passed in at construction."""

    project_path: str
    project_type: ProjectType = ProjectType.AUTO
    auto_apply_fixes: bool = False
    run_build_check: bool = True
    ai_api_key: Optional[str] = None
    ai_max_issues: int = 20
    ai: AIConfig = field(default_factory=AIConfig)

    @classmethod
    def from_file_config(
        cls, project_path: str, cfg: OhMyBugConfig
    ) -> "ProjectConfig":
        return cls(
            project_path=project_path,
            project_type=ProjectType(cfg.scan.project_type),
            auto_apply_fixes=cfg.fix.auto_apply,
            run_build_check=cfg.scan.build_check,
            ai_api_key=cfg.ai.api_key,
            ai_max_issues=cfg.fix.ai_max_issues,
            ai=cfg.ai,
        )
