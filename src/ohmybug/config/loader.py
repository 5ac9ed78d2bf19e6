"""Load and merge configuration from .ohmybug.toml and OHMYBUG_* env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from ohmybug.config.schema import (
    REPORT_FORMATS,
    AIConfig,
    FixConfig,
    OhMyBugConfig,
    OutputConfig,
    ProjectType,
    ScanConfig,
)

CONFIG_FILENAME = ".ohmybug.toml"

_PROJECT_TYPES = {t.value for t in ProjectType}
_SEVERITIES = ("info", "low", "medium", "high", "critical")


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(project_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = project_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: OhMyBugConfig) -> None:
    if cfg.scan.project_type not in _PROJECT_TYPES:
        raise ConfigError(f"Invalid project_type: {cfg.scan.project_type!r}")
    if cfg.output.format not in REPORT_FORMATS:
        raise ConfigError(f"Invalid output format: {cfg.output.format!r}")
    if cfg.output.fail_on is not None and cfg.output.fail_on not in _SEVERITIES:
        raise ConfigError(f"Invalid fail_on level: {cfg.output.fail_on!r}")
    if cfg.fix.ai_max_issues < 1:
        raise ConfigError("ai_max_issues must be at least 1")


def _merge_env_overrides(cfg: OhMyBugConfig) -> None:
    """Apply OHMYBUG_* environment variable overrides. Invalid values are ignored."""
    if val := os.environ.get("OHMYBUG_PROJECT_TYPE"):
        if val in _PROJECT_TYPES:
            cfg.scan.project_type = val
    if val := os.environ.get("OHMYBUG_FORMAT"):
        if val in REPORT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("OHMYBUG_AI_API_KEY"):
        cfg.ai.api_key = val
    if os.environ.get("OHMYBUG_NO_BUILD") == "1":
        cfg.scan.build_check = False
    if val := os.environ.get("OHMYBUG_AI_MAX_ISSUES"):
        try:
            parsed = int(val)
        except ValueError:
            parsed = 0
        if parsed > 0:
            cfg.fix.ai_max_issues = parsed


def load_config(
    project_root: Path,
    config_override: Optional[str] = None,
) -> OhMyBugConfig:
    """Load, validate, and return an OhMyBugConfig."""
    config_path = find_config_file(project_root, config_override)

    if config_path is None:
        cfg = OhMyBugConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = OhMyBugConfig(
                version=str(raw.get("version", "1.0")),
                scan=_build_section(raw, ScanConfig, "scan"),
                fix=_build_section(raw, FixConfig, "fix"),
                ai=_build_section(raw, AIConfig, "ai"),
                output=_build_section(raw, OutputConfig, "output"),
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc
        _validate(cfg)

    _merge_env_overrides(cfg)
    return cfg
