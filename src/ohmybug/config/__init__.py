"""Configuration loading, schema, and defaults."""

from ohmybug.config.loader import ConfigError, load_config
from ohmybug.config.schema import OhMyBugConfig, ProjectConfig, ProjectType

__all__ = [
    "ConfigError",
    "OhMyBugConfig",
    "ProjectConfig",
    "ProjectType",
    "load_config",
]
