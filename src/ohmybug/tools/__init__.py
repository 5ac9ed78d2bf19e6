"""Tool contracts, process runner, project detection and adapters."""

from ohmybug.tools.base import Fixer, Scanner, ToolExecutionError, supports
from ohmybug.tools.build import BuildChecker, BuildTarget, find_build_targets
from ohmybug.tools.custom import CommandTool, CustomToolError, load_custom_tools
from ohmybug.tools.detector import detect_project_type, find_source_files
from ohmybug.tools.linters import ESLintScanner, RuffScanner, SwiftLintScanner
from ohmybug.tools.shell import ShellOutput, run, run_shell, which

__all__ = [
    "BuildChecker",
    "BuildTarget",
    "CommandTool",
    "CustomToolError",
    "ESLintScanner",
    "Fixer",
    "RuffScanner",
    "Scanner",
    "ShellOutput",
    "SwiftLintScanner",
    "ToolExecutionError",
    "detect_project_type",
    "find_build_targets",
    "find_source_files",
    "load_custom_tools",
    "run",
    "run_shell",
    "supports",
    "which",
]
