"""Subprocess wrapper used by every scanner, fixer and the build check."""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from ohmybug.tools.base import ToolExecutionError


@dataclass(frozen=True)
class ShellOutput:
    exit_code: int
    stdout: str
    stderr: str

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def combined(self) -> str:
        return self.stdout + self.stderr


def run(
    args: List[str],
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ShellOutput:
    """Run *args* and capture its output. Raises ToolExecutionError if it cannot run.

    A non-zero exit status is not an error here; callers decide what it means.
    """
    tool = os.path.basename(args[0]) if args else "<empty>"
    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError as exc:
        raise ToolExecutionError(tool, "not installed or not on PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise ToolExecutionError(tool, f"timed out after {timeout}s") from exc
    except OSError as exc:
        raise ToolExecutionError(tool, str(exc)) from exc

    return ShellOutput(
        exit_code=result.returncode,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
    )


def run_shell(
    command: str,
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ShellOutput:
    """Run *command* through the platform shell."""
    if os.name == "nt":
        return run(["cmd.exe", "/c", command], cwd=cwd, timeout=timeout)
    return run(["/bin/sh", "-c", command], cwd=cwd, timeout=timeout)


def which(tool: str) -> Optional[str]:
    return shutil.which(tool)
