"""Project type detection from manifest files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List

from ohmybug.config.schema import ProjectType

SKIP_DIRS = frozenset({
    ".build",
    ".dart_tool",
    ".git",
    ".pub-cache",
    ".venv",
    "DerivedData",
    "Pods",
    "build",
    "node_modules",
    "venv",
    "__pycache__",
})

_PYTHON_MARKERS = ("pyproject.toml", "setup.py", "setup.cfg", "requirements.txt")
_JS_MARKERS = ("package.json", "tsconfig.json")


def _has_suffix_entry(path: Path, suffix: str) -> bool:
    try:
        return any(entry.name.endswith(suffix) for entry in path.iterdir())
    except OSError:
        return False


def is_swift_project(path: Path) -> bool:
    return (
        (path / "Package.swift").is_file()
        or _has_suffix_entry(path, ".xcodeproj")
        or _has_suffix_entry(path, ".xcworkspace")
    )


def is_javascript_project(path: Path) -> bool:
    return any((path / m).is_file() for m in _JS_MARKERS)


def is_flutter_project(path: Path) -> bool:
    return (path / "pubspec.yaml").is_file()


def is_python_project(path: Path) -> bool:
    return any((path / m).is_file() for m in _PYTHON_MARKERS)


def detect_project_type(project_path: str) -> ProjectType:
    """Guess the project type from the manifests in *project_path*.

    More than one kind of manifest means ``MIXED``; none means ``AUTO``.
    """
    root = Path(project_path)
    found = [
        kind
        for kind, check in (
            (ProjectType.FLUTTER, is_flutter_project),
            (ProjectType.SWIFT, is_swift_project),
            (ProjectType.JAVASCRIPT, is_javascript_project),
            (ProjectType.PYTHON, is_python_project),
        )
        if check(root)
    ]
    if len(found) > 1:
        return ProjectType.MIXED
    if found:
        return found[0]
    return ProjectType.AUTO


def find_source_files(project_path: str, extensions: Iterable[str]) -> List[str]:
    """Return absolute paths of files with *extensions*, skipping vendor dirs."""
    wanted = {e.lstrip(".") for e in extensions}
    files: List[str] = []
    for dirpath, dirnames, filenames in os.walk(project_path):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for name in sorted(filenames):
            if name.rsplit(".", 1)[-1] in wanted and "." in name:
                files.append(os.path.join(dirpath, name))
    return files
