"""Issue exclusion, deduplication and severity adjustment."""

from __future__ import annotations

import dataclasses
from typing import List, Sequence, Set

from ohmybug.findings.models import Issue, Severity

# Path fragments of vendored, built or generated files. Issues in these are
# never reported.
EXCLUDE_PATTERNS: tuple[str, ...] = (
    "/ios_old/",
    "/worktree/",
    "/node_modules/",
    "/.venv/",
    "/Pods/",
    "GeneratedPluginRegistrant.swift",
    ".g.dart",
    ".freezed.dart",
    ".gr.dart",
    "/DerivedData/",
    "/build/",
    "/.build/",
    "/.dart_tool/",
)

TEST_PATH_PATTERNS: tuple[str, ...] = (
    "/test/",
    "/tests/",
    "_test.",
    "Test.",
    "/Fixtures/",
)

# Boilerplate that different tools put in front of the same finding.
MESSAGE_PREFIXES: tuple[str, ...] = (
    "the named parameter ",
    "unused import: ",
    "don't invoke ",
)

MESSAGE_KEY_LENGTH = 80

_STRIP_CHARS = " \t\r\n.'\""


def is_excluded(file_path: str) -> bool:
    return any(pattern in file_path for pattern in EXCLUDE_PATTERNS)


def is_test_path(file_path: str) -> bool:
    return any(pattern in file_path for pattern in TEST_PATH_PATTERNS)


def filter_excluded(issues: Sequence[Issue]) -> List[Issue]:
    """Drop issues located in vendored, built or generated files."""
    return [i for i in issues if not is_excluded(i.file_path)]


def normalize_message(message: str) -> str:
    """Return the comparison form of *message* used in dedup keys."""
    msg = message.lower().strip(_STRIP_CHARS)
    for prefix in MESSAGE_PREFIXES:
        if msg.startswith(prefix):
            msg = msg[len(prefix):]
    return msg[:MESSAGE_KEY_LENGTH]


def dedup_key(issue: Issue) -> str:
    return f"{issue.file_path}:{issue.line or 0}:{normalize_message(issue.message)}"


def deduplicate(issues: Sequence[Issue]) -> List[Issue]:
    """Collapse issues sharing a (file, line, normalized message) key.

    Issues are ordered most severe first (stable for equal severities), so the
    surviving issue for each key is always the most severe variant.
    """
    ordered = sorted(issues, key=lambda i: i.severity, reverse=True)
    seen: Set[str] = set()
    unique: List[Issue] = []
    for issue in ordered:
        key = dedup_key(issue)
        if key in seen:
            continue
        seen.add(key)
        unique.append(issue)
    return unique


def adjust_test_severity(issues: Sequence[Issue]) -> List[Issue]:
    """Downgrade critical issues in test code to high."""
    adjusted: List[Issue] = []
    for issue in issues:
        if issue.severity is Severity.CRITICAL and is_test_path(issue.file_path):
            issue = dataclasses.replace(issue, severity=Severity.HIGH)
        adjusted.append(issue)
    return adjusted


def normalize(issues: Sequence[Issue]) -> List[Issue]:
    """Run exclusion, deduplication and test severity adjustment, in order."""
    return adjust_test_severity(deduplicate(filter_excluded(issues)))


def affected_files(issues: Sequence[Issue]) -> List[str]:
    """Unique file paths among *issues*, in first-seen order."""
    return list(dict.fromkeys(i.file_path for i in issues))
