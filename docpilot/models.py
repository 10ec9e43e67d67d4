"""Normalized change model shared across docpilot components."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .globbing import glob_matches, normalize_path

_HUNK_HEADER = re.compile(r"@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


class ChangeKind(str, Enum):
    """Per-file nature of a change."""

    ADDED = "Added"
    MODIFIED = "Modified"
    DELETED = "Deleted"
    RENAMED = "Renamed"
    COPIED = "Copied"


@dataclass(frozen=True)
class Hunk:
    """Contiguous block of a unified diff."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    content: str = ""

    @classmethod
    def from_header(cls, header: str, content: str = "") -> "Hunk":
        """Build a hunk from an ``@@`` header; malformed headers give zeros."""
        old_start, old_count, new_start, new_count = parse_hunk_header(header)
        return cls(old_start, old_count, new_start, new_count, content)


@dataclass(frozen=True)
class ChangedFile:
    """A single file touched by a diff."""

    path: str
    kind: ChangeKind
    old_path: Optional[str] = None
    lines_added: int = 0
    lines_deleted: int = 0
    hunks: Tuple[Hunk, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", normalize_path(self.path))
        old_path = normalize_path(self.old_path) if self.old_path else None
        if old_path == self.path:
            old_path = None
        object.__setattr__(self, "old_path", old_path)
        object.__setattr__(self, "hunks", tuple(self.hunks))
        if self.lines_added < 0 or self.lines_deleted < 0:
            raise ValueError("line counts must be non-negative")

    @property
    def total_lines_changed(self) -> int:
        return self.lines_added + self.lines_deleted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "kind": self.kind.value,
            "old_path": self.old_path,
            "lines_added": self.lines_added,
            "lines_deleted": self.lines_deleted,
            "hunks": len(self.hunks),
        }


@dataclass(frozen=True)
class DiffResult:
    """Ordered set of changed files between two references."""

    base_ref: str
    head_ref: str
    files: Tuple[ChangedFile, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        object.__setattr__(self, "files", tuple(self.files))

    @property
    def total_files_changed(self) -> int:
        return len(self.files)

    @property
    def total_lines_added(self) -> int:
        return sum(item.lines_added for item in self.files)

    @property
    def total_lines_deleted(self) -> int:
        return sum(item.lines_deleted for item in self.files)

    def files_by_kind(self, kind: ChangeKind) -> List[ChangedFile]:
        """Return files of the given kind, preserving diff order."""
        return [item for item in self.files if item.kind == kind]

    def files_by_pattern(self, pattern: str) -> List[ChangedFile]:
        """Return files whose path matches ``pattern``, preserving diff order."""
        return [item for item in self.files if glob_matches(pattern, item.path)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_ref": self.base_ref,
            "head_ref": self.head_ref,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
            "total_files_changed": self.total_files_changed,
            "total_lines_added": self.total_lines_added,
            "total_lines_deleted": self.total_lines_deleted,
            "files": [item.to_dict() for item in self.files],
        }


def parse_hunk_header(header: str) -> Tuple[int, int, int, int]:
    """Parse ``@@ -a[,b] +c[,d] @@``; omitted counts default to 1."""
    match = _HUNK_HEADER.search(header)
    if match is None:
        return 0, 0, 0, 0
    old_start, old_count, new_start, new_count = match.groups()
    return (
        int(old_start),
        int(old_count) if old_count is not None else 1,
        int(new_start),
        int(new_count) if new_count is not None else 1,
    )


def parse_hunks(patch: str) -> List[Hunk]:
    """Split the body of a single-file patch into hunks.

    Lines before the first ``@@`` header are ignored. Each hunk keeps its body
    lines with trailing newlines.
    """
    hunks: List[Hunk] = []
    header: Optional[str] = None
    body: List[str] = []
    for line in patch.splitlines(keepends=True):
        if line.startswith("@@"):
            if header is not None:
                hunks.append(Hunk.from_header(header, "".join(body)))
            header = line
            body = []
        elif header is not None:
            body.append(line)
    if header is not None:
        hunks.append(Hunk.from_header(header, "".join(body)))
    return hunks


__all__ = [
    "ChangeKind",
    "ChangedFile",
    "DiffResult",
    "Hunk",
    "parse_hunk_header",
    "parse_hunks",
]
