"""Builders for diff models used across tests."""

from __future__ import annotations

from typing import Sequence

from docpilot.models import ChangeKind, ChangedFile, DiffResult, Hunk


def make_file(
    path: str,
    kind: ChangeKind = ChangeKind.MODIFIED,
    added: int = 10,
    deleted: int = 0,
    hunks: Sequence[str] = (),
) -> ChangedFile:
    return ChangedFile(
        path=path,
        kind=kind,
        lines_added=added,
        lines_deleted=deleted,
        hunks=tuple(Hunk(1, 1, 1, 1, content) for content in hunks),
    )


def make_diff(*files: ChangedFile) -> DiffResult:
    return DiffResult(base_ref="main", head_ref="feature", files=files)


__all__ = ["make_diff", "make_file"]
