"""Apply documentation patches to the working tree."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..logging import get_logger
from .patches import DocPatch, PatchOperation, PatchSet


@dataclass(frozen=True)
class PatchResult:
    """Outcome of applying a single patch."""

    file_path: str
    operation: PatchOperation
    success: bool
    error: Optional[str] = None
    preview_content: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "operation": self.operation.value,
            "success": self.success,
            "error": self.error,
            "preview_content": self.preview_content,
        }


@dataclass(frozen=True)
class ApplyResult:
    """Per-patch outcomes for one ``apply`` call."""

    results: Tuple[PatchResult, ...]
    dry_run: bool
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return not self.cancelled and all(result.success for result in self.results)

    @property
    def failed_patches(self) -> List[PatchResult]:
        return [result for result in self.results if not result.success]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "dry_run": self.dry_run,
            "cancelled": self.cancelled,
            "results": [result.to_dict() for result in self.results],
        }


def insert_content(existing: str, new_content: str, section: str | None = None) -> str:
    """Return ``existing`` with ``new_content`` appended or placed under ``section``.

    When ``section`` occurs in ``existing``, the content goes right after the
    line holding its first occurrence. Otherwise it is added at the end,
    separated by a single blank line.
    """
    if section is not None and section in existing:
        anchor = existing.index(section)
        end_of_line = existing.find("\n", anchor)
        if end_of_line == -1:
            return f"{existing}\n{new_content}"
        insert_at = end_of_line + 1
        return f"{existing[:insert_at]}{new_content}\n{existing[insert_at:]}"
    return f"{existing.rstrip()}\n\n{new_content}"


class PatchApplier:
    """Writes patches under a repository root, one at a time and in order."""

    def __init__(self, repo_path: str | Path) -> None:
        self.root = Path(repo_path)
        self.logger = get_logger("generation.applier")

    def apply(
        self,
        patch_set: PatchSet,
        *,
        dry_run: bool = False,
        should_stop: Callable[[], bool] | None = None,
    ) -> ApplyResult:
        results: List[PatchResult] = []
        cancelled = False
        for patch in patch_set.patches:
            if should_stop is not None and should_stop():
                cancelled = True
                self.logger.info(
                    "Stopping after %d of %d patches", len(results), patch_set.total_patches
                )
                break
            results.append(self.apply_patch(patch, dry_run=dry_run))
        return ApplyResult(results=tuple(results), dry_run=dry_run, cancelled=cancelled)

    def apply_patch(self, patch: DocPatch, *, dry_run: bool = False) -> PatchResult:
        """Apply one patch; any failure is reported in the result instead of raised."""
        try:
            content = self._apply(patch, dry_run=dry_run)
        except Exception as exc:  # noqa: BLE001 - isolate each patch
            self.logger.warning(
                "Failed to %s %s: %s", patch.operation.value.lower(), patch.file_path, exc
            )
            return PatchResult(
                file_path=patch.file_path,
                operation=patch.operation,
                success=False,
                error=str(exc),
            )
        return PatchResult(
            file_path=patch.file_path,
            operation=patch.operation,
            success=True,
            preview_content=content if dry_run else None,
        )

    def _apply(self, patch: DocPatch, *, dry_run: bool) -> Optional[str]:
        full_path = self.root / patch.file_path

        if patch.operation in (PatchOperation.CREATE, PatchOperation.UPDATE):
            content: Optional[str] = patch.content or ""
        elif patch.operation == PatchOperation.APPEND:
            existing = _read_text(full_path) if full_path.is_file() else ""
            content = insert_content(existing, patch.content or "", patch.section)
        elif patch.operation == PatchOperation.DELETE:
            content = None
        else:
            raise ValueError(f"Unsupported patch operation: {patch.operation!r}")

        if dry_run:
            return content

        if content is None:
            full_path.unlink(missing_ok=True)
            self.logger.debug("Deleted %s", patch.file_path)
            return None

        full_path.parent.mkdir(parents=True, exist_ok=True)
        # newline="" keeps the bytes we computed; no platform newline translation.
        with full_path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        self.logger.debug("Wrote %s (%s)", patch.file_path, patch.operation.value)
        return content


def _read_text(path: Path) -> str:
    with path.open("r", encoding="utf-8", newline="") as handle:
        return handle.read()


__all__ = ["ApplyResult", "PatchApplier", "PatchResult", "insert_content"]
