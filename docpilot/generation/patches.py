"""Pending documentation mutations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class PatchOperation(str, Enum):
    CREATE = "Create"
    UPDATE = "Update"
    APPEND = "Append"
    DELETE = "Delete"


@dataclass(frozen=True)
class DocPatch:
    """A not-yet-applied change to one documentation file."""

    file_path: str
    operation: PatchOperation
    content: Optional[str] = None
    section: Optional[str] = None
    mermaid_blocks: Tuple[str, ...] = ()
    source_references: Tuple[str, ...] = ()
    confidence: float = 0.0
    rationale: Optional[str] = None

    def __post_init__(self) -> None:
        if self.operation != PatchOperation.DELETE and self.content is None:
            raise ValueError(f"{self.operation.value} patch for {self.file_path} requires content")
        object.__setattr__(self, "mermaid_blocks", tuple(self.mermaid_blocks))
        object.__setattr__(self, "source_references", tuple(self.source_references))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "operation": self.operation.value,
            "section": self.section,
            "confidence": self.confidence,
            "rationale": self.rationale,
            "mermaid_blocks": len(self.mermaid_blocks),
            "source_references": list(self.source_references),
        }


@dataclass(frozen=True)
class PatchSet:
    """Ordered batch of patches produced for one pipeline run."""

    patches: Tuple[DocPatch, ...] = ()
    generated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    summary: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "patches", tuple(self.patches))

    @property
    def total_patches(self) -> int:
        return len(self.patches)

    @property
    def created_files(self) -> int:
        return sum(1 for patch in self.patches if patch.operation == PatchOperation.CREATE)

    @property
    def updated_files(self) -> int:
        return sum(1 for patch in self.patches if patch.operation == PatchOperation.UPDATE)


__all__ = ["DocPatch", "PatchOperation", "PatchSet"]
