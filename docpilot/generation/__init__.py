"""Documentation patch construction and application."""

from .applier import ApplyResult, PatchApplier, PatchResult, insert_content
from .mermaid import MermaidReport, validate_mermaid
from .patches import DocPatch, PatchOperation, PatchSet
from .writer import DocWriter

__all__ = [
    "ApplyResult",
    "DocPatch",
    "DocWriter",
    "MermaidReport",
    "PatchApplier",
    "PatchOperation",
    "PatchResult",
    "PatchSet",
    "insert_content",
    "validate_mermaid",
]
