"""Result types produced by change classification and target mapping."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

LOW_CONFIDENCE_THRESHOLD = 0.5
HIGH_CONFIDENCE_THRESHOLD = 0.8


class ChangeType(str, Enum):
    """Semantic category of a change set."""

    FEATURE = "Feature"
    BUGFIX = "Bugfix"
    REFACTOR = "Refactor"
    BREAKING = "Breaking"
    DOCUMENTATION = "Documentation"
    INFRASTRUCTURE = "Infrastructure"
    CONFIGURATION = "Configuration"
    UNKNOWN = "Unknown"


class ConfidenceLevel(str, Enum):
    """Three-tier bucketing of a confidence score."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


def score_to_level(score: float) -> ConfidenceLevel:
    """Bucket ``score``: below 0.5 is Low, up to and including 0.8 is Medium."""
    if score < LOW_CONFIDENCE_THRESHOLD:
        return ConfidenceLevel.LOW
    if score <= HIGH_CONFIDENCE_THRESHOLD:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.HIGH


@dataclass(frozen=True)
class DocTarget:
    """A documentation file affected by a change set."""

    file_path: str
    confidence_score: float
    rationale: str
    section: Optional[str] = None
    source_files: Tuple[str, ...] = ()

    @property
    def confidence(self) -> ConfidenceLevel:
        return score_to_level(self.confidence_score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "section": self.section,
            "confidence": self.confidence.value,
            "confidence_score": self.confidence_score,
            "rationale": self.rationale,
            "source_files": list(self.source_files),
        }


@dataclass(frozen=True)
class MappingResult:
    """Outcome of mapping a diff onto documentation targets."""

    overall_change_type: ChangeType
    targets: Tuple[DocTarget, ...] = ()
    average_confidence: float = 0.0

    @property
    def overall_confidence(self) -> ConfidenceLevel:
        return score_to_level(self.average_confidence)

    def target_for(self, file_path: str) -> Optional[DocTarget]:
        for target in self.targets:
            if target.file_path == file_path:
                return target
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_change_type": self.overall_change_type.value,
            "overall_confidence": self.overall_confidence.value,
            "average_confidence": self.average_confidence,
            "targets": [target.to_dict() for target in self.targets],
        }


__all__ = [
    "ChangeType",
    "ConfidenceLevel",
    "DocTarget",
    "HIGH_CONFIDENCE_THRESHOLD",
    "LOW_CONFIDENCE_THRESHOLD",
    "MappingResult",
    "score_to_level",
]
