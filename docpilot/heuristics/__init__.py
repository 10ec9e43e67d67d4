"""Change classification and documentation target mapping."""

from .classifier import ChangeClassifier
from .mapper import DocTargetMapper
from .types import ChangeType, ConfidenceLevel, DocTarget, MappingResult, score_to_level

__all__ = [
    "ChangeClassifier",
    "ChangeType",
    "ConfidenceLevel",
    "DocTarget",
    "DocTargetMapper",
    "MappingResult",
    "score_to_level",
]
