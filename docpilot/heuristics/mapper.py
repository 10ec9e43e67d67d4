"""Heuristic mapping of changed files onto documentation targets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..config import HeuristicRule, default_heuristics
from ..globbing import glob_matches
from ..logging import get_logger
from ..models import ChangeKind, ChangedFile, DiffResult
from .classifier import ChangeClassifier
from .types import ChangeType, DocTarget, MappingResult

BASE_CONFIDENCE = 0.5
LARGE_CHANGE_LINES = 50
LARGE_CHANGE_BOOST = 0.1
SMALL_CHANGE_LINES = 5
SMALL_CHANGE_PENALTY = 0.1
NEW_FILE_BOOST = 0.15
BREAKING_BOOST = 0.2

PACKAGE_SEGMENT = "packages"
PACKAGE_FALLBACK = "main"
TEMPLATE_PLACEHOLDER = "{0}"

_ACTIONS: Dict[ChangeKind, str] = {
    ChangeKind.ADDED: "New file added",
    ChangeKind.DELETED: "File removed",
    ChangeKind.RENAMED: "File renamed",
}


@dataclass
class _TargetBuilder:
    file_path: str
    section: Optional[str]
    score: float
    rationale: str
    sources: List[str] = field(default_factory=list)

    def add_source(self, path: str) -> None:
        if path not in self.sources:
            self.sources.append(path)

    def freeze(self) -> DocTarget:
        return DocTarget(
            file_path=self.file_path,
            section=self.section,
            confidence_score=self.score,
            rationale=self.rationale,
            source_files=tuple(self.sources),
        )


class DocTargetMapper:
    """Projects a diff onto documentation targets using ordered heuristic rules."""

    def __init__(
        self,
        rules: Sequence[HeuristicRule] | None = None,
        classifier: ChangeClassifier | None = None,
    ) -> None:
        self.rules = tuple(rules) if rules is not None else tuple(default_heuristics())
        self.classifier = classifier or ChangeClassifier()
        self.logger = get_logger("heuristics.mapper")

    def map_to_doc_targets(self, diff: DiffResult) -> MappingResult:
        change_type = self.classifier.classify_change(diff)
        builders: Dict[str, _TargetBuilder] = {}
        total_confidence = 0.0
        match_count = 0

        for changed in diff.files:
            for rule in self.rules:
                if not glob_matches(rule.pattern, changed.path):
                    continue

                doc_path = resolve_doc_target(rule.doc_target, changed.path)
                confidence = calculate_confidence(changed, rule, change_type)
                rationale = build_rationale(changed, rule, change_type)

                existing = builders.get(doc_path)
                if existing is None:
                    builders[doc_path] = _TargetBuilder(
                        file_path=doc_path,
                        section=rule.section,
                        score=confidence,
                        rationale=rationale,
                        sources=[changed.path],
                    )
                else:
                    existing.add_source(changed.path)
                    if confidence > existing.score:
                        existing.score = confidence
                        existing.rationale = rationale

                total_confidence += confidence
                match_count += 1

        average = total_confidence / match_count if match_count else 0.0
        self.logger.debug(
            "Mapped %d files to %d targets (%d rule matches, type=%s)",
            len(diff.files),
            len(builders),
            match_count,
            change_type.value,
        )
        return MappingResult(
            overall_change_type=change_type,
            targets=tuple(builder.freeze() for builder in builders.values()),
            average_confidence=average,
        )


def resolve_doc_target(template: str, source_path: str) -> str:
    """Substitute ``{0}`` with the segment following ``packages`` in ``source_path``."""
    if TEMPLATE_PLACEHOLDER not in template:
        return template
    parts = source_path.replace("\\", "/").split("/")
    try:
        index = parts.index(PACKAGE_SEGMENT)
    except ValueError:
        index = -1
    if 0 <= index < len(parts) - 1:
        return template.replace(TEMPLATE_PLACEHOLDER, parts[index + 1])
    return template.replace(TEMPLATE_PLACEHOLDER, PACKAGE_FALLBACK)


def calculate_confidence(
    changed: ChangedFile, rule: HeuristicRule, change_type: ChangeType
) -> float:
    """Score one rule match, clamped to [0, 1]."""
    score = BASE_CONFIDENCE + rule.confidence_boost
    if changed.total_lines_changed > LARGE_CHANGE_LINES:
        score += LARGE_CHANGE_BOOST
    if changed.kind == ChangeKind.ADDED:
        score += NEW_FILE_BOOST
    if change_type == ChangeType.BREAKING:
        score += BREAKING_BOOST
    if changed.total_lines_changed < SMALL_CHANGE_LINES:
        score -= SMALL_CHANGE_PENALTY
    return min(1.0, max(0.0, score))


def build_rationale(changed: ChangedFile, rule: HeuristicRule, change_type: ChangeType) -> str:
    action = _ACTIONS.get(changed.kind, "File modified")
    return (
        f"{action}: {changed.path} matches pattern '{rule.pattern}'. "
        f"Change type: {change_type.value}. "
        f"Lines changed: +{changed.lines_added}/-{changed.lines_deleted}."
    )


__all__ = [
    "DocTargetMapper",
    "build_rationale",
    "calculate_confidence",
    "resolve_doc_target",
]
