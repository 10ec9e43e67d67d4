"""Placeholder documentation content for mapped targets."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import List, Optional, Sequence

from ..heuristics.types import DocTarget, MappingResult
from ..logging import get_logger
from .mermaid import validate_mermaid
from .patches import DocPatch, PatchOperation, PatchSet

MARKER_FMT = "<!-- docpilot:{change_type}:{level} -->"
# Rough size heuristic used to keep stub copy within the request budget.
CHARS_PER_TOKEN = 4


class DocWriter:
    """Turns mapping targets into patches carrying instructional stub copy.

    Existing documents receive an append under the target section; missing
    documents are created with a title and the section heading.
    """

    def __init__(
        self,
        repo_path: str | Path,
        *,
        include_diagrams: bool = True,
        max_tokens: int | None = None,
    ) -> None:
        self.root = Path(repo_path)
        self.include_diagrams = include_diagrams
        self.max_tokens = max_tokens
        self.logger = get_logger("generation.writer")

    def build_patch_set(self, mapping: MappingResult) -> PatchSet:
        patches = [self.build_patch(target, mapping) for target in mapping.targets]
        summary = (
            f"{mapping.overall_change_type.value} change touching {len(patches)} "
            f"documentation file(s); overall confidence {mapping.overall_confidence.value} "
            f"({mapping.average_confidence:.0%})."
        )
        return PatchSet(patches=tuple(patches), summary=summary)

    def build_patch(self, target: DocTarget, mapping: MappingResult) -> DocPatch:
        diagrams = self._diagrams_for(target)
        body = _stub_body(target, mapping, diagrams, max_tokens=self.max_tokens)
        if (self.root / target.file_path).is_file():
            return DocPatch(
                file_path=target.file_path,
                operation=PatchOperation.APPEND,
                content=body,
                section=target.section,
                mermaid_blocks=tuple(diagrams),
                source_references=target.source_files,
                confidence=target.confidence_score,
                rationale=target.rationale,
            )

        lines = [f"# {_title_for(target.file_path, self.root)}", ""]
        if target.section:
            lines.extend([target.section, ""])
        lines.append(body)
        return DocPatch(
            file_path=target.file_path,
            operation=PatchOperation.CREATE,
            content="\n".join(lines) + "\n",
            section=target.section,
            mermaid_blocks=tuple(diagrams),
            source_references=target.source_files,
            confidence=target.confidence_score,
            rationale=target.rationale,
        )

    def _diagrams_for(self, target: DocTarget) -> List[str]:
        if not self.include_diagrams or len(target.source_files) < 2:
            return []
        diagram = _source_flowchart(target)
        report = validate_mermaid(diagram)
        if not report.valid:
            self.logger.warning(
                "Dropping diagram for %s: %s", target.file_path, "; ".join(report.issues)
            )
            return []
        return [diagram]


def _stub_body(
    target: DocTarget,
    mapping: MappingResult,
    diagrams: Sequence[str],
    *,
    max_tokens: Optional[int] = None,
) -> str:
    marker = MARKER_FMT.format(
        change_type=mapping.overall_change_type.value.lower(),
        level=target.confidence.value.lower(),
    )
    lines = [
        marker,
        f"_Documentation update pending ({target.confidence.value} confidence, "
        f"{target.confidence_score:.0%})._ {target.rationale}",
        "",
        "Changed sources:",
        "",
    ]
    budget = max_tokens * CHARS_PER_TOKEN if max_tokens else None
    used = sum(len(line) + 1 for line in lines)
    for index, source in enumerate(target.source_files):
        entry = f"- `{source}`"
        if budget is not None and used + len(entry) + 1 > budget:
            lines.append(f"- ... and {len(target.source_files) - index} more")
            break
        lines.append(entry)
        used += len(entry) + 1
    for diagram in diagrams:
        lines.extend(["", "```mermaid", diagram.rstrip(), "```"])
    return "\n".join(lines)


def _source_flowchart(target: DocTarget) -> str:
    lines = ["flowchart LR", f'    T["{_label(target.file_path)}"]']
    for index, source in enumerate(target.source_files):
        lines.append(f'    S{index}["{_label(source)}"] --> T')
    return "\n".join(lines) + "\n"


def _label(path: str) -> str:
    return path.replace('"', "'").replace("[", "(").replace("]", ")")


def _title_for(file_path: str, root: Path) -> str:
    path = PurePosixPath(file_path)
    stem = path.stem
    if stem.upper() == "README":
        parent = path.parent.name
        return parent or (root.resolve().name or "Documentation")
    title = stem.replace("-", " ").replace("_", " ").strip()
    return title.title() if title else "Documentation"


__all__ = ["DocWriter"]
