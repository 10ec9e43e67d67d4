"""Lightweight structural checks for mermaid diagrams."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Sequence

DIAGRAM_TYPES: Sequence[str] = (
    "flowchart",
    "sequenceDiagram",
    "classDiagram",
    "stateDiagram",
    "erDiagram",
    "gantt",
    "pie",
    "graph",
)
MAX_NODES = 20

_ARROW_PATTERN = re.compile(r"-->|---->|-\.->|==>")
_NODE_PATTERN = re.compile(r"\[[^\]]+\]|\([^\)]+\)|\{[^\}]+\}")
_FENCE_PATTERN = re.compile(r"```mermaid[ \t]*\n(.*?)```", re.DOTALL)


@dataclass
class MermaidReport:
    """Findings for one diagram."""

    diagram_type: str
    node_count: int
    issues: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues


def validate_mermaid(source: str) -> MermaidReport:
    """Check diagram type, bracket balance, flowchart arrows and size."""
    stripped = source.lstrip()
    diagram_type = next(
        (name for name in DIAGRAM_TYPES if stripped.lower().startswith(name.lower())),
        "unknown",
    )
    node_count = len(_NODE_PATTERN.findall(source))
    report = MermaidReport(diagram_type=diagram_type, node_count=node_count)

    if diagram_type == "unknown":
        report.issues.append(
            "Diagram must start with a valid type (flowchart, sequenceDiagram, classDiagram, etc.)"
        )

    opening = sum(source.count(char) for char in "{[(")
    closing = sum(source.count(char) for char in "}])")
    if opening != closing:
        report.issues.append("Unbalanced brackets detected")

    if ("flowchart" in source or "graph" in source) and not _ARROW_PATTERN.search(source):
        report.issues.append("Flowchart should contain valid arrows (-->, --->, -.->)")

    if node_count > MAX_NODES:
        report.issues.append(
            f"Diagram has {node_count} nodes. Consider splitting into multiple diagrams for readability."
        )
    return report


def extract_mermaid_blocks(markdown: str) -> List[str]:
    """Return the bodies of fenced ```mermaid blocks in ``markdown``."""
    return [match.group(1) for match in _FENCE_PATTERN.finditer(markdown)]


__all__ = ["DIAGRAM_TYPES", "MermaidReport", "extract_mermaid_blocks", "validate_mermaid"]
