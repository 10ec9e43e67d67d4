"""Rule-based classification of change sets."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict, Mapping, Sequence, Tuple

from ..globbing import glob_matches
from ..models import ChangeKind, ChangedFile, DiffResult
from .types import ChangeType


class ChangeClassifier:
    """Assigns a semantic change type to files and whole diffs."""

    # Ordered: the first matching pattern wins.
    _PATH_RULES: Sequence[Tuple[str, ChangeType]] = (
        ("**/fix/**", ChangeType.BUGFIX),
        ("**/bugfix/**", ChangeType.BUGFIX),
        ("**/hotfix/**", ChangeType.BUGFIX),
        ("**/feature/**", ChangeType.FEATURE),
        ("**/feat/**", ChangeType.FEATURE),
        ("**/refactor/**", ChangeType.REFACTOR),
        ("**/docs/**", ChangeType.DOCUMENTATION),
        ("**/*.md", ChangeType.DOCUMENTATION),
        ("**/terraform/**", ChangeType.INFRASTRUCTURE),
        ("**/bicep/**", ChangeType.INFRASTRUCTURE),
        ("**/infra/**", ChangeType.INFRASTRUCTURE),
        ("**/.github/**", ChangeType.CONFIGURATION),
        ("**/config/**", ChangeType.CONFIGURATION),
        ("**/*.yml", ChangeType.CONFIGURATION),
        ("**/*.yaml", ChangeType.CONFIGURATION),
    )

    _EXTENSION_TYPES: Mapping[str, ChangeType] = {
        ".cs": ChangeType.FEATURE,
        ".ts": ChangeType.FEATURE,
        ".js": ChangeType.FEATURE,
        ".py": ChangeType.FEATURE,
        ".go": ChangeType.FEATURE,
        ".md": ChangeType.DOCUMENTATION,
        ".txt": ChangeType.DOCUMENTATION,
        ".rst": ChangeType.DOCUMENTATION,
        ".tf": ChangeType.INFRASTRUCTURE,
        ".bicep": ChangeType.INFRASTRUCTURE,
        ".json": ChangeType.CONFIGURATION,
        ".yml": ChangeType.CONFIGURATION,
        ".yaml": ChangeType.CONFIGURATION,
        ".xml": ChangeType.CONFIGURATION,
    }

    _BREAKING_PATH_MARKERS: Sequence[str] = ("Controller", "Service", "Interface")
    _BREAKING_CONTENT_MARKERS: Sequence[str] = ("[Obsolete", "BREAKING", "@deprecated")

    def __init__(
        self, path_rules: Sequence[Tuple[str, ChangeType]] | None = None
    ) -> None:
        self._path_rules = tuple(path_rules) if path_rules is not None else self._PATH_RULES

    def classify_file(self, path: str) -> ChangeType:
        """Return the type of the first matching path rule, else guess from the extension."""
        for pattern, change_type in self._path_rules:
            if glob_matches(pattern, path):
                return change_type
        suffix = PurePosixPath(path.replace("\\", "/")).suffix.lower()
        return self._EXTENSION_TYPES.get(suffix, ChangeType.UNKNOWN)

    def classify_change(self, diff: DiffResult) -> ChangeType:
        """Return the dominant change type for a whole diff.

        Breaking indicators anywhere in the diff win over the tally. Ties in
        the tally go to the type seen first.
        """
        if not diff.files:
            return ChangeType.UNKNOWN

        if self.has_breaking_indicators(diff):
            return ChangeType.BREAKING

        counts: Dict[ChangeType, int] = {}
        for changed in diff.files:
            change_type = self.classify_file(changed.path)
            counts[change_type] = counts.get(change_type, 0) + 1

        # max() keeps the first maximal key; dicts keep insertion order.
        return max(counts, key=lambda key: counts[key])

    def has_breaking_indicators(self, diff: DiffResult) -> bool:
        return any(self._is_breaking(changed) for changed in diff.files)

    def _is_breaking(self, changed: ChangedFile) -> bool:
        if changed.kind == ChangeKind.DELETED and any(
            marker in changed.path for marker in self._BREAKING_PATH_MARKERS
        ):
            return True
        for hunk in changed.hunks:
            if any(marker in hunk.content for marker in self._BREAKING_CONTENT_MARKERS):
                return True
        return False


__all__ = ["ChangeClassifier"]
