"""Pipeline orchestration for analyze/generate/pr flows."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Dict, List, Optional

from .config import DocPilotConfig, load_config
from .generation import ApplyResult, DocWriter, PatchApplier, PatchSet
from .git.diff import DiffAnalyzer
from .git.publisher import Publisher, plan_pull_request
from .globbing import glob_matches, normalize_path
from .heuristics import ChangeClassifier, DocTargetMapper, MappingResult
from .heuristics.types import DocTarget
from .logging import get_logger
from .models import DiffResult

DEFAULT_BASE_REF = "HEAD~1"
DEFAULT_HEAD_REF = "HEAD"


class LimitExceededError(RuntimeError):
    """Raised when a diff is larger than the configured limits allow."""


class PipelineStage(str, Enum):
    ANALYSIS = "analysis"
    GENERATION = "generation"
    PULL_REQUEST = "pull_request"


@dataclass
class PipelineResult:
    """Outcome of one pipeline stage."""

    stage: PipelineStage
    success: bool
    diff: Optional[DiffResult] = None
    mapping: Optional[MappingResult] = None
    patch_set: Optional[PatchSet] = None
    applied: Optional[ApplyResult] = None
    dry_run: bool = False
    published: Optional[bool] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "stage": self.stage.value,
            "success": self.success,
            "dry_run": self.dry_run,
        }
        if self.error is not None:
            payload["error"] = self.error
        if self.diff is not None:
            payload["diff"] = self.diff.to_dict()
        if self.mapping is not None:
            payload["mapping"] = self.mapping.to_dict()
        if self.patch_set is not None:
            payload["patches"] = [patch.to_dict() for patch in self.patch_set.patches]
            payload["summary"] = self.patch_set.summary
        if self.applied is not None:
            payload["applied"] = self.applied.to_dict()
        if self.published is not None:
            payload["published"] = self.published
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


class DocumentationPipeline:
    """Coordinates diff analysis, target mapping, patch application and publishing."""

    def __init__(
        self,
        repo_path: str | Path,
        config: DocPilotConfig | None = None,
        *,
        diff_analyzer: DiffAnalyzer | None = None,
        classifier: ChangeClassifier | None = None,
        writer: DocWriter | None = None,
        applier: PatchApplier | None = None,
        publisher: Publisher | None = None,
    ) -> None:
        self.repo_path = Path(repo_path).expanduser().resolve()
        self.config = config or load_config(start=self.repo_path)
        self.diff_analyzer = diff_analyzer or DiffAnalyzer()
        self.mapper = DocTargetMapper(self.config.heuristics, classifier=classifier)
        self.writer = writer or DocWriter(
            self.repo_path, max_tokens=self.config.limits.max_tokens_per_request
        )
        self.applier = applier or PatchApplier(self.repo_path)
        self.publisher = publisher or Publisher()
        self.logger = get_logger("pipeline")

    def analyze(
        self,
        base_ref: str | None = None,
        head_ref: str | None = None,
        *,
        staged: bool = False,
        worktree: bool = False,
    ) -> PipelineResult:
        """Compute the diff and map it onto documentation targets.

        Raises :class:`LimitExceededError` when the diff exceeds the configured
        file or line limits.
        """
        if staged:
            diff = self.diff_analyzer.analyze_staged(self.repo_path)
        elif worktree:
            diff = self.diff_analyzer.analyze_worktree(self.repo_path)
        else:
            diff = self.diff_analyzer.analyze_range(
                self.repo_path, base_ref or DEFAULT_BASE_REF, head_ref or DEFAULT_HEAD_REF
            )
        self.logger.info(
            "Analyzing %s..%s: %d files, +%d/-%d",
            diff.base_ref,
            diff.head_ref,
            diff.total_files_changed,
            diff.total_lines_added,
            diff.total_lines_deleted,
        )
        self.check_limits(diff)
        mapping = self.map(diff)
        return PipelineResult(stage=PipelineStage.ANALYSIS, success=True, diff=diff, mapping=mapping)

    def map(self, diff: DiffResult) -> MappingResult:
        """Map ``diff`` and drop targets the path policy does not allow."""
        mapping = self.mapper.map_to_doc_targets(diff)
        allowed: List[DocTarget] = []
        for target in mapping.targets:
            if self.is_allowed_target(target.file_path):
                allowed.append(target)
            else:
                self.logger.info(
                    "Skipping target outside the documentation allowlist: %s", target.file_path
                )
        return replace(mapping, targets=tuple(allowed))

    def check_limits(self, diff: DiffResult) -> None:
        limits = self.config.limits
        if diff.total_files_changed > limits.max_files:
            raise LimitExceededError(
                f"Diff touches {diff.total_files_changed} files; limit is {limits.max_files}"
            )
        total_lines = diff.total_lines_added + diff.total_lines_deleted
        if total_lines > limits.max_lines:
            raise LimitExceededError(f"Diff changes {total_lines} lines; limit is {limits.max_lines}")

    def is_allowed_target(self, file_path: str) -> bool:
        normalized = normalize_path(file_path)
        candidate = (self.repo_path / normalized).resolve()
        if not candidate.is_relative_to(self.repo_path):
            return False
        paths = self.config.paths
        if any(_policy_matches(pattern, normalized) for pattern in paths.ignorelist):
            return False
        return any(_policy_matches(pattern, normalized) for pattern in paths.allowlist)

    def generate(
        self,
        mapping: MappingResult,
        *,
        dry_run: bool = False,
        should_stop: Callable[[], bool] | None = None,
    ) -> PipelineResult:
        """Build placeholder patches for ``mapping`` and apply them."""
        if not mapping.targets:
            return PipelineResult(
                stage=PipelineStage.GENERATION,
                success=False,
                mapping=mapping,
                dry_run=dry_run,
                error="No documentation targets to update",
            )
        patch_set = self.writer.build_patch_set(mapping)
        self.logger.info(
            "Applying %d patches%s", patch_set.total_patches, " (dry-run)" if dry_run else ""
        )
        applied = self.applier.apply(patch_set, dry_run=dry_run, should_stop=should_stop)
        if applied.failed_patches:
            self.logger.warning(
                "%d of %d patches failed", len(applied.failed_patches), patch_set.total_patches
            )
        return PipelineResult(
            stage=PipelineStage.GENERATION,
            success=applied.success,
            mapping=mapping,
            patch_set=patch_set,
            applied=applied,
            dry_run=dry_run,
        )

    def publish(
        self,
        mapping: MappingResult,
        applied: ApplyResult,
        *,
        base_branch: str | None = None,
        push: bool = True,
        draft: bool = False,
        title: str | None = None,
    ) -> PipelineResult:
        """Open a pull request containing the successfully applied patches.

        ``draft`` forces a draft PR even when confidence would not require one.
        """
        files = [result.file_path for result in applied.results if result.success]
        publish_config = self.config.publish
        plan = plan_pull_request(mapping, extra_labels=publish_config.labels)
        if draft or title:
            plan = replace(plan, draft=plan.draft or draft, title=title or plan.title)
        branch_name = _branch_name(publish_config.branch_prefix, mapping)
        published = False
        if files and not applied.dry_run:
            published = self.publisher.publish_pr(
                self.repo_path,
                files,
                plan,
                branch_name=branch_name,
                base_branch=base_branch or publish_config.base_branch,
                push=push,
            )
        return PipelineResult(
            stage=PipelineStage.PULL_REQUEST,
            success=published,
            mapping=mapping,
            applied=applied,
            dry_run=applied.dry_run,
            published=published,
            error=None if published else "Pull request was not created",
        )


def _policy_matches(pattern: str, path: str) -> bool:
    # Patterns without a slash apply to the file name at any depth.
    if "/" not in pattern:
        return glob_matches(pattern, PurePosixPath(path).name)
    return glob_matches(pattern, path)


def _branch_name(prefix: str, mapping: MappingResult) -> str:
    stamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
    return f"{prefix}{mapping.overall_change_type.value.lower()}-{stamp}"


__all__ = [
    "DocumentationPipeline",
    "LimitExceededError",
    "PipelineResult",
    "PipelineStage",
]
