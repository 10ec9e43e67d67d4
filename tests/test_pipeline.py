"""End-to-end pipeline behaviour with stubbed git access."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from docpilot.config import DocPilotConfig, HeuristicRule, LimitsConfig, PathsConfig, PublishConfig
from docpilot.generation import ApplyResult, PatchOperation, PatchResult
from docpilot.heuristics import ChangeType, MappingResult
from docpilot.models import ChangeKind, ChangedFile, DiffResult
from docpilot.pipeline import DocumentationPipeline, LimitExceededError, PipelineStage
from tests._fixtures.changes import make_file
from tests._fixtures.repo_builder import RepoBuilder


class _StubDiffAnalyzer:
    def __init__(self, *files: ChangedFile) -> None:
        self.files = files
        self.calls: list[tuple[Any, ...]] = []

    def analyze_range(self, repo_path, base_ref, head_ref):  # type: ignore[no-untyped-def]
        self.calls.append(("range", Path(repo_path), base_ref, head_ref))
        return DiffResult(base_ref, head_ref, files=self.files)

    def analyze_staged(self, repo_path):  # type: ignore[no-untyped-def]
        self.calls.append(("staged", Path(repo_path)))
        return DiffResult("HEAD", "INDEX", files=self.files)

    def analyze_worktree(self, repo_path):  # type: ignore[no-untyped-def]
        self.calls.append(("worktree", Path(repo_path)))
        return DiffResult("HEAD", "WORKTREE", files=self.files)


class _StubPublisher:
    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.calls: list[dict[str, Any]] = []

    def publish_pr(self, repo_path, files, plan, **kwargs):  # type: ignore[no-untyped-def]
        self.calls.append({"repo": repo_path, "files": list(files), "plan": plan, **kwargs})
        return self.result


def _pipeline(
    repo: Path,
    *files: ChangedFile,
    config: DocPilotConfig | None = None,
    publisher: _StubPublisher | None = None,
) -> DocumentationPipeline:
    return DocumentationPipeline(
        repo,
        config or DocPilotConfig(root=repo),
        diff_analyzer=_StubDiffAnalyzer(*files),  # type: ignore[arg-type]
        publisher=publisher or _StubPublisher(),  # type: ignore[arg-type]
    )


def test_analyze_defaults_to_previous_commit(repo_builder: RepoBuilder) -> None:
    repo = repo_builder.path()
    pipeline = _pipeline(repo, make_file("src/UserController.cs", ChangeKind.ADDED, added=100))

    result = pipeline.analyze()

    assert result.stage == PipelineStage.ANALYSIS
    assert result.success
    assert pipeline.diff_analyzer.calls == [("range", repo.resolve(), "HEAD~1", "HEAD")]  # type: ignore[attr-defined]
    assert result.mapping is not None
    assert result.mapping.overall_change_type == ChangeType.FEATURE
    assert {target.file_path for target in result.mapping.targets} == {"README.md", "docs/api.md"}


def test_analyze_staged_and_worktree(repo_builder: RepoBuilder) -> None:
    pipeline = _pipeline(repo_builder.path(), make_file("src/a.cs"))

    assert pipeline.analyze(staged=True).diff.head_ref == "INDEX"  # type: ignore[union-attr]
    assert pipeline.analyze(worktree=True).diff.head_ref == "WORKTREE"  # type: ignore[union-attr]


def test_limits_reject_large_diffs(repo_builder: RepoBuilder) -> None:
    repo = repo_builder.path()
    config = DocPilotConfig(root=repo, limits=LimitsConfig(max_files=1, max_lines=100))

    with pytest.raises(LimitExceededError, match="files"):
        _pipeline(repo, make_file("src/a.cs"), make_file("src/b.cs"), config=config).analyze()

    with pytest.raises(LimitExceededError, match="lines"):
        _pipeline(repo, make_file("src/a.cs", added=90, deleted=20), config=config).analyze()


def test_targets_outside_policy_are_dropped(repo_builder: RepoBuilder) -> None:
    repo = repo_builder.path()
    config = DocPilotConfig(
        root=repo,
        paths=PathsConfig(allowlist=["docs/**", "*.md"], ignorelist=["docs/generated/**"]),
        heuristics=[
            HeuristicRule("src/**", "docs/api.md"),
            HeuristicRule("src/**", "src/notes.txt"),
            HeuristicRule("src/**", "../outside.md"),
            HeuristicRule("src/**", "docs/generated/api.md"),
            HeuristicRule("src/**", "packages/{0}/README.md"),
        ],
    )

    mapping = _pipeline(repo, make_file("src/a.cs"), config=config).analyze().mapping

    assert mapping is not None
    assert [target.file_path for target in mapping.targets] == [
        "docs/api.md",
        "packages/main/README.md",
    ]
    assert mapping.average_confidence == pytest.approx(0.5)


def test_generate_writes_documentation(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"README.md": "# repo\n\n## API Reference\n\nExisting.\n"})
    pipeline = _pipeline(
        repo_builder.path(), make_file("src/UserController.cs", ChangeKind.ADDED, added=100)
    )
    mapping = pipeline.analyze().mapping
    assert mapping is not None

    result = pipeline.generate(mapping)

    assert result.success
    assert result.patch_set is not None
    operations = {patch.file_path: patch.operation for patch in result.patch_set.patches}
    assert operations == {"README.md": PatchOperation.APPEND, "docs/api.md": PatchOperation.CREATE}
    readme = repo_builder.read("README.md")
    assert readme.startswith("# repo\n\n## API Reference\n<!-- docpilot:feature:high -->")
    assert readme.endswith("Existing.\n")
    assert repo_builder.read("docs/api.md").startswith("# Api\n\n## Endpoints\n")


def test_generate_dry_run_does_not_write(repo_builder: RepoBuilder) -> None:
    pipeline = _pipeline(repo_builder.path(), make_file("src/UserController.cs", ChangeKind.ADDED))
    mapping = pipeline.analyze().mapping
    assert mapping is not None

    result = pipeline.generate(mapping, dry_run=True)

    assert result.success
    assert result.dry_run
    assert repo_builder.listing() == []
    assert result.applied is not None
    assert all(item.preview_content for item in result.applied.results)


def test_generate_without_targets_fails(repo_builder: RepoBuilder) -> None:
    pipeline = _pipeline(repo_builder.path(), make_file("Makefile"))
    mapping = pipeline.analyze().mapping
    assert mapping is not None

    result = pipeline.generate(mapping)

    assert not result.success
    assert result.error == "No documentation targets to update"


def _applied(dry_run: bool = False) -> ApplyResult:
    return ApplyResult(
        results=(
            PatchResult("docs/api.md", PatchOperation.CREATE, True),
            PatchResult("README.md", PatchOperation.APPEND, False, error="boom"),
        ),
        dry_run=dry_run,
    )


def _feature_mapping(average: float) -> MappingResult:
    return MappingResult(ChangeType.FEATURE, average_confidence=average)


def test_publish_sends_successful_files(repo_builder: RepoBuilder) -> None:
    repo = repo_builder.path()
    publisher = _StubPublisher()
    config = DocPilotConfig(
        root=repo, publish=PublishConfig(branch_prefix="bot/", base_branch="main", labels=["docs"])
    )
    pipeline = _pipeline(repo, config=config, publisher=publisher)

    result = pipeline.publish(_feature_mapping(0.3), _applied(), push=False)

    assert result.success
    assert result.published is True
    call = publisher.calls[0]
    assert call["files"] == ["docs/api.md"]
    assert call["base_branch"] == "main"
    assert call["push"] is False
    assert call["branch_name"].startswith("bot/feature-")
    assert call["plan"].draft is True
    assert call["plan"].labels == ("docs",)


def test_publish_overrides_draft_and_title(repo_builder: RepoBuilder) -> None:
    publisher = _StubPublisher()
    pipeline = _pipeline(repo_builder.path(), publisher=publisher)

    pipeline.publish(_feature_mapping(0.9), _applied(), draft=True, title="Docs refresh", base_branch="dev")

    plan = publisher.calls[0]["plan"]
    assert plan.draft is True
    assert plan.title == "Docs refresh"
    assert publisher.calls[0]["base_branch"] == "dev"


def test_publish_skips_dry_runs(repo_builder: RepoBuilder) -> None:
    publisher = _StubPublisher()
    pipeline = _pipeline(repo_builder.path(), publisher=publisher)

    result = pipeline.publish(_feature_mapping(0.9), _applied(dry_run=True))

    assert not result.success
    assert result.error == "Pull request was not created"
    assert publisher.calls == []
