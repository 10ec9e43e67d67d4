"""Git publishing utilities."""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Sequence

from ..heuristics.types import ConfidenceLevel, MappingResult
from ..logging import get_logger

READY_FOR_REVIEW_LABEL = "ready-for-review"

_SSH_REMOTE = re.compile(r"git@github\.com[:/](?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?$")
_HTTPS_REMOTE = re.compile(r"https://github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$")


@dataclass(frozen=True)
class PullRequestPlan:
    """How a pull request should be opened for a mapping result."""

    title: str
    body: str
    draft: bool
    labels: Sequence[str]


def plan_pull_request(
    mapping: MappingResult, *, extra_labels: Sequence[str] = ()
) -> PullRequestPlan:
    """Low confidence opens a draft; high confidence adds the ready-for-review label."""
    level = mapping.overall_confidence
    labels: List[str] = [label for label in extra_labels if label]
    if level == ConfidenceLevel.HIGH and READY_FOR_REVIEW_LABEL not in labels:
        labels.append(READY_FOR_REVIEW_LABEL)

    title = f"docs: update documentation for {mapping.overall_change_type.value.lower()} changes"
    lines = [
        "## Documentation updates",
        "",
        f"- Change type: **{mapping.overall_change_type.value}**",
        f"- Overall confidence: **{level.value}** ({mapping.average_confidence:.0%})",
        "",
        "| Target | Section | Confidence | Sources |",
        "| --- | --- | --- | --- |",
    ]
    for target in mapping.targets:
        sources = ", ".join(f"`{source}`" for source in target.source_files)
        lines.append(
            f"| `{target.file_path}` | {target.section or '(entire file)'} "
            f"| {target.confidence.value} ({target.confidence_score:.0%}) | {sources} |"
        )
    return PullRequestPlan(
        title=title,
        body="\n".join(lines) + "\n",
        draft=level == ConfidenceLevel.LOW,
        labels=tuple(labels),
    )


def parse_remote_url(remote_url: str) -> tuple[str, str]:
    """Return ``(owner, repo)`` for a GitHub SSH or HTTPS remote."""
    url = remote_url.strip()
    for pattern in (_SSH_REMOTE, _HTTPS_REMOTE):
        match = pattern.match(url)
        if match:
            return match.group("owner"), match.group("repo")
    raise ValueError(f"Could not parse remote URL: {remote_url}")


class Publisher:
    """Handles branch management and PR creation for documentation updates."""

    def __init__(self, runner: Callable[..., str] | None = None) -> None:
        self._runner = runner or self._default_runner
        self.logger = get_logger("git.publisher")

    def commit(
        self,
        repo_path: str | Path,
        files: Sequence[Path | str],
        *,
        message: str = "docs: update documentation via docpilot",
    ) -> bool:
        """Stage the provided files and create a commit if changes exist."""
        repo = Path(repo_path)
        if not (repo / ".git").exists():
            return False

        for file in files:
            # -A stages deletions as well as writes.
            self._run(["git", "add", "-A", "--", self._to_relative(repo, Path(file))], cwd=repo)

        status = self._run(["git", "status", "--porcelain"], cwd=repo, capture_output=True)
        if not status.strip():
            return False

        env = os.environ.copy()
        env.setdefault("GIT_AUTHOR_NAME", "docpilot")
        env.setdefault("GIT_AUTHOR_EMAIL", "docpilot@example.com")
        env.setdefault("GIT_COMMITTER_NAME", env["GIT_AUTHOR_NAME"])
        env.setdefault("GIT_COMMITTER_EMAIL", env["GIT_AUTHOR_EMAIL"])

        self._run(["git", "commit", "-m", message], cwd=repo, env=env)
        return True

    def publish_pr(
        self,
        repo_path: str | Path,
        files: Sequence[Path | str],
        plan: PullRequestPlan,
        *,
        branch_name: str,
        base_branch: str | None = None,
        push: bool = True,
    ) -> bool:
        """Create a branch, commit the files, and open a PR via the GitHub CLI."""
        repo = Path(repo_path)
        if not (repo / ".git").exists():
            return False

        checkout_cmd = ["git", "checkout", "-B", branch_name]
        if base_branch:
            checkout_cmd.append(base_branch)
        try:
            self._run(checkout_cmd, cwd=repo)
            if not self.commit(repo, files, message=plan.title):
                self.logger.info("No documentation changes to publish")
                return False
            if push:
                self._run(["git", "push", "-u", "origin", branch_name], cwd=repo)
            self._log_destination(repo)

            pr_args = ["gh", "pr", "create", "--title", plan.title, "--body", plan.body]
            if base_branch:
                pr_args.extend(["--base", base_branch])
            pr_args.extend(["--head", branch_name])
            if plan.draft:
                pr_args.append("--draft")
            for label in plan.labels:
                pr_args.extend(["--label", label])
            self._run(pr_args, cwd=repo)
        except (subprocess.CalledProcessError, FileNotFoundError) as exc:
            self.logger.warning("Publishing failed: %s", exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Helpers

    def _log_destination(self, repo: Path) -> None:
        remote = self._run(["git", "remote", "get-url", "origin"], cwd=repo, capture_output=True)
        try:
            owner, name = parse_remote_url(remote)
        except ValueError:
            self.logger.debug("Origin %r is not a GitHub remote", remote.strip())
            return
        self.logger.info("Opening pull request on %s/%s", owner, name)

    @staticmethod
    def _to_relative(repo: Path, file_path: Path) -> str:
        try:
            return file_path.relative_to(repo).as_posix()
        except ValueError:
            return file_path.as_posix()

    def _run(
        self,
        args: Iterable[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
        capture_output: bool = False,
    ) -> str:
        return self._runner(args, cwd=cwd, env=env, capture_output=capture_output)

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            env=env,
            check=True,
            text=True,
            capture_output=capture_output,
        )
        if capture_output:
            return completed.stdout
        return ""


__all__ = ["Publisher", "PullRequestPlan", "parse_remote_url", "plan_pull_request"]
