"""Build change models from ``git diff`` output."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from ..logging import get_logger
from ..models import ChangeKind, ChangedFile, DiffResult, parse_hunks

INDEX_REF = "INDEX"
WORKTREE_REF = "WORKTREE"
# Object id of the empty tree; stands in for HEAD before the first commit.
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

_DIFF_ARGS: Sequence[str] = ("git", "diff", "--no-color", "--no-ext-diff", "-M")
_DEV_NULL = "/dev/null"


class DiffAnalyzer:
    """Produces :class:`DiffResult` values for ref ranges, the index or the worktree."""

    def __init__(self, runner: Callable[..., str] | None = None) -> None:
        self._runner = runner or self._default_runner
        self.logger = get_logger("git.diff")

    def analyze_range(self, repo_path: str | Path, base_ref: str, head_ref: str) -> DiffResult:
        repo = self._repo(repo_path)
        output = self._run([*_DIFF_ARGS, base_ref, head_ref], cwd=repo)
        return self._result(base_ref, head_ref, output)

    def analyze_staged(self, repo_path: str | Path) -> DiffResult:
        repo = self._repo(repo_path)
        output = self._run([*_DIFF_ARGS, "--cached", self._head_tree(repo)], cwd=repo)
        return self._result("HEAD", INDEX_REF, output)

    def analyze_worktree(self, repo_path: str | Path) -> DiffResult:
        repo = self._repo(repo_path)
        output = self._run([*_DIFF_ARGS, self._head_tree(repo)], cwd=repo)
        return self._result("HEAD", WORKTREE_REF, output)

    # ------------------------------------------------------------------
    # Internals

    def _head_tree(self, repo: Path) -> str:
        """Return ``HEAD``, or the empty tree when the repository has no commits."""
        try:
            head = self._runner(
                ["git", "rev-parse", "--verify", "-q", "HEAD"], cwd=repo, capture_output=True
            )
        except subprocess.CalledProcessError:
            head = ""
        if not head.strip():
            self.logger.debug("No commits yet in %s; diffing against the empty tree", repo)
            return EMPTY_TREE
        return "HEAD"

    def _result(self, base_ref: str, head_ref: str, output: str) -> DiffResult:
        files = parse_patch(output)
        self.logger.debug("git diff %s..%s touched %d files", base_ref, head_ref, len(files))
        return DiffResult(base_ref=base_ref, head_ref=head_ref, files=tuple(files))

    @staticmethod
    def _repo(repo_path: str | Path) -> Path:
        repo = Path(repo_path)
        if not (repo / ".git").exists():
            raise RuntimeError(f"{repo_path} is not a Git repository")
        return repo

    def _run(self, args: Iterable[str], *, cwd: Path) -> str:
        command = list(args)
        try:
            return self._runner(command, cwd=cwd, capture_output=True)
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise RuntimeError(f"{' '.join(command)} failed: {detail}") from exc

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            capture_output=capture_output,
        )
        return completed.stdout if capture_output else ""


def parse_patch(text: str) -> List[ChangedFile]:
    """Split multi-file unified diff output into :class:`ChangedFile` values."""
    files: List[ChangedFile] = []
    block: List[str] = []
    for line in text.splitlines(keepends=True):
        if line.startswith("diff --git ") and block:
            files.append(_parse_block(block))
            block = []
        block.append(line)
    if block and block[0].startswith("diff --git "):
        files.append(_parse_block(block))
    return files


def _parse_block(lines: Sequence[str]) -> ChangedFile:
    header_old, header_new = _split_git_header(lines[0].rstrip("\n"))
    kind = ChangeKind.MODIFIED
    old_path: Optional[str] = header_old
    new_path: Optional[str] = header_new
    added = 0
    deleted = 0
    in_hunks = False

    for raw in lines[1:]:
        line = raw.rstrip("\n")
        if line.startswith("@@"):
            in_hunks = True
            continue
        if in_hunks:
            if line.startswith("+"):
                added += 1
            elif line.startswith("-"):
                deleted += 1
            continue
        if line.startswith("new file mode"):
            kind = ChangeKind.ADDED
        elif line.startswith("deleted file mode"):
            kind = ChangeKind.DELETED
        elif line.startswith("rename from "):
            kind = ChangeKind.RENAMED
            old_path = _unquote(line[len("rename from ") :])
        elif line.startswith("rename to "):
            new_path = _unquote(line[len("rename to ") :])
        elif line.startswith("copy from "):
            kind = ChangeKind.COPIED
            old_path = _unquote(line[len("copy from ") :])
        elif line.startswith("copy to "):
            new_path = _unquote(line[len("copy to ") :])
        elif line.startswith("--- "):
            old_path = _strip_prefix(line[4:], "a/") or old_path
        elif line.startswith("+++ "):
            new_path = _strip_prefix(line[4:], "b/") or new_path

    path = new_path if kind != ChangeKind.DELETED else (old_path or new_path)
    return ChangedFile(
        path=path or "",
        kind=kind,
        old_path=old_path if kind in (ChangeKind.RENAMED, ChangeKind.COPIED) else None,
        lines_added=added,
        lines_deleted=deleted,
        hunks=tuple(parse_hunks("".join(lines))),
    )


def _split_git_header(header: str) -> tuple[Optional[str], Optional[str]]:
    body = header[len("diff --git ") :]
    marker = body.rfind(" b/")
    if marker == -1:
        return None, None
    return _strip_prefix(body[:marker], "a/"), _strip_prefix(body[marker + 1 :], "b/")


def _strip_prefix(value: str, prefix: str) -> Optional[str]:
    value = _unquote(value.split("\t", 1)[0])
    if value == _DEV_NULL:
        return None
    return value[len(prefix) :] if value.startswith(prefix) else value


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


__all__ = ["DiffAnalyzer", "EMPTY_TREE", "INDEX_REF", "WORKTREE_REF", "parse_patch"]
