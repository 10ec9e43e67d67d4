"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from docpilot.config import DocPilotConfig
from docpilot.models import ChangeKind, ChangedFile, DiffResult
from docpilot.pipeline import DocumentationPipeline, PipelineResult, PipelineStage
from docpilot.service import create_app


class _StubDiffAnalyzer:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str | None, str | None]] = []

    def analyze_range(self, repo_path, base_ref, head_ref):  # type: ignore[no-untyped-def]
        self.calls.append(("range", base_ref, head_ref))
        return DiffResult(
            base_ref,
            head_ref,
            files=[ChangedFile("src/UserController.cs", ChangeKind.ADDED, lines_added=100)],
        )

    def analyze_staged(self, repo_path):  # type: ignore[no-untyped-def]
        self.calls.append(("staged", None, None))
        return DiffResult("HEAD", "INDEX")

    def analyze_worktree(self, repo_path):  # type: ignore[no-untyped-def]
        self.calls.append(("worktree", None, None))
        return DiffResult("HEAD", "WORKTREE")


def _client(analyzer: _StubDiffAnalyzer) -> TestClient:
    def factory(path: str) -> DocumentationPipeline:
        repo = Path(path)
        if not repo.exists():
            raise FileNotFoundError(f"{path} does not exist")
        return DocumentationPipeline(
            repo, DocPilotConfig(root=repo), diff_analyzer=analyzer  # type: ignore[arg-type]
        )

    return TestClient(create_app(factory))


def test_health_endpoint() -> None:
    client = _client(_StubDiffAnalyzer())
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_analyze_endpoint_returns_targets(tmp_path: Path) -> None:
    analyzer = _StubDiffAnalyzer()
    client = _client(analyzer)

    response = client.post("/analyze", json={"path": str(tmp_path), "base": "main"})

    assert response.status_code == 200
    body = response.json()
    assert body["change_type"] == "Feature"
    assert body["files_changed"] == 1
    paths = [target["file_path"] for target in body["targets"]]
    assert paths == ["README.md", "docs/api.md"]
    assert body["targets"][1]["confidence"] == "High"
    assert analyzer.calls == [("range", "main", "HEAD")]


def test_generate_endpoint_defaults_to_dry_run(tmp_path: Path) -> None:
    client = _client(_StubDiffAnalyzer())

    response = client.post("/generate", json={"path": str(tmp_path)})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["dry_run"] is True
    assert {item["file_path"] for item in body["results"]} == {"README.md", "docs/api.md"}
    assert all(item["preview_content"] for item in body["results"])
    assert list(tmp_path.iterdir()) == []


def test_generate_endpoint_writes_when_requested(tmp_path: Path) -> None:
    client = _client(_StubDiffAnalyzer())

    response = client.post("/generate", json={"path": str(tmp_path), "dry_run": False})

    assert response.json()["status"] == "ok"
    assert (tmp_path / "docs" / "api.md").is_file()


def test_generate_endpoint_reports_missing_targets(tmp_path: Path) -> None:
    client = _client(_StubDiffAnalyzer())

    response = client.post("/generate", json={"path": str(tmp_path), "staged": True})

    body = response.json()
    assert body["status"] == "failed"
    assert body["error"] == "No documentation targets to update"
    assert body["results"] == []


def test_missing_repository_returns_404(tmp_path: Path) -> None:
    client = _client(_StubDiffAnalyzer())
    response = client.post("/analyze", json={"path": str(tmp_path / "missing")})
    assert response.status_code == 404


def test_runtime_errors_return_400(tmp_path: Path) -> None:
    class _Broken(_StubDiffAnalyzer):
        def analyze_range(self, repo_path, base_ref, head_ref):  # type: ignore[no-untyped-def]
            raise RuntimeError("not a Git repository")

    client = _client(_Broken())
    response = client.post("/analyze", json={"path": str(tmp_path)})

    assert response.status_code == 400
    assert response.json() == {"detail": "not a Git repository"}


def test_analysis_without_mapping_returns_400(tmp_path: Path) -> None:
    class _NoMapping(DocumentationPipeline):
        def analyze(self, base_ref=None, head_ref=None, *, staged=False, worktree=False):  # type: ignore[no-untyped-def]
            return PipelineResult(PipelineStage.ANALYSIS, True, diff=DiffResult("HEAD~1", "HEAD"))

    def factory(path: str) -> DocumentationPipeline:
        return _NoMapping(Path(path), DocPilotConfig(root=Path(path)))

    client = TestClient(create_app(factory))

    for endpoint in ("/analyze", "/generate"):
        response = client.post(endpoint, json={"path": str(tmp_path)})
        assert response.status_code == 400
        assert response.json() == {"detail": "Analysis produced no mapping"}
