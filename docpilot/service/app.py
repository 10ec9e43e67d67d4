"""FastAPI application entrypoint for docpilot service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..pipeline import DocumentationPipeline, PipelineResult

PipelineFactory = Callable[[str], DocumentationPipeline]


class AnalyzeRequest(BaseModel):
    path: str
    base: Optional[str] = None
    head: Optional[str] = None
    staged: bool = False
    worktree: bool = False


class GenerateRequest(AnalyzeRequest):
    dry_run: bool = True


class TargetModel(BaseModel):
    file_path: str
    section: Optional[str] = None
    confidence: str
    confidence_score: float
    rationale: str
    source_files: List[str]


class AnalyzeResponse(BaseModel):
    change_type: str
    overall_confidence: str
    average_confidence: float
    files_changed: int
    targets: List[TargetModel]


class PatchOutcomeModel(BaseModel):
    file_path: str
    operation: str
    success: bool
    error: Optional[str] = None
    preview_content: Optional[str] = None


class GenerateResponse(BaseModel):
    status: str
    dry_run: bool
    error: Optional[str] = None
    results: List[PatchOutcomeModel] = []


class HealthResponse(BaseModel):
    status: str


def _default_pipeline(path: str) -> DocumentationPipeline:
    return DocumentationPipeline(Path(path))


def create_app(pipeline_factory: PipelineFactory = _default_pipeline) -> FastAPI:
    """Create the FastAPI application exposing docpilot operations."""

    app = FastAPI(title="DocPilot Service", version="1.0.0")

    async def _in_executor(func: Callable[[], PipelineResult]) -> PipelineResult:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    def get_factory() -> PipelineFactory:
        return pipeline_factory

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(
        payload: AnalyzeRequest,
        factory: PipelineFactory = Depends(get_factory),
    ) -> AnalyzeResponse:
        def _run() -> PipelineResult:
            return _analyze(factory(payload.path), payload)

        result = await _in_executor(_run)
        return _analyze_response(result)

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        factory: PipelineFactory = Depends(get_factory),
    ) -> GenerateResponse:
        def _run() -> PipelineResult:
            pipeline = factory(payload.path)
            analysis = _analyze(pipeline, payload)
            if analysis.mapping is None:
                raise RuntimeError("Analysis produced no mapping")
            return pipeline.generate(analysis.mapping, dry_run=payload.dry_run)

        result = await _in_executor(_run)
        outcomes = (
            [PatchOutcomeModel(**item.to_dict()) for item in result.applied.results]
            if result.applied is not None
            else []
        )
        return GenerateResponse(
            status="ok" if result.success else "failed",
            dry_run=result.dry_run,
            error=result.error,
            results=outcomes,
        )

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(
        _: Any, exc: FileNotFoundError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(_: Any, exc: RuntimeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def _analyze(pipeline: DocumentationPipeline, payload: AnalyzeRequest) -> PipelineResult:
    return pipeline.analyze(
        payload.base, payload.head, staged=payload.staged, worktree=payload.worktree
    )


def _analyze_response(result: PipelineResult) -> AnalyzeResponse:
    mapping = result.mapping
    if mapping is None:
        raise RuntimeError("Analysis produced no mapping")
    targets: List[Dict[str, Any]] = [target.to_dict() for target in mapping.targets]
    return AnalyzeResponse(
        change_type=mapping.overall_change_type.value,
        overall_confidence=mapping.overall_confidence.value,
        average_confidence=mapping.average_confidence,
        files_changed=result.diff.total_files_changed if result.diff is not None else 0,
        targets=[TargetModel(**target) for target in targets],
    )


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
