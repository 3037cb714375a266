"""FastAPI application entrypoint for cruftscan service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ConfigError
from ..orchestrator import Orchestrator, ScanResult


class ScanRequest(BaseModel):
    path: str
    roots: Optional[List[str]] = None
    time_budget: Optional[float] = Field(default=None, gt=0)
    write_report: bool = False


class ScanResponse(BaseModel):
    status: str
    report: Dict[str, Any]
    report_path: Optional[str] = None
    summary: str


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing cruftscan operations."""

    app = FastAPI(title="cruftscan Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        # Fresh orchestrator per request; scans share no state.
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/scan", response_model=ScanResponse)
    async def scan_repo(
        payload: ScanRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> ScanResponse:
        def _run_scan() -> ScanResult:
            return orchestrator.run_scan(
                payload.path,
                roots=payload.roots,
                time_budget=payload.time_budget,
                write_report=payload.write_report,
            )

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run_scan)
        return ScanResponse(
            status="ok" if result.report.complete else "partial",
            report=result.report.to_dict(),
            report_path=str(result.report_path) if result.report_path else None,
            summary=orchestrator.render_summary(result),
        )

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotADirectoryError)
    async def not_a_directory_handler(_: Any, exc: NotADirectoryError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(PermissionError)
    async def permission_error_handler(_: Any, exc: PermissionError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)
