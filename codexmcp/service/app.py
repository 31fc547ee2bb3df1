"""FastAPI application exposing search and directory management."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from ..config import ServerConfig
from ..git import GitClient, GitError, GitScheduler
from ..logging import get_logger
from ..models import Match, SearchRequest
from ..orchestrator import OneShotNotice, SearchOrchestrator
from ..search.strategies import SearchError
from ..security import InvalidPathError
from ..stores.directories import DirectoryNotFoundError, DirectoryStore
from ..stores.ignore_file import read_ignore_file, write_ignore_file
from .mcp import McpHandler

T = TypeVar("T")

logger = get_logger("service")


class SearchPayload(BaseModel):
    query: str = ""
    language: Optional[str] = None
    path_hint: Optional[str] = None
    role: Optional[str] = None
    limit: int = 0


class MatchModel(BaseModel):
    path: str
    line_start: int
    line_end: int
    snippet: str
    match_reason: str


class SearchResponse(BaseModel):
    matches: List[MatchModel]


class DirectoryPayload(BaseModel):
    name: str
    path: str
    language: str = ""
    role: str = ""


class DirectoryModel(BaseModel):
    id: int
    name: str
    path: str
    language: str
    role: str
    enabled: bool
    updated_at: Optional[str] = None
    git_auto_update_interval_sec: int = 0
    git_last_updated_at: Optional[str] = None


class CreatedResponse(BaseModel):
    id: int


class EnabledPayload(BaseModel):
    enabled: bool


class GitIntervalPayload(BaseModel):
    auto_update_interval_sec: int


class GitPullResponse(BaseModel):
    git_last_updated_at: str


class HealthResponse(BaseModel):
    status: str


async def _run_blocking(func: Callable[[], T]) -> T:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:  # pragma: no cover - fallback path when not in async context
        return func()
    return await loop.run_in_executor(None, func)


def create_app(
    store: DirectoryStore,
    *,
    ignore_file: Path | None = None,
    orchestrator_factory: Callable[[], SearchOrchestrator] | None = None,
    git_client: GitClient | None = None,
) -> FastAPI:
    """Create the FastAPI application exposing codexmcp operations."""

    app = FastAPI(title="codex-mcp", version="0.1.0")
    # One notice per application so the ripgrep hint is logged once per process.
    notice = OneShotNotice()
    client = git_client or GitClient()

    def _default_factory() -> SearchOrchestrator:
        return SearchOrchestrator(store, ignore_file=ignore_file, notice=notice)

    factory = orchestrator_factory or _default_factory

    async def get_orchestrator() -> SearchOrchestrator:
        return factory()

    def _run_search(orchestrator: SearchOrchestrator, request: SearchRequest) -> List[Match]:
        return orchestrator.search(request)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/mcp/search_internal_codebase", response_model=SearchResponse)
    async def search(
        payload: SearchPayload,
        orchestrator: SearchOrchestrator = Depends(get_orchestrator),
    ) -> SearchResponse:
        request = SearchRequest(
            query=payload.query,
            language=payload.language,
            path_hint=payload.path_hint,
            role=payload.role,
            limit=payload.limit,
        )
        matches = await _run_blocking(lambda: _run_search(orchestrator, request))
        return SearchResponse(matches=[MatchModel(**match.to_dict()) for match in matches])

    @app.post("/mcp")
    async def mcp_endpoint(
        request: Request,
        orchestrator: SearchOrchestrator = Depends(get_orchestrator),
    ) -> Response:
        body = await request.body()
        handler = McpHandler(orchestrator.search)
        result = await _run_blocking(lambda: handler.handle_raw(body))
        if result is None:
            return Response(status_code=202)
        return JSONResponse(content=result)

    @app.get("/api/directories", response_model=List[DirectoryModel])
    async def list_directories() -> List[DirectoryModel]:
        directories = await _run_blocking(store.list)
        return [DirectoryModel(**item.to_dict()) for item in directories]

    @app.post("/api/directories", response_model=CreatedResponse)
    async def add_directory(payload: DirectoryPayload) -> CreatedResponse:
        directory = await _run_blocking(
            lambda: store.add(payload.name, payload.path, payload.language, payload.role)
        )
        return CreatedResponse(id=directory.id)

    @app.delete("/api/directories/{directory_id}", status_code=204)
    async def delete_directory(directory_id: int) -> Response:
        await _run_blocking(lambda: store.delete(directory_id))
        return Response(status_code=204)

    @app.patch("/api/directories/{directory_id}/enabled", status_code=204)
    async def set_enabled(directory_id: int, payload: EnabledPayload) -> Response:
        await _run_blocking(lambda: store.set_enabled(directory_id, payload.enabled))
        return Response(status_code=204)

    @app.patch("/api/directories/{directory_id}/git", status_code=204)
    async def set_git_interval(directory_id: int, payload: GitIntervalPayload) -> Response:
        await _run_blocking(
            lambda: store.set_git_interval(directory_id, payload.auto_update_interval_sec)
        )
        return Response(status_code=204)

    @app.post("/api/directories/{directory_id}/git/pull", response_model=GitPullResponse)
    async def git_pull(directory_id: int) -> GitPullResponse:
        directory = await _run_blocking(lambda: store.get(directory_id))
        if not client.is_repo(directory.path):
            raise HTTPException(status_code=400, detail="not a git repository")
        await _run_blocking(lambda: client.pull(directory.path))
        now = datetime.now(UTC)
        await _run_blocking(lambda: store.mark_git_updated(directory_id, now))
        return GitPullResponse(git_last_updated_at=now.isoformat().replace("+00:00", "Z"))

    @app.get("/api/ignore-file")
    async def get_ignore_file() -> Response:
        if ignore_file is None:
            raise HTTPException(status_code=404, detail="ignore file not configured")
        data = await _run_blocking(lambda: read_ignore_file(ignore_file))
        return PlainTextResponse(content=data)

    @app.put("/api/ignore-file", status_code=204)
    async def put_ignore_file(request: Request) -> Response:
        if ignore_file is None:
            raise HTTPException(status_code=404, detail="ignore file not configured")
        body = await request.body()
        await _run_blocking(lambda: write_ignore_file(ignore_file, body))
        return Response(status_code=204)

    @app.exception_handler(DirectoryNotFoundError)
    async def not_found_handler(_: Any, exc: DirectoryNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidPathError)
    async def invalid_path_handler(_: Any, exc: InvalidPathError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Any, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(SearchError)
    async def search_error_handler(_: Any, exc: SearchError) -> JSONResponse:
        logger.error("Search failed: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "search failed"})

    @app.exception_handler(GitError)
    async def git_error_handler(_: Any, exc: GitError) -> JSONResponse:
        logger.error("%s", exc)
        return JSONResponse(status_code=500, content={"detail": "git pull failed"})

    return app


def run_service(config: ServerConfig) -> None:  # pragma: no cover - integration path
    import uvicorn

    store = DirectoryStore(config.directories_file)
    client = GitClient()
    scheduler = GitScheduler(store, client, interval=config.git.scheduler_interval)
    app = create_app(store, ignore_file=config.ignore_file, git_client=client)

    base_url = f"http://{config.host}:{config.port}"
    logger.info("codex-mcp listening on %s (directories=%s)", base_url, config.directories_file)
    logger.info("MCP (streamable HTTP): %s/mcp", base_url)
    logger.info("MCP (REST): %s/mcp/search_internal_codebase", base_url)

    if config.git.enabled:
        scheduler.start()
    try:
        uvicorn.run(app, host=config.host, port=config.port)
    finally:
        scheduler.stop(timeout=5)
