"""Tests for the FastAPI service mode."""

from __future__ import annotations

import asyncio
import subprocess
from pathlib import Path

import pytest

try:
    from fastapi.testclient import TestClient
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pytest.skip("fastapi not installed", allow_module_level=True)

from codexmcp.git import GitClient
from codexmcp.orchestrator import SearchOrchestrator
from codexmcp.service import create_app
from codexmcp.stores import DEFAULT_IGNORE_CONTENT, DirectoryStore
from tests._fixtures.repo_builder import RepoBuilder, numbered_lines


class _RecordingGit(GitClient):
    def __init__(self, fail: bool = False) -> None:
        self.pulled: list[str] = []
        self._fail = fail
        super().__init__(runner=self._record)

    def _record(self, args, capture_output=False):
        args = list(args)
        self.pulled.append(args[2])
        if self._fail:
            raise subprocess.CalledProcessError(1, args, stderr="conflict")
        return ""


@pytest.fixture
def store(repo_builder: RepoBuilder) -> DirectoryStore:
    repo_builder.write({"a.go": numbered_lines(12, {6: "func handleLogin() {}"})})
    return repo_builder.store(role="backend-business")


@pytest.fixture
def ignore_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "codex-ignore"


@pytest.fixture
def git_client() -> _RecordingGit:
    return _RecordingGit()


@pytest.fixture
def client(store: DirectoryStore, ignore_path: Path, git_client: _RecordingGit) -> TestClient:
    app = create_app(
        store,
        ignore_file=ignore_path,
        orchestrator_factory=lambda: SearchOrchestrator(
            store, ignore_file=ignore_path, probe=lambda: False
        ),
        git_client=git_client,
    )
    return TestClient(app)


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_search_endpoint_returns_matches(client: TestClient, repo_builder: RepoBuilder) -> None:
    response = client.post(
        "/mcp/search_internal_codebase",
        json={"query": "handlelogin", "role": "backend", "limit": 5},
    )

    assert response.status_code == 200
    matches = response.json()["matches"]
    assert len(matches) == 1
    assert matches[0]["path"] == str(repo_builder.path() / "a.go")
    assert matches[0]["match_reason"] == "content"
    assert "func handleLogin() {}" in matches[0]["snippet"]


def test_search_endpoint_empty_query(client: TestClient) -> None:
    response = client.post("/mcp/search_internal_codebase", json={"query": ""})

    assert response.status_code == 200
    assert response.json() == {"matches": []}


def test_directory_crud(client: TestClient, repo_builder: RepoBuilder) -> None:
    web = repo_builder.add_root("web")

    created = client.post(
        "/api/directories",
        json={"name": "web", "path": str(web), "language": "ts", "role": "frontend-business"},
    )
    assert created.status_code == 200
    directory_id = created.json()["id"]

    listing = client.get("/api/directories").json()
    assert [item["name"] for item in listing] == ["repo", "web"]
    assert listing[1]["path"] == str(web)
    assert listing[1]["enabled"] is True

    disabled = client.patch(f"/api/directories/{directory_id}/enabled", json={"enabled": False})
    assert disabled.status_code == 204
    assert client.get("/api/directories").json()[1]["enabled"] is False

    interval = client.patch(
        f"/api/directories/{directory_id}/git", json={"auto_update_interval_sec": 120}
    )
    assert interval.status_code == 204
    assert client.get("/api/directories").json()[1]["git_auto_update_interval_sec"] == 120

    deleted = client.delete(f"/api/directories/{directory_id}")
    assert deleted.status_code == 204
    assert client.delete(f"/api/directories/{directory_id}").status_code == 404


def test_add_directory_rejects_bad_paths(client: TestClient, tmp_path: Path) -> None:
    missing = client.post("/api/directories", json={"name": "x", "path": str(tmp_path / "nope")})
    traversal = client.post(
        "/api/directories", json={"name": "x", "path": f"{tmp_path}/../{tmp_path.name}"}
    )
    bad_role = client.post(
        "/api/directories", json={"name": "x", "path": str(tmp_path), "role": "ops"}
    )

    assert missing.status_code == 400
    assert traversal.status_code == 400
    assert bad_role.status_code == 400


def test_ignore_file_round_trip(client: TestClient, ignore_path: Path) -> None:
    seeded = client.get("/api/ignore-file")
    assert seeded.status_code == 200
    assert seeded.content == DEFAULT_IGNORE_CONTENT.encode("utf-8")
    assert ignore_path.exists()

    body = b"*.go\r\n# keep CRLF\r\n"
    assert client.put("/api/ignore-file", content=body).status_code == 204
    assert client.get("/api/ignore-file").content == body

    response = client.post("/mcp/search_internal_codebase", json={"query": "handleLogin"})
    assert response.json() == {"matches": []}


def test_ignore_file_not_configured(store: DirectoryStore) -> None:
    client = TestClient(create_app(store))

    assert client.get("/api/ignore-file").status_code == 404
    assert client.put("/api/ignore-file", content=b"x").status_code == 404


def test_git_pull_endpoint(
    client: TestClient, repo_builder: RepoBuilder, git_client: _RecordingGit
) -> None:
    not_repo = client.post("/api/directories/1/git/pull")
    assert not_repo.status_code == 400

    (repo_builder.path() / ".git").mkdir()
    pulled = client.post("/api/directories/1/git/pull")

    assert pulled.status_code == 200
    assert pulled.json()["git_last_updated_at"].endswith("Z")
    assert git_client.pulled == [str(repo_builder.path())]
    assert client.get("/api/directories").json()[0]["git_last_updated_at"] is not None
    assert client.post("/api/directories/99/git/pull").status_code == 404


def test_git_pull_failure_is_reported(store: DirectoryStore, repo_builder: RepoBuilder) -> None:
    (repo_builder.path() / ".git").mkdir()
    client = TestClient(create_app(store, git_client=_RecordingGit(fail=True)))

    response = client.post("/api/directories/1/git/pull")

    assert response.status_code == 500
    assert store.get(1).git_last_updated_at is None


def test_mcp_endpoint_round_trip(client: TestClient) -> None:
    initialize = client.post(
        "/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}
    )
    assert initialize.status_code == 200
    assert initialize.json()["result"]["serverInfo"]["name"] == "codex-mcp"

    notification = client.post(
        "/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"}
    )
    assert notification.status_code == 202

    call = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 2,
            "method": "tools/call",
            "params": {"name": "search_internal_codebase", "arguments": {"query": "handleLogin"}},
        },
    )
    result = call.json()["result"]
    assert "isError" not in result
    assert "handleLogin" in result["content"][0]["text"]


def test_mcp_endpoint_parse_error(client: TestClient) -> None:
    response = client.post("/mcp", content=b"{not json")

    assert response.status_code == 200
    assert response.json()["error"]["code"] == -32700


class _LoopRecordingStore(DirectoryStore):
    """Records store calls that ran on the event loop thread."""

    def __init__(self) -> None:
        super().__init__(None)
        self.on_loop: list[str] = []

    def _record(self, name: str) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        self.on_loop.append(name)

    def list(self):
        self._record("list")
        return super().list()

    def get(self, directory_id):
        self._record("get")
        return super().get(directory_id)

    def delete(self, directory_id):
        self._record("delete")
        super().delete(directory_id)

    def set_enabled(self, directory_id, enabled):
        self._record("set_enabled")
        return super().set_enabled(directory_id, enabled)

    def set_git_interval(self, directory_id, seconds):
        self._record("set_git_interval")
        return super().set_git_interval(directory_id, seconds)

    def mark_git_updated(self, directory_id, when):
        self._record("mark_git_updated")
        return super().mark_git_updated(directory_id, when)


def test_directory_routes_run_store_io_off_the_event_loop(repo_builder: RepoBuilder) -> None:
    store = _LoopRecordingStore()
    store.add("repo", str(repo_builder.path()))
    (repo_builder.path() / ".git").mkdir()
    client = TestClient(create_app(store, git_client=_RecordingGit()))

    assert client.get("/api/directories").status_code == 200
    assert client.patch("/api/directories/1/enabled", json={"enabled": False}).status_code == 204
    assert (
        client.patch("/api/directories/1/git", json={"auto_update_interval_sec": 30}).status_code
        == 204
    )
    assert client.post("/api/directories/1/git/pull").status_code == 200
    assert client.delete("/api/directories/1").status_code == 204

    assert store.on_loop == []
