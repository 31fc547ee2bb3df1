"""Tests for the directory store."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from codexmcp.security import InvalidPathError
from codexmcp.stores import DirectoryNotFoundError, DirectoryStore


def _make_dir(tmp_path: Path, name: str) -> Path:
    path = tmp_path / name
    path.mkdir()
    return path


def test_add_normalises_path_and_enables(tmp_path: Path) -> None:
    target = _make_dir(tmp_path, "web")
    store = DirectoryStore(None)

    directory = store.add("web", str(target) + "/", "ts", "frontend-business")

    assert directory.id == 1
    assert directory.path == str(target)
    assert directory.enabled is True
    assert directory.updated_at is not None
    assert [item.name for item in store.list_enabled()] == ["web"]


def test_add_rejects_invalid_input(tmp_path: Path) -> None:
    store = DirectoryStore(None)

    with pytest.raises(InvalidPathError):
        store.add("missing", str(tmp_path / "missing"))
    with pytest.raises(InvalidPathError):
        store.add("escape", str(tmp_path / ".." / tmp_path.name))
    with pytest.raises(ValueError):
        store.add("bad-role", str(tmp_path), role="devops")
    with pytest.raises(ValueError):
        store.add("", str(tmp_path))
    assert store.list() == []


def test_enable_disable_and_delete(tmp_path: Path) -> None:
    store = DirectoryStore(None)
    first = store.add("a", str(_make_dir(tmp_path, "a")))
    second = store.add("b", str(_make_dir(tmp_path, "b")))

    store.set_enabled(first.id, False)
    assert [item.id for item in store.list_enabled()] == [second.id]

    store.delete(second.id)
    assert [item.id for item in store.list()] == [first.id]

    with pytest.raises(DirectoryNotFoundError):
        store.delete(second.id)
    with pytest.raises(DirectoryNotFoundError):
        store.get(99)


def test_returned_records_are_copies(tmp_path: Path) -> None:
    store = DirectoryStore(None)
    added = store.add("a", str(_make_dir(tmp_path, "a")))

    added.enabled = False

    assert store.get(added.id).enabled is True


def test_store_persists_across_instances(tmp_path: Path) -> None:
    store_path = tmp_path / "data" / "directories.json"
    store = DirectoryStore(store_path)
    first = store.add("a", str(_make_dir(tmp_path, "a")), "go", "backend-framework")
    store.set_git_interval(first.id, 300)
    synced = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
    store.mark_git_updated(first.id, synced)

    reloaded = DirectoryStore(store_path)
    directory = reloaded.get(first.id)

    assert directory.path == first.path
    assert directory.role == "backend-framework"
    assert directory.git_auto_update_interval_sec == 300
    assert directory.git_last_updated_at == synced

    payload = json.loads(store_path.read_text(encoding="utf-8"))
    assert payload["version"] == 1

    second = reloaded.add("b", str(_make_dir(tmp_path, "b")))
    assert second.id == first.id + 1


def test_ids_are_not_reused_after_delete(tmp_path: Path) -> None:
    store_path = tmp_path / "directories.json"
    store = DirectoryStore(store_path)
    first = store.add("a", str(_make_dir(tmp_path, "a")))
    store.delete(first.id)

    reloaded = DirectoryStore(store_path)
    again = reloaded.add("b", str(_make_dir(tmp_path, "b")))

    assert again.id == first.id + 1


def test_unreadable_store_starts_empty(tmp_path: Path) -> None:
    store_path = tmp_path / "directories.json"
    store_path.write_text("{not json", encoding="utf-8")

    assert DirectoryStore(store_path).list() == []


def test_list_due_for_git_update(tmp_path: Path) -> None:
    store = DirectoryStore(None)
    never = store.add("never", str(_make_dir(tmp_path, "never")))
    due = store.add("due", str(_make_dir(tmp_path, "due")))
    fresh = store.add("fresh", str(_make_dir(tmp_path, "fresh")))
    disabled = store.add("disabled", str(_make_dir(tmp_path, "disabled")))
    now = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    for item in (due, fresh, disabled):
        store.set_git_interval(item.id, 60)
    store.mark_git_updated(due.id, now - timedelta(seconds=61))
    store.mark_git_updated(fresh.id, now - timedelta(seconds=10))
    store.set_enabled(disabled.id, False)

    due_ids = [item.id for item in store.list_due_for_git_update(now)]

    assert due_ids == [due.id]
    assert never.id not in due_ids

    with pytest.raises(ValueError):
        store.set_git_interval(never.id, -1)
