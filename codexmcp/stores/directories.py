"""Persistent store for configured search directories."""

from __future__ import annotations

import json
import threading
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..logging import get_logger
from ..models import Directory
from ..security import normalize_and_validate_directory

_STORE_VERSION = 1

FRONTEND_ROLES: Sequence[str] = ("frontend-business", "frontend-framework")
BACKEND_ROLES: Sequence[str] = ("backend-business", "backend-framework")
VALID_ROLES: Sequence[str] = (*FRONTEND_ROLES, *BACKEND_ROLES)

logger = get_logger("stores.directories")


class DirectoryNotFoundError(LookupError):
    """Raised when a directory id is not present in the store."""


class DirectoryStore:
    """Keeps directory records in a JSON file, or in memory when ``path`` is None."""

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._directories: Dict[int, Directory] = {}
        self._next_id = 1
        if self._path is not None:
            self._load(self._path)

    def list(self) -> List[Directory]:
        with self._lock:
            return [replace(item) for _, item in sorted(self._directories.items())]

    def list_enabled(self) -> List[Directory]:
        return [item for item in self.list() if item.enabled]

    def list_due_for_git_update(self, now: datetime) -> List[Directory]:
        return [item for item in self.list() if item.is_due_for_git_update(now)]

    def get(self, directory_id: int) -> Directory:
        with self._lock:
            item = self._directories.get(directory_id)
            if item is None:
                raise DirectoryNotFoundError(f"Directory {directory_id} not found")
            return replace(item)

    def add(self, name: str, path: str, language: str = "", role: str = "") -> Directory:
        """Validate ``path`` and register it as an enabled search root."""
        if not name:
            raise ValueError("Directory name is required")
        if role and role not in VALID_ROLES:
            raise ValueError(f"Unknown directory role {role!r}; expected one of {', '.join(VALID_ROLES)}")
        absolute = normalize_and_validate_directory(path)
        with self._lock:
            directory = Directory(
                id=self._next_id,
                name=name,
                path=absolute,
                language=language,
                role=role,
                enabled=True,
                updated_at=_now(),
            )
            self._directories[directory.id] = directory
            self._next_id += 1
            self._persist()
        logger.info("Added directory %s (%s)", name, absolute)
        return replace(directory)

    def delete(self, directory_id: int) -> None:
        with self._lock:
            if self._directories.pop(directory_id, None) is None:
                raise DirectoryNotFoundError(f"Directory {directory_id} not found")
            self._persist()

    def set_enabled(self, directory_id: int, enabled: bool) -> Directory:
        return self._update(directory_id, enabled=enabled, updated_at=_now())

    def set_git_interval(self, directory_id: int, seconds: int) -> Directory:
        if seconds < 0:
            raise ValueError("Auto-update interval must not be negative")
        return self._update(
            directory_id, git_auto_update_interval_sec=seconds, updated_at=_now()
        )

    def mark_git_updated(self, directory_id: int, when: datetime) -> Directory:
        return self._update(directory_id, git_last_updated_at=when)

    # ------------------------------------------------------------------
    # Internal helpers

    def _update(self, directory_id: int, **changes: object) -> Directory:
        with self._lock:
            item = self._directories.get(directory_id)
            if item is None:
                raise DirectoryNotFoundError(f"Directory {directory_id} not found")
            updated = replace(item, **changes)
            self._directories[directory_id] = updated
            self._persist()
            return replace(updated)

    def _persist(self) -> None:
        if self._path is None:
            return
        payload = {
            "version": _STORE_VERSION,
            "next_id": self._next_id,
            "directories": [
                item.to_dict() for _, item in sorted(self._directories.items())
            ],
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable directory store %s: %s", path, exc)
            return
        if not isinstance(data, dict) or data.get("version") != _STORE_VERSION:
            return
        entries = data.get("directories")
        if not isinstance(entries, list):
            return
        for raw in entries:
            directory = _directory_from_dict(raw)
            if directory is not None:
                self._directories[directory.id] = directory
        highest = max(self._directories, default=0)
        next_id = data.get("next_id")
        self._next_id = max(next_id if isinstance(next_id, int) else 1, highest + 1)


def _now() -> datetime:
    return datetime.now(UTC)


def _parse_timestamp(value: object) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _directory_from_dict(payload: object) -> Optional[Directory]:
    if not isinstance(payload, dict):
        return None
    directory_id = payload.get("id")
    name = payload.get("name")
    path = payload.get("path")
    if not isinstance(directory_id, int) or not isinstance(name, str) or not isinstance(path, str):
        return None
    interval = payload.get("git_auto_update_interval_sec")
    return Directory(
        id=directory_id,
        name=name,
        path=path,
        language=str(payload.get("language") or ""),
        role=str(payload.get("role") or ""),
        enabled=bool(payload.get("enabled", True)),
        updated_at=_parse_timestamp(payload.get("updated_at")),
        git_auto_update_interval_sec=interval if isinstance(interval, int) else 0,
        git_last_updated_at=_parse_timestamp(payload.get("git_last_updated_at")),
    )


__all__ = [
    "BACKEND_ROLES",
    "DirectoryNotFoundError",
    "DirectoryStore",
    "FRONTEND_ROLES",
    "VALID_ROLES",
]
