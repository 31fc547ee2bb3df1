"""Background scheduler that pulls repositories on their configured interval."""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import List, Optional

from ..logging import get_logger
from ..stores.directories import DirectoryStore
from .client import GitClient, GitError

logger = get_logger("git")


class GitScheduler:
    """Periodically pulls every directory whose auto-update interval has elapsed."""

    def __init__(
        self,
        store: DirectoryStore,
        client: GitClient | None = None,
        *,
        interval: float = 60.0,
    ) -> None:
        self._store = store
        self._client = client or GitClient()
        self._interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self, now: datetime | None = None) -> List[int]:
        """Pull all due repositories; return the ids that were updated."""
        now = now or datetime.now(UTC)
        updated: List[int] = []
        for directory in self._store.list_due_for_git_update(now):
            if not self._client.is_repo(directory.path):
                continue
            try:
                self._client.pull(directory.path)
            except GitError as exc:
                logger.error("Scheduled pull failed for %s: %s", directory.path, exc)
                continue
            self._store.mark_git_updated(directory.id, datetime.now(UTC))
            updated.append(directory.id)
        return updated

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="codexmcp-git", daemon=True)
        self._thread.start()
        logger.debug("Git scheduler started (interval=%.0fs)", self._interval)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self.run_once()
            except Exception:  # pragma: no cover - keep the scheduler alive
                logger.exception("Git scheduler tick failed")


__all__ = ["GitScheduler"]
