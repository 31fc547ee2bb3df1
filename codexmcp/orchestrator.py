"""Search orchestration: scope resolution and strategy selection."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .logging import get_logger
from .models import Directory, Match, SearchRequest
from .search.ignore import IgnoreRules, parse_ignore_rules
from .search.strategies import (
    BuiltinStrategy,
    RipgrepStrategy,
    Runner,
    ScanQuery,
    ScanStrategy,
    ripgrep_available,
)
from .security import clean_path
from .stores.directories import BACKEND_ROLES, FRONTEND_ROLES, DirectoryStore
from .stores.ignore_file import read_ignore_file

SEARCH_ROLES: Dict[str, Sequence[str]] = {
    "frontend": FRONTEND_ROLES,
    "backend": BACKEND_ROLES,
}

RIPGREP_HINT = (
    "ripgrep (rg) is not installed; using the built-in search. "
    "Install rg for faster searches: https://github.com/BurntSushi/ripgrep#installation"
)

logger = get_logger("search")


class OneShotNotice:
    """Thread-safe flag that lets a message be emitted at most once."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def fire(self, emit: Callable[[], None]) -> bool:
        """Call ``emit`` on the first invocation only; return True if it ran."""
        with self._lock:
            if self._fired:
                return False
            self._fired = True
        emit()
        return True


class SearchOrchestrator:
    """Resolves the directory scope for a request and runs a scan strategy."""

    def __init__(
        self,
        store: DirectoryStore,
        *,
        ignore_file: Path | str | None = None,
        probe: Callable[[], bool] = ripgrep_available,
        notice: OneShotNotice | None = None,
        runner: Runner | None = None,
    ) -> None:
        self._store = store
        self._ignore_file = str(ignore_file) if ignore_file else None
        self._probe = probe
        self._notice = notice or OneShotNotice()
        self._runner = runner

    def search(self, request: SearchRequest) -> List[Match]:
        """Return matches for ``request`` within the enabled directories."""
        query = request.query.strip() if request.query else ""
        if not query:
            return []
        limit = request.effective_limit()

        roots = self.resolve_scope(request)
        if not roots:
            logger.debug("Search scope is empty; returning no matches")
            return []

        rules = self._load_rules()
        scan_query = ScanQuery(
            text=request.query,
            roots=tuple(roots),
            allowed_roots=tuple(clean_path(root) for root in roots),
            limit=limit,
            language=request.language or None,
            ignore_file=self._ignore_file,
            rules=rules,
        )
        strategy = self.select_strategy()
        matches = strategy.scan(scan_query)
        logger.debug(
            "Search %r via %s over %d root(s): %d match(es)",
            query,
            strategy.name,
            len(roots),
            len(matches),
        )
        return matches

    def resolve_scope(self, request: SearchRequest) -> List[str]:
        directories = self._store.list_enabled()
        if not directories:
            return []
        directories = _filter_by_role(directories, request.role)
        if not directories:
            return []
        if request.path_hint:
            directories = [item for item in directories if request.path_hint in item.path]
        return [item.path for item in directories]

    def select_strategy(self) -> ScanStrategy:
        if self._probe():
            return RipgrepStrategy(runner=self._runner)
        self._notice.fire(lambda: logger.warning(RIPGREP_HINT))
        return BuiltinStrategy()

    def _load_rules(self) -> IgnoreRules:
        if not self._ignore_file:
            return parse_ignore_rules(None)
        return parse_ignore_rules(read_ignore_file(self._ignore_file))


def _filter_by_role(directories: List[Directory], role: Optional[str]) -> List[Directory]:
    if not role:
        return directories
    allowed = SEARCH_ROLES.get(role.strip().lower())
    if allowed is None:
        return directories
    return [item for item in directories if item.role in allowed]


__all__ = ["OneShotNotice", "RIPGREP_HINT", "SEARCH_ROLES", "SearchOrchestrator"]
