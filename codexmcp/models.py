"""Core data models shared across codexmcp components."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

DEFAULT_LIMIT = 10
MAX_LIMIT = 20

# Per-match overhead added to path and snippet length when budgeting responses.
MATCH_OVERHEAD_BYTES = 64


@dataclass(frozen=True)
class SearchRequest:
    """Parameters for one search invocation."""

    query: str
    language: Optional[str] = None
    path_hint: Optional[str] = None
    role: Optional[str] = None
    limit: int = DEFAULT_LIMIT

    def effective_limit(self) -> int:
        """Return the limit clamped into ``[1, MAX_LIMIT]``."""
        if self.limit <= 0:
            return DEFAULT_LIMIT
        return min(self.limit, MAX_LIMIT)


@dataclass(frozen=True)
class Match:
    """A line-level search hit with surrounding context."""

    path: str
    line_start: int
    line_end: int
    snippet: str
    match_reason: str = "content"

    def cost(self) -> int:
        """Return the UTF-8 size of path and snippet plus the fixed overhead."""
        return (
            len(self.path.encode("utf-8"))
            + len(self.snippet.encode("utf-8"))
            + MATCH_OVERHEAD_BYTES
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Directory:
    """A configured search root."""

    id: int
    name: str
    path: str
    language: str = ""
    role: str = ""
    enabled: bool = True
    updated_at: Optional[datetime] = None
    git_auto_update_interval_sec: int = 0
    git_last_updated_at: Optional[datetime] = None

    def is_due_for_git_update(self, now: datetime) -> bool:
        """Return True when auto-pull is configured and the interval has elapsed."""
        if not self.enabled or self.git_auto_update_interval_sec <= 0:
            return False
        if self.git_last_updated_at is None:
            return True
        interval = timedelta(seconds=self.git_auto_update_interval_sec)
        return self.git_last_updated_at + interval <= now

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("updated_at", "git_last_updated_at"):
            value = data.get(key)
            data[key] = _format_timestamp(value) if isinstance(value, datetime) else None
        return data


def _format_timestamp(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


__all__ = [
    "DEFAULT_LIMIT",
    "Directory",
    "MATCH_OVERHEAD_BYTES",
    "MAX_LIMIT",
    "Match",
    "SearchRequest",
]
