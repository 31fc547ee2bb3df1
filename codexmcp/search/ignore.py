"""Ignore rules parsed from the gitignore-style ignore file.

Only the common subset of the format is understood: each pattern is either a
filename glob, matched against the base name, or a bare name / relative path
segment. Negation (``!``) and root anchoring are not supported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import List, Tuple, Union

# Always excluded regardless of user rules.
DENY_DIRS: Tuple[str, ...] = (".git", "node_modules", "target", "vendor")

_WILDCARDS = "*?["
_RECURSIVE_PREFIX = "**/"


@dataclass(frozen=True)
class GlobPattern:
    """Filename glob such as ``*.log`` or ``**/*.tmp``."""

    pattern: str

    def matches(self, path: str, base: str) -> bool:
        if fnmatchcase(base, self.pattern):
            return True
        if self.pattern.startswith(_RECURSIVE_PREFIX):
            return fnmatchcase(base, self.pattern[len(_RECURSIVE_PREFIX) :])
        return False


@dataclass(frozen=True)
class SegmentPattern:
    """Literal directory/file name or relative path segment."""

    name: str

    def matches(self, path: str, base: str) -> bool:
        name = self.name
        return (
            f"/{name}/" in path
            or path.endswith(f"/{name}")
            or path == name
            or base == name
        )


IgnorePattern = Union[GlobPattern, SegmentPattern]


def _build_pattern(raw: str) -> IgnorePattern | None:
    pattern = raw.strip().replace("\\", "/")
    if not pattern:
        return None
    if any(ch in pattern for ch in _WILDCARDS):
        return GlobPattern(pattern)
    if pattern.endswith("/"):
        pattern = pattern[:-1]
    if not pattern:
        return None
    return SegmentPattern(pattern)


@dataclass(frozen=True)
class IgnoreRules:
    """Immutable set of ignore patterns plus the fixed deny-set."""

    patterns: Tuple[IgnorePattern, ...] = ()
    deny_dirs: frozenset[str] = field(default_factory=lambda: frozenset(DENY_DIRS))

    def should_ignore(self, path: str, is_dir: bool) -> bool:
        """Return True if ``path`` should be skipped.

        ``is_dir`` is accepted for symmetry with the walkers; the matching
        rules are the same for files and directories.
        """
        normalized = path.replace("\\", "/")
        parts = normalized.split("/")
        if any(part in self.deny_dirs for part in parts):
            return True
        base = parts[-1] if parts[-1] else (parts[-2] if len(parts) > 1 else "")
        return any(pattern.matches(normalized, base) for pattern in self.patterns)


def parse_ignore_rules(raw: str | bytes | None) -> IgnoreRules:
    """Parse gitignore-style text into :class:`IgnoreRules`."""
    if raw is None:
        return IgnoreRules()
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw

    patterns: List[IgnorePattern] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        pattern = _build_pattern(line)
        if pattern is not None:
            patterns.append(pattern)
    return IgnoreRules(patterns=tuple(patterns))


__all__ = [
    "DENY_DIRS",
    "GlobPattern",
    "IgnorePattern",
    "IgnoreRules",
    "SegmentPattern",
    "parse_ignore_rules",
]
