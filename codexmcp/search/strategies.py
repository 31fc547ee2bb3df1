"""Scan strategies that enumerate line matches across the search roots."""

from __future__ import annotations

import os
import re
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Pattern, Sequence, Tuple

from ..logging import get_logger
from ..models import Match
from ..security import clean_path, is_path_allowed
from .ignore import DENY_DIRS, IgnoreRules
from .languages import language_extensions, ripgrep_type
from .snippet import DEFAULT_SNIPPET_LINES, build_snippet, snippet_line_range

MAX_RESPONSE_BYTES = 50 * 1024
RIPGREP_EXECUTABLE = "rg"

# With --null, ripgrep terminates the path with NUL: "path\0line:text".
_RG_LINE = re.compile(r"^([^\x00]+)\x00(\d+):(.*)$", re.DOTALL)
_RG_NO_MATCHES = 1
_BINARY_SNIFF_BYTES = 8192
# Characters ripgrep's regex syntax treats as special.
_RG_META = frozenset(r"\.+*?()|[]{}^$")

logger = get_logger("search")

Runner = Callable[[Sequence[str]], "subprocess.CompletedProcess[str]"]


class SearchError(RuntimeError):
    """Raised when a search cannot be completed."""


class InvalidQueryError(SearchError):
    """Raised when the escaped query cannot be compiled."""


class SubprocessFailure(SearchError):
    """Raised when the external search engine exits abnormally."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


@dataclass(frozen=True)
class ScanQuery:
    """Inputs shared by every scan strategy for one search."""

    text: str
    roots: Tuple[str, ...]
    allowed_roots: Tuple[str, ...]
    limit: int
    language: Optional[str] = None
    ignore_file: Optional[str] = None
    rules: IgnoreRules = field(default_factory=IgnoreRules)
    max_bytes: int = MAX_RESPONSE_BYTES
    snippet_lines: int = DEFAULT_SNIPPET_LINES


class MatchCollector:
    """Accumulates matches until the count limit or byte budget is reached."""

    def __init__(self, limit: int, max_bytes: int) -> None:
        self.matches: List[Match] = []
        self.total_bytes = 0
        self._limit = limit
        self._max_bytes = max_bytes
        self._exhausted = False

    @property
    def full(self) -> bool:
        return (
            self._exhausted
            or len(self.matches) >= self._limit
            or self.total_bytes >= self._max_bytes
        )

    def offer(self, match: Match) -> bool:
        """Add ``match`` if it fits; a match that would overrun the budget ends collection."""
        if self.full:
            return False
        cost = match.cost()
        if self.total_bytes + cost > self._max_bytes:
            self._exhausted = True
            return False
        self.matches.append(match)
        self.total_bytes += cost
        return True


def make_match(path: str, line_number: int, line_text: str, snippet_lines: int) -> Match:
    snippet = build_snippet(path, line_number, line_text, snippet_lines)
    start, end = snippet_line_range(line_number, snippet)
    return Match(path=path, line_start=start, line_end=end, snippet=snippet)


class ScanStrategy(ABC):
    """Contract for engines that find query matches under the search roots."""

    name: str = "base"

    @abstractmethod
    def scan(self, query: ScanQuery) -> List[Match]:
        """Return matches in discovery order, bounded by the query limits."""


def quote_meta(text: str) -> str:
    """Escape ``text`` so ripgrep matches it literally."""
    return "".join(f"\\{ch}" if ch in _RG_META else ch for ch in text)


def ripgrep_available(executable: str = RIPGREP_EXECUTABLE) -> bool:
    """Return True if the ripgrep executable is on ``PATH``."""
    return shutil.which(executable) is not None


class RipgrepStrategy(ScanStrategy):
    """Delegates the search to a single ripgrep process over all roots."""

    name = "ripgrep"

    def __init__(
        self,
        executable: str = RIPGREP_EXECUTABLE,
        runner: Runner | None = None,
    ) -> None:
        self._executable = executable
        self._runner = runner or self._default_runner

    def build_args(self, query: ScanQuery) -> List[str]:
        args = [
            self._executable,
            "-n",
            "--no-heading",
            "--null",
            "--hidden",
            "--no-ignore-vcs",
            "--no-ignore-dot",
            "--no-ignore-parent",
            "--ignore-case",
        ]
        for name in DENY_DIRS:
            args.extend(["-g", f"!{name}"])
        if query.ignore_file:
            args.extend(["--ignore-file", query.ignore_file])
        rg_type = ripgrep_type(query.language)
        if rg_type:
            args.extend(["-t", rg_type])
        args.extend(["--", quote_meta(query.text)])
        args.extend(query.roots)
        return args

    def scan(self, query: ScanQuery) -> List[Match]:
        args = self.build_args(query)
        logger.debug("Running %s", " ".join(args))
        try:
            completed = self._runner(args)
        except OSError as exc:
            raise SubprocessFailure(f"Failed to start {self._executable}: {exc}") from exc

        if completed.returncode == _RG_NO_MATCHES:
            return []
        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            raise SubprocessFailure(
                f"{self._executable} exited with status {completed.returncode}: {stderr}",
                returncode=completed.returncode,
                stderr=stderr,
            )

        collector = MatchCollector(query.limit, query.max_bytes)
        for line in (completed.stdout or "").split("\n"):
            if collector.full:
                break
            parsed = _parse_output_line(line)
            if parsed is None:
                continue
            raw_path, line_number, content = parsed
            if not is_path_allowed(raw_path, query.allowed_roots):
                logger.debug("Discarding path outside allowed roots: %s", raw_path)
                continue
            path = clean_path(raw_path)
            collector.offer(make_match(path, line_number, content, query.snippet_lines))
        return collector.matches

    @staticmethod
    def _default_runner(args: Sequence[str]) -> "subprocess.CompletedProcess[str]":
        return subprocess.run(
            list(args),
            check=False,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )


def _parse_output_line(line: str) -> Tuple[str, int, str] | None:
    match = _RG_LINE.match(line.rstrip("\r"))
    if match is None:
        return None
    path, line_str, content = match.groups()
    try:
        line_number = int(line_str)
    except ValueError:
        return None
    if line_number <= 0:
        return None
    return path, line_number, content


class BuiltinStrategy(ScanStrategy):
    """Walks each root and matches lines with a case-insensitive literal pattern."""

    name = "builtin"

    def scan(self, query: ScanQuery) -> List[Match]:
        try:
            pattern = re.compile(re.escape(query.text), re.IGNORECASE)
        except re.error as exc:
            raise InvalidQueryError(f"Cannot compile query {query.text!r}: {exc}") from exc

        extensions = language_extensions(query.language)
        collector = MatchCollector(query.limit, query.max_bytes)
        for root in query.roots:
            if collector.full:
                break
            for path in _iter_candidate_files(root, query, extensions):
                _scan_file(path, pattern, collector, query.snippet_lines)
                if collector.full:
                    break
        return collector.matches


def _iter_candidate_files(
    root: str, query: ScanQuery, extensions: Tuple[str, ...]
) -> Iterator[str]:
    root_path = clean_path(root)
    if not is_path_allowed(root_path, query.allowed_roots):
        return

    for dirpath, dirnames, filenames in os.walk(root_path, onerror=_skip_walk_error):
        current_dir = clean_path(dirpath)

        kept_dirs = []
        for name in sorted(dirnames):
            full_path = clean_path(os.path.join(current_dir, name))
            if not is_path_allowed(full_path, query.allowed_roots):
                continue
            if query.rules.should_ignore(_relative(full_path, root_path), True):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for name in sorted(filenames):
            full_path = clean_path(os.path.join(current_dir, name))
            # Symlinks are not followed, matching ripgrep without -L.
            if os.path.islink(full_path):
                continue
            if not is_path_allowed(full_path, query.allowed_roots):
                continue
            if query.rules.should_ignore(_relative(full_path, root_path), False):
                continue
            if extensions and not full_path.lower().endswith(extensions):
                continue
            yield full_path


def _relative(path: str, root: str) -> str:
    return os.path.relpath(path, root).replace(os.sep, "/")


def _skip_walk_error(exc: OSError) -> None:
    logger.debug("Skipping unreadable entry %s: %s", exc.filename, exc)


def _looks_binary(path: str) -> bool:
    try:
        with open(path, "rb") as handle:
            chunk = handle.read(_BINARY_SNIFF_BYTES)
    except OSError:
        return True
    return b"\0" in chunk


def _scan_file(
    path: str, pattern: Pattern[str], collector: MatchCollector, snippet_lines: int
) -> None:
    if _looks_binary(path):
        return
    try:
        with open(path, encoding="utf-8", errors="replace", newline="\n") as handle:
            for line_number, raw in enumerate(handle, start=1):
                line = raw.rstrip("\r\n")
                if not pattern.search(line):
                    continue
                collector.offer(make_match(path, line_number, line, snippet_lines))
                if collector.full:
                    return
    except OSError as exc:
        logger.debug("Skipping unreadable file %s: %s", path, exc)


__all__ = [
    "BuiltinStrategy",
    "InvalidQueryError",
    "MAX_RESPONSE_BYTES",
    "MatchCollector",
    "RipgrepStrategy",
    "ScanQuery",
    "ScanStrategy",
    "SearchError",
    "SubprocessFailure",
    "make_match",
    "quote_meta",
    "ripgrep_available",
]
