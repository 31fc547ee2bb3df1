"""Text search engine: ignore rules, snippets and scan strategies."""

from .ignore import DENY_DIRS, GlobPattern, IgnoreRules, SegmentPattern, parse_ignore_rules
from .snippet import build_snippet, snippet_line_range
from .strategies import (
    MAX_RESPONSE_BYTES,
    BuiltinStrategy,
    InvalidQueryError,
    RipgrepStrategy,
    ScanQuery,
    ScanStrategy,
    SearchError,
    SubprocessFailure,
    ripgrep_available,
)

__all__ = [
    "BuiltinStrategy",
    "DENY_DIRS",
    "GlobPattern",
    "IgnoreRules",
    "InvalidQueryError",
    "MAX_RESPONSE_BYTES",
    "RipgrepStrategy",
    "ScanQuery",
    "ScanStrategy",
    "SearchError",
    "SegmentPattern",
    "SubprocessFailure",
    "build_snippet",
    "parse_ignore_rules",
    "ripgrep_available",
    "snippet_line_range",
]
