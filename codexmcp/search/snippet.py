"""Snippet reconstruction around a matched line."""

from __future__ import annotations

from typing import List, Tuple

DEFAULT_SNIPPET_LINES = 15


def build_snippet(
    file_path: str,
    line_number: int,
    matched_text: str,
    max_lines: int = DEFAULT_SNIPPET_LINES,
) -> str:
    """Return up to ``max_lines`` lines centred on ``line_number``.

    Falls back to the stripped matched line when the file cannot be read.
    """
    half = max_lines // 2
    lower = line_number - half
    upper = line_number + half

    lines: List[str] = []
    try:
        with open(file_path, encoding="utf-8", errors="replace", newline="\n") as handle:
            for current, raw in enumerate(handle, start=1):
                if current > upper:
                    break
                if current >= lower:
                    lines.append(raw.rstrip("\r\n"))
    except (OSError, ValueError):
        return matched_text.strip()

    if not lines:
        return matched_text.strip()
    return "\n".join(lines[:max_lines])


def snippet_line_range(line_number: int, snippet: str) -> Tuple[int, int]:
    """Derive the reported ``(line_start, line_end)`` for ``snippet``.

    Half the returned lines are placed before the match and the remainder
    after it; the start is clamped to 1, so ranges near the top of a file
    may be asymmetric.
    """
    count = len(snippet.split("\n"))
    if count <= 1:
        return line_number, line_number
    half = (count - 1) // 2
    start = max(1, line_number - half)
    end = line_number + (count - 1 - half)
    return start, end


__all__ = ["DEFAULT_SNIPPET_LINES", "build_snippet", "snippet_line_range"]
