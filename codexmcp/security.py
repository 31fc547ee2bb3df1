"""Path containment checks for configured search roots."""

from __future__ import annotations

import os
from typing import Iterable

_PARENT = ".."


class InvalidPathError(ValueError):
    """Raised when a path fails normalization or containment validation."""


def _has_parent_segment(path: str) -> bool:
    normalized = path.replace("\\", "/")
    return _PARENT in normalized.split("/")


def clean_path(path: str) -> str:
    """Return the lexically cleaned form of ``path`` (no filesystem access)."""
    return os.path.normpath(path)


def normalize_and_validate_directory(path: str) -> str:
    """Return the absolute, cleaned form of ``path`` if it is an existing directory."""
    if not path:
        raise InvalidPathError("Directory path is empty")
    if _has_parent_segment(path):
        raise InvalidPathError(f"Directory path must not contain '..': {path}")
    try:
        absolute = os.path.abspath(os.path.expanduser(path))
    except (OSError, ValueError) as exc:
        raise InvalidPathError(f"Cannot resolve directory path {path}: {exc}") from exc
    absolute = clean_path(absolute)
    if _has_parent_segment(absolute):
        raise InvalidPathError(f"Directory path must not contain '..': {path}")
    if not os.path.exists(absolute):
        raise InvalidPathError(f"Directory not found: {absolute}")
    if not os.path.isdir(absolute):
        raise InvalidPathError(f"Path is not a directory: {absolute}")
    return absolute


def is_path_allowed(candidate: str, allowed_roots: Iterable[str]) -> bool:
    """Return True when ``candidate`` lies within one of ``allowed_roots``.

    Paths containing a ``..`` segment are rejected outright, even when they
    would resolve inside an allowed root.
    """
    if not candidate or _has_parent_segment(candidate):
        return False
    cleaned = clean_path(candidate)
    if _has_parent_segment(cleaned):
        return False
    for root in allowed_roots:
        if not root:
            continue
        canonical = clean_path(root)
        if cleaned == canonical:
            return True
        prefix = canonical if canonical.endswith(os.sep) else canonical + os.sep
        if cleaned.startswith(prefix):
            return True
    return False


__all__ = [
    "InvalidPathError",
    "clean_path",
    "is_path_allowed",
    "normalize_and_validate_directory",
]
