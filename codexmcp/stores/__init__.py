"""Persistence helpers for directory configuration and the ignore file."""

from .directories import (
    BACKEND_ROLES,
    FRONTEND_ROLES,
    VALID_ROLES,
    DirectoryNotFoundError,
    DirectoryStore,
)
from .ignore_file import DEFAULT_IGNORE_CONTENT, read_ignore_file, write_ignore_file

__all__ = [
    "BACKEND_ROLES",
    "DEFAULT_IGNORE_CONTENT",
    "DirectoryNotFoundError",
    "DirectoryStore",
    "FRONTEND_ROLES",
    "VALID_ROLES",
    "read_ignore_file",
    "write_ignore_file",
]
