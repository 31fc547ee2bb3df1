"""Reading and writing the gitignore-format ignore file."""

from __future__ import annotations

from pathlib import Path

from ..logging import get_logger

DEFAULT_IGNORE_CONTENT = """# codex-mcp ignore rules (gitignore format)
# Directories
.git
node_modules
target
vendor
# Files
*.log
*.tmp
*.temp
.DS_Store
"""

logger = get_logger("stores.ignore_file")


def read_ignore_file(path: Path | str) -> bytes:
    """Return the raw ignore file content, seeding it with defaults when missing."""
    target = Path(path).expanduser().absolute()
    try:
        return target.read_bytes()
    except FileNotFoundError:
        pass

    default = DEFAULT_IGNORE_CONTENT.encode("utf-8")
    try:
        write_ignore_file(target, default)
    except OSError as exc:
        logger.warning("Could not create ignore file %s: %s", target, exc)
    return default


def write_ignore_file(path: Path | str, content: str | bytes) -> None:
    """Write ``content`` verbatim, creating parent directories as needed."""
    target = Path(path).expanduser().absolute()
    target.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode("utf-8") if isinstance(content, str) else content
    target.write_bytes(data)


__all__ = ["DEFAULT_IGNORE_CONTENT", "read_ignore_file", "write_ignore_file"]
