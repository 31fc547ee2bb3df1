"""Configuration loading for codexmcp (.codexmcp.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".codexmcp.yml"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 6688
DEFAULT_DATA_DIR = "data"
DEFAULT_SCHEDULER_INTERVAL = 60.0


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class GitConfig:
    """Background repository synchronisation settings."""

    enabled: bool = True
    scheduler_interval: float = DEFAULT_SCHEDULER_INTERVAL


@dataclass
class ServerConfig:
    """Represents the settings defined in .codexmcp.yml."""

    root: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    data_dir: Path = field(default_factory=lambda: Path(DEFAULT_DATA_DIR))
    directories_file: Optional[Path] = None
    ignore_file: Optional[Path] = None
    log_file: Optional[Path] = None
    git: GitConfig = field(default_factory=GitConfig)

    def __post_init__(self) -> None:
        if not self.data_dir.is_absolute():
            self.data_dir = self.root / self.data_dir
        if self.directories_file is None:
            self.directories_file = self.data_dir / "directories.json"
        if self.ignore_file is None:
            self.ignore_file = self.data_dir / "codex-ignore"


def load_config(config_path: Path) -> ServerConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ServerConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    git_data = _as_dict(data.get("git"))
    git = GitConfig()
    if git_data:
        enabled = _as_bool(git_data.get("enabled"))
        if enabled is not None:
            git.enabled = enabled
        interval = _as_float(git_data.get("scheduler_interval"))
        if interval is not None and interval > 0:
            git.scheduler_interval = interval

    port = _as_int(data.get("port"))
    data_dir = _as_str(data.get("data_dir"))

    return ServerConfig(
        root=root,
        host=_as_str(data.get("host")) or DEFAULT_HOST,
        port=port if port is not None else DEFAULT_PORT,
        data_dir=Path(data_dir) if data_dir else Path(DEFAULT_DATA_DIR),
        directories_file=_as_path(root, data.get("directories_file")),
        ignore_file=_as_path(root, data.get("ignore_file")),
        log_file=_as_path(root, data.get("log_file")),
        git=git,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_path(root: Path, value: Any) -> Optional[Path]:
    text = _as_str(value)
    if not text:
        return None
    path = Path(text).expanduser()
    return path if path.is_absolute() else root / path


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = ["CONFIG_FILENAME", "ConfigError", "GitConfig", "ServerConfig", "load_config"]
