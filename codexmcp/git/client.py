"""Git client used to keep configured repositories up to date."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable


class GitError(RuntimeError):
    """Raised when a git command fails."""


class GitClient:
    """Runs fast-forward pulls in configured repository roots."""

    def __init__(self, runner: Callable[..., str] | None = None, executable: str = "git") -> None:
        self._runner = runner or self._default_runner
        self._executable = executable

    @staticmethod
    def is_repo(path: Path | str) -> bool:
        """Return True if ``path`` is the root of a git working tree."""
        return (Path(path) / ".git").is_dir()

    def pull(self, path: Path | str) -> str:
        """Run ``git -C PATH pull --ff-only``; failures are raised, not retried."""
        args = [self._executable, "-C", str(path), "pull", "--ff-only"]
        try:
            return self._run(args, capture_output=True)
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() if isinstance(exc.stderr, str) else ""
            raise GitError(
                f"git pull failed in {path} (exit {exc.returncode})"
                + (f": {detail}" if detail else "")
            ) from exc
        except OSError as exc:
            raise GitError(f"Failed to run git in {path}: {exc}") from exc

    def _run(self, args: Iterable[str], *, capture_output: bool = False) -> str:
        return self._runner(args, capture_output=capture_output)

    @staticmethod
    def _default_runner(args: Iterable[str], *, capture_output: bool = False) -> str:
        completed = subprocess.run(
            list(args),
            check=True,
            text=True,
            capture_output=capture_output,
        )
        if capture_output:
            return completed.stdout
        return ""


__all__ = ["GitClient", "GitError"]
