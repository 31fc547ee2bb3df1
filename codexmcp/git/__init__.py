"""Git integration for configured search roots."""

from .client import GitClient, GitError
from .scheduler import GitScheduler

__all__ = ["GitClient", "GitError", "GitScheduler"]
