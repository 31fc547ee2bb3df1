"""Tests for the git client."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from codexmcp.git import GitClient, GitError


def test_pull_runs_fast_forward_only(tmp_path: Path) -> None:
    calls = []

    def runner(args, capture_output=False):
        calls.append((list(args), capture_output))
        return "Already up to date.\n"

    client = GitClient(runner=runner)
    output = client.pull(tmp_path)

    assert calls == [(["git", "-C", str(tmp_path), "pull", "--ff-only"], True)]
    assert output == "Already up to date.\n"


def test_pull_failure_raises_git_error(tmp_path: Path) -> None:
    def runner(args, capture_output=False):
        raise subprocess.CalledProcessError(1, list(args), stderr="fatal: not possible to fast-forward\n")

    client = GitClient(runner=runner)

    with pytest.raises(GitError, match="not possible to fast-forward"):
        client.pull(tmp_path)


def test_missing_git_binary_raises_git_error(tmp_path: Path) -> None:
    def runner(args, capture_output=False):
        raise FileNotFoundError("git")

    with pytest.raises(GitError):
        GitClient(runner=runner).pull(tmp_path)


def test_is_repo_checks_for_git_directory(tmp_path: Path) -> None:
    assert not GitClient.is_repo(tmp_path)

    (tmp_path / ".git").mkdir()

    assert GitClient.is_repo(tmp_path)
