"""Tests for codexmcp.security."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from codexmcp.security import InvalidPathError, is_path_allowed, normalize_and_validate_directory


def test_normalize_returns_absolute_clean_path(tmp_path: Path, monkeypatch) -> None:
    target = tmp_path / "project"
    target.mkdir()
    monkeypatch.chdir(tmp_path)

    result = normalize_and_validate_directory("./project/./")

    assert result == str(target)
    assert os.path.isabs(result)


def test_normalize_rejects_parent_traversal(tmp_path: Path) -> None:
    (tmp_path / "a").mkdir()
    with pytest.raises(InvalidPathError):
        normalize_and_validate_directory(str(tmp_path / "a" / ".." / "a"))


def test_normalize_rejects_missing_and_files(tmp_path: Path) -> None:
    file_path = tmp_path / "file.txt"
    file_path.write_text("x", encoding="utf-8")

    with pytest.raises(InvalidPathError):
        normalize_and_validate_directory(str(tmp_path / "missing"))
    with pytest.raises(InvalidPathError):
        normalize_and_validate_directory(str(file_path))
    with pytest.raises(InvalidPathError):
        normalize_and_validate_directory("")


def test_is_path_allowed_prefix_and_equality(tmp_path: Path) -> None:
    root = str(tmp_path / "repo")

    assert is_path_allowed(root, [root])
    assert is_path_allowed(os.path.join(root, "src", "a.go"), [root])
    assert is_path_allowed(os.path.join(root, "src", ".", "a.go"), [root])
    assert not is_path_allowed(str(tmp_path / "repo2" / "a.go"), [root])
    assert not is_path_allowed(str(tmp_path / "other.go"), [root])


def test_is_path_allowed_rejects_traversal_even_inside_root(tmp_path: Path) -> None:
    root = str(tmp_path / "repo")
    sneaky = os.path.join(root, "src", "..", "a.go")

    assert not is_path_allowed(sneaky, [root])
    assert not is_path_allowed(os.path.join(root, "..", "repo", "a.go"), [root])


def test_is_path_allowed_without_roots() -> None:
    assert not is_path_allowed("/srv/code/a.go", [])
    assert not is_path_allowed("", ["/srv/code"])


def test_is_path_allowed_cleans_roots(tmp_path: Path) -> None:
    root = str(tmp_path / "repo") + os.sep

    assert is_path_allowed(str(tmp_path / "repo" / "a.go"), [root])
