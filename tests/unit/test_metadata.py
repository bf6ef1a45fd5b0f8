"""Tests for downstream metadata updates."""

from __future__ import annotations

from pathlib import Path

import pytest

from upstream_merge.merge.errors import GitCommandError, PatchRewriteFailureError
from upstream_merge.merge.metadata import (
    rewrite_patch_version,
    write_readme_snapshot,
    write_version_file,
)
from tests.utils import PATCH_CONTENT, commit_files, git


def test_rewrite_patch_version_only_touches_export_line(tmp_path: Path):
    patch_path = tmp_path / "03-setversion.patch"
    patch_path.write_text(PATCH_CONTENT, encoding="utf-8")

    count = rewrite_patch_version(patch_path, "SIMPLE_VERSION", "v1.2.3-ocp")

    assert count == 1
    expected = PATCH_CONTENT.replace(
        "+export SIMPLE_VERSION = v1.0.0-ocp\n", "+export SIMPLE_VERSION = v1.2.3-ocp\n"
    )
    assert patch_path.read_text(encoding="utf-8") == expected
    assert not (tmp_path / "03-setversion.patch.bak").exists()


def test_rewrite_patch_version_preserves_crlf(tmp_path: Path):
    patch_path = tmp_path / "p.patch"
    patch_path.write_bytes(b" context\r\n+export SIMPLE_VERSION = old\r\n tail\r\n")

    rewrite_patch_version(patch_path, "SIMPLE_VERSION", "v2-ocp")

    assert patch_path.read_bytes() == b" context\r\n+export SIMPLE_VERSION = v2-ocp\r\n tail\r\n"


def test_rewrite_patch_version_missing_file(tmp_path: Path):
    with pytest.raises(PatchRewriteFailureError, match="not found"):
        rewrite_patch_version(tmp_path / "absent.patch", "SIMPLE_VERSION", "v1")


def test_rewrite_patch_version_without_match_fails_and_keeps_file(tmp_path: Path):
    patch_path = tmp_path / "p.patch"
    original = "-export SIMPLE_VERSION = removed\n export OTHER = 1\n"
    patch_path.write_text(original, encoding="utf-8")

    with pytest.raises(PatchRewriteFailureError, match="SIMPLE_VERSION"):
        rewrite_patch_version(patch_path, "SIMPLE_VERSION", "v1")

    assert patch_path.read_text(encoding="utf-8") == original


def test_write_version_file(tmp_path: Path):
    target = write_version_file(tmp_path, "v1.2.3", "UPSTREAM-VERSION")

    assert target.read_text() == "v1.2.3\n"


def test_write_readme_snapshot_from_tag(tmp_path: Path):
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "--quiet", "-b", "main")
    commit_files(repo, {"README.md": "tagged readme\n"}, "init")
    git(repo, "tag", "v1.2.3")
    commit_files(repo, {"README.md": "later readme\n"}, "later")

    target = write_readme_snapshot(repo, "v1.2.3", "README.md", "README-sdk.md")

    assert target == repo / "README-sdk.md"
    assert target.read_text() == "tagged readme\n"
    assert (repo / "README.md").read_text() == "later readme\n"


def test_write_readme_snapshot_missing_tag(tmp_path: Path):
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "--quiet", "-b", "main")
    commit_files(repo, {"README.md": "readme\n"}, "init")

    with pytest.raises(GitCommandError):
        write_readme_snapshot(repo, "v9.9.9", "README.md", "README-sdk.md")
