"""Downstream metadata refreshed on every upstream merge."""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path

from upstream_merge.core.config import MergeConfig
from upstream_merge.core.git_ops import run_git
from upstream_merge.merge.errors import GitCommandError, PatchRewriteFailureError

__all__ = [
    "write_readme_snapshot",
    "write_version_file",
    "rewrite_patch_version",
    "update_metadata",
]

logger = logging.getLogger(__name__)


def write_readme_snapshot(repo_root: Path, version: str, source: str, snapshot: str) -> Path:
    """Copy the README of ``tags/<version>`` into ``snapshot``, byte for byte."""
    object_name = f"tags/{version}:{source}"
    # Binary read so the snapshot is not altered by text decoding.
    completed = subprocess.run(
        ["git", "show", object_name],
        cwd=str(repo_root),
        capture_output=True,
        check=False,
    )
    if completed.returncode != 0:
        stderr = completed.stderr.decode("utf-8", errors="replace")
        raise GitCommandError(f"git show {object_name}", stderr, completed.returncode)

    target = repo_root / snapshot
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(completed.stdout)
    logger.debug("Wrote %s from %s", target, object_name)
    return target


def write_version_file(repo_root: Path, version: str, version_file: str) -> Path:
    target = repo_root / version_file
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(f"{version}\n", encoding="utf-8")
    return target


def rewrite_patch_version(patch_path: Path, variable: str, value: str) -> int:
    """Rewrite ``+export <variable> = ...`` lines in ``patch_path`` to ``value``.

    The original file is kept as ``<name>.bak`` while the new content is
    written and removed afterwards. Returns the number of rewritten lines.

    Raises:
        PatchRewriteFailureError: The file is missing or holds no matching line.
    """
    if not patch_path.is_file():
        raise PatchRewriteFailureError(f"Patch file not found: {patch_path}")

    with open(patch_path, "r", encoding="utf-8", newline="") as f:
        content = f.read()
    pattern = re.compile(rf"^\+export {re.escape(variable)} = [^\r\n]*", re.MULTILINE)
    updated, count = pattern.subn(lambda _match: f"+export {variable} = {value}", content)
    if count == 0:
        raise PatchRewriteFailureError(
            f"No '+export {variable} = ...' line found in {patch_path}; cannot set version {value}."
        )

    backup = patch_path.with_name(patch_path.name + ".bak")
    shutil.copy2(patch_path, backup)
    try:
        with open(patch_path, "w", encoding="utf-8", newline="") as f:
            f.write(updated)
    except OSError:
        shutil.copy2(backup, patch_path)
        raise
    finally:
        backup.unlink(missing_ok=True)

    logger.debug("Set %s to %s in %s (%d line(s))", variable, value, patch_path, count)
    return count


def update_metadata(repo_root: Path, version: str, config: MergeConfig) -> list[str]:
    """Refresh the README snapshot, version file and patch, then stage them."""
    write_readme_snapshot(repo_root, version, config.readme_source, config.readme_snapshot)
    write_version_file(repo_root, version, config.version_file)
    rewrite_patch_version(
        repo_root / config.patch_file,
        config.patch_variable,
        f"{version}{config.version_suffix}",
    )

    staged = [config.readme_snapshot, config.version_file, config.patch_file]
    result = run_git(repo_root, ["add", "--", *staged])
    if not result.ok:
        raise GitCommandError(result.command, result.stderr, result.returncode)
    return staged
