"""Dependency vendoring refresh after the merge commit."""

from __future__ import annotations

import logging
from pathlib import Path

from upstream_merge.core.git_ops import first_line, run_command, run_git
from upstream_merge.merge.errors import GitCommandError, VendorFailureError

__all__ = ["run_vendor_commands", "vendor_paths_changed", "stage_vendor_paths", "vendor_tools"]

logger = logging.getLogger(__name__)


def vendor_tools(commands: list[list[str]]) -> list[str]:
    """Return the distinct executables the vendor commands rely on, in order."""
    tools: list[str] = []
    for command in commands:
        if command and command[0] not in tools:
            tools.append(command[0])
    return tools


def run_vendor_commands(repo_root: Path, commands: list[list[str]]) -> None:
    """Run each vendoring command in order, stopping at the first failure."""
    for command in commands:
        result = run_command(command, cwd=repo_root)
        if result.returncode == 127:
            raise VendorFailureError(f"{command[0]} not found on PATH; {result.command} failed. Aborting!")
        if not result.ok:
            detail = first_line(result.stderr) or f"exit code {result.returncode}"
            raise VendorFailureError(f"{result.command} failed ({detail}). Aborting!")
        logger.info("%s completed", result.command)


def vendor_paths_changed(repo_root: Path, paths: list[str]) -> bool:
    """Check whether vendoring left any change, tracked or not, under ``paths``."""
    result = run_git(repo_root, ["status", "--porcelain", "--untracked-files=all", "--", *paths])
    if not result.ok:
        raise GitCommandError(result.command, result.stderr, result.returncode)
    return bool(result.stdout.strip())


def stage_vendor_paths(repo_root: Path, paths: list[str]) -> None:
    result = run_git(repo_root, ["add", "--all", "--", *paths])
    if not result.ok:
        raise GitCommandError(result.command, result.stderr, result.returncode)
