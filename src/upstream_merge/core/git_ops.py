"""Thin subprocess wrappers around the git executable."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "GitCommandResult",
    "run_git",
    "run_command",
    "first_line",
]

logger = logging.getLogger(__name__)


@dataclass
class GitCommandResult:
    """Normalized result of a subprocess invocation."""

    args: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command(self) -> str:
        return " ".join(self.args)


def run_command(
    args: list[str],
    cwd: Path,
    timeout: int | None = None,
) -> GitCommandResult:
    """Run a command and normalize failure shape for deterministic handling.

    A missing executable maps to exit code 127 and a timeout to 124, the
    same codes a POSIX shell would report.
    """
    logger.debug("Running %s (cwd=%s)", " ".join(args), cwd)
    try:
        completed = subprocess.run(
            args,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout,
        )
    except FileNotFoundError:
        return GitCommandResult(
            args=list(args),
            returncode=127,
            stdout="",
            stderr=f"{args[0]} executable not found on PATH",
        )
    except subprocess.TimeoutExpired:
        return GitCommandResult(
            args=list(args),
            returncode=124,
            stdout="",
            stderr=f"command timed out: {' '.join(args)}",
        )

    result = GitCommandResult(
        args=list(args),
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
    if not result.ok:
        logger.debug("%s exited %d: %s", result.command, result.returncode, first_line(result.stderr))
    return result


def run_git(repo_root: Path, args: list[str], timeout: int | None = None) -> GitCommandResult:
    """Run ``git <args>`` inside ``repo_root``."""
    return run_command(["git", *args], cwd=repo_root, timeout=timeout)


def first_line(text: str) -> str:
    for line in text.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return ""
