"""Upstream tag merge and deterministic conflict resolution.

After a non-committing merge of the upstream tag, every unmerged path is
resolved by its two-letter porcelain status (ours, theirs):

    DD, AU, UD, DU  -> removed from the result
    UA              -> upstream's new file is added as-is
    AA, UU          -> upstream's ("their") content replaces ours

Deletions always win, everything else takes upstream. A status outside this
table is left unresolved so the conflict-marker guard fails the merge.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from upstream_merge.core.git_ops import GitCommandResult, run_git
from upstream_merge.merge.errors import (
    GitCommandError,
    UnknownTagError,
    UnresolvedConflictMarkersError,
)

__all__ = [
    "ConflictSides",
    "ConflictRecord",
    "merge_upstream_tag",
    "restore_protected_paths",
    "get_unmerged_paths",
    "get_conflict_records",
    "parse_porcelain_status",
    "resolve_conflicts",
    "verify_no_conflict_markers",
]

logger = logging.getLogger(__name__)


class ConflictSides(StrEnum):
    BOTH_DELETED = "DD"
    ADDED_BY_US = "AU"
    DELETED_BY_THEM = "UD"
    ADDED_BY_THEM = "UA"
    DELETED_BY_US = "DU"
    BOTH_ADDED = "AA"
    BOTH_MODIFIED = "UU"


# AU resolves to removal as well; a file added only downstream does not
# survive an upstream merge.
REMOVE_SIDES = frozenset(
    {
        ConflictSides.BOTH_DELETED,
        ConflictSides.ADDED_BY_US,
        ConflictSides.DELETED_BY_THEM,
        ConflictSides.DELETED_BY_US,
    }
)
ADD_SIDES = frozenset({ConflictSides.ADDED_BY_THEM})
TAKE_THEIRS_SIDES = frozenset({ConflictSides.BOTH_ADDED, ConflictSides.BOTH_MODIFIED})


@dataclass
class ConflictRecord:
    """An unmerged path and its porcelain status code."""

    path: str
    code: str

    @property
    def sides(self) -> ConflictSides | None:
        try:
            return ConflictSides(self.code)
        except ValueError:
            return None

    @property
    def resolution(self) -> str | None:
        sides = self.sides
        if sides in REMOVE_SIDES:
            return "remove"
        if sides in ADD_SIDES:
            return "add"
        if sides in TAKE_THEIRS_SIDES:
            return "theirs"
        return None


def _git_or_raise(repo_root: Path, args: list[str]) -> GitCommandResult:
    result = run_git(repo_root, args)
    if not result.ok:
        raise GitCommandError(result.command, result.stderr, result.returncode)
    return result


def merge_upstream_tag(repo_root: Path, version: str) -> bool:
    """Merge ``tags/<version>`` without committing.

    Returns True when the merge stopped on conflicts, False when it applied
    cleanly. ``--no-ff`` keeps HEAD at the pre-merge commit so protected
    files can be restored from it.
    """
    tag_check = run_git(repo_root, ["rev-parse", "--verify", "--quiet", f"refs/tags/{version}^{{commit}}"])
    if not tag_check.ok:
        raise UnknownTagError(f"Tag '{version}' does not exist; was it fetched from the upstream remote?")

    result = run_git(repo_root, ["merge", "--no-commit", "--no-ff", f"tags/{version}"])
    if result.ok:
        return False

    merge_head = run_git(repo_root, ["rev-parse", "--verify", "--quiet", "MERGE_HEAD"])
    if result.returncode == 1 and merge_head.ok:
        logger.info("Merge of tags/%s stopped with conflicts", version)
        return True
    raise GitCommandError(result.command, result.stderr or result.stdout, result.returncode)


def restore_protected_paths(repo_root: Path, paths: list[str]) -> None:
    """Discard merged changes to ``paths``, restoring their pre-merge state."""
    for path in paths:
        in_head = run_git(repo_root, ["cat-file", "-e", f"HEAD:{path}"])
        if in_head.ok:
            _git_or_raise(repo_root, ["checkout", "HEAD", "--", path])
        else:
            # Absent before the merge, so it must stay absent.
            _git_or_raise(repo_root, ["rm", "-f", "--quiet", "--ignore-unmatch", "--", path])
        logger.debug("Restored protected path %s", path)


def get_unmerged_paths(repo_root: Path) -> list[str]:
    result = run_git(repo_root, ["diff", "--name-only", "--diff-filter=U", "-z"])
    if not result.ok:
        raise GitCommandError(result.command, result.stderr, result.returncode)
    return sorted({entry for entry in result.stdout.split("\0") if entry})


def parse_porcelain_status(output: str) -> dict[str, str]:
    """Parse ``git status --porcelain=v1 -z`` output into ``{path: code}``."""
    statuses: dict[str, str] = {}
    entries = output.split("\0")
    index = 0
    while index < len(entries):
        entry = entries[index]
        index += 1
        if len(entry) < 4:
            continue
        code, path = entry[:2], entry[3:]
        statuses[path] = code
        # Renames and copies carry the source path as a separate entry.
        if code[0] in "RC":
            index += 1
    return statuses


def get_conflict_records(repo_root: Path) -> list[ConflictRecord]:
    """Return a record for every unmerged path left by the merge."""
    paths = get_unmerged_paths(repo_root)
    if not paths:
        return []

    status = _git_or_raise(
        repo_root, ["status", "--porcelain=v1", "-z", "--untracked-files=no", "--", *paths]
    )
    codes = parse_porcelain_status(status.stdout)
    return [ConflictRecord(path=path, code=codes.get(path, "??")) for path in paths]


def resolve_conflicts(repo_root: Path, records: list[ConflictRecord]) -> list[ConflictRecord]:
    """Apply the resolution table to ``records``.

    Returns the records that were resolved. Records with an unknown status
    are logged and left in place.
    """
    resolved: list[ConflictRecord] = []
    for record in records:
        resolution = record.resolution
        if resolution == "remove":
            _git_or_raise(repo_root, ["rm", "--quiet", "--", record.path])
        elif resolution == "add":
            _git_or_raise(repo_root, ["add", "--", record.path])
        elif resolution == "theirs":
            _git_or_raise(repo_root, ["checkout", "--theirs", "--", record.path])
            _git_or_raise(repo_root, ["add", "--", record.path])
        else:
            logger.warning("No resolution for %s (status %s); leaving it unmerged", record.path, record.code)
            continue
        logger.debug("Resolved %s (%s) by %s", record.path, record.code, resolution)
        resolved.append(record)
    return resolved


def verify_no_conflict_markers(repo_root: Path) -> None:
    """Fail if conflict markers or unmerged paths survived resolution."""
    check = run_git(repo_root, ["diff", "--check"])
    leftover = get_unmerged_paths(repo_root)
    if check.stdout.strip() or leftover:
        # Location lines read "<path>:<line>: <problem>"; diff lines follow them.
        located = {
            line.split(":", 1)[0]
            for line in check.stdout.splitlines()
            if ":" in line and not line.startswith(("+", "-", " "))
        }
        flagged = sorted(set(leftover) | located)
        detail = "\n".join(f"  - {path}" for path in flagged)
        raise UnresolvedConflictMarkersError(
            "All conflict markers should have been taken care of, aborting."
            + (f"\n{detail}" if detail else ""),
            paths=flagged,
        )
