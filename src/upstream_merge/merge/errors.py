"""Exception hierarchy for the upstream merge workflow.

Every failure is fatal: the workflow stops at the first error and leaves the
repository as-is for the operator to inspect.
"""

from __future__ import annotations

__all__ = [
    "UpstreamMergeError",
    "MissingArgumentError",
    "NotAGitRepositoryError",
    "WrongRemoteError",
    "DirtyWorkingTreeError",
    "FetchFailureError",
    "NotTrackingRemoteError",
    "BranchExistsError",
    "UnknownTagError",
    "UnresolvedConflictMarkersError",
    "PatchRewriteFailureError",
    "NothingToCommitError",
    "VendorFailureError",
    "GitCommandError",
]


class UpstreamMergeError(Exception):
    """Base class for all workflow failures."""

    code = "UPSTREAM_MERGE_FAILED"


class MissingArgumentError(UpstreamMergeError):
    code = "MISSING_ARGUMENT"


class NotAGitRepositoryError(UpstreamMergeError):
    code = "NOT_A_GIT_REPOSITORY"


class WrongRemoteError(UpstreamMergeError):
    code = "WRONG_REMOTE"


class DirtyWorkingTreeError(UpstreamMergeError):
    code = "DIRTY_WORKING_TREE"


class FetchFailureError(UpstreamMergeError):
    code = "FETCH_FAILURE"


class NotTrackingRemoteError(UpstreamMergeError):
    code = "NOT_TRACKING_REMOTE"


class BranchExistsError(UpstreamMergeError):
    code = "BRANCH_EXISTS"


class UnknownTagError(UpstreamMergeError):
    code = "UNKNOWN_TAG"


class UnresolvedConflictMarkersError(UpstreamMergeError):
    """Raised when conflicts survive the resolution table."""

    code = "UNRESOLVED_CONFLICT_MARKERS"

    def __init__(self, message: str, paths: list[str] | None = None) -> None:
        super().__init__(message)
        self.paths = paths or []


class PatchRewriteFailureError(UpstreamMergeError):
    code = "PATCH_REWRITE_FAILURE"


class NothingToCommitError(UpstreamMergeError):
    code = "NOTHING_TO_COMMIT"


class VendorFailureError(UpstreamMergeError):
    code = "VENDOR_FAILURE"


class GitCommandError(UpstreamMergeError):
    """An unexpected git failure outside the validated error classes."""

    code = "GIT_COMMAND_FAILED"

    def __init__(self, command: str, stderr: str, returncode: int) -> None:
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(f"`{command}` failed: {detail}")
        self.command = command
        self.stderr = stderr
        self.returncode = returncode
