"""Pre-flight validation for upstream merges.

Validates invocation parameters and inspects the repository read-only:
git must recognize the work tree, the upstream remote must point at the
expected URL, and the working tree must carry no uncommitted change.
Nothing here mutates the repository.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path

from upstream_merge.core import constants
from upstream_merge.core.config import MergeConfig
from upstream_merge.core.git_ops import first_line, run_git
from upstream_merge.merge.errors import (
    DirtyWorkingTreeError,
    MissingArgumentError,
    NotAGitRepositoryError,
    UpstreamMergeError,
    WrongRemoteError,
)

__all__ = [
    "MergeParameters",
    "PreflightIssue",
    "PreflightResult",
    "resolve_parameters",
    "run_merge_preflight",
]

_PROBE_TIMEOUT = 15


@dataclass(frozen=True)
class MergeParameters:
    """Resolved invocation parameters."""

    version: str
    target_branch: str = constants.DEFAULT_TARGET_BRANCH
    upstream_remote: str = constants.DEFAULT_UPSTREAM_REMOTE

    @property
    def rebase_branch(self) -> str:
        return f"{self.version}{constants.REBASE_BRANCH_SUFFIX}{self.target_branch}"

    @property
    def tag_ref(self) -> str:
        return f"tags/{self.version}"

    @property
    def invocation(self) -> str:
        return shlex.join(
            ["upstream-merge", "merge", self.version, self.target_branch, self.upstream_remote]
        )


def resolve_parameters(
    version: str | None,
    target_branch: str | None = None,
    upstream_remote: str | None = None,
) -> MergeParameters:
    """Validate raw parameters and apply defaults for the optional ones."""
    if version is None or not version.strip():
        raise MissingArgumentError("Version argument must be defined.")
    return MergeParameters(
        version=version,
        target_branch=(target_branch or "").strip() or constants.DEFAULT_TARGET_BRANCH,
        upstream_remote=(upstream_remote or "").strip() or constants.DEFAULT_UPSTREAM_REMOTE,
    )


@dataclass
class PreflightIssue:
    """Single preflight issue with optional remediation command."""

    code: str
    check: str
    message: str
    remediation: str
    command: str | None = None
    error_type: type[UpstreamMergeError] = UpstreamMergeError


@dataclass
class PreflightResult:
    """Result envelope for merge preflight checks."""

    repo_root: Path
    errors: list[PreflightIssue] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.errors

    @property
    def first_error(self) -> PreflightIssue | None:
        return self.errors[0] if self.errors else None

    def remediation_commands(self) -> list[str]:
        return [issue.command for issue in self.errors if issue.command]

    def raise_for_errors(self) -> None:
        """Raise the typed exception matching the first error, if any."""
        issue = self.first_error
        if issue is not None:
            raise issue.error_type(issue.message)


def _is_dubious_ownership(stderr: str) -> bool:
    text = stderr.lower()
    return "dubious ownership" in text or "safe.directory" in text


def _check_repository(root: Path, result: PreflightResult) -> bool:
    repo_check = run_git(root, ["rev-parse", "--is-inside-work-tree"], timeout=_PROBE_TIMEOUT)
    if repo_check.ok and repo_check.stdout.strip().lower() == "true":
        return True

    if _is_dubious_ownership(repo_check.stderr):
        result.errors.append(
            PreflightIssue(
                code="UNTRUSTED_REPOSITORY",
                check="repository_trust",
                message="Git rejected repository ownership trust (safe.directory).",
                remediation="Mark the repository as trusted for this machine.",
                command=f"git config --global --add safe.directory {shlex.quote(str(root))}",
                error_type=NotAGitRepositoryError,
            )
        )
    else:
        detail = first_line(repo_check.stderr) or "Repository is not recognized by git."
        result.errors.append(
            PreflightIssue(
                code="NOT_A_GIT_REPOSITORY",
                check="repository_presence",
                message=f"Git repository check failed: {detail}",
                remediation="Run the command from the downstream repository root or pass --repo.",
                command=f"cd {shlex.quote(str(root))} && git status",
                error_type=NotAGitRepositoryError,
            )
        )
    return False


def _check_upstream_remote(
    root: Path, params: MergeParameters, config: MergeConfig, result: PreflightResult
) -> bool:
    remote = params.upstream_remote
    url_check = run_git(root, ["remote", "get-url", remote], timeout=_PROBE_TIMEOUT)
    if not url_check.ok:
        result.errors.append(
            PreflightIssue(
                code="WRONG_REMOTE",
                check="upstream_remote",
                message=f"Remote '{remote}' is not configured; it should point at {config.upstream_url}.",
                remediation="Add the upstream remote.",
                command=f"git remote add {shlex.quote(remote)} {shlex.quote(config.upstream_url)}",
                error_type=WrongRemoteError,
            )
        )
        return False

    actual = url_check.stdout.strip()
    if actual != config.upstream_url:
        result.errors.append(
            PreflightIssue(
                code="WRONG_REMOTE",
                check="upstream_remote",
                message=(
                    f"Upstream remote url should be set to {config.upstream_url} "
                    f"(remote '{remote}' points at {actual})."
                ),
                remediation="Point the upstream remote at the expected repository.",
                command=f"git remote set-url {shlex.quote(remote)} {shlex.quote(config.upstream_url)}",
                error_type=WrongRemoteError,
            )
        )
        return False
    return True


def _check_clean_tree(root: Path, result: PreflightResult) -> bool:
    # Refresh stat info so touched-but-unchanged files do not count as dirty.
    run_git(root, ["update-index", "-q", "--refresh"], timeout=_PROBE_TIMEOUT)
    diff_check = run_git(root, ["diff-index", "--quiet", "HEAD", "--"], timeout=_PROBE_TIMEOUT)
    if diff_check.ok:
        return True

    status = run_git(root, ["status"], timeout=_PROBE_TIMEOUT)
    detail = status.stdout.strip() or first_line(diff_check.stderr)
    result.errors.append(
        PreflightIssue(
            code="DIRTY_WORKING_TREE",
            check="working_tree",
            message=f"!! Git status not clean, aborting !!\n\n{detail}",
            remediation="Commit or stash local changes before merging.",
            command="git stash",
            error_type=DirtyWorkingTreeError,
        )
    )
    return False


def run_merge_preflight(
    repo_root: Path,
    params: MergeParameters,
    config: MergeConfig,
) -> PreflightResult:
    """Run read-only preflight checks; stops at the first failing check."""
    root = repo_root.resolve()
    result = PreflightResult(repo_root=root)

    if not _check_repository(root, result):
        return result
    if not _check_upstream_remote(root, params, config, result):
        return result
    _check_clean_tree(root, result)
    return result
