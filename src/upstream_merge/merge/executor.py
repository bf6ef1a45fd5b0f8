"""Core upstream merge execution logic.

Runs the workflow as a fixed sequence of tracked steps:

1. validate  - parameters, upstream remote URL, clean working tree
2. fetch     - all commits and tags from the upstream remote
3. branch    - update the target branch and create the rebase branch
4. merge     - merge the tag, restore protected files, resolve conflicts
5. metadata  - README snapshot, version file, patch version
6. commit    - merge commit and incoming commit listing
7. vendor    - re-run vendoring, commit its changes if any

The first failing step aborts the run. Nothing is rolled back; the
repository is left as-is for the operator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from upstream_merge.cli import StepTracker
from upstream_merge.cli.helpers import console
from upstream_merge.core.config import MergeConfig, load_merge_config
from upstream_merge.core.constants import NO_CONFLICTS_PLACEHOLDER
from upstream_merge.core.git_ops import first_line, run_git
from upstream_merge.merge.conflicts import (
    ConflictRecord,
    get_conflict_records,
    merge_upstream_tag,
    resolve_conflicts,
    restore_protected_paths,
    verify_no_conflict_markers,
)
from upstream_merge.merge.errors import (
    BranchExistsError,
    FetchFailureError,
    GitCommandError,
    NotTrackingRemoteError,
    NothingToCommitError,
    UpstreamMergeError,
)
from upstream_merge.merge.metadata import update_metadata
from upstream_merge.merge.preflight import (
    MergeParameters,
    PreflightResult,
    resolve_parameters,
    run_merge_preflight,
)
from upstream_merge.merge.vendor import (
    run_vendor_commands,
    stage_vendor_paths,
    vendor_paths_changed,
)

__all__ = [
    "MergeResult",
    "STEPS",
    "add_steps",
    "build_commit_message",
    "execute_upstream_merge",
]

logger = logging.getLogger(__name__)

STEPS = [
    ("validate", "Validate arguments and repository"),
    ("fetch", "Fetch upstream commits and tags"),
    ("branch", "Prepare rebase branch"),
    ("merge", "Merge upstream tag"),
    ("metadata", "Update downstream metadata"),
    ("commit", "Commit merge"),
    ("vendor", "Refresh vendored dependencies"),
]


@dataclass
class MergeResult:
    """Result of an upstream merge run."""

    success: bool
    params: MergeParameters | None = None
    rebase_branch: str | None = None
    tracking_ref: str | None = None
    resolved_conflicts: list[ConflictRecord] = field(default_factory=list)
    commits: list[str] = field(default_factory=list)
    vendor_changed: bool = False
    error: str | None = None
    error_code: str | None = None
    failed_step: str | None = None
    preflight_result: PreflightResult | None = None


def add_steps(tracker: StepTracker) -> None:
    for key, label in STEPS:
        tracker.add(key, label)


def build_commit_message(
    params: MergeParameters,
    product_name: str,
    resolved: list[ConflictRecord],
) -> list[str]:
    """Return the merge commit message as a list of paragraphs."""
    conflicts = "\n".join(record.path for record in resolved) or NO_CONFLICTS_PLACEHOLDER
    return [
        f"Merge upstream tag {params.version}",
        f"{product_name} {params.version}",
        f"Merge executed via {params.invocation}",
        f"Overwritten conflicts:\n{conflicts}",
    ]


def _git(repo_root: Path, args: list[str]) -> str:
    result = run_git(repo_root, args)
    if not result.ok:
        raise GitCommandError(result.command, result.stderr or result.stdout, result.returncode)
    return result.stdout.strip()


def _commit(repo_root: Path, paragraphs: list[str]) -> str:
    args = ["commit", "--quiet"]
    for paragraph in paragraphs:
        args.extend(["-m", paragraph])
    _git(repo_root, args)
    return _git(repo_root, ["rev-parse", "HEAD"])


def _fetch(repo_root: Path, params: MergeParameters) -> None:
    result = run_git(repo_root, ["fetch", "--tags", params.upstream_remote])
    if not result.ok:
        detail = first_line(result.stderr) or f"exit code {result.returncode}"
        raise FetchFailureError(f"Fetching from '{params.upstream_remote}' failed: {detail}")


def _prepare_branch(repo_root: Path, params: MergeParameters) -> str:
    """Update the target branch from its tracking ref and create the rebase branch."""
    _git(repo_root, ["checkout", "--quiet", params.target_branch])

    upstream = run_git(repo_root, ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"])
    if not upstream.ok or not upstream.stdout.strip():
        raise NotTrackingRemoteError(
            f"Branch '{params.target_branch}' is not properly tracking a remote branch as required, aborting."
        )
    tracking_ref = upstream.stdout.strip()

    _git(repo_root, ["merge", "--quiet", "--no-edit", tracking_ref])

    exists = run_git(repo_root, ["rev-parse", "--verify", "--quiet", f"refs/heads/{params.rebase_branch}"])
    if exists.ok:
        raise BranchExistsError(
            f"Expected branch {params.rebase_branch} to not exist, delete and retry."
        )
    _git(repo_root, ["checkout", "--quiet", "-b", params.rebase_branch])
    return tracking_ref


def _print_incoming_commits(repo_root: Path, tracking_ref: str, params: MergeParameters) -> None:
    base = run_git(repo_root, ["merge-base", tracking_ref, params.tag_ref])
    if not base.ok:
        logger.warning("Could not find merge base of %s and %s", tracking_ref, params.tag_ref)
        return
    log = run_git(
        repo_root,
        ["--no-pager", "log", "--oneline", f"{base.stdout.strip()}..{params.tag_ref}"],
    )
    if not log.ok:
        logger.warning("Could not list incoming commits: %s", first_line(log.stderr))
        return
    console.print(f"\n[cyan]Incoming commits from {params.tag_ref}:[/cyan]")
    if log.stdout.strip():
        console.print(log.stdout.rstrip(), highlight=False, markup=False)
    else:
        console.print("[dim](none)[/dim]")


def _show_dry_run(params: MergeParameters, config: MergeConfig) -> None:
    console.print("\n[cyan]Dry run - would execute:[/cyan]")
    steps = [
        f"git fetch --tags {params.upstream_remote}",
        f"git checkout {params.target_branch}",
        "git merge @{u}",
        f"git checkout -b {params.rebase_branch}",
        f"git merge --no-commit --no-ff {params.tag_ref}",
    ]
    steps.extend(f"git checkout HEAD -- {path}" for path in config.protected_paths)
    steps.extend(
        [
            "resolve unmerged files (DD/AU/UD/DU: rm, UA: add, AA/UU: take theirs)",
            f"git show {params.tag_ref}:{config.readme_source} > {config.readme_snapshot}",
            f"echo {params.version} > {config.version_file}",
            f"set {config.patch_variable} = {params.version}{config.version_suffix} in {config.patch_file}",
            f'git commit -m "Merge upstream tag {params.version}" ...',
        ]
    )
    steps.extend(" ".join(command) for command in config.vendor_commands)
    steps.append(f'git commit -m "{config.vendor_commit_message}" (only if {", ".join(config.vendor_paths)} changed)')
    for idx, step in enumerate(steps, start=1):
        console.print(f"  {idx}. {step}", highlight=False, markup=False)


def execute_upstream_merge(
    version: str | None,
    target_branch: str | None,
    upstream_remote: str | None,
    repo_root: Path,
    tracker: StepTracker,
    config: MergeConfig | None = None,
    config_file: Path | None = None,
    dry_run: bool = False,
) -> MergeResult:
    """Merge upstream tag ``version`` into ``target_branch`` of the fork at ``repo_root``.

    Args:
        version: Upstream tag to merge (required).
        target_branch: Branch to update, ``main`` when empty.
        upstream_remote: Remote holding the upstream tags, ``upstream`` when empty.
        repo_root: Downstream repository root.
        tracker: StepTracker for progress display.
        config: Preloaded configuration; loaded from ``repo_root`` when omitted.
        config_file: Explicit configuration file, used when ``config`` is omitted.
        dry_run: Only validate and show the commands that would run.

    Returns:
        MergeResult with success status and details.
    """
    result = MergeResult(success=False)
    add_steps(tracker)
    step = "validate"

    try:
        tracker.start("validate")
        params = resolve_parameters(version, target_branch, upstream_remote)
        result.params = params
        result.rebase_branch = params.rebase_branch
        if config is None:
            config = load_merge_config(repo_root, config_file)

        preflight = run_merge_preflight(repo_root, params, config)
        result.preflight_result = preflight
        preflight.raise_for_errors()
        tracker.complete("validate", f"{params.upstream_remote} -> {config.upstream_url}")

        if dry_run:
            for key, _label in STEPS[1:]:
                tracker.skip(key, "dry run")
            _show_dry_run(params, config)
            result.success = True
            return result

        step = "fetch"
        tracker.start("fetch")
        _fetch(repo_root, params)
        tracker.complete("fetch", params.upstream_remote)

        step = "branch"
        tracker.start("branch")
        result.tracking_ref = _prepare_branch(repo_root, params)
        tracker.complete("branch", params.rebase_branch)

        step = "merge"
        tracker.start("merge")
        merge_upstream_tag(repo_root, params.version)
        restore_protected_paths(repo_root, config.protected_paths)
        result.resolved_conflicts = resolve_conflicts(repo_root, get_conflict_records(repo_root))
        verify_no_conflict_markers(repo_root)
        tracker.complete("merge", f"{len(result.resolved_conflicts)} conflict(s) overwritten")

        step = "metadata"
        tracker.start("metadata")
        update_metadata(repo_root, params.version, config)
        tracker.complete("metadata", config.version_file)

        step = "commit"
        tracker.start("commit")
        staged = run_git(repo_root, ["diff", "--staged", "--quiet"])
        if staged.ok:
            raise NothingToCommitError("No changed files in merge?! Aborting.")
        message = build_commit_message(params, config.product_name, result.resolved_conflicts)
        result.commits.append(_commit(repo_root, message))
        tracker.complete("commit", result.commits[-1][:12])
        _print_incoming_commits(repo_root, result.tracking_ref, params)

        step = "vendor"
        tracker.start("vendor")
        run_vendor_commands(repo_root, config.vendor_commands)
        if vendor_paths_changed(repo_root, config.vendor_paths):
            stage_vendor_paths(repo_root, config.vendor_paths)
            result.commits.append(_commit(repo_root, [config.vendor_commit_message]))
            result.vendor_changed = True
            tracker.complete("vendor", result.commits[-1][:12])
        else:
            console.print("No changed files in vendor directory. Skipping add.")
            tracker.complete("vendor", "no changes")
    except UpstreamMergeError as exc:
        logger.debug("Step %s failed", step, exc_info=True)
        tracker.error(step, exc.code.lower().replace("_", " "))
        result.error = str(exc)
        result.error_code = exc.code
        result.failed_step = step
        return result

    result.success = True
    return result
