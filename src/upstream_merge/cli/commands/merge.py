"""Merge command implementation.

Merges an upstream release tag into a new rebase branch of the downstream
fork. All conflicts are resolved in favour of upstream, except for the
protected downstream files, which keep their pre-merge content.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from upstream_merge.cli import StepTracker
from upstream_merge.cli.helpers import console, show_banner
from upstream_merge.merge.executor import execute_upstream_merge


def merge(
    version: str = typer.Argument(None, help="Upstream tag to merge, e.g. v1.2.3 (required)"),
    target_branch: str = typer.Argument("main", help="Branch to update, e.g. main or release-3.10"),
    upstream_remote: str = typer.Argument("upstream", help="Remote pointing at the upstream repository"),
    repo: Path = typer.Option(None, "--repo", help="Downstream repository root (defaults to the current directory)"),
    config_file: Path = typer.Option(None, "--config", help="Merge config file (defaults to <repo>/.upstream-merge.yaml)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate and show what would be done without executing"),
) -> None:
    """Merge upstream tag VERSION into a new VERSION-rebase-TARGET_BRANCH branch.

    Warning: every conflict is overwritten with the upstream version. A
    downstream patch that is not in the incoming upstream code is lost.
    """
    show_banner()

    tracker = StepTracker("Upstream Merge")
    repo_root = (repo or Path.cwd()).resolve()

    result = execute_upstream_merge(
        version=version,
        target_branch=target_branch,
        upstream_remote=upstream_remote,
        repo_root=repo_root,
        tracker=tracker,
        config_file=config_file,
        dry_run=dry_run,
    )

    console.print(tracker.render())
    if not result.success:
        if result.error:
            console.print(f"\n[red]Error:[/red] {escape(result.error)}", highlight=False)
        remediation = result.preflight_result.remediation_commands() if result.preflight_result else []
        for command in remediation:
            console.print(f"[dim]Try:[/dim] {command}", highlight=False, markup=False)
        raise typer.Exit(1)

    if dry_run:
        return

    console.print("\n[bold green]** Upstream merge complete! **[/bold green]")
    console.print("View the above incoming commits to verify all is well")
    console.print("(mirrors the commit listing the PR will show)")
    console.print()
    console.print(f"Now make a pull request from [cyan]{result.rebase_branch}[/cyan].")


__all__ = ["merge"]
