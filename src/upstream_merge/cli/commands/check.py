"""Check that the tools the merge workflow shells out to are installed."""

from __future__ import annotations

import shutil
from pathlib import Path

import typer
from rich.markup import escape

from upstream_merge.cli import StepTracker
from upstream_merge.cli.helpers import console, show_banner
from upstream_merge.core.config import MergeConfigError, load_merge_config
from upstream_merge.merge.vendor import vendor_tools


def check_tool_for_tracker(tool: str, tracker: StepTracker) -> bool:
    if shutil.which(tool):
        tracker.complete(tool, "available")
        return True
    tracker.error(tool, "not found")
    return False


def check(
    repo: Path = typer.Option(None, "--repo", help="Downstream repository root (defaults to the current directory)"),
    config_file: Path = typer.Option(None, "--config", help="Merge config file (defaults to <repo>/.upstream-merge.yaml)"),
) -> None:
    """Check that git and the vendoring tools are installed."""
    show_banner()
    repo_root = (repo or Path.cwd()).resolve()
    try:
        config = load_merge_config(repo_root, config_file)
    except MergeConfigError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
        raise typer.Exit(1)

    tracker = StepTracker("Check Available Tools")
    tools = ["git", *[tool for tool in vendor_tools(config.vendor_commands) if tool != "git"]]
    for tool in tools:
        tracker.add(tool, "Git version control" if tool == "git" else f"Vendoring tool ({tool})")

    missing = [tool for tool in tools if not check_tool_for_tracker(tool, tracker)]
    console.print(tracker.render())

    if missing:
        console.print(f"\n[red]Missing tools:[/red] {', '.join(missing)}")
        raise typer.Exit(1)
    console.print("\n[bold green]upstream-merge is ready to use![/bold green]")


__all__ = ["check"]
