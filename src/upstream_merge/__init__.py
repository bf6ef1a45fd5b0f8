"""
upstream-merge - merge upstream release tags into a downstream fork.

Usage:
    upstream-merge merge <version> [target-branch] [upstream-remote]
    upstream-merge check
"""

import logging

import typer

from upstream_merge.cli.commands import register_commands
from upstream_merge.cli.helpers import console, show_banner

app = typer.Typer(
    name="upstream-merge",
    help="Merge upstream release tags into a downstream fork",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
):
    """Show banner when no subcommand is provided."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        show_banner()
        console.print("[dim]Run 'upstream-merge --help' for usage information[/dim]")
        console.print()


register_commands(app)


def main():
    app()


if __name__ == "__main__":
    main()
