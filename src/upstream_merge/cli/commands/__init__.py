"""CLI command modules for upstream-merge."""

from __future__ import annotations

import typer

from .check import check
from .merge import merge


def register_commands(app: typer.Typer) -> None:
    app.command()(merge)
    app.command()(check)


__all__ = ["register_commands", "check", "merge"]
