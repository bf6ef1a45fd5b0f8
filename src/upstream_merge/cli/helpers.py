"""Shared console and banner for CLI commands."""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.text import Text

from upstream_merge.core.constants import BANNER, TAGLINE

console = Console()


def show_banner() -> None:
    console.print(Align.center(Text(BANNER, style="bold bright_cyan")))
    console.print(Align.center(Text(TAGLINE, style="italic bright_yellow")))
    console.print()


__all__ = ["console", "show_banner"]
