"""Step tracking rendered as a Rich tree."""

from __future__ import annotations

from dataclasses import dataclass

from rich.tree import Tree

_SYMBOLS = {
    "done": "[green]●[/green]",
    "pending": "[green dim]○[/green dim]",
    "running": "[cyan]○[/cyan]",
    "error": "[red]●[/red]",
    "skipped": "[yellow]○[/yellow]",
}


@dataclass
class Step:
    key: str
    label: str
    status: str = "pending"
    detail: str = ""


class StepTracker:
    """Track workflow steps and render them as a tree."""

    def __init__(self, title: str):
        self.title = title
        self.steps: list[Step] = []

    def add(self, key: str, label: str) -> None:
        if self.get(key) is None:
            self.steps.append(Step(key=key, label=label))

    def get(self, key: str) -> Step | None:
        for step in self.steps:
            if step.key == key:
                return step
        return None

    def start(self, key: str, detail: str = "") -> None:
        self._update(key, "running", detail)

    def complete(self, key: str, detail: str = "") -> None:
        self._update(key, "done", detail)

    def error(self, key: str, detail: str = "") -> None:
        self._update(key, "error", detail)

    def skip(self, key: str, detail: str = "") -> None:
        self._update(key, "skipped", detail)

    def _update(self, key: str, status: str, detail: str) -> None:
        step = self.get(key)
        if step is None:
            step = Step(key=key, label=key)
            self.steps.append(step)
        step.status = status
        if detail:
            step.detail = detail

    def render(self) -> Tree:
        tree = Tree(f"[cyan]{self.title}[/cyan]", guide_style="grey50")
        for step in self.steps:
            symbol = _SYMBOLS.get(step.status, " ")
            detail = step.detail.strip()
            if step.status == "pending":
                text = f"{step.label} ({detail})" if detail else step.label
                line = f"{symbol} [bright_black]{text}[/bright_black]"
            elif detail:
                line = f"{symbol} [white]{step.label}[/white] [bright_black]({detail})[/bright_black]"
            else:
                line = f"{symbol} [white]{step.label}[/white]"
            tree.add(line)
        return tree
