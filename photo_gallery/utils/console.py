"""Console helpers for the command-line scripts (progress bar, result tables, prompts)."""
from __future__ import annotations

from typing import Any, Iterable, Tuple

from rich.console import Console
from rich.progress import (
    Progress,
    BarColumn,
    MofNCompleteColumn,
    TimeElapsedColumn,
    TextColumn,
)
from rich.prompt import Confirm, Prompt
from rich.table import Table

console = Console()


def make_progress() -> Progress:
    return Progress(
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=False,
    )


def print_results(title: str, rows: Iterable[Tuple[str, Any]]) -> None:
    table = Table(title=title, show_header=False)
    table.add_column("metric")
    table.add_column("value", justify="right")
    for label, value in rows:
        table.add_row(label, "-" if value is None else str(value))
    console.print(table)


def confirm(question: str, assume_yes: bool = False) -> bool:
    if assume_yes:
        return True
    return Confirm.ask(question, console=console, default=False)


def choose(question: str, choices: list[str]) -> str:
    return Prompt.ask(question, choices=choices, console=console)
