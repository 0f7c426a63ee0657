"""
Progress - bar display for capsule create and extract.

The core calls a plain (done, total) callback; CapsuleProgress adapts that to
a rich Progress bar.
"""

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


class CapsuleProgress:
    """
    Progress bar usable as a progress callback.

    Usage:
        with CapsuleProgress("Creating capsule") as progress:
            codec.create(dest, roots, progress=progress)
    """

    def __init__(self, description: str, console: Optional[Console] = None, disable: bool = False):
        self.description = description
        self.console = console or Console()
        self._progress = Progress(
            SpinnerColumn(spinner_name="dots", style="green"),
            TimeElapsedColumn(),
            BarColumn(complete_style="cyan", finished_style="blue"),
            MofNCompleteColumn(),
            TextColumn("[bold cyan]{task.description}[/]"),
            TimeRemainingColumn(),
            console=self.console,
            disable=disable,
            transient=False,
        )
        self._task_id = None

    @property
    def started(self) -> bool:
        return self._task_id is not None

    def start(self):
        self._progress.start()
        self._task_id = self._progress.add_task(self.description, total=None)

    def __call__(self, done: int, total: int):
        # Started on first update so prompts shown before it are not overdrawn
        if not self.started:
            self.start()
        self._progress.update(self._task_id, completed=done, total=total)

    def stop(self):
        """Stop the bar."""
        if self.started:
            self._progress.stop()
            self._task_id = None

    def __enter__(self) -> "CapsuleProgress":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
