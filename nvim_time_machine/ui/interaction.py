"""
InteractionManager - capsule selection and backup confirmation prompts.

Both prompts are plain synchronous callables so the capsule core never
depends on a terminal:
- select(choices) -> index or None (cancelled)
- confirm(question) -> bool
"""

from typing import Optional, Sequence

from rich.console import Console
from rich.prompt import Confirm, Prompt


CANCEL_CHOICE = "q"


class InteractionManager:
    """
    Rich prompts for restore.

    Choices are shown numbered from 1; the returned index is 0-based into
    the sequence passed in.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        default_backup: bool = True,
    ):
        self.console = console or Console()
        self.default_backup = default_backup

    def select(self, choices: Sequence[str], prompt: str = "Select a capsule to restore") -> Optional[int]:
        """
        Show a numbered list and return the chosen index.

        Returns:
            0-based index, or None if the user cancelled
        """
        if not choices:
            return None

        self.console.print()
        self.console.rule(f"[bold cyan]{prompt}[/]")
        for number, label in enumerate(choices, start=1):
            self.console.print(f"  [green]({number})[/] {label}")
        self.console.print(f"  [dim]({CANCEL_CHOICE}) cancel[/]")

        valid = [str(n) for n in range(1, len(choices) + 1)] + [CANCEL_CHOICE]
        try:
            answer = Prompt.ask(
                "[bold]Your choice[/]",
                console=self.console,
                choices=valid,
                default="1",
                show_choices=False,
            )
        except EOFError:
            return None

        if answer == CANCEL_CHOICE:
            return None
        return int(answer) - 1

    def confirm(self, question: str) -> bool:
        """Yes/no prompt; EOF falls back to the configured default."""
        try:
            return Confirm.ask(question, console=self.console, default=self.default_backup)
        except EOFError:
            return self.default_backup
