"""
ConsoleUI - Rich-based console interface.

Provides capsule listings, restore reports and error formatting.
"""

from typing import Dict, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..capsule.errors import CapsuleError
from ..capsule.models import (
    Capsule,
    CapsuleStats,
    Disposition,
    RestorePlan,
    RestoreResult,
)


DISPOSITION_STYLES = {
    Disposition.LEFT_IN_PLACE: "dim",
    Disposition.BACKED_UP: "yellow",
    Disposition.DELETED: "bold red",
}


def format_size(num_bytes: int) -> str:
    """Human readable byte count."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


class ConsoleUI:
    """
    Rich console interface for nvim_time_machine.
    """

    def __init__(self, quiet: bool = False, console: Optional[Console] = None):
        self.quiet = quiet
        self.console = console or Console()
        self.err_console = console or Console(stderr=True)

    def print(self, *args, **kwargs):
        """Print to console."""
        if self.quiet:
            return
        self.console.print(*args, **kwargs)

    def print_header(self, title: str):
        """Print a section header."""
        if self.quiet:
            return
        self.console.print()
        self.console.rule(f"[bold blue]{title}[/]")

    def print_banner(self):
        """Print application banner."""
        if self.quiet:
            return

        banner = f"""
[bold cyan]nvim Time Machine[/] [dim]v{__version__}[/]
[dim]Snapshot and restore Neovim state, config and cache[/]
        """
        self.console.print(Panel(banner.strip(), border_style="cyan"))

    def print_error(self, message: str):
        """Errors are printed even in quiet mode."""
        self.err_console.print(f"[bold red]Error:[/] {escape(message)}")

    def print_capsule_error(self, error: CapsuleError):
        self.err_console.print(f"[bold red]{error.kind.value}:[/] {escape(error.message)}")
        if error.root:
            self.err_console.print(f"  [dim]root:[/] {error.root}")
        if error.path is not None:
            self.err_console.print(f"  [dim]path:[/] {escape(str(error.path))}")

    def print_warning(self, message: str):
        if self.quiet:
            return
        self.console.print(f"[yellow]{message}[/]")

    def print_success(self, message: str):
        if self.quiet:
            return
        self.console.print(f"[green]✓[/] {message}")

    # =========================================================================
    # Capsules
    # =========================================================================

    def print_capsules(self, capsules: List[Capsule]):
        """Display the catalog, newest first."""
        if not capsules:
            self.print("No capsules found.")
            return

        table = Table(title="Capsules", box=box.ROUNDED)
        table.add_column("#", style="green", justify="right")
        table.add_column("Capsule", style="cyan")
        table.add_column("Created", style="yellow")
        table.add_column("Size", style="magenta", justify="right")

        for capsule in capsules:
            table.add_row(
                str(capsule.ordinal),
                capsule.filename,
                capsule.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                format_size(capsule.size_bytes),
            )

        self.print(table)

    def print_created(self, capsule: Capsule, stats: CapsuleStats):
        self.print_success(
            f"Capsule created: [cyan]{capsule.filename}[/] "
            f"({stats.files} files, {format_size(stats.bytes)})"
        )
        if stats.skipped:
            self.print_warning(f"Skipped {stats.skipped} dangling links or repeated directories")

    def print_summary(self, capsule: Capsule, summary: Dict[str, Dict[str, int]]):
        table = Table(title=capsule.filename, box=box.SIMPLE)
        table.add_column("Root", style="cyan")
        table.add_column("Files", justify="right")
        table.add_column("Size", justify="right", style="magenta")
        for root, counts in summary.items():
            table.add_row(root, str(counts["files"]), format_size(counts["bytes"]))
        self.print(table)

    # =========================================================================
    # Restore
    # =========================================================================

    def print_plan(self, plan: RestorePlan, title: str = "Restore Plan"):
        table = Table(title=title, box=box.ROUNDED)
        table.add_column("Root", style="cyan")
        table.add_column("Live directory")
        table.add_column("Disposition")
        table.add_column("Backup to", style="dim")

        for target in plan.targets:
            style = DISPOSITION_STYLES[target.disposition]
            table.add_row(
                target.name,
                str(target.root.path),
                f"[{style}]{target.disposition.value}[/]",
                str(target.backup_path) if target.backup_path else "",
            )

        self.print(table)

    def print_restore_result(self, result: RestoreResult):
        if result.plan is not None:
            self.print_plan(result.plan, title="Restore Report")

        if result.success:
            stats = result.stats
            self.print_success(
                f"Restoration complete: {stats.files} files, {stats.directories} directories"
            )
            if stats.skipped:
                self.print_warning(f"Skipped {stats.skipped} entries outside the known roots")
            return

        if isinstance(result.error, CapsuleError):
            self.print_capsule_error(result.error)
        else:
            self.print_error(str(result.error))
        if result.plan is not None:
            altered = ", ".join(result.altered_roots) or "none"
            untouched = ", ".join(result.unaltered_roots) or "none"
            self.err_console.print(f"  [dim]altered roots:[/] {altered}")
            self.err_console.print(f"  [dim]unaltered roots:[/] {untouched}")
