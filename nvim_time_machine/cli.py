"""
CLI - Command-line interface for nvim_time_machine.

Create, list, restore, delete and prune Neovim time capsules.

Interrupting a create removes the partial capsule. Interrupting a restore is
not rolled back: directories already backed up or deleted stay that way and
extraction output written so far is left on disk.
"""

import argparse
import logging
import os
import sys
from datetime import datetime
from typing import Callable, List, Mapping, Optional

from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .capsule.errors import CapsuleError
from .capsule.manager import CapsuleManager
from .capsule.models import Capsule
from .capsule.paths import resolve_home
from .config import Config
from .ui import CapsuleProgress, ConsoleUI, InteractionManager

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="nvim-time-machine",
        description="Manage Neovim time capsules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    nvim-time-machine -c                      # snapshot state, config and cache
    nvim-time-machine -l                      # list capsules, newest first
    nvim-time-machine -r                      # pick a capsule and restore it

    # Non-interactive restore of the newest capsule, backing up live dirs
    nvim-time-machine -r --capsule 1 --backup-existing

    # Preview a restore without touching anything
    nvim-time-machine -r --capsule 2 --dry-run

    # Housekeeping
    nvim-time-machine --prune 5
    nvim-time-machine --verify 1

Environment Variables:
    NVIM_TIME_MACHINE_DIR   Capsule directory (default: ~/.nvim_capsules)
    NVIM_APPNAME            Neovim application name (default: nvim)
    XDG_DATA_HOME, XDG_CONFIG_HOME, XDG_CACHE_HOME
        """,
    )

    action_group = parser.add_argument_group('Actions')
    actions = action_group.add_mutually_exclusive_group()
    actions.add_argument(
        "-c", "--create-capsule",
        action="store_true",
        help="Create a new capsule"
    )
    actions.add_argument(
        "-l", "--list-capsules",
        action="store_true",
        help="List existing capsules"
    )
    actions.add_argument(
        "-r", "--restore-capsule",
        action="store_true",
        help="Restore from a capsule"
    )
    actions.add_argument(
        "--delete-capsule",
        type=int,
        metavar="N",
        help="Delete capsule number N (as shown by --list-capsules)"
    )
    actions.add_argument(
        "--prune",
        type=int,
        metavar="KEEP",
        help="Delete all but the newest KEEP capsules"
    )
    actions.add_argument(
        "--verify",
        type=int,
        metavar="N",
        help="Check capsule number N for corruption"
    )
    actions.add_argument(
        "--show-config",
        action="store_true",
        help="Print the effective configuration"
    )

    restore_group = parser.add_argument_group('Restore Options')
    restore_group.add_argument(
        "--capsule",
        type=int,
        metavar="N",
        help="Capsule number to restore (skip selection prompt)"
    )
    disposition = restore_group.add_mutually_exclusive_group()
    disposition.add_argument(
        "--backup-existing",
        dest="disposition",
        action="store_const",
        const="backup",
        help="Rename existing directories aside (skip prompt)"
    )
    disposition.add_argument(
        "--delete-existing",
        dest="disposition",
        action="store_const",
        const="delete",
        help="Delete existing directories (skip prompt)"
    )
    restore_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what restore would do without changing anything"
    )

    general = parser.add_argument_group('General')
    general.add_argument(
        "--capsule-dir",
        help="Capsule directory (default: ~/.nvim_capsules)"
    )
    general.add_argument(
        "--app-name",
        help="Neovim application name (default: nvim)"
    )
    general.add_argument(
        "--config",
        help="Path to a TOML config file"
    )
    verbosity = general.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=None,
        help="Only print errors"
    )
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=None,
        help="Debug logging"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


def setup_logging(verbose: bool = False, quiet: bool = False, console: Optional[Console] = None):
    """Route package logs through a RichHandler on stderr."""
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    package_logger = logging.getLogger("nvim_time_machine")

    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    package_logger.addHandler(handler)
    package_logger.setLevel(level)


# =============================================================================
# Commands
# =============================================================================

def cmd_create(manager: CapsuleManager, ui: ConsoleUI) -> int:
    with CapsuleProgress("Creating capsule", console=ui.console, disable=ui.quiet) as progress:
        capsule, stats = manager.create(progress=progress)
    logger.debug("Create stats: %s", stats.to_dict())
    ui.print_created(capsule, stats)
    return EXIT_OK


def cmd_list(manager: CapsuleManager, ui: ConsoleUI) -> int:
    ui.print_capsules(manager.list_capsules())
    return EXIT_OK


def _choose_capsule(
    capsules: List[Capsule],
    number: Optional[int],
    interaction: InteractionManager,
    ui: ConsoleUI,
) -> Optional[Capsule]:
    if number is not None:
        for capsule in capsules:
            if capsule.ordinal == number:
                return capsule
        ui.print_error(f"No capsule number {number} (1-{len(capsules)} available)")
        return None

    index = interaction.select([c.display_name() for c in capsules])
    if index is None:
        return None
    return capsules[index]


def cmd_restore(
    manager: CapsuleManager,
    ui: ConsoleUI,
    interaction: InteractionManager,
    args: argparse.Namespace,
    default_backup: bool,
) -> int:
    capsules = manager.list_capsules()
    if not capsules:
        ui.print("No capsules found.")
        return EXIT_OK

    capsule = _choose_capsule(capsules, args.capsule, interaction, ui)
    if capsule is None:
        if args.capsule is not None:
            return EXIT_ERROR
        ui.print("Restore cancelled.")
        return EXIT_OK

    if args.disposition is not None:
        backup = args.disposition == "backup"
        confirm: Callable[[str], bool] = lambda question: backup
    else:
        backup = default_backup
        confirm = interaction.confirm

    if args.dry_run:
        ui.print_header(f"Dry run: {capsule.filename}")
        ui.print_summary(capsule, manager.summarize(capsule))
        ui.print_plan(manager.preview_restore(capsule, backup=backup))
        ui.print("[dim]Nothing was changed.[/]")
        return EXIT_OK

    with CapsuleProgress("Restoring capsule", console=ui.console, disable=ui.quiet) as progress:
        result = manager.restore(capsule, confirm, progress=progress)
    ui.print_restore_result(result)
    return EXIT_OK if result.success else EXIT_ERROR


def cmd_delete(manager: CapsuleManager, ui: ConsoleUI, number: int) -> int:
    capsule = manager.delete(number)
    if capsule is None:
        ui.print_error(f"No capsule number {number}")
        return EXIT_ERROR
    ui.print_success(f"Deleted capsule {capsule.filename}")
    return EXIT_OK


def cmd_prune(manager: CapsuleManager, ui: ConsoleUI, keep: int) -> int:
    if keep < 0:
        ui.print_error("--prune needs a number of capsules to keep (0 or more)")
        return EXIT_ERROR
    removed = manager.prune(keep)
    ui.print_success(f"Removed {len(removed)} capsule(s), kept the newest {keep}")
    return EXIT_OK


def cmd_verify(manager: CapsuleManager, ui: ConsoleUI, number: int) -> int:
    capsule = manager.get(number)
    if capsule is None:
        ui.print_error(f"No capsule number {number}")
        return EXIT_ERROR
    bad = manager.verify(capsule)
    if bad:
        ui.print_error(f"Capsule {capsule.filename} is corrupted at {bad}")
        return EXIT_ERROR
    ui.print_summary(capsule, manager.summarize(capsule))
    ui.print_success(f"Capsule {capsule.filename} is intact")
    return EXIT_OK


# =============================================================================
# Entry point
# =============================================================================

def main(
    argv: Optional[List[str]] = None,
    console: Optional[Console] = None,
    env: Optional[Mapping[str, str]] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> int:
    """
    Main entry point.

    Returns:
        Process exit code (0 success, 1 fatal error, 130 interrupted)
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    env = dict(os.environ) if env is None else dict(env)

    ui = ConsoleUI(quiet=bool(args.quiet), console=console)

    try:
        home = resolve_home(env)
        config = Config.load(args.config, home=home)
        config.override_from_env(env).override_from_args(args)
    except CapsuleError as e:
        ui.print_capsule_error(e)
        return EXIT_ERROR
    except (OSError, ValueError) as e:
        ui.print_error(f"Invalid configuration: {e}")
        return EXIT_ERROR

    problems = config.validate()
    if problems:
        for problem in problems:
            ui.print_error(problem)
        return EXIT_ERROR

    ui.quiet = config.output.quiet
    setup_logging(config.output.verbose, config.output.quiet, console)
    logger.debug("Effective configuration:\n%s", config.summary())

    manager = CapsuleManager.from_config(config, home, env=env, clock=clock)
    interaction = InteractionManager(console=ui.console, default_backup=config.restore.default_backup)

    try:
        if args.create_capsule:
            return cmd_create(manager, ui)
        if args.list_capsules:
            return cmd_list(manager, ui)
        if args.restore_capsule:
            return cmd_restore(manager, ui, interaction, args, config.restore.default_backup)
        if args.delete_capsule is not None:
            return cmd_delete(manager, ui, args.delete_capsule)
        if args.prune is not None:
            return cmd_prune(manager, ui, args.prune)
        if args.verify is not None:
            return cmd_verify(manager, ui, args.verify)
        if args.show_config:
            ui.print(config.summary())
            return EXIT_OK

        ui.print_banner()
        parser.print_help()
        return EXIT_OK

    except CapsuleError as e:
        ui.print_capsule_error(e)
        return EXIT_ERROR

    except KeyboardInterrupt:
        ui.print_error("Interrupted by user; partial results were left on disk")
        return EXIT_INTERRUPTED


def run():
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
