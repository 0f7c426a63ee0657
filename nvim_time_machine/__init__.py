"""
nvim_time_machine - Neovim Time Capsules

Snapshots the Neovim state, config and cache directories into timestamped
zip "capsules", lists them newest first, and restores a chosen capsule after
backing up or deleting the live directories.

Usage:
    # As a module
    python -m nvim_time_machine --create-capsule
    python -m nvim_time_machine --list-capsules
    python -m nvim_time_machine --restore-capsule

    # Programmatically
    from nvim_time_machine import CapsuleManager, PathResolver

    manager = CapsuleManager(PathResolver(home=Path.home()))
    capsule, stats = manager.create()
"""

__version__ = "0.3.0"
__author__ = "nvim Time Machine Team"

# Main exports
from .capsule.manager import CapsuleManager
from .capsule.paths import PathResolver
from .capsule.naming import CapsuleNamer
from .capsule.codec import ArchiveCodec
from .capsule.catalog import CapsuleCatalog
from .capsule.restore import RestoreCoordinator

# Error exports
from .capsule.errors import (
    CapsuleError,
    ResolutionError,
    IoError,
    PathEscapeError,
    ConflictError,
    ParseError,
)

# Config exports
from .config import Config

__all__ = [
    # Version
    "__version__",
    # Core
    "CapsuleManager",
    "PathResolver",
    "CapsuleNamer",
    "ArchiveCodec",
    "CapsuleCatalog",
    "RestoreCoordinator",
    # Errors
    "CapsuleError",
    "ResolutionError",
    "IoError",
    "PathEscapeError",
    "ConflictError",
    "ParseError",
    # Config
    "Config",
]
