"""
Capsule system for nvim_time_machine.

Provides point-in-time archives of the Neovim state, config and cache
directories. Key features:

- Timestamp-named capsules that sort chronologically as plain strings
- Newest-first catalog with 1-based ordinals for selection
- Restore with a single backup-or-delete decision for live directories
- Path-escape checks on every archive entry before anything is written

Scope: the three XDG directories of one application (default: nvim)
"""

from .errors import (
    CapsuleError,
    ConflictError,
    ErrorKind,
    IoError,
    ParseError,
    PathEscapeError,
    ResolutionError,
)
from .models import (
    Capsule,
    CapsuleStats,
    Disposition,
    ExtractStats,
    LogicalRoot,
    RestorePlan,
    RestoreResult,
    RestoreTarget,
    SourceRoot,
)
from .paths import PathResolver, resolve_home
from .naming import CapsuleNamer
from .codec import ArchiveCodec
from .catalog import CapsuleCatalog
from .restore import RestoreCoordinator
from .state import RestoreState, RestoreStateMachine
from .lock import CapsuleLock
from .manager import CapsuleManager

__all__ = [
    # Errors
    'CapsuleError',
    'ConflictError',
    'ErrorKind',
    'IoError',
    'ParseError',
    'PathEscapeError',
    'ResolutionError',
    # Models
    'Capsule',
    'CapsuleStats',
    'Disposition',
    'ExtractStats',
    'LogicalRoot',
    'RestorePlan',
    'RestoreResult',
    'RestoreTarget',
    'SourceRoot',
    # Components
    'PathResolver',
    'resolve_home',
    'CapsuleNamer',
    'ArchiveCodec',
    'CapsuleCatalog',
    'RestoreCoordinator',
    'RestoreState',
    'RestoreStateMachine',
    'CapsuleLock',
    'CapsuleManager',
]
