"""
Data models for the capsule system.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any


class LogicalRoot(str, Enum):
    """The three tracked directories, in archive order."""
    STATE = "STATE"
    CONFIG = "CONFIG"
    CACHE = "CACHE"


ROOT_ORDER = [LogicalRoot.STATE, LogicalRoot.CONFIG, LogicalRoot.CACHE]


@dataclass(frozen=True)
class SourceRoot:
    """A logical directory resolved to an absolute path for this user."""
    name: LogicalRoot
    path: Path

    @property
    def exists(self) -> bool:
        return self.path.exists() or self.path.is_symlink()


@dataclass
class Capsule:
    """One archive file in the capsule directory."""
    filename: str
    path: Path
    created_at: datetime                   # Parsed from the filename
    ordinal: int = 0                       # 1-based, assigned by list()

    @property
    def size_bytes(self) -> int:
        try:
            return self.path.stat().st_size
        except OSError:
            return 0

    def display_name(self) -> str:
        """Label used by the selection prompt."""
        return f"{self.filename}  ({self.created_at:%Y-%m-%d %H:%M:%S})"


@dataclass
class CapsuleStats:
    """Counts produced while writing a capsule."""
    files: int = 0
    directories: int = 0
    bytes: int = 0
    skipped: int = 0                       # Dangling links, symlink cycles

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ExtractStats:
    """Counts produced while extracting a capsule."""
    files: int = 0
    directories: int = 0
    bytes: int = 0
    skipped: int = 0                       # Entries for unmapped roots
    per_root: Dict[str, int] = field(default_factory=dict)

    def count_for(self, root: str) -> int:
        return self.per_root.get(root, 0)


class Disposition(str, Enum):
    """Pre-restore fate of a live directory."""
    LEFT_IN_PLACE = "left-in-place"
    BACKED_UP = "backed-up"
    DELETED = "deleted"


@dataclass
class RestoreTarget:
    """One live source root about to be overwritten."""
    root: SourceRoot
    disposition: Disposition = Disposition.LEFT_IN_PLACE
    backup_path: Optional[Path] = None
    applied: bool = False

    @property
    def name(self) -> str:
        return self.root.name.value

    @property
    def altered(self) -> bool:
        """True if the live directory was renamed or removed."""
        return self.applied and self.disposition != Disposition.LEFT_IN_PLACE


@dataclass
class RestorePlan:
    """Dispositions decided for a restore, before anything is applied."""
    capsule: Capsule
    targets: List[RestoreTarget] = field(default_factory=list)
    backup: bool = True

    @property
    def conflicts(self) -> List[RestoreTarget]:
        return [t for t in self.targets if t.disposition != Disposition.LEFT_IN_PLACE]

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


@dataclass
class RestoreResult:
    """Result of a restore operation."""
    success: bool
    plan: Optional[RestorePlan] = None
    stats: Optional[ExtractStats] = None
    error: Optional[Exception] = None

    @classmethod
    def failure(cls, error: Exception, plan: Optional[RestorePlan] = None) -> 'RestoreResult':
        """Create a failure result."""
        return cls(success=False, plan=plan, error=error)

    @property
    def altered_roots(self) -> List[str]:
        if self.plan is None:
            return []
        return [t.name for t in self.plan.targets if t.altered]

    @property
    def unaltered_roots(self) -> List[str]:
        if self.plan is None:
            return []
        return [t.name for t in self.plan.targets if not t.altered]
