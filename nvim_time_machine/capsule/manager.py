"""
Capsule manager - high-level capsule operations.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from .catalog import CapsuleCatalog
from .codec import ArchiveCodec, ProgressCallback
from .lock import CapsuleLock
from .models import Capsule, CapsuleStats, RestorePlan, RestoreResult
from .naming import CapsuleNamer
from .paths import PathResolver
from .restore import ConfirmCallback, RestoreCoordinator

logger = logging.getLogger(__name__)


class CapsuleManager:
    """High-level capsule operations for one user."""

    def __init__(
        self,
        resolver: PathResolver,
        namer: Optional[CapsuleNamer] = None,
        codec: Optional[ArchiveCodec] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize capsule manager.

        Args:
            resolver: Locates source roots and the capsule directory
            namer: Capsule filename scheme
            codec: Archive reader/writer
            clock: Source of "now" for capsule and backup names
        """
        self.resolver = resolver
        self.namer = namer or CapsuleNamer()
        self.codec = codec or ArchiveCodec()
        self.clock = clock

        # Lazy-initialized components
        self._catalog: Optional[CapsuleCatalog] = None
        self._coordinator: Optional[RestoreCoordinator] = None

    @classmethod
    def from_config(
        cls,
        config,
        home: Optional[Path],
        env: Optional[Mapping[str, str]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> "CapsuleManager":
        """Build a manager from a loaded Config."""
        resolver = PathResolver(
            home=home,
            app_name=config.sources.app_name,
            capsule_dir=config.capsules.dir or None,
            env=env,
        )
        namer = CapsuleNamer(prefix=config.capsules.prefix, extension=config.capsules.extension)
        return cls(resolver, namer=namer, clock=clock)

    @property
    def capsule_dir(self) -> Path:
        return self.resolver.capsule_dir_path()

    @property
    def catalog(self) -> CapsuleCatalog:
        """Get or create the catalog component."""
        if self._catalog is None:
            self._catalog = CapsuleCatalog(self.capsule_dir, self.namer)
        return self._catalog

    @property
    def coordinator(self) -> RestoreCoordinator:
        """Get or create the restore component."""
        if self._coordinator is None:
            self._coordinator = RestoreCoordinator(
                self.resolver,
                codec=self.codec,
                clock=self.clock,
                aliases=self.resolver.legacy_prefixes(),
            )
        return self._coordinator

    # =========================================================================
    # Core Operations
    # =========================================================================

    def create(self, progress: Optional[ProgressCallback] = None) -> Tuple[Capsule, CapsuleStats]:
        """
        Snapshot all source roots into a new capsule.

        Returns:
            The new capsule and its write statistics

        Raises:
            ConflictError: a capsule with the same second already exists
        """
        capsule_dir = self.resolver.resolve_capsule_dir()
        roots = self.resolver.resolve_source_roots()
        now = self.clock().replace(microsecond=0)
        filename = self.namer.generate_name(now)
        dest = capsule_dir / filename

        logger.info("Creating capsule %s", dest)
        with CapsuleLock(capsule_dir):
            stats = self.codec.create(dest, roots, progress=progress)

        return Capsule(filename=filename, path=dest, created_at=now), stats

    def restore(
        self,
        capsule: Capsule,
        confirm: ConfirmCallback,
        progress: Optional[ProgressCallback] = None,
    ) -> RestoreResult:
        """
        Restore a capsule over the live directories.

        Args:
            capsule: Capsule chosen from list_capsules()
            confirm: Backup (True) or delete (False) decision for live roots
            progress: Extraction progress callback
        """
        with CapsuleLock(self.resolver.resolve_capsule_dir()):
            return self.coordinator.restore(capsule, confirm, progress=progress)

    def preview_restore(self, capsule: Capsule, backup: bool = True) -> RestorePlan:
        """Show what restore would do without applying it."""
        return self.coordinator.plan(capsule, backup)

    # =========================================================================
    # Query Operations
    # =========================================================================

    def list_capsules(self) -> List[Capsule]:
        """All capsules, newest first, with ordinals."""
        return self.catalog.list()

    def get(self, ordinal: int) -> Optional[Capsule]:
        """Capsule by ordinal; refreshes the listing first."""
        self.catalog.list()
        return self.catalog.get(ordinal)

    def summarize(self, capsule: Capsule) -> Dict[str, Dict[str, int]]:
        return self.codec.summarize(capsule.path)

    def verify(self, capsule: Capsule) -> Optional[str]:
        """Returns the first corrupt member name, or None if the capsule is intact."""
        bad = self.codec.verify(capsule.path)
        if bad:
            logger.error("Capsule %s corrupted at %s", capsule.filename, bad)
        return bad

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def delete(self, ordinal: int) -> Optional[Capsule]:
        """Delete one capsule by ordinal."""
        with CapsuleLock(self.resolver.resolve_capsule_dir()):
            self.catalog.list()
            return self.catalog.delete(ordinal)

    def prune(self, keep: int) -> List[Capsule]:
        """Remove all but the newest `keep` capsules."""
        with CapsuleLock(self.resolver.resolve_capsule_dir()):
            return self.catalog.prune(keep)
