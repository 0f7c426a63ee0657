"""
CapsuleCatalog - ordered view of the capsules in the storage directory.
"""

import logging
from pathlib import Path
from typing import List, Optional

from .errors import IoError
from .models import Capsule
from .naming import CapsuleNamer

logger = logging.getLogger(__name__)


class CapsuleCatalog:
    """Lists, looks up and removes capsules."""

    def __init__(self, capsule_dir: Path, namer: Optional[CapsuleNamer] = None):
        """
        Initialize the catalog.

        Args:
            capsule_dir: Capsule storage directory (may not exist yet)
            namer: Filename parser; defaults to the standard capsule names
        """
        self.capsule_dir = Path(capsule_dir)
        self.namer = namer or CapsuleNamer()
        self._last_listing: List[Capsule] = []

    def list(self) -> List[Capsule]:
        """
        List capsules, newest first, with 1-based ordinals.

        Files whose names do not parse as capsule names are ignored.
        """
        capsules = []

        if not self.capsule_dir.exists():
            self._last_listing = []
            return []

        try:
            paths = list(self.capsule_dir.iterdir())
        except OSError as e:
            raise IoError(f"Cannot list capsule directory: {e.strerror or e}", path=self.capsule_dir)

        for path in paths:
            created_at = self.namer.parse_timestamp(path.name)
            if created_at is None:
                logger.debug("Ignoring non-capsule entry: %s", path.name)
                continue
            if not path.is_file():
                logger.debug("Ignoring capsule-named non-file: %s", path.name)
                continue
            capsules.append(Capsule(filename=path.name, path=path.resolve(), created_at=created_at))

        # Sort by embedded timestamp (newest first); filename breaks ties
        capsules.sort(key=lambda c: (c.created_at, c.filename), reverse=True)
        for ordinal, capsule in enumerate(capsules, start=1):
            capsule.ordinal = ordinal

        self._last_listing = capsules
        return list(capsules)

    def get(self, ordinal: int) -> Optional[Capsule]:
        """Look up a capsule by the ordinal assigned in the last list()."""
        if 1 <= ordinal <= len(self._last_listing):
            return self._last_listing[ordinal - 1]
        return None

    def latest(self) -> Optional[Capsule]:
        capsules = self.list()
        return capsules[0] if capsules else None

    def delete(self, ordinal: int) -> Optional[Capsule]:
        """
        Delete a capsule by ordinal.

        Returns:
            The deleted capsule, or None if the ordinal is unknown
        """
        capsule = self.get(ordinal)
        if capsule is None:
            return None

        try:
            capsule.path.unlink()
        except FileNotFoundError:
            logger.warning("Capsule already gone: %s", capsule.path)
        except OSError as e:
            raise IoError(f"Cannot delete capsule: {e.strerror or e}", path=capsule.path)

        logger.info("Deleted capsule: %s", capsule.filename)
        self._last_listing = [c for c in self._last_listing if c is not capsule]
        return capsule

    def prune(self, keep: int) -> List[Capsule]:
        """
        Remove old capsules, keeping the most recent ones.

        Args:
            keep: Number of capsules to keep

        Returns:
            The removed capsules
        """
        if keep < 0:
            raise ValueError("keep must be zero or positive")

        capsules = self.list()
        to_remove = capsules[keep:]

        removed = []
        for capsule in to_remove:
            try:
                capsule.path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise IoError(f"Cannot delete capsule: {e.strerror or e}", path=capsule.path)
            logger.info("Pruned capsule: %s", capsule.filename)
            removed.append(capsule)

        self.list()
        return removed
