"""
Capsule restore - replaces the live source roots with a capsule's contents.
"""

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Mapping, Optional

from .codec import ArchiveCodec, ProgressCallback
from .errors import CapsuleError, ConflictError, IoError
from .models import (
    Capsule,
    Disposition,
    RestorePlan,
    RestoreResult,
    RestoreTarget,
    SourceRoot,
)
from .naming import TIMESTAMP_FORMAT
from .paths import PathResolver
from .state import RestoreState, RestoreStateMachine

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]

BACKUP_QUESTION = "Backup existing directories (rename with timestamp)? No deletes them"


class RestoreCoordinator:
    """Restores live directories from a capsule."""

    def __init__(
        self,
        resolver: PathResolver,
        codec: Optional[ArchiveCodec] = None,
        clock: Callable[[], datetime] = datetime.now,
        aliases: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            resolver: Locates the live source roots
            codec: Archive reader (default ArchiveCodec())
            clock: Source of "now" for backup directory names
            aliases: Extra archive prefixes mapped to logical roots
        """
        self.resolver = resolver
        self.codec = codec or ArchiveCodec()
        self.clock = clock
        self.aliases = dict(aliases or {})
        self.machine = RestoreStateMachine()

    def plan(self, capsule: Capsule, backup: bool) -> RestorePlan:
        """
        Decide dispositions without touching the filesystem.

        Args:
            capsule: The capsule to restore
            backup: True to back up present roots, False to delete them
        """
        return self._build_plan(capsule, self.resolver.resolve_source_roots(), backup)

    def _build_plan(self, capsule: Capsule, roots: List[SourceRoot], backup: bool) -> RestorePlan:
        stamp = self.clock().strftime(TIMESTAMP_FORMAT)
        targets = []
        for root in roots:
            if not root.exists:
                targets.append(RestoreTarget(root=root, disposition=Disposition.LEFT_IN_PLACE))
            elif backup:
                targets.append(RestoreTarget(
                    root=root,
                    disposition=Disposition.BACKED_UP,
                    backup_path=root.path.with_name(f"{root.path.name}{stamp}"),
                ))
            else:
                targets.append(RestoreTarget(root=root, disposition=Disposition.DELETED))
        return RestorePlan(capsule=capsule, targets=targets, backup=backup)

    def restore(
        self,
        capsule: Capsule,
        confirm: ConfirmCallback,
        progress: Optional[ProgressCallback] = None,
    ) -> RestoreResult:
        """
        Restore a capsule over the live directories.

        Strategy:
        1. Check the capsule exists and every entry stays inside its root
        2. If any live root exists, ask once: back up all or delete all
        3. Apply every disposition before extracting anything
        4. Extract; partial output is left in place on failure

        Args:
            capsule: The selected capsule
            confirm: Called with the backup question when a live root exists
            progress: Called with (entries_done, entries_total) while extracting

        Returns:
            RestoreResult with the plan, extract stats, or the fatal error
        """
        self.machine = RestoreStateMachine()
        plan: Optional[RestorePlan] = None

        try:
            if not capsule.path.is_file():
                raise IoError("Capsule file not found", path=capsule.path)
            roots = self.resolver.resolve_source_roots()
            root_map = {r.name.value: r.path for r in roots}
            self.codec.check(capsule.path, root_map, self.aliases)
            self.machine.transition(RestoreState.PLAN_CONFLICTS, {"capsule": capsule.filename})

            present = [r for r in roots if r.exists]
            backup = confirm(BACKUP_QUESTION) if present else True
            plan = self._build_plan(capsule, roots, backup)
            self.machine.transition(RestoreState.APPLY_DISPOSITION, {"backup": backup})

            self.apply_dispositions(plan)
            self.machine.transition(RestoreState.EXTRACT)

            stats = self.codec.extract(capsule.path, root_map, progress=progress, aliases=self.aliases)
            self.machine.transition(RestoreState.DONE, {"files": stats.files})
        except CapsuleError as e:
            logger.info("Restore of %s failed: %s", capsule.filename, e.describe())
            self.machine.fail(e.describe())
            return RestoreResult.failure(e, plan)

        return RestoreResult(success=True, plan=plan, stats=stats)

    def apply_dispositions(self, plan: RestorePlan):
        """
        Rename or remove every conflicting live root.

        Stops at the first failure; targets already handled keep applied=True
        so the caller can report what was altered.
        """
        for target in plan.targets:
            if target.disposition == Disposition.BACKED_UP:
                self._backup(target)
            elif target.disposition == Disposition.DELETED:
                self._delete(target)
            target.applied = True

    def _backup(self, target: RestoreTarget):
        source = target.root.path
        candidate = self._free_backup_path(target)
        try:
            os.rename(source, candidate)
        except OSError as e:
            raise IoError(f"Cannot back up directory: {e.strerror or e}", root=target.name, path=source)
        target.backup_path = candidate
        logger.info("Backed up %s: %s -> %s", target.name, source, candidate)

    def _free_backup_path(self, target: RestoreTarget) -> Path:
        """Planned backup path, or one retry with a -1 suffix."""
        source = target.root.path
        candidate = target.backup_path or source.with_name(
            f"{source.name}{self.clock().strftime(TIMESTAMP_FORMAT)}"
        )
        if not _occupied(candidate):
            return candidate
        retry = candidate.with_name(f"{candidate.name}-1")
        if not _occupied(retry):
            return retry
        raise ConflictError("Backup destination already exists", root=target.name, path=retry)

    def _delete(self, target: RestoreTarget):
        path = target.root.path
        try:
            # Never follow a symlinked root into its target
            if path.is_symlink() or not path.is_dir():
                path.unlink()
            else:
                shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise IoError(f"Cannot delete directory: {e.strerror or e}", root=target.name, path=path)
        logger.info("Deleted %s: %s", target.name, path)


def _occupied(path: Path) -> bool:
    return path.exists() or path.is_symlink()
