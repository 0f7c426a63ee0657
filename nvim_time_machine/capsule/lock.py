"""
Advisory lock guarding create/restore/delete against a second invocation.

The lock is an OS-level file lock held on `.lock` in the capsule directory.
It disappears with the process that holds it, so a crashed run never leaves
a lock behind; the file itself may stay on disk and is ignored by the catalog.
"""

import logging
from pathlib import Path

from filelock import FileLock, Timeout as FileLockTimeout

from .errors import ConflictError, IoError

logger = logging.getLogger(__name__)

LOCK_FILENAME = ".lock"


class CapsuleLock:
    """
    Non-blocking lock on the capsule directory.

    Usage:
        with CapsuleLock(capsule_dir):
            ...
    """

    def __init__(self, capsule_dir: Path):
        self.path = Path(capsule_dir) / LOCK_FILENAME
        self._lock = FileLock(str(self.path), timeout=0)

    @property
    def is_locked(self) -> bool:
        return self._lock.is_locked

    def acquire(self):
        try:
            self._lock.acquire()
        except FileLockTimeout:
            raise ConflictError("Another capsule operation is running", path=self.path)
        except OSError as e:
            raise IoError(f"Cannot create lock file: {e.strerror or e}", path=self.path)
        logger.debug("Acquired lock %s", self.path)

    def release(self):
        if not self._lock.is_locked:
            return
        self._lock.release()
        logger.debug("Released lock %s", self.path)

    def __enter__(self) -> "CapsuleLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
