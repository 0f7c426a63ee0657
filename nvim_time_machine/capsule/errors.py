"""
Capsule errors - typed failures for create, list and restore.

ParseError is recovered locally (the catalog skips the file). Every other
kind terminates the current operation and is reported with the logical root
and path that triggered it.
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Union


class ErrorKind(str, Enum):
    """Kinds of capsule errors."""
    RESOLUTION = "ResolutionError"
    IO = "IoError"
    PATH_ESCAPE = "PathEscapeError"
    CONFLICT = "ConflictError"
    PARSE = "ParseError"


class CapsuleError(Exception):
    """Base class for all capsule lifecycle errors."""

    kind: ErrorKind = ErrorKind.IO

    def __init__(
        self,
        message: str,
        root: Optional[str] = None,
        path: Optional[Union[str, Path]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.root = root
        self.path = Path(path) if path is not None else None

    def describe(self) -> str:
        """Human-readable line naming the error kind, root and path."""
        parts = [f"{self.kind.value}: {self.message}"]
        if self.root:
            parts.append(f"root={self.root}")
        if self.path is not None:
            parts.append(f"path={self.path}")
        return " | ".join(parts)


class ResolutionError(CapsuleError):
    """Source roots or the capsule directory cannot be located."""
    kind = ErrorKind.RESOLUTION


class IoError(CapsuleError):
    """Read or write failure on a specific path."""
    kind = ErrorKind.IO


class PathEscapeError(CapsuleError):
    """An archive entry would be written outside its restore root."""
    kind = ErrorKind.PATH_ESCAPE


class ConflictError(CapsuleError):
    """A destination already exists and cannot be disambiguated."""
    kind = ErrorKind.CONFLICT


class ParseError(CapsuleError):
    """A filename is not a well-formed capsule name."""
    kind = ErrorKind.PARSE
