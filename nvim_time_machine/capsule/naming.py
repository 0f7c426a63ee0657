"""
CapsuleNamer - timestamp-derived capsule filenames.

Format: <prefix>_<YYYYMMDDHHMMSS>.<ext>, e.g. nvim_backup_20250513120000.zip

All fields are zero-padded to fixed width, so sorting filenames as strings
sorts them chronologically.
"""

import re
from datetime import datetime
from typing import Optional

from .errors import ParseError


DEFAULT_PREFIX = "nvim_backup"
DEFAULT_EXTENSION = "zip"
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


class CapsuleNamer:
    """Generates and parses capsule filenames."""

    def __init__(self, prefix: str = DEFAULT_PREFIX, extension: str = DEFAULT_EXTENSION):
        if not prefix or "/" in prefix or "\\" in prefix:
            raise ValueError(f"Invalid capsule prefix: {prefix!r}")
        self.prefix = prefix
        self.extension = extension.lstrip(".")
        self._pattern = re.compile(
            rf"{re.escape(self.prefix)}_(?P<stamp>[0-9]{{14}})\.{re.escape(self.extension)}"
        )

    def generate_name(self, now: datetime) -> str:
        """Build the capsule filename for a local timestamp (second precision)."""
        if not 1000 <= now.year <= 9999:
            raise ValueError(f"Year out of range for capsule names: {now.year}")
        return f"{self.prefix}_{now.strftime(TIMESTAMP_FORMAT)}.{self.extension}"

    def parse_timestamp(self, filename: str) -> Optional[datetime]:
        """Inverse of generate_name; None for anything that is not a capsule name."""
        match = self._pattern.fullmatch(filename)
        if match is None:
            return None
        try:
            return datetime.strptime(match.group("stamp"), TIMESTAMP_FORMAT)
        except ValueError:
            # Fourteen digits, but not a real date (e.g. month 13)
            return None

    def parse(self, filename: str) -> datetime:
        """Strict variant of parse_timestamp."""
        stamp = self.parse_timestamp(filename)
        if stamp is None:
            raise ParseError(f"Not a capsule filename: {filename!r}", path=filename)
        return stamp

    def is_capsule_name(self, filename: str) -> bool:
        return self.parse_timestamp(filename) is not None
