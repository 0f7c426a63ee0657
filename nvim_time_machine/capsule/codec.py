"""
ArchiveCodec - writes source roots into a zip capsule and reads them back.

Archive layout:
    STATE/                 directory entry for the root itself
    STATE/shada/main.shada
    CONFIG/init.lua
    CACHE/...

Member names always use forward slashes. Unix permission bits are kept in
the zip external attributes and reapplied on extract.
"""

import logging
import os
import posixpath
import re
import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .errors import ConflictError, IoError, PathEscapeError
from .models import CapsuleStats, ExtractStats, SourceRoot

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

COPY_CHUNK = 1024 * 1024

_DRIVE = re.compile(r"[A-Za-z]:([/\\]|\Z)")


@dataclass
class _PendingEntry:
    """A filesystem item queued for archiving."""
    root: str
    arcname: str
    path: Path
    is_dir: bool
    size: int = 0


def _encodable(name: str) -> bool:
    """Zip member names must be valid UTF-8; undecodable bytes surface as surrogates."""
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _arcname(root: SourceRoot, relative: str) -> str:
    relative = relative.replace(os.sep, "/").strip("/")
    if relative in ("", "."):
        return f"{root.name.value}/"
    return f"{root.name.value}/{relative}"


class ArchiveCodec:
    """Zip reader/writer for capsules."""

    def __init__(self, compression: int = zipfile.ZIP_DEFLATED):
        self.compression = compression

    # =========================================================================
    # Create
    # =========================================================================

    def walk_root(self, root: SourceRoot) -> Tuple[List[_PendingEntry], int]:
        """
        Collect every directory and file under a root.

        Symlinks are followed. A directory whose canonical path was already
        visited (a symlink cycle, or two links to the same tree) is skipped,
        as are dangling links and names that are not valid UTF-8.

        Returns:
            (entries, skipped_count)
        """
        if not root.path.is_dir():
            if root.exists:
                logger.warning("Source %s is not a directory, skipping: %s", root.name.value, root.path)
            else:
                logger.info("Source %s not found, contributing no entries: %s", root.name.value, root.path)
            return [], 0

        entries: List[_PendingEntry] = []
        skipped = 0
        visited = {os.path.realpath(root.path)}
        base = str(root.path)

        def onerror(err: OSError):
            raise IoError(f"Cannot read directory: {err.strerror or err}", root=root.name.value, path=err.filename)

        entries.append(_PendingEntry(root.name.value, _arcname(root, ""), root.path, is_dir=True))

        for dirpath, dirnames, filenames in os.walk(base, followlinks=True, onerror=onerror):
            dirnames.sort()
            kept = []
            for dirname in dirnames:
                full = os.path.join(dirpath, dirname)
                real = os.path.realpath(full)
                if real in visited:
                    logger.warning("Skipping already visited directory (symlink cycle?): %s", full)
                    skipped += 1
                    continue
                rel = os.path.relpath(full, base)
                if not _encodable(rel):
                    logger.warning("Skipping directory with a non-UTF-8 name: %r", full)
                    skipped += 1
                    continue
                visited.add(real)
                kept.append(dirname)
                entries.append(_PendingEntry(root.name.value, _arcname(root, rel), Path(full), is_dir=True))
            # Only descend into directories that were not pruned
            dirnames[:] = kept

            for filename in sorted(filenames):
                full = os.path.join(dirpath, filename)
                rel = os.path.relpath(full, base)
                if not _encodable(rel):
                    logger.warning("Skipping file with a non-UTF-8 name: %r", full)
                    skipped += 1
                    continue
                if not os.path.exists(full):
                    logger.warning("Skipping dangling symlink: %s", full)
                    skipped += 1
                    continue
                if not os.path.isfile(full):
                    logger.warning("Skipping special file: %s", full)
                    skipped += 1
                    continue
                try:
                    size = os.stat(full).st_size
                except OSError as e:
                    raise IoError(f"Cannot stat file: {e.strerror or e}", root=root.name.value, path=full)
                entries.append(_PendingEntry(root.name.value, _arcname(root, rel), Path(full), is_dir=False, size=size))

        return entries, skipped

    def create(
        self,
        dest_path: Path,
        roots: Sequence[SourceRoot],
        progress: Optional[ProgressCallback] = None,
    ) -> CapsuleStats:
        """
        Write all roots into a new capsule at dest_path.

        The first unreadable file aborts the whole create and the partial
        archive is removed.

        Raises:
            ConflictError: dest_path already exists
            IoError: a source file or the archive cannot be read/written
        """
        stats = CapsuleStats()
        pending: List[_PendingEntry] = []
        for root in roots:
            entries, skipped = self.walk_root(root)
            pending.extend(entries)
            stats.skipped += skipped

        total_files = sum(1 for e in pending if not e.is_dir)
        done = 0

        try:
            handle = open(dest_path, "xb")
        except FileExistsError:
            raise ConflictError("Capsule already exists", path=dest_path)
        except OSError as e:
            raise IoError(f"Cannot create capsule: {e.strerror or e}", path=dest_path)

        try:
            with handle, zipfile.ZipFile(handle, "w", self.compression, strict_timestamps=False) as zf:
                for entry in pending:
                    if entry.is_dir:
                        self._write_dir(zf, entry)
                        stats.directories += 1
                        continue
                    stats.bytes += self._write_file(zf, entry)
                    stats.files += 1
                    done += 1
                    if progress:
                        progress(done, total_files)
        except BaseException:
            self._discard(dest_path)
            raise

        logger.info(
            "Capsule written: %s (%d files, %d dirs, %d bytes)",
            dest_path, stats.files, stats.directories, stats.bytes,
        )
        return stats

    def _write_dir(self, zf: zipfile.ZipFile, entry: _PendingEntry):
        try:
            info = zipfile.ZipInfo.from_file(entry.path, entry.arcname, strict_timestamps=False)
        except OSError as e:
            raise IoError(f"Cannot stat directory: {e.strerror or e}", root=entry.root, path=entry.path)
        zf.writestr(info, b"")

    def _write_file(self, zf: zipfile.ZipFile, entry: _PendingEntry) -> int:
        written = 0
        try:
            info = zipfile.ZipInfo.from_file(entry.path, entry.arcname, strict_timestamps=False)
            info.compress_type = self.compression
            with open(entry.path, "rb") as src, zf.open(info, "w") as dst:
                while True:
                    chunk = src.read(COPY_CHUNK)
                    if not chunk:
                        break
                    dst.write(chunk)
                    written += len(chunk)
        except OSError as e:
            raise IoError(f"Cannot read file: {e.strerror or e}", root=entry.root, path=entry.path)
        return written

    def _discard(self, dest_path: Path):
        try:
            os.unlink(dest_path)
            logger.info("Removed partial capsule: %s", dest_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Could not remove partial capsule %s: %s", dest_path, e)

    # =========================================================================
    # Extract
    # =========================================================================

    def _split_member(
        self,
        name: str,
        roots: Mapping[str, Path],
        aliases: Mapping[str, str],
    ) -> Optional[Tuple[str, str]]:
        """Split a member name into (logical root, remainder)."""
        head, _, rest = name.partition("/")
        if head in roots:
            return head, rest
        # Longest alias first so nested prefixes resolve correctly
        for prefix in sorted(aliases, key=len, reverse=True):
            if name == prefix or name.startswith(prefix + "/"):
                return aliases[prefix], name[len(prefix):].lstrip("/")
        return None

    def _resolve_member(self, root: str, target: Path, rest: str, member: str) -> Path:
        """
        Resolve rest against target, rejecting anything outside it.

        A backslash is an ordinary filename character on POSIX hosts and a
        separator elsewhere. Symlinked directories already present under the
        target are resolved, so an entry cannot be written through them.
        """
        if "\x00" in rest or (os.sep == "\\" and "\\" in rest):
            raise PathEscapeError(f"Illegal characters in entry {member!r}", root=root, path=member)
        if rest.startswith("/") or _DRIVE.match(rest):
            raise PathEscapeError(f"Absolute entry {member!r}", root=root, path=member)

        normalized = posixpath.normpath(rest) if rest else "."
        if normalized == ".." or normalized.startswith("../") or normalized.startswith("/"):
            raise PathEscapeError(f"Entry {member!r} escapes its root", root=root, path=member)

        base = Path(os.path.abspath(target))
        dest = base if normalized == "." else base.joinpath(*normalized.split("/"))
        if os.path.commonpath([str(base), str(dest)]) != str(base):
            raise PathEscapeError(f"Entry {member!r} escapes its root", root=root, path=member)

        real_base = os.path.realpath(base)
        # The last component of a file entry is unlinked before writing
        real_dest = os.path.realpath(dest if dest == base or member.endswith("/") else dest.parent)
        if os.path.commonpath([real_base, real_dest]) != real_base:
            raise PathEscapeError(
                f"Entry {member!r} would be written through a symlink outside its root",
                root=root, path=member,
            )
        return dest

    def plan_extract(
        self,
        zf: zipfile.ZipFile,
        dest_root_map: Mapping[str, Path],
        aliases: Optional[Mapping[str, str]] = None,
    ) -> Tuple[List[Tuple[zipfile.ZipInfo, str, Path]], int]:
        """
        Validate every member before anything is written.

        Returns:
            ([(info, root, destination)], skipped_count)
        """
        aliases = {k: v for k, v in (aliases or {}).items() if v in dest_root_map}
        planned = []
        skipped = 0
        for info in zf.infolist():
            split = self._split_member(info.filename, dest_root_map, aliases)
            if split is None:
                logger.debug("Skipping entry outside known roots: %s", info.filename)
                skipped += 1
                continue
            root, rest = split
            dest = self._resolve_member(root, Path(dest_root_map[root]), rest, info.filename)
            planned.append((info, root, dest))
        return planned, skipped

    def check(
        self,
        src_path: Path,
        dest_root_map: Mapping[str, Path],
        aliases: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Validate a capsule against its targets without writing; returns entry count."""
        try:
            with zipfile.ZipFile(src_path, "r") as zf:
                planned, _ = self.plan_extract(zf, dest_root_map, aliases)
        except zipfile.BadZipFile as e:
            raise IoError(f"Not a valid capsule archive: {e}", path=src_path)
        except OSError as e:
            raise IoError(f"Cannot read capsule: {e.strerror or e}", path=src_path)
        return len(planned)

    def extract(
        self,
        src_path: Path,
        dest_root_map: Mapping[str, Path],
        progress: Optional[ProgressCallback] = None,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> ExtractStats:
        """
        Extract a capsule onto disk.

        Args:
            src_path: Capsule file
            dest_root_map: Logical root name -> live directory
            progress: Called with (entries_done, entries_total)
            aliases: Extra archive prefixes mapped to logical roots

        Raises:
            PathEscapeError: an entry resolves outside its root (nothing written)
            IoError: the capsule cannot be read or a file cannot be written
        """
        stats = ExtractStats()
        try:
            with zipfile.ZipFile(src_path, "r") as zf:
                planned, stats.skipped = self.plan_extract(zf, dest_root_map, aliases)
                total = len(planned)
                for done, (info, root, dest) in enumerate(planned, start=1):
                    if info.is_dir():
                        self._make_dir(root, dest)
                        stats.directories += 1
                    else:
                        stats.bytes += self._extract_file(zf, info, root, dest)
                        stats.files += 1
                        stats.per_root[root] = stats.per_root.get(root, 0) + 1
                    if progress:
                        progress(done, total)
        except zipfile.BadZipFile as e:
            raise IoError(f"Not a valid capsule archive: {e}", path=src_path)
        except OSError as e:
            raise IoError(f"Cannot read capsule: {e.strerror or e}", path=src_path)

        logger.info(
            "Capsule extracted: %s (%d files, %d dirs, %d skipped)",
            src_path, stats.files, stats.directories, stats.skipped,
        )
        return stats

    def _make_dir(self, root: str, dest: Path):
        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IoError(f"Cannot create directory: {e.strerror or e}", root=root, path=dest)

    def _extract_file(self, zf: zipfile.ZipFile, info: zipfile.ZipInfo, root: str, dest: Path) -> int:
        written = 0
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            # Replace rather than write through an existing file or link
            if dest.is_symlink() or dest.is_file():
                dest.unlink()
            with zf.open(info, "r") as src, open(dest, "wb") as dst:
                while True:
                    chunk = src.read(COPY_CHUNK)
                    if not chunk:
                        break
                    dst.write(chunk)
                    written += len(chunk)
            mode = (info.external_attr >> 16) & 0o777
            if mode:
                os.chmod(dest, mode)
        except OSError as e:
            raise IoError(f"Cannot write file: {e.strerror or e}", root=root, path=dest)
        return written

    # =========================================================================
    # Inspection
    # =========================================================================

    def iter_members(self, src_path: Path) -> Iterator[zipfile.ZipInfo]:
        try:
            with zipfile.ZipFile(src_path, "r") as zf:
                yield from zf.infolist()
        except zipfile.BadZipFile as e:
            raise IoError(f"Not a valid capsule archive: {e}", path=src_path)
        except OSError as e:
            raise IoError(f"Cannot read capsule: {e.strerror or e}", path=src_path)

    def summarize(self, src_path: Path) -> Dict[str, Dict[str, int]]:
        """Files and uncompressed bytes per top-level archive segment."""
        summary: Dict[str, Dict[str, int]] = {}
        for info in self.iter_members(src_path):
            head = info.filename.partition("/")[0]
            bucket = summary.setdefault(head, {"files": 0, "bytes": 0})
            if not info.is_dir():
                bucket["files"] += 1
                bucket["bytes"] += info.file_size
        return summary

    def verify(self, src_path: Path) -> Optional[str]:
        """CRC-check every member; returns the first bad member name or None."""
        try:
            with zipfile.ZipFile(src_path, "r") as zf:
                return zf.testzip()
        except zipfile.BadZipFile as e:
            raise IoError(f"Not a valid capsule archive: {e}", path=src_path)
        except OSError as e:
            raise IoError(f"Cannot read capsule: {e.strerror or e}", path=src_path)
