"""
PathResolver - locates the tracked source roots and the capsule directory.

Directory Structure (defaults, app name "nvim"):
    ~/.local/share/nvim   STATE   ($XDG_DATA_HOME/nvim)
    ~/.config/nvim        CONFIG  ($XDG_CONFIG_HOME/nvim)
    ~/.cache/nvim         CACHE   ($XDG_CACHE_HOME/nvim)
    ~/.nvim_capsules/     capsule storage
"""

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from .errors import ResolutionError, IoError
from .models import LogicalRoot, SourceRoot, ROOT_ORDER

logger = logging.getLogger(__name__)


DEFAULT_APP_NAME = "nvim"
DEFAULT_CAPSULE_DIRNAME = ".nvim_capsules"

# (XDG variable, home-relative default) per logical root
XDG_LOCATIONS = {
    LogicalRoot.STATE: ("XDG_DATA_HOME", Path(".local") / "share"),
    LogicalRoot.CONFIG: ("XDG_CONFIG_HOME", Path(".config")),
    LogicalRoot.CACHE: ("XDG_CACHE_HOME", Path(".cache")),
}


def resolve_home(env: Optional[Mapping[str, str]] = None) -> Path:
    """
    Determine the current user's home directory.

    Raises:
        ResolutionError: if no home directory can be found
    """
    if env is not None and env.get("HOME"):
        return Path(env["HOME"])
    try:
        return Path.home()
    except RuntimeError as e:
        raise ResolutionError(f"Could not determine home directory: {e}")


class PathResolver:
    """Resolves logical roots to absolute paths for one user."""

    def __init__(
        self,
        home: Optional[Union[str, Path]],
        app_name: str = DEFAULT_APP_NAME,
        capsule_dir: Optional[Union[str, Path]] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize the resolver.

        Args:
            home: The user's home directory (None or empty means unknown)
            app_name: Leaf directory name under each XDG base directory
            capsule_dir: Override for the capsule storage directory
            env: Environment used for XDG overrides (defaults to none)
        """
        self.home = Path(home) if home else None
        self.app_name = app_name or DEFAULT_APP_NAME
        self.capsule_dir_override = Path(capsule_dir).expanduser() if capsule_dir else None
        self.env = dict(env or {})

    def _require_home(self) -> Path:
        if self.home is None:
            raise ResolutionError("Home directory is not known; cannot locate source roots")
        return self.home

    def _base_dir(self, root: LogicalRoot) -> Path:
        var, default = XDG_LOCATIONS[root]
        value = self.env.get(var, "")
        # Relative XDG values are invalid and must be ignored
        if value and Path(value).is_absolute():
            return Path(value)
        return self._require_home() / default

    def resolve_source_roots(self) -> List[SourceRoot]:
        """Return STATE, CONFIG and CACHE, in that order."""
        roots = []
        for name in ROOT_ORDER:
            path = self._base_dir(name) / self.app_name
            if not path.is_absolute():
                raise ResolutionError("Resolved path is not absolute", root=name.value, path=path)
            logger.debug("Resolved %s -> %s", name.value, path)
            roots.append(SourceRoot(name=name, path=path))
        return roots

    def resolve_capsule_dir(self) -> Path:
        """Return the capsule storage directory, creating it if absent."""
        path = self.capsule_dir_path()
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IoError(f"Cannot create capsule directory: {e.strerror or e}", path=path)
        return path

    def capsule_dir_path(self) -> Path:
        """Capsule storage directory without creating it."""
        if self.capsule_dir_override is not None:
            return self.capsule_dir_override
        return self._require_home() / DEFAULT_CAPSULE_DIRNAME

    def root_map(self) -> Dict[str, Path]:
        """Logical name -> live path, as consumed by ArchiveCodec.extract."""
        return {r.name.value: r.path for r in self.resolve_source_roots()}

    def legacy_prefixes(self) -> Dict[str, str]:
        """
        Home-relative archive prefixes of the older capsule layout.

        Capsules written before logical-root namespacing stored paths such as
        ``.config/nvim/init.lua``; this maps each such prefix to its root.
        """
        prefixes = {}
        for name in ROOT_ORDER:
            _, default = XDG_LOCATIONS[name]
            prefixes[(default / self.app_name).as_posix()] = name.value
        return prefixes
