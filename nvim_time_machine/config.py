"""
Configuration for nvim_time_machine.

Values come from, in increasing precedence: built-in defaults, a TOML file,
NVIM_TIME_MACHINE_DIR / NVIM_APPNAME, and command-line flags.
"""

from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Mapping

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Fallback for older Python

from .capsule.naming import DEFAULT_PREFIX, DEFAULT_EXTENSION
from .capsule.paths import DEFAULT_APP_NAME


ENV_CAPSULE_DIR = "NVIM_TIME_MACHINE_DIR"
ENV_APP_NAME = "NVIM_APPNAME"


def config_search_paths(home: Optional[Path], cwd: Optional[Path] = None) -> List[Path]:
    """Default config file locations (searched in order)."""
    paths = [(cwd or Path.cwd()) / "nvim_time_machine.toml"]
    if home is not None:
        paths.extend([
            home / ".config" / "nvim_time_machine" / "config.toml",
            home / ".nvim_time_machine.toml",
        ])
    return paths



def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data[name]
    if not isinstance(value, dict):
        raise ValueError(f"[{name}] must be a table, got {value!r}")
    return value


@dataclass
class CapsuleConfig:
    """Capsule storage configuration."""
    dir: str = ""                          # Empty = ~/.nvim_capsules
    prefix: str = DEFAULT_PREFIX
    extension: str = DEFAULT_EXTENSION


@dataclass
class SourceConfig:
    """Tracked application."""
    app_name: str = DEFAULT_APP_NAME


@dataclass
class RestoreConfig:
    """Restore defaults."""
    default_backup: bool = True            # Suggested answer to the backup prompt


@dataclass
class OutputConfig:
    """Output configuration."""
    quiet: bool = False
    verbose: bool = False


@dataclass
class Config:
    """Main configuration container."""
    capsules: CapsuleConfig = field(default_factory=CapsuleConfig)
    sources: SourceConfig = field(default_factory=SourceConfig)
    restore: RestoreConfig = field(default_factory=RestoreConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Source tracking
    _config_file: Optional[Path] = None

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        home: Optional[Path] = None,
        cwd: Optional[Path] = None,
    ) -> "Config":
        """
        Load configuration from file.

        Args:
            config_path: Explicit path to config file. If None, searches default locations.
            home: Home directory used for the default search paths
            cwd: Working directory used for the default search paths

        Returns:
            Config instance with loaded values
        """
        config = cls()

        if config_path:
            path = Path(config_path).expanduser()
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {config_path}")
        else:
            path = cls._find_config_file(home, cwd)

        if path:
            config = cls._load_from_file(path)
            config._config_file = path

        return config

    @classmethod
    def _find_config_file(cls, home: Optional[Path], cwd: Optional[Path]) -> Optional[Path]:
        """Find config file in default locations."""
        for path in config_search_paths(home, cwd):
            if path.exists():
                return path
        return None

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load config from TOML file."""
        with open(path, "rb") as f:
            data = tomllib.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        # Capsules
        if "capsules" in data:
            cap = _section(data, "capsules")
            config.capsules = CapsuleConfig(
                dir=cap.get("dir", config.capsules.dir),
                prefix=cap.get("prefix", config.capsules.prefix),
                extension=cap.get("extension", config.capsules.extension),
            )

        # Sources
        if "sources" in data:
            src = _section(data, "sources")
            config.sources = SourceConfig(
                app_name=src.get("app_name", config.sources.app_name),
            )

        # Restore
        if "restore" in data:
            res = _section(data, "restore")
            config.restore = RestoreConfig(
                default_backup=res.get("default_backup", config.restore.default_backup),
            )

        # Output
        if "output" in data:
            out = _section(data, "output")
            config.output = OutputConfig(
                quiet=out.get("quiet", config.output.quiet),
                verbose=out.get("verbose", config.output.verbose),
            )

        return config

    def override_from_env(self, env: Mapping[str, str]) -> "Config":
        """Apply NVIM_TIME_MACHINE_DIR and NVIM_APPNAME."""
        if env.get(ENV_CAPSULE_DIR):
            self.capsules.dir = env[ENV_CAPSULE_DIR]
        if env.get(ENV_APP_NAME):
            self.sources.app_name = env[ENV_APP_NAME]
        return self

    def override_from_args(self, args) -> "Config":
        """
        Override config values from argparse namespace.

        Args with value None are ignored (keeping config file values).
        """
        if getattr(args, "capsule_dir", None):
            self.capsules.dir = args.capsule_dir
        if getattr(args, "app_name", None):
            self.sources.app_name = args.app_name

        if getattr(args, "quiet", None):
            self.output.quiet = args.quiet
        if getattr(args, "verbose", None):
            self.output.verbose = args.verbose

        return self

    def validate(self) -> list:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        for name, value, expected in (
            ("capsules.dir", self.capsules.dir, str),
            ("capsules.prefix", self.capsules.prefix, str),
            ("capsules.extension", self.capsules.extension, str),
            ("sources.app_name", self.sources.app_name, str),
            ("restore.default_backup", self.restore.default_backup, bool),
            ("output.quiet", self.output.quiet, bool),
            ("output.verbose", self.output.verbose, bool),
        ):
            if not isinstance(value, expected):
                errors.append(f"{name} must be a {expected.__name__}, got {value!r}")
        if errors:
            return errors

        if not self.capsules.prefix:
            errors.append("Capsule prefix must not be empty")
        elif any(c in self.capsules.prefix for c in "/\\"):
            errors.append(f"Capsule prefix must not contain path separators: {self.capsules.prefix}")
        if not self.capsules.extension.lstrip("."):
            errors.append("Capsule extension must not be empty")

        if not self.sources.app_name:
            errors.append("Application name must not be empty")
        elif any(c in self.sources.app_name for c in "/\\") or self.sources.app_name in (".", ".."):
            errors.append(f"Application name must be a single directory name: {self.sources.app_name}")

        if self.output.quiet and self.output.verbose:
            errors.append("quiet and verbose cannot both be enabled")

        return errors

    def summary(self, include_config_path: bool = True) -> str:
        """Generate human-readable config summary."""
        lines = []

        if include_config_path:
            if self._config_file:
                lines.append(f"Config: {self._config_file}")
            else:
                lines.append("Config: (defaults)")

        lines.append(f"Capsules: {self.capsules.dir or '~/.nvim_capsules'}")
        lines.append(f"Naming: {self.capsules.prefix}_YYYYMMDDHHMMSS.{self.capsules.extension}")
        lines.append(f"Application: {self.sources.app_name}")

        return "\n".join(lines)
