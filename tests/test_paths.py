"""
Unit tests for source-root and capsule-directory resolution.
"""

from pathlib import Path

import pytest

from nvim_time_machine.capsule.errors import ResolutionError
from nvim_time_machine.capsule.models import LogicalRoot
from nvim_time_machine.capsule.paths import PathResolver, resolve_home


def test_default_roots_in_fixed_order(home):
    roots = PathResolver(home=home, env={}).resolve_source_roots()

    assert [r.name for r in roots] == [LogicalRoot.STATE, LogicalRoot.CONFIG, LogicalRoot.CACHE]
    assert [r.path for r in roots] == [
        home / ".local" / "share" / "nvim",
        home / ".config" / "nvim",
        home / ".cache" / "nvim",
    ]


def test_missing_roots_are_not_an_error(home):
    roots = PathResolver(home=home, env={}).resolve_source_roots()
    assert len(roots) == 3
    assert not any(r.exists for r in roots)


def test_absolute_xdg_overrides_are_honored(home, tmp_path):
    env = {
        "XDG_DATA_HOME": str(tmp_path / "data"),
        "XDG_CONFIG_HOME": str(tmp_path / "conf"),
    }
    root_map = PathResolver(home=home, env=env).root_map()

    assert root_map["STATE"] == tmp_path / "data" / "nvim"
    assert root_map["CONFIG"] == tmp_path / "conf" / "nvim"
    assert root_map["CACHE"] == home / ".cache" / "nvim"


def test_relative_xdg_values_are_ignored(home):
    root_map = PathResolver(home=home, env={"XDG_CONFIG_HOME": "relative/conf"}).root_map()
    assert root_map["CONFIG"] == home / ".config" / "nvim"


def test_app_name_replaces_leaf_directory(home):
    root_map = PathResolver(home=home, app_name="lazyvim", env={}).root_map()
    assert root_map["CONFIG"] == home / ".config" / "lazyvim"
    assert root_map["STATE"] == home / ".local" / "share" / "lazyvim"


def test_unknown_home_raises_resolution_error():
    resolver = PathResolver(home=None, env={})
    with pytest.raises(ResolutionError):
        resolver.resolve_source_roots()
    with pytest.raises(ResolutionError):
        resolver.resolve_capsule_dir()


def test_capsule_dir_created_on_first_use(home):
    resolver = PathResolver(home=home, env={})
    expected = home / ".nvim_capsules"
    assert not expected.exists()

    assert resolver.resolve_capsule_dir() == expected
    assert expected.is_dir()
    # Second call is a no-op
    assert resolver.resolve_capsule_dir() == expected


def test_capsule_dir_override(home, tmp_path):
    target = tmp_path / "elsewhere" / "capsules"
    resolver = PathResolver(home=home, capsule_dir=target, env={})
    assert resolver.resolve_capsule_dir() == target
    assert target.is_dir()


def test_legacy_prefixes_are_home_relative(home):
    prefixes = PathResolver(home=home, env={}).legacy_prefixes()
    assert prefixes == {
        ".local/share/nvim": "STATE",
        ".config/nvim": "CONFIG",
        ".cache/nvim": "CACHE",
    }


def test_resolve_home_prefers_explicit_env(tmp_path):
    assert resolve_home({"HOME": str(tmp_path)}) == Path(tmp_path)


def test_resolve_home_without_home_wraps_runtime_error(monkeypatch):
    def no_home():
        raise RuntimeError("Could not determine home directory.")

    monkeypatch.setattr(Path, "home", staticmethod(no_home))
    with pytest.raises(ResolutionError):
        resolve_home({})
