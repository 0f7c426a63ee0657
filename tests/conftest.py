"""
Shared fixtures: an isolated home directory with Neovim-like roots.
"""

from datetime import datetime

import pytest

from nvim_time_machine.capsule.paths import PathResolver
from tests.mocks import FixedClock, write_file


@pytest.fixture
def home(tmp_path):
    """Empty home directory."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    return home_dir


@pytest.fixture
def resolver(home):
    """Resolver for the temp home, ignoring the real environment."""
    return PathResolver(home=home, env={})


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 5, 13, 12, 0, 0))


@pytest.fixture
def nvim_dirs(resolver):
    """
    Populate STATE, CONFIG and CACHE.

    Returns:
        Dict of logical name -> live path
    """
    roots = resolver.root_map()
    write_file(roots["CONFIG"] / "init.lua", "X")
    write_file(roots["CONFIG"] / "lua" / "plugins" / "lsp.lua", "return {}\n")
    (roots["STATE"] / "empty").mkdir(parents=True)
    write_file(roots["STATE"] / "shada" / "main.shada", b"\x00\x01shada")
    write_file(roots["CACHE"] / "luac" / "init.luac", b"\x1bLua")
    return roots
