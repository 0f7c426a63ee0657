"""
Tests for configuration loading and override priority.
"""

import argparse

import pytest

from nvim_time_machine.config import Config, config_search_paths
from tests.mocks import write_file


def test_defaults(tmp_path):
    config = Config.load(home=tmp_path / "home", cwd=tmp_path)

    assert config.capsules.dir == ""
    assert config.capsules.prefix == "nvim_backup"
    assert config.capsules.extension == "zip"
    assert config.sources.app_name == "nvim"
    assert config.restore.default_backup is True
    assert config.validate() == []
    assert "Config: (defaults)" in config.summary()


def test_search_order_prefers_working_directory(tmp_path):
    home = tmp_path / "home"
    assert config_search_paths(home, tmp_path) == [
        tmp_path / "nvim_time_machine.toml",
        home / ".config" / "nvim_time_machine" / "config.toml",
        home / ".nvim_time_machine.toml",
    ]


def test_load_from_home_config(tmp_path):
    home = tmp_path / "home"
    path = write_file(home / ".config" / "nvim_time_machine" / "config.toml", """
[capsules]
dir = "/srv/capsules"
prefix = "snap"

[sources]
app_name = "lazyvim"

[restore]
default_backup = false
""")

    config = Config.load(home=home, cwd=tmp_path)

    assert config.capsules.dir == "/srv/capsules"
    assert config.capsules.prefix == "snap"
    assert config.capsules.extension == "zip"
    assert config.sources.app_name == "lazyvim"
    assert config.restore.default_backup is False
    assert config.summary().startswith(f"Config: {path}")


def test_explicit_missing_config_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.load(str(tmp_path / "nope.toml"))


def test_env_then_args_override(tmp_path):
    write_file(tmp_path / "nvim_time_machine.toml", '[capsules]\ndir = "/from/file"\n')
    config = Config.load(home=tmp_path / "home", cwd=tmp_path)

    config.override_from_env({"NVIM_TIME_MACHINE_DIR": "/from/env", "NVIM_APPNAME": "astro"})
    assert config.capsules.dir == "/from/env"
    assert config.sources.app_name == "astro"

    args = argparse.Namespace(capsule_dir="/from/args", app_name=None, quiet=None, verbose=True)
    config.override_from_args(args)
    assert config.capsules.dir == "/from/args"
    assert config.sources.app_name == "astro"
    assert config.output.verbose is True


@pytest.mark.parametrize("field, value", [
    ("prefix", ""),
    ("prefix", "a/b"),
    ("extension", "."),
])
def test_validate_rejects_bad_naming(field, value):
    config = Config()
    setattr(config.capsules, field, value)
    assert len(config.validate()) == 1


@pytest.mark.parametrize("app_name", ["", "..", "nvim/other"])
def test_validate_rejects_bad_app_name(app_name):
    config = Config()
    config.sources.app_name = app_name
    assert len(config.validate()) == 1


def test_quiet_and_verbose_conflict():
    config = Config()
    config.output.quiet = True
    config.output.verbose = True
    assert config.validate() == ["quiet and verbose cannot both be enabled"]


def test_wrong_value_types_are_reported(tmp_path):
    write_file(tmp_path / "nvim_time_machine.toml", "[capsules]\nprefix = 5\n\n[restore]\ndefault_backup = \"yes\"\n")
    config = Config.load(home=tmp_path / "home", cwd=tmp_path)

    assert config.validate() == [
        "capsules.prefix must be a str, got 5",
        "restore.default_backup must be a bool, got 'yes'",
    ]


def test_section_that_is_not_a_table_is_rejected(tmp_path):
    write_file(tmp_path / "nvim_time_machine.toml", "capsules = 5\n")
    with pytest.raises(ValueError, match=r"\[capsules\] must be a table"):
        Config.load(home=tmp_path / "home", cwd=tmp_path)
