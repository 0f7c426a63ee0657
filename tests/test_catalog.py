"""
Unit tests for capsule listing, lookup, deletion and pruning.
"""

from datetime import datetime

import pytest

from nvim_time_machine.capsule.catalog import CapsuleCatalog
from nvim_time_machine.capsule.naming import CapsuleNamer
from tests.mocks import write_file


@pytest.fixture
def capsule_dir(tmp_path):
    d = tmp_path / "capsules"
    d.mkdir()
    return d


def populate(capsule_dir, *names):
    for name in names:
        write_file(capsule_dir / name, b"PK")


def test_list_ignores_foreign_files_and_orders_newest_first(capsule_dir):
    populate(capsule_dir, "a_20250101000000.zip", "a_20250601000000.zip", "not-a-capsule.txt")
    catalog = CapsuleCatalog(capsule_dir, CapsuleNamer(prefix="a"))

    capsules = catalog.list()

    assert [c.filename for c in capsules] == ["a_20250601000000.zip", "a_20250101000000.zip"]
    assert [c.ordinal for c in capsules] == [1, 2]
    assert capsules[0].created_at == datetime(2025, 6, 1)


def test_list_missing_directory_is_empty(tmp_path):
    catalog = CapsuleCatalog(tmp_path / "does-not-exist")
    assert catalog.list() == []
    assert catalog.latest() is None


def test_list_skips_invalid_dates_and_directories(capsule_dir):
    populate(capsule_dir, "nvim_backup_20251399000000.zip", "nvim_backup_20250101000000.zip")
    (capsule_dir / "nvim_backup_20250202000000.zip").mkdir()

    capsules = CapsuleCatalog(capsule_dir).list()

    assert [c.filename for c in capsules] == ["nvim_backup_20250101000000.zip"]


def test_get_uses_last_listing_bounds(capsule_dir):
    populate(capsule_dir, "nvim_backup_20250101000000.zip", "nvim_backup_20250102000000.zip")
    catalog = CapsuleCatalog(capsule_dir)
    catalog.list()

    assert catalog.get(1).filename == "nvim_backup_20250102000000.zip"
    assert catalog.get(2).filename == "nvim_backup_20250101000000.zip"
    assert catalog.get(0) is None
    assert catalog.get(3) is None


def test_latest_returns_newest(capsule_dir):
    populate(capsule_dir, "nvim_backup_20240101000000.zip", "nvim_backup_20250101000000.zip")
    assert CapsuleCatalog(capsule_dir).latest().filename == "nvim_backup_20250101000000.zip"


def test_delete_removes_file_and_unknown_ordinal_is_none(capsule_dir):
    populate(capsule_dir, "nvim_backup_20250101000000.zip", "nvim_backup_20250102000000.zip")
    catalog = CapsuleCatalog(capsule_dir)
    catalog.list()

    deleted = catalog.delete(1)

    assert deleted.filename == "nvim_backup_20250102000000.zip"
    assert not (capsule_dir / deleted.filename).exists()
    assert catalog.delete(5) is None

    remaining = catalog.list()
    assert [(c.ordinal, c.filename) for c in remaining] == [(1, "nvim_backup_20250101000000.zip")]


def test_prune_keeps_most_recent(capsule_dir):
    names = [f"nvim_backup_2025010{d}000000.zip" for d in range(1, 6)]
    populate(capsule_dir, *names)
    catalog = CapsuleCatalog(capsule_dir)

    removed = catalog.prune(keep=2)

    assert sorted(c.filename for c in removed) == names[:3]
    assert sorted(p.name for p in capsule_dir.iterdir()) == names[3:]
    assert [c.ordinal for c in catalog.list()] == [1, 2]


def test_prune_zero_removes_everything_and_negative_is_rejected(capsule_dir):
    populate(capsule_dir, "nvim_backup_20250101000000.zip", "keep-me.txt")
    catalog = CapsuleCatalog(capsule_dir)

    with pytest.raises(ValueError):
        catalog.prune(keep=-1)

    assert len(catalog.prune(keep=0)) == 1
    assert [p.name for p in capsule_dir.iterdir()] == ["keep-me.txt"]
