"""Tests for orphan reconciliation."""

from __future__ import annotations

from pathlib import Path

from hicolor_sync.reconcile import find_orphans, reconcile_orphans
from hicolor_sync.records import RecordCache


def test_orphans_are_removed_and_live_names_kept(tmp_path: Path) -> None:
    target = tmp_path / "target"
    target.mkdir()
    (target / "gone.dci").write_bytes(b"x")
    (target / "alive.dci").write_bytes(b"y")
    records = RecordCache(
        tmp_path / "records",
        records={"gone": "1", "alive": "2", "failed-this-run": "3", "no-artifact": "4"},
    )
    catalog_names = {"alive", "failed-this-run"}

    assert find_orphans(records, catalog_names) == ["gone", "no-artifact"]

    result = reconcile_orphans(records, catalog_names, target, ".dci")

    assert result.removed_artifacts == ["gone"]
    assert result.dropped_records == ["gone", "no-artifact"]
    assert not (target / "gone.dci").exists()
    assert (target / "alive.dci").exists()
    assert records.as_dict() == {"alive": "2", "failed-this-run": "3"}
    assert records.modified


def test_nothing_to_reconcile_leaves_records_untouched(tmp_path: Path) -> None:
    records = RecordCache(tmp_path / "records", records={"alive": "1"})

    result = reconcile_orphans(records, {"alive"}, tmp_path, ".dci")

    assert result.dropped_records == []
    assert not records.modified
