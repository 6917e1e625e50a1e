"""Tests for scratch-tree staging and the per-directory conflict ledger."""

from __future__ import annotations

import itertools
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from hicolor_sync.catalog import scan_catalog
from hicolor_sync.catalog.models import CatalogEntry, DirectoryRole, IconFormat
from hicolor_sync.selection import select_icons
from hicolor_sync.staging import (
    StageOutcome,
    StagingLedger,
    stage_multi_size,
    stage_single_size,
    vector_leaf_dirs,
)


def _entry(path: Path, icon_format: IconFormat) -> CatalogEntry:
    return CatalogEntry(
        path=path,
        icon_name=path.stem,
        icon_format=icon_format,
        role=DirectoryRole.SIZE_CLASS,
        context="apps",
        relative_path=Path("32x32/apps") / path.name,
        size=32,
    )


def test_ledger_vector_wins_in_any_discovery_order(tmp_path: Path) -> None:
    sources = tmp_path / "src"
    sources.mkdir()
    png = sources / "foo.png"
    svg = sources / "foo.svg"
    png.write_text("raster", encoding="utf-8")
    svg.write_text("vector", encoding="utf-8")
    candidates = [_entry(png, IconFormat.RASTER), _entry(svg, IconFormat.VECTOR)]

    for index, order in enumerate(itertools.permutations(candidates)):
        dest = tmp_path / f"dest{index}"
        ledger = StagingLedger()
        for entry in order:
            ledger.stage(entry, dest)

        assert sorted(path.name for path in dest.iterdir()) == ["foo.svg"]
        assert ledger.staged_names(dest) == {"foo": IconFormat.VECTOR}


def test_ledger_outcomes(tmp_path: Path) -> None:
    png = tmp_path / "foo.png"
    svg = tmp_path / "foo.svg"
    png.write_text("raster", encoding="utf-8")
    svg.write_text("vector", encoding="utf-8")
    dest = tmp_path / "dest"
    ledger = StagingLedger()

    assert ledger.stage(_entry(png, IconFormat.RASTER), dest) is StageOutcome.STAGED
    assert ledger.stage(_entry(svg, IconFormat.VECTOR), dest) is StageOutcome.REPLACED
    assert ledger.stage(_entry(png, IconFormat.RASTER), dest) is StageOutcome.REJECTED


def test_ledger_copy_failure_is_reported_not_raised(tmp_path: Path) -> None:
    missing = tmp_path / "gone.svg"
    ledger = StagingLedger()

    outcome = ledger.stage(_entry(missing, IconFormat.VECTOR), tmp_path / "dest")

    assert outcome is StageOutcome.FAILED
    assert ledger.staged_names(tmp_path / "dest") == {}


def test_concurrent_staging_into_one_directory(tmp_path: Path) -> None:
    sources = tmp_path / "src"
    sources.mkdir()
    entries = []
    for index in range(40):
        for suffix, icon_format in ((".png", IconFormat.RASTER), (".svg", IconFormat.VECTOR)):
            path = sources / f"icon{index}{suffix}"
            path.write_text(f"{index}{suffix}", encoding="utf-8")
            entries.append(_entry(path, icon_format))
    dest = tmp_path / "dest"
    ledger = StagingLedger()

    with ThreadPoolExecutor(max_workers=8) as executor:
        list(executor.map(lambda entry: ledger.stage(entry, dest), entries))

    staged = sorted(path.name for path in dest.iterdir())
    assert staged == sorted(f"icon{index}.svg" for index in range(40))


def test_stage_trees_layout(tmp_path: Path, theme_root: Path, add_icon) -> None:
    add_icon("16x16/apps/foo.png")
    add_icon("32x32/apps/foo.svg")
    add_icon("scalable/apps/bar.svg")
    add_icon("apps/rasteronly.png")
    selection = select_icons(scan_catalog(theme_root, ["apps"]), ["apps"])
    ledger = StagingLedger()

    multi = stage_multi_size(selection, tmp_path / "multi", ledger, workers=2)
    single = stage_single_size(selection, tmp_path / "single", ledger, workers=2)

    staged_multi = sorted(path.relative_to(tmp_path / "multi").as_posix() for path in (tmp_path / "multi").rglob("*.*"))
    staged_single = sorted(
        path.relative_to(tmp_path / "single").as_posix() for path in (tmp_path / "single").rglob("*.*")
    )
    assert staged_multi == ["16/foo.png", "32/foo.svg"]
    assert staged_single == ["apps/rasteronly.png", "scalable/apps/bar.svg"]
    assert multi.files_present == 2
    assert single.files_present == 2
    assert vector_leaf_dirs(tmp_path / "single") == {Path("scalable/apps"): 1}
