"""Tests for source selection and format/category conflict resolution."""

from __future__ import annotations

import itertools
from pathlib import Path

from hicolor_sync.catalog import IconFormat, scan_catalog
from hicolor_sync.selection import ConflictDecision, ConflictTracker, category_order, select_icons


def test_tracker_vector_wins_in_any_order() -> None:
    for order in itertools.permutations([IconFormat.RASTER, IconFormat.VECTOR]):
        tracker = ConflictTracker()
        for icon_format in order:
            tracker.offer("16", "foo", icon_format)
        assert tracker.decided("16") == {"foo": IconFormat.VECTOR}


def test_tracker_decisions() -> None:
    tracker = ConflictTracker()

    assert tracker.offer("dir", "foo", IconFormat.RASTER) is ConflictDecision.ADMIT
    assert tracker.offer("dir", "foo", IconFormat.RASTER) is ConflictDecision.REJECT
    assert tracker.offer("dir", "foo", IconFormat.VECTOR) is ConflictDecision.REPLACE
    assert tracker.offer("dir", "foo", IconFormat.RASTER) is ConflictDecision.REJECT
    assert tracker.offer("other", "foo", IconFormat.RASTER) is ConflictDecision.ADMIT


def test_category_order() -> None:
    assert category_order(["apps"]) == [Path("scalable/apps"), Path("symbolic/apps"), Path("apps")]


def test_mixed_sizes_do_not_conflict(theme_root: Path, add_icon) -> None:
    add_icon("16x16/apps/foo.png")
    add_icon("32x32/apps/foo.svg")
    add_icon("scalable/apps/bar.svg")

    selection = select_icons(scan_catalog(theme_root, ["apps"]), ["apps"])

    assert {size: sorted(names) for size, names in selection.multi_size.items()} == {16: ["foo"], 32: ["foo"]}
    assert selection.multi_size[16]["foo"].icon_format is IconFormat.RASTER
    assert selection.multi_size[32]["foo"].icon_format is IconFormat.VECTOR
    assert selection.single_size_order == [Path("scalable/apps")]
    assert set(selection.single_size[Path("scalable/apps")]) == {"bar"}


def test_same_size_prefers_vector(theme_root: Path, add_icon) -> None:
    add_icon("48x48/apps/foo.png")
    add_icon("48x48/apps/foo.svg")
    add_icon("scalable/apps/bar.png")
    add_icon("scalable/apps/bar.svg")

    selection = select_icons(scan_catalog(theme_root, ["apps"]), ["apps"])

    assert selection.multi_size[48]["foo"].path.name == "foo.svg"
    assert selection.single_size[Path("scalable/apps")]["bar"].path.name == "bar.svg"
    assert selection.format_rejected == 2


def test_higher_category_shadows_lower(theme_root: Path, add_icon) -> None:
    add_icon("16x16/apps/multi.png")
    add_icon("scalable/apps/multi.svg")
    add_icon("scalable/apps/scal.svg")
    add_icon("symbolic/apps/scal.svg")
    add_icon("symbolic/apps/sym.svg")
    add_icon("apps/sym.svg")
    add_icon("apps/plain.svg")

    selection = select_icons(scan_catalog(theme_root, ["apps"]), ["apps"])

    assert set(selection.single_size[Path("scalable/apps")]) == {"scal"}
    assert set(selection.single_size[Path("symbolic/apps")]) == {"sym"}
    assert set(selection.single_size[Path("apps")]) == {"plain"}
    assert selection.shadowed == 3
    assert selection.icon_names == {"multi", "scal", "sym", "plain"}


def test_other_directories_are_never_selected(theme_root: Path, add_icon) -> None:
    add_icon("16x32/apps/odd.svg")
    add_icon("16x16@2/apps/hidpi.png")

    catalog = scan_catalog(theme_root, ["apps"])
    selection = select_icons(catalog, ["apps"])

    assert catalog.icon_names == {"odd", "hidpi"}
    assert selection.is_empty
    assert selection.ignored_other == 2


def test_raster_only_directory_does_not_shadow_lower_vector(theme_root: Path, add_icon) -> None:
    add_icon("scalable/apps/x.png")
    add_icon("symbolic/apps/x.svg")

    selection = select_icons(scan_catalog(theme_root, ["apps"]), ["apps"])

    assert selection.raster_only_dirs == [Path("scalable/apps")]
    assert selection.single_size[Path("symbolic/apps")]["x"].path.name == "x.svg"
    assert selection.shadowed == 0
    assert selection.unconverted_icons == set()


def test_names_only_in_raster_directories_are_unconverted(theme_root: Path, add_icon) -> None:
    add_icon("scalable/apps/lonely.png")
    add_icon("apps/lonely.png")
    add_icon("16x16/apps/sized.png")
    add_icon("apps/sized.png")

    selection = select_icons(scan_catalog(theme_root, ["apps"]), ["apps"])

    assert selection.raster_only_dirs == [Path("scalable/apps"), Path("apps")]
    assert selection.unconverted_icons == {"lonely"}
    assert selection.shadowed == 1
