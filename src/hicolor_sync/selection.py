"""Pick exactly one source file per icon and target directory."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Hashable, Iterable, Sequence

from hicolor_sync.catalog.models import Catalog, CatalogEntry, DirectoryRole, IconFormat

LOGGER = logging.getLogger(__name__)

SINGLE_SIZE_ROLE_ORDER: tuple[DirectoryRole, ...] = (
    DirectoryRole.SCALABLE,
    DirectoryRole.SYMBOLIC,
    DirectoryRole.PLAIN,
)


class ConflictDecision(str, Enum):
    """Outcome of offering a file to a destination directory."""

    ADMIT = "admit"
    REPLACE = "replace"
    REJECT = "reject"


class ConflictTracker:
    """Running "already decided" state per destination directory.

    Vector beats raster regardless of arrival order; among files of the same
    format the first one offered is kept.
    """

    def __init__(self) -> None:
        self._decided: dict[Hashable, dict[str, IconFormat]] = {}

    def offer(self, destination: Hashable, icon_name: str, icon_format: IconFormat) -> ConflictDecision:
        names = self._decided.setdefault(destination, {})
        current = names.get(icon_name)
        if current is None:
            names[icon_name] = icon_format
            return ConflictDecision.ADMIT
        if current is IconFormat.RASTER and icon_format is IconFormat.VECTOR:
            names[icon_name] = icon_format
            return ConflictDecision.REPLACE
        return ConflictDecision.REJECT

    def forget(self, destination: Hashable, icon_name: str) -> None:
        self._decided.get(destination, {}).pop(icon_name, None)

    def decided(self, destination: Hashable) -> dict[str, IconFormat]:
        return dict(self._decided.get(destination, {}))


@dataclass(slots=True)
class SelectionSet:
    """Chosen sources, partitioned by size class and by named directory."""

    multi_size: dict[int, dict[str, CatalogEntry]] = field(default_factory=dict)
    single_size: dict[Path, dict[str, CatalogEntry]] = field(default_factory=dict)
    single_size_order: list[Path] = field(default_factory=list)
    raster_only_dirs: list[Path] = field(default_factory=list)
    format_rejected: int = 0
    shadowed: int = 0
    ignored_other: int = 0

    @property
    def multi_size_icons(self) -> set[str]:
        return {name for per_size in self.multi_size.values() for name in per_size}

    @property
    def single_size_icons(self) -> set[str]:
        return {name for per_dir in self.single_size.values() for name in per_dir}

    @property
    def icon_names(self) -> set[str]:
        return self.multi_size_icons | self.single_size_icons

    @property
    def unconverted_icons(self) -> set[str]:
        """Names chosen only in raster-only directories, which are never submitted for conversion."""

        convertible = set(self.multi_size_icons)
        for relative_dir, per_dir in self.single_size.items():
            if relative_dir not in self.raster_only_dirs:
                convertible.update(per_dir)
        raster_only = {name for relative_dir in self.raster_only_dirs for name in self.single_size[relative_dir]}
        return raster_only - convertible

    @property
    def is_empty(self) -> bool:
        return not self.multi_size and not self.single_size

    def multi_size_entries(self) -> list[tuple[int, CatalogEntry]]:
        return [
            (size, self.multi_size[size][name])
            for size in sorted(self.multi_size)
            for name in sorted(self.multi_size[size])
        ]

    def single_size_entries(self) -> list[CatalogEntry]:
        return [
            self.single_size[relative_dir][name]
            for relative_dir in self.single_size_order
            for name in sorted(self.single_size[relative_dir])
        ]


def category_order(contexts: Sequence[str]) -> list[Path]:
    """Return single-size relative directories from highest to lowest priority."""

    ordered: list[Path] = []
    for role in SINGLE_SIZE_ROLE_ORDER:
        for context in contexts:
            ordered.append(Path(context) if role is DirectoryRole.PLAIN else Path(role.value) / context)
    return ordered


def _offer_all(
    entries: Iterable[CatalogEntry],
    destination_of: Callable[[CatalogEntry], Hashable],
    chosen: dict[Any, dict[str, CatalogEntry]],
    tracker: ConflictTracker,
    selection: SelectionSet,
    skip_names: set[str] | frozenset[str] = frozenset(),
) -> None:
    for entry in entries:
        if entry.icon_name in skip_names:
            selection.shadowed += 1
            continue
        destination = destination_of(entry)
        decision = tracker.offer(destination, entry.icon_name, entry.icon_format)
        if decision is ConflictDecision.REJECT:
            selection.format_rejected += 1
            continue
        if decision is ConflictDecision.REPLACE:
            selection.format_rejected += 1
        chosen.setdefault(destination, {})[entry.icon_name] = entry


def select_icons(
    catalog: Catalog,
    contexts: Sequence[str],
    logger: logging.Logger | None = None,
) -> SelectionSet:
    """Collapse the catalog into one source per (icon, size) and per (icon, named dir).

    Size-class sources take precedence over every single-size category; among
    single-size categories ``scalable`` beats ``symbolic`` which beats the bare
    context directory. Names satisfied by a higher category are skipped in the
    lower ones, not format-resolved against them.
    """

    effective_logger = logger or LOGGER
    selection = SelectionSet()
    tracker = ConflictTracker()

    size_entries = [entry for entries in catalog.size_dirs.values() for entry in entries]
    _offer_all(size_entries, lambda entry: entry.size, selection.multi_size, tracker, selection)

    satisfied: set[str] = set(selection.multi_size_icons)
    by_relative_dir: dict[Path, list[CatalogEntry]] = {}
    for entries in catalog.named_dirs.values():
        for entry in entries:
            if entry.role is DirectoryRole.OTHER:
                selection.ignored_other += 1
                continue
            by_relative_dir.setdefault(entry.relative_dir, []).append(entry)

    for relative_dir in category_order(contexts):
        entries = by_relative_dir.get(relative_dir)
        if not entries:
            continue
        _offer_all(
            entries,
            lambda entry: entry.relative_dir,
            selection.single_size,
            tracker,
            selection,
            skip_names=satisfied,
        )
        chosen_here = selection.single_size.get(relative_dir, {})
        if not chosen_here:
            continue
        selection.single_size_order.append(relative_dir)
        # raster-only directories are never converted and shadow nothing
        if any(entry.is_vector for entry in chosen_here.values()):
            satisfied.update(chosen_here)
        else:
            selection.raster_only_dirs.append(relative_dir)

    unconverted = selection.unconverted_icons
    if unconverted:
        effective_logger.warning(
            "selection.raster_only_unconverted icons=%s dirs=%s sample=%s",
            len(unconverted),
            [path.as_posix() for path in selection.raster_only_dirs],
            sorted(unconverted)[:10],
        )

    effective_logger.info(
        "selection.complete multi_size_icons=%s sizes=%s single_size_icons=%s single_size_dirs=%s "
        "format_rejected=%s shadowed=%s ignored_other=%s",
        len(selection.multi_size_icons),
        sorted(selection.multi_size),
        len(selection.single_size_icons),
        len(selection.single_size_order),
        selection.format_rejected,
        selection.shadowed,
        selection.ignored_other,
    )
    return selection
