"""Scan an XDG icon theme root into an immutable catalog."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Sequence

from hicolor_sync.catalog.backends import CatalogBackend, WalkBackend
from hicolor_sync.catalog.models import (
    Catalog,
    CatalogEntry,
    ContextDir,
    DirectoryRole,
    icon_format_for,
)

LOGGER = logging.getLogger(__name__)


def list_icon_files(directory: Path, logger: logging.Logger | None = None) -> list[Path]:
    """Return recognized icon files directly inside ``directory``, sorted by name."""

    effective_logger = logger or LOGGER
    try:
        children = sorted(directory.iterdir(), key=lambda item: item.name)
    except OSError as exc:
        effective_logger.warning("catalog.list_failed dir=%s error=%s", directory, exc)
        return []
    return [child for child in children if child.is_file() and icon_format_for(child) is not None]


def build_entries(root: Path, context_dir: ContextDir, logger: logging.Logger | None = None) -> list[CatalogEntry]:
    """Build catalog entries for every recognized file inside one context directory."""

    entries: list[CatalogEntry] = []
    for file_path in list_icon_files(context_dir.path, logger=logger):
        icon_format = icon_format_for(file_path)
        if icon_format is None:
            continue
        absolute = file_path.resolve(strict=False)
        entries.append(
            CatalogEntry(
                path=absolute,
                icon_name=file_path.stem,
                icon_format=icon_format,
                role=context_dir.role,
                context=context_dir.context,
                relative_path=file_path.relative_to(root),
                size=context_dir.size,
            )
        )
    return entries


def scan_catalog(
    root: Path,
    contexts: Sequence[str],
    *,
    backend: CatalogBackend | None = None,
    logger: logging.Logger | None = None,
) -> Catalog:
    """Scan ``root`` once and index every candidate icon file.

    A missing root is not an error: it yields an empty catalog, which the
    pipeline treats as nothing to convert.
    """

    effective_logger = logger or LOGGER
    effective_backend = backend or WalkBackend(logger=effective_logger)
    if not root.is_dir():
        effective_logger.warning("catalog.root_missing root=%s", root)
        return Catalog(root=root)

    entries: list[CatalogEntry] = []
    size_dirs: dict[Path, tuple[CatalogEntry, ...]] = {}
    named_dirs: dict[Path, tuple[CatalogEntry, ...]] = {}
    icon_names: set[str] = set()

    for context_dir in effective_backend.list_context_dirs(root, contexts):
        dir_entries = tuple(build_entries(root, context_dir, logger=effective_logger))
        if context_dir.role is DirectoryRole.SIZE_CLASS:
            size_dirs[context_dir.path] = dir_entries
        else:
            named_dirs[context_dir.path] = dir_entries
        entries.extend(dir_entries)
        icon_names.update(entry.icon_name for entry in dir_entries)

    catalog = Catalog(
        root=root,
        entries=tuple(entries),
        size_dirs=size_dirs,
        named_dirs=named_dirs,
        icon_names=frozenset(icon_names),
    )
    effective_logger.info(
        "catalog.scanned root=%s backend=%s size_dirs=%s named_dirs=%s files=%s icons=%s",
        root,
        effective_backend.name,
        len(size_dirs),
        len(named_dirs),
        len(entries),
        len(icon_names),
    )
    return catalog


def catalog_counts(catalog: Catalog) -> dict[str, dict[str, int]]:
    """Return entry counts grouped by directory role and by format."""

    by_role = Counter(entry.role.value for entry in catalog.entries)
    by_format = Counter(entry.icon_format.value for entry in catalog.entries)
    return {
        "by_role": dict(sorted(by_role.items())),
        "by_format": dict(sorted(by_format.items())),
    }
