"""Catalog package for theme scanning and directory classification."""

from hicolor_sync.catalog.backends import (
    CatalogBackend,
    IndexThemeBackend,
    WalkBackend,
    classify_class_dir,
    get_backend,
    role_for_class_dir,
)
from hicolor_sync.catalog.models import (
    Catalog,
    CatalogEntry,
    ContextDir,
    DirectoryRole,
    IconFormat,
    icon_format_for,
)
from hicolor_sync.catalog.scan import catalog_counts, list_icon_files, scan_catalog

__all__ = [
    "CatalogBackend",
    "IndexThemeBackend",
    "WalkBackend",
    "classify_class_dir",
    "get_backend",
    "role_for_class_dir",
    "Catalog",
    "CatalogEntry",
    "ContextDir",
    "DirectoryRole",
    "IconFormat",
    "icon_format_for",
    "catalog_counts",
    "list_icon_files",
    "scan_catalog",
]
