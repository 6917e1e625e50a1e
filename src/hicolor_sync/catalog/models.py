"""Immutable catalog records produced by theme scanning."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping


class IconFormat(str, Enum):
    """Source image format, decided by file extension."""

    VECTOR = "vector"
    RASTER = "raster"


FORMAT_BY_SUFFIX: Mapping[str, IconFormat] = MappingProxyType(
    {
        ".svg": IconFormat.VECTOR,
        ".png": IconFormat.RASTER,
    }
)


class DirectoryRole(str, Enum):
    """Role of a ``<class-dir>/<context>`` directory inside the theme."""

    SIZE_CLASS = "size_class"
    SCALABLE = "scalable"
    SYMBOLIC = "symbolic"
    PLAIN = "plain"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class ContextDir:
    """One existing context directory discovered by a catalog backend."""

    path: Path
    class_dir: str | None
    context: str
    role: DirectoryRole
    size: int | None = None


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """One candidate source icon file."""

    path: Path
    icon_name: str
    icon_format: IconFormat
    role: DirectoryRole
    context: str
    relative_path: Path
    size: int | None = None

    @property
    def relative_dir(self) -> Path:
        return self.relative_path.parent

    @property
    def is_vector(self) -> bool:
        return self.icon_format is IconFormat.VECTOR


@dataclass(frozen=True, slots=True)
class Catalog:
    """Full scan result of a theme root, built once per run."""

    root: Path
    entries: tuple[CatalogEntry, ...] = ()
    size_dirs: Mapping[Path, tuple[CatalogEntry, ...]] = field(default_factory=dict)
    named_dirs: Mapping[Path, tuple[CatalogEntry, ...]] = field(default_factory=dict)
    icon_names: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.entries


def icon_format_for(path: Path) -> IconFormat | None:
    """Return the recognized icon format for ``path`` or ``None``."""

    return FORMAT_BY_SUFFIX.get(path.suffix.lower())
