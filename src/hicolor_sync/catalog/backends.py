"""Directory-discovery backends used by the catalog scanner."""

from __future__ import annotations

import configparser
import logging
from pathlib import Path
from typing import Literal, Protocol, Sequence

from hicolor_sync.catalog.models import ContextDir, DirectoryRole

LOGGER = logging.getLogger(__name__)

INDEX_THEME_FILE = "index.theme"
INDEX_THEME_SECTION = "Icon Theme"

BackendName = Literal["walk", "index_theme"]


def classify_class_dir(name: str) -> int | None:
    """Return the pixel size for an ``NxN`` directory name, otherwise ``None``.

    Both halves must be non-empty, all-digit, equal and positive: ``16x16``
    is a size class, while ``16x32``, ``axa`` and ``16x16@2`` are not.
    """

    parts = name.split("x")
    if len(parts) != 2:
        return None
    width, height = parts
    if not (width.isascii() and width.isdigit() and height.isascii() and height.isdigit()):
        return None
    if width != height:
        return None
    size = int(width)
    return size if size > 0 else None


def role_for_class_dir(name: str) -> tuple[DirectoryRole, int | None]:
    """Map a first-level theme directory name to its role and optional size."""

    size = classify_class_dir(name)
    if size is not None:
        return DirectoryRole.SIZE_CLASS, size
    if name == "scalable":
        return DirectoryRole.SCALABLE, None
    if name == "symbolic":
        return DirectoryRole.SYMBOLIC, None
    return DirectoryRole.OTHER, None


def _context_dir(root: Path, class_dir: str | None, context: str) -> ContextDir | None:
    if class_dir is None:
        path = root / context
        if not path.is_dir():
            return None
        return ContextDir(path=path, class_dir=None, context=context, role=DirectoryRole.PLAIN)

    path = root / class_dir / context
    if not path.is_dir():
        return None
    role, size = role_for_class_dir(class_dir)
    return ContextDir(path=path, class_dir=class_dir, context=context, role=role, size=size)


class CatalogBackend(Protocol):
    """Lists the ``<class-dir>/<context>`` directories that hold candidate icons."""

    name: str

    def list_context_dirs(self, root: Path, contexts: Sequence[str]) -> list[ContextDir]:
        ...


class WalkBackend:
    """Discover context directories by listing the theme root on disk."""

    name = "walk"

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or LOGGER

    def list_context_dirs(self, root: Path, contexts: Sequence[str]) -> list[ContextDir]:
        found: list[ContextDir] = []
        for context in contexts:
            plain = _context_dir(root, None, context)
            if plain is not None:
                found.append(plain)

        try:
            children = sorted(root.iterdir(), key=lambda item: item.name)
        except OSError as exc:
            self._logger.warning("catalog.list_failed dir=%s error=%s", root, exc)
            return found

        for child in children:
            if not child.is_dir() or child.name in contexts:
                continue
            for context in contexts:
                context_dir = _context_dir(root, child.name, context)
                if context_dir is not None:
                    found.append(context_dir)
        return found


class IndexThemeBackend:
    """Discover context directories declared by the theme's ``index.theme``.

    Only directories listed under ``Directories`` or ``ScaledDirectories`` are
    considered, so stray folders a packager left behind are never picked up.
    Themes without a readable index fall back to walking the directory tree.
    """

    name = "index_theme"

    def __init__(self, fallback: CatalogBackend | None = None, logger: logging.Logger | None = None) -> None:
        self._fallback = fallback or WalkBackend(logger=logger)
        self._logger = logger or LOGGER

    def declared_directories(self, root: Path) -> list[str] | None:
        """Return declared relative directories, or ``None`` when the index is unusable."""

        index_path = root / INDEX_THEME_FILE
        parser = configparser.ConfigParser(interpolation=None, strict=False)
        try:
            with index_path.open(encoding="utf-8") as handle:
                parser.read_file(handle)
        except (OSError, UnicodeDecodeError, configparser.Error) as exc:
            self._logger.warning("catalog.index_theme_unreadable path=%s error=%s", index_path, exc)
            return None
        if not parser.has_section(INDEX_THEME_SECTION):
            self._logger.warning("catalog.index_theme_missing_section path=%s", index_path)
            return None

        section = parser[INDEX_THEME_SECTION]
        declared: list[str] = []
        for key in ("Directories", "ScaledDirectories"):
            for item in section.get(key, "").split(","):
                item = item.strip().strip("/")
                if item and item not in declared:
                    declared.append(item)
        return declared

    def list_context_dirs(self, root: Path, contexts: Sequence[str]) -> list[ContextDir]:
        declared = self.declared_directories(root)
        if declared is None:
            self._logger.info("catalog.index_theme_fallback backend=%s", self._fallback.name)
            return self._fallback.list_context_dirs(root, contexts)

        found: list[ContextDir] = []
        for relative in sorted(declared):
            parts = relative.split("/")
            if parts[-1] not in contexts:
                continue
            if len(parts) == 1:
                context_dir = _context_dir(root, None, parts[0])
            elif len(parts) == 2:
                context_dir = _context_dir(root, parts[0], parts[1])
            else:
                self._logger.debug("catalog.index_theme_nested_dir_ignored dir=%s", relative)
                continue
            if context_dir is None:
                self._logger.debug("catalog.index_theme_dir_missing dir=%s", relative)
                continue
            found.append(context_dir)
        return found


def get_backend(name: BackendName, logger: logging.Logger | None = None) -> CatalogBackend:
    """Return a backend instance by configured name."""

    if name == "walk":
        return WalkBackend(logger=logger)
    if name == "index_theme":
        return IndexThemeBackend(logger=logger)
    raise ValueError(f"Unknown catalog backend: {name}")
