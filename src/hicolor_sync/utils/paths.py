"""Path and filesystem helper functions."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Iterable
from uuid import uuid4


def ensure_directories(paths: Iterable[Path]) -> list[Path]:
    """Create all directories in the iterable if they do not exist."""

    created_or_existing: list[Path] = []
    for directory in paths:
        directory.mkdir(parents=True, exist_ok=True)
        created_or_existing.append(directory)
    return created_or_existing


def artifact_target(target_root: Path, icon_name: str, artifact_suffix: str) -> Path:
    """Return the installed artifact location for an icon name."""

    return target_root / f"{icon_name}{artifact_suffix}"


def atomic_temp_path(target_path: Path) -> Path:
    """Create a temp path in the same directory for atomic replacement."""

    return target_path.parent / f".{target_path.name}.{uuid4().hex}.tmp"


def copy_file_atomically(source: Path, target: Path) -> Path:
    """Copy ``source`` over ``target`` so readers never observe a partial file."""

    target.parent.mkdir(parents=True, exist_ok=True)
    temp_path = atomic_temp_path(target)
    try:
        shutil.copyfile(source, temp_path)
        os.replace(temp_path, target)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return target


def write_text_atomically(content: str, output_path: Path) -> Path:
    """Write UTF-8 text atomically to output path."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = atomic_temp_path(output_path)
    try:
        temp_path.write_text(content, encoding="utf-8")
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return output_path


def remove_tree(path: Path) -> bool:
    """Recursively delete ``path`` if it exists; return whether anything was removed."""

    if not path.exists():
        return False
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
    return True
