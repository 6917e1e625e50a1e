"""Shared utility helpers."""

from hicolor_sync.utils.paths import (
    artifact_target,
    atomic_temp_path,
    copy_file_atomically,
    ensure_directories,
    remove_tree,
    write_text_atomically,
)
from hicolor_sync.utils.time_utils import now_utc, run_id_for

__all__ = [
    "artifact_target",
    "atomic_temp_path",
    "copy_file_atomically",
    "ensure_directories",
    "remove_tree",
    "write_text_atomically",
    "now_utc",
    "run_id_for",
]
