"""hicolor_sync: incremental XDG icon theme to converted artifact synchronization."""

from hicolor_sync.config import AppSettings, load_settings
from hicolor_sync.pipeline import SyncRunOptions, SyncRunResult, run_sync
from hicolor_sync.preflight import PreflightError

__all__ = [
    "AppSettings",
    "load_settings",
    "SyncRunOptions",
    "SyncRunResult",
    "run_sync",
    "PreflightError",
]

__version__ = "0.1.0"
