"""Startup preconditions that must hold before any sync work begins."""

from __future__ import annotations

import logging
from pathlib import Path

from hicolor_sync.config import AppSettings
from hicolor_sync.converter import converter_problem
from hicolor_sync.utils.paths import ensure_directories

LOGGER = logging.getLogger(__name__)


class PreflightError(RuntimeError):
    """A fatal startup condition; the run must not start."""


def _ensure_dir(path: Path, purpose: str) -> Path:
    try:
        ensure_directories([path])
    except OSError as exc:
        raise PreflightError(f"Cannot create {purpose} directory {path}: {exc}") from exc
    if not path.is_dir():
        raise PreflightError(f"{purpose.capitalize()} path is not a directory: {path}")
    return path


def run_preflight(settings: AppSettings, logger: logging.Logger | None = None) -> None:
    """Check the converter and create the target, record and log directories.

    Raises ``PreflightError`` on the first failing condition.
    """

    effective_logger = logger or LOGGER
    problem = converter_problem(settings.converter.tool_path)
    if problem is not None:
        raise PreflightError(problem)

    _ensure_dir(settings.paths.target_root, "target")
    _ensure_dir(settings.paths.record_file.parent, "record file")
    _ensure_dir(settings.paths.log_file.parent, "log file")
    effective_logger.debug(
        "preflight.ok tool=%s target=%s record_file=%s",
        settings.converter.tool_path,
        settings.paths.target_root,
        settings.paths.record_file,
    )
