"""Stage selected icon sources into scratch trees laid out for the converter."""

from __future__ import annotations

import logging
import os
import shutil
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable

from hicolor_sync.catalog.models import CatalogEntry, IconFormat, icon_format_for
from hicolor_sync.selection import ConflictDecision, ConflictTracker, SelectionSet

LOGGER = logging.getLogger(__name__)


class StageOutcome(str, Enum):
    STAGED = "staged"
    REPLACED = "replaced"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(slots=True)
class StagingReport:
    """Counters for one staged scratch tree."""

    root: Path
    staged: int = 0
    replaced: int = 0
    rejected: int = 0
    failed: int = 0
    failed_files: list[str] = field(default_factory=list)

    @property
    def files_present(self) -> int:
        return self.staged + self.replaced

    def record(self, entry: CatalogEntry, outcome: StageOutcome) -> None:
        if outcome is StageOutcome.STAGED:
            self.staged += 1
        elif outcome is StageOutcome.REPLACED:
            self.replaced += 1
        elif outcome is StageOutcome.REJECTED:
            self.rejected += 1
        else:
            self.failed += 1
            self.failed_files.append(str(entry.path))


class StagingLedger:
    """Already-staged icon names per destination directory.

    Each destination directory has its own lock: the conflict decision, the
    removal of a beaten raster and the copy of the winner happen atomically
    with respect to other workers staging into the same directory.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._tracker = ConflictTracker()
        self._locks: dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._logger = logger or LOGGER

    def _lock_for(self, dest_dir: Path) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(dest_dir)
            if lock is None:
                lock = threading.Lock()
                self._locks[dest_dir] = lock
            return lock

    def staged_names(self, dest_dir: Path) -> dict[str, IconFormat]:
        with self._lock_for(dest_dir):
            return self._tracker.decided(dest_dir)

    def _remove_rasters(self, dest_dir: Path, icon_name: str) -> None:
        for existing in dest_dir.iterdir():
            if existing.stem == icon_name and icon_format_for(existing) is IconFormat.RASTER:
                existing.unlink()
                self._logger.debug("staging.raster_replaced dir=%s icon=%s", dest_dir, icon_name)

    def stage(self, entry: CatalogEntry, dest_dir: Path) -> StageOutcome:
        """Copy ``entry`` into ``dest_dir`` unless a preferred format is already there."""

        with self._lock_for(dest_dir):
            decision = self._tracker.offer(dest_dir, entry.icon_name, entry.icon_format)
            if decision is ConflictDecision.REJECT:
                return StageOutcome.REJECTED
            try:
                dest_dir.mkdir(parents=True, exist_ok=True)
                if decision is ConflictDecision.REPLACE:
                    self._remove_rasters(dest_dir, entry.icon_name)
                dest_file = dest_dir / entry.path.name
                if dest_file.exists():
                    dest_file.unlink()
                shutil.copyfile(entry.path, dest_file)
            except OSError as exc:
                self._tracker.forget(dest_dir, entry.icon_name)
                self._logger.warning(
                    "staging.copy_failed source=%s dest_dir=%s error=%s", entry.path, dest_dir, exc
                )
                return StageOutcome.FAILED
            return StageOutcome.REPLACED if decision is ConflictDecision.REPLACE else StageOutcome.STAGED


def _stage_all(
    jobs: Iterable[tuple[CatalogEntry, Path]],
    report: StagingReport,
    ledger: StagingLedger,
    workers: int,
) -> StagingReport:
    job_list = list(jobs)
    with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        outcomes = list(executor.map(lambda job: ledger.stage(job[0], job[1]), job_list))
    for (entry, _), outcome in zip(job_list, outcomes):
        report.record(entry, outcome)
    return report


def stage_multi_size(
    selection: SelectionSet,
    scratch_root: Path,
    ledger: StagingLedger,
    *,
    workers: int = 1,
    logger: logging.Logger | None = None,
) -> StagingReport:
    """Stage size-class selections as ``<scratch>/<size>/<filename>``."""

    effective_logger = logger or LOGGER
    scratch_root.mkdir(parents=True, exist_ok=True)
    jobs = [(entry, scratch_root / str(size)) for size, entry in selection.multi_size_entries()]
    report = _stage_all(jobs, StagingReport(root=scratch_root), ledger, workers)
    effective_logger.info(
        "staging.multi_size root=%s staged=%s replaced=%s rejected=%s failed=%s",
        scratch_root,
        report.staged,
        report.replaced,
        report.rejected,
        report.failed,
    )
    return report


def stage_single_size(
    selection: SelectionSet,
    scratch_root: Path,
    ledger: StagingLedger,
    *,
    workers: int = 1,
    logger: logging.Logger | None = None,
) -> StagingReport:
    """Stage named-directory selections mirroring their path relative to the theme root."""

    effective_logger = logger or LOGGER
    scratch_root.mkdir(parents=True, exist_ok=True)
    jobs = [(entry, scratch_root / entry.relative_dir) for entry in selection.single_size_entries()]
    report = _stage_all(jobs, StagingReport(root=scratch_root), ledger, workers)
    effective_logger.info(
        "staging.single_size root=%s staged=%s replaced=%s rejected=%s failed=%s",
        scratch_root,
        report.staged,
        report.replaced,
        report.rejected,
        report.failed,
    )
    return report


def vector_leaf_dirs(scratch_root: Path) -> dict[Path, int]:
    """Return staged directories (relative to ``scratch_root``) holding vector files.

    The value is the number of vector files in that directory; directories
    with only raster input are left out and never submitted for conversion.
    """

    found: dict[Path, int] = {}
    if not scratch_root.is_dir():
        return found
    for dirpath, _, filenames in os.walk(scratch_root):
        vectors = sum(1 for name in filenames if icon_format_for(Path(name)) is IconFormat.VECTOR)
        if vectors:
            found[Path(dirpath).relative_to(scratch_root)] = vectors
    return dict(sorted(found.items(), key=lambda item: item[0].as_posix()))
