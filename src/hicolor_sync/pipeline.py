"""Sync pipeline orchestration: scan, select, convert, install, reconcile, flush."""

from __future__ import annotations

import json
import logging
import os
import time
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import polars as pl

from hicolor_sync.catalog.backends import get_backend
from hicolor_sync.catalog.scan import catalog_counts, scan_catalog
from hicolor_sync.config import AppSettings
from hicolor_sync.install import InstallDecision, InstallRecord, install_artifacts
from hicolor_sync.orchestrator import ConversionReport, convert_selection, scratch_workspace
from hicolor_sync.preflight import run_preflight
from hicolor_sync.reconcile import ReconcileResult, reconcile_orphans
from hicolor_sync.records import RecordCache
from hicolor_sync.selection import select_icons
from hicolor_sync.utils.paths import atomic_temp_path
from hicolor_sync.utils.time_utils import now_utc, run_id_for

LOGGER = logging.getLogger(__name__)

DECISIONS_SCHEMA: dict[str, pl.DataType] = {
    "icon_name": pl.String,
    "category": pl.String,
    "decision": pl.String,
    "reason": pl.String,
    "digest": pl.String,
    "target_path": pl.String,
}


@dataclass(frozen=True, slots=True)
class SyncRunOptions:
    """Runtime options for one sync run."""

    dry_run: bool = False
    full: bool = False
    jobs: int | None = None
    write_reports: bool = True


@dataclass(frozen=True, slots=True)
class SyncRunResult:
    """Return object for sync run outcomes."""

    run_id: str
    summary: dict[str, Any]
    summary_path: Path | None
    decisions_path: Path | None
    install_records: tuple[InstallRecord, ...] = ()

    @property
    def counts(self) -> dict[str, int]:
        return dict(self.summary["counts"])


def _write_json_atomically(payload: dict[str, Any], output_path: Path) -> Path:
    """Write JSON payload atomically to output path."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = atomic_temp_path(output_path)
    try:
        temp_path.write_text(json.dumps(payload, indent=2, sort_keys=True, default=str) + "\n", encoding="utf-8")
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return output_path


def _write_parquet_atomically(df: pl.DataFrame, output_path: Path) -> Path:
    """Write parquet atomically to output path."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = atomic_temp_path(output_path)
    try:
        df.write_parquet(temp_path)
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return output_path


def decisions_frame(install_records: list[InstallRecord]) -> pl.DataFrame:
    """Tabulate per-icon install decisions with a stable schema."""

    if not install_records:
        return pl.DataFrame(schema=DECISIONS_SCHEMA)
    rows = [
        {
            "icon_name": record.icon_name,
            "category": record.category,
            "decision": record.decision.value,
            "reason": record.reason,
            "digest": record.digest,
            "target_path": str(record.target_path),
        }
        for record in install_records
    ]
    return pl.DataFrame(rows, schema_overrides=DECISIONS_SCHEMA)


def _summary_counts(
    conversion: ConversionReport,
    install_records: list[InstallRecord],
    reconcile: ReconcileResult,
    unconverted: int = 0,
) -> dict[str, int]:
    decisions = Counter(record.decision for record in install_records)
    staging_failed = sum(report.failed for report in conversion.staging.values())
    return {
        "found": conversion.artifacts_found,
        "installed": decisions[InstallDecision.INSTALLED],
        "skipped": decisions[InstallDecision.SKIPPED],
        "retracked": decisions[InstallDecision.RETRACKED],
        "failed": conversion.failed_icons + staging_failed + decisions[InstallDecision.FAILED],
        "removed": len(reconcile.removed_artifacts),
        "unconverted": unconverted,
        "batches": len(conversion.outcomes),
        "batches_failed": conversion.batches_failed,
    }


def run_sync(
    settings: AppSettings,
    *,
    options: SyncRunOptions | None = None,
    logger: logging.Logger | None = None,
) -> SyncRunResult:
    """Run one incremental sync of the theme into the target directory.

    Raises ``PreflightError`` before doing any work when a startup
    precondition fails; every later failure is logged and counted instead.
    """

    effective_logger = logger or LOGGER
    run_options = options or SyncRunOptions()
    workers = max(1, run_options.jobs or settings.execution.jobs)
    artifact_suffix = settings.artifact_suffix

    run_id = run_id_for("sync-run")
    started_ts = now_utc()
    started_mono = time.monotonic()

    run_preflight(settings, logger=effective_logger)

    backend = get_backend(settings.scan.backend, logger=effective_logger)
    catalog = scan_catalog(
        settings.paths.source_root,
        settings.scan.contexts,
        backend=backend,
        logger=effective_logger,
    )
    selection = select_icons(catalog, settings.scan.contexts, logger=effective_logger)
    records = RecordCache.load(settings.paths.record_file, logger=effective_logger)

    effective_logger.info(
        "sync_run.start run_id=%s source_root=%s target_root=%s catalog_icons=%s selected_icons=%s "
        "records=%s dry_run=%s full=%s workers=%s",
        run_id,
        settings.paths.source_root,
        settings.paths.target_root,
        len(catalog.icon_names),
        len(selection.icon_names),
        len(records),
        run_options.dry_run,
        run_options.full,
        workers,
    )

    conversion = ConversionReport()
    install_records: list[InstallRecord] = []
    reconcile = ReconcileResult()
    records_flushed = False

    if not run_options.dry_run:
        with scratch_workspace(settings.paths.scratch_root) as work_root:
            conversion = convert_selection(
                selection,
                settings.converter,
                work_root,
                workers=workers,
                logger=effective_logger,
            )
            install_records = install_artifacts(
                conversion.artifacts,
                records,
                settings.paths.target_root,
                artifact_suffix,
                full=run_options.full,
                workers=workers,
                logger=effective_logger,
            )
        reconcile = reconcile_orphans(
            records,
            catalog.icon_names,
            settings.paths.target_root,
            artifact_suffix,
            logger=effective_logger,
        )
        records_flushed = records.flush()

    counts = _summary_counts(conversion, install_records, reconcile, unconverted=len(selection.unconverted_icons))
    finished_ts = now_utc()
    duration_sec = time.monotonic() - started_mono

    summary: dict[str, Any] = {
        "run_id": run_id,
        "started_ts": started_ts.isoformat(),
        "finished_ts": finished_ts.isoformat(),
        "duration_sec": round(duration_sec, 3),
        "dry_run": run_options.dry_run,
        "full": run_options.full,
        "source_root": str(settings.paths.source_root),
        "target_root": str(settings.paths.target_root),
        "record_file": str(settings.paths.record_file),
        "catalog": {
            "icons": len(catalog.icon_names),
            "files": len(catalog.entries),
            **catalog_counts(catalog),
        },
        "selection": {
            "multi_size_icons": len(selection.multi_size_icons),
            "single_size_icons": len(selection.single_size_icons),
            "sizes": sorted(selection.multi_size),
            "single_size_dirs": [path.as_posix() for path in selection.single_size_order],
            "raster_only_dirs": [path.as_posix() for path in selection.raster_only_dirs],
            "unconverted_icons": sorted(selection.unconverted_icons)[:200],
            "format_rejected": selection.format_rejected,
            "shadowed": selection.shadowed,
            "ignored_other": selection.ignored_other,
        },
        "counts": counts,
        "failed_batches": [
            {
                "batch": outcome.batch.label,
                "returncode": outcome.result.returncode,
                "timed_out": outcome.result.timed_out,
                "stderr": outcome.result.stderr[-2000:],
            }
            for outcome in conversion.outcomes
            if not outcome.ok
        ],
        "removed_icons": reconcile.removed_artifacts[:200],
        "records_total": len(records),
        "records_flushed": records_flushed,
    }

    summary_path: Path | None = None
    decisions_path: Path | None = None
    if run_options.write_reports:
        artifacts_dir = settings.paths.artifacts_root / "run_summaries"
        try:
            summary_path = _write_json_atomically(summary, artifacts_dir / f"{run_id}_sync_run_summary.json")
            decisions_path = _write_parquet_atomically(
                decisions_frame(install_records),
                artifacts_dir / f"{run_id}_install_decisions.parquet",
            )
        except OSError as exc:
            effective_logger.warning("sync_run.report_write_failed dir=%s error=%s", artifacts_dir, exc)

    effective_logger.info(
        "sync_run.complete run_id=%s found=%s installed=%s skipped=%s retracked=%s failed=%s removed=%s "
        "batches_failed=%s duration_sec=%.2f",
        run_id,
        counts["found"],
        counts["installed"],
        counts["skipped"],
        counts["retracked"],
        counts["failed"],
        counts["removed"],
        counts["batches_failed"],
        duration_sec,
    )

    return SyncRunResult(
        run_id=run_id,
        summary=summary,
        summary_path=summary_path,
        decisions_path=decisions_path,
        install_records=tuple(install_records),
    )
