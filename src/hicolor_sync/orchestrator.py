"""Batch conversion: stage selections, invoke the converter, collect artifacts."""

from __future__ import annotations

import logging
import tempfile
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from hicolor_sync.config import ConverterConfig
from hicolor_sync.converter import ConversionResult, ConverterInvocation, reset_output_dir, run_converter
from hicolor_sync.selection import SelectionSet
from hicolor_sync.staging import (
    StagingLedger,
    StagingReport,
    stage_multi_size,
    stage_single_size,
    vector_leaf_dirs,
)

LOGGER = logging.getLogger(__name__)

MULTI_SIZE_LABEL = "multisize"
SINGLE_SIZE_LABEL = "singlesize"
SCRATCH_PREFIX = "hicolor_sync_"


@dataclass(frozen=True, slots=True)
class CollectedArtifact:
    """One converter-produced file chosen to represent an icon."""

    icon_name: str
    path: Path
    category: str


@dataclass(frozen=True, slots=True)
class ConversionBatch:
    """One staged tree submitted to the converter in a single call."""

    label: str
    invocation: ConverterInvocation
    icon_count: int


@dataclass(frozen=True, slots=True)
class BatchOutcome:
    batch: ConversionBatch
    result: ConversionResult

    @property
    def ok(self) -> bool:
        return self.result.ok


@dataclass(slots=True)
class ConversionReport:
    """Everything the install step needs from one conversion pass."""

    artifacts: list[CollectedArtifact] = field(default_factory=list)
    outcomes: list[BatchOutcome] = field(default_factory=list)
    staging: dict[str, StagingReport] = field(default_factory=dict)
    artifacts_found: int = 0
    duplicates_dropped: int = 0
    unexpected_dropped: int = 0

    @property
    def batches_failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.ok)

    @property
    def failed_icons(self) -> int:
        return sum(outcome.batch.icon_count for outcome in self.outcomes if not outcome.ok)


@contextmanager
def scratch_workspace(scratch_root: Path | None = None) -> Iterator[Path]:
    """Yield a process-private scratch directory that is always removed afterwards."""

    if scratch_root is not None:
        scratch_root.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(
        prefix=SCRATCH_PREFIX,
        dir=str(scratch_root) if scratch_root is not None else None,
        ignore_cleanup_errors=True,
    ) as tmp_dir:
        LOGGER.debug("orchestrator.scratch_created path=%s", tmp_dir)
        yield Path(tmp_dir)
    LOGGER.debug("orchestrator.scratch_removed path=%s", tmp_dir)


def plan_batches(
    selection: SelectionSet,
    config: ConverterConfig,
    *,
    multi_stage: Path,
    single_stage: Path,
    multi_out: Path,
    single_out: Path,
    multi_staged_files: int,
) -> list[ConversionBatch]:
    """Build the multi-size batch and one single-size batch per vector leaf directory."""

    batches: list[ConversionBatch] = []
    if multi_staged_files > 0:
        batches.append(
            ConversionBatch(
                label=MULTI_SIZE_LABEL,
                invocation=ConverterInvocation.from_config(
                    config,
                    source_dir=multi_stage,
                    output_dir=multi_out,
                    timeout_sec=config.multi_size_timeout_sec,
                ),
                icon_count=len(selection.multi_size_icons),
            )
        )
    for relative_dir, vector_count in vector_leaf_dirs(single_stage).items():
        batches.append(
            ConversionBatch(
                label=f"{SINGLE_SIZE_LABEL}/{relative_dir.as_posix()}",
                invocation=ConverterInvocation.from_config(
                    config,
                    source_dir=single_stage / relative_dir,
                    output_dir=single_out / relative_dir,
                    timeout_sec=config.single_size_timeout_sec,
                ),
                icon_count=vector_count,
            )
        )
    return batches


def run_batches(
    batches: list[ConversionBatch],
    *,
    workers: int,
    logger: logging.Logger | None = None,
) -> list[BatchOutcome]:
    """Run converter batches concurrently; a failed batch never stops the others."""

    effective_logger = logger or LOGGER
    if not batches:
        return []

    def run_one(batch: ConversionBatch) -> ConversionResult:
        try:
            reset_output_dir(batch.invocation.output_dir, logger=effective_logger)
        except OSError as exc:
            return ConversionResult(returncode=None, stderr=f"cannot reset output directory: {exc}")
        return run_converter(batch.invocation, logger=effective_logger)

    with ThreadPoolExecutor(max_workers=max(1, min(workers, len(batches)))) as executor:
        results = list(executor.map(run_one, batches))

    outcomes: list[BatchOutcome] = []
    for batch, result in zip(batches, results):
        outcome = BatchOutcome(batch=batch, result=result)
        outcomes.append(outcome)
        if outcome.ok:
            effective_logger.info(
                "orchestrator.batch_converted batch=%s icons=%s elapsed_sec=%.2f",
                batch.label,
                batch.icon_count,
                result.elapsed_sec,
            )
        else:
            effective_logger.error(
                "orchestrator.batch_failed batch=%s icons=%s returncode=%s timed_out=%s stderr=%s",
                batch.label,
                batch.icon_count,
                result.returncode,
                result.timed_out,
                result.stderr.strip(),
            )
    return outcomes


def collect_artifacts(
    roots: list[tuple[str, Path]],
    artifact_suffix: str,
    allowed_names: set[str],
    report: ConversionReport,
    logger: logging.Logger | None = None,
) -> list[CollectedArtifact]:
    """Enumerate artifacts root by root in priority order; first artifact per icon wins."""

    effective_logger = logger or LOGGER
    seen: set[str] = set()
    collected: list[CollectedArtifact] = []
    for category, root in roots:
        if not root.is_dir():
            continue
        for artifact_path in sorted(root.rglob(f"*{artifact_suffix}")):
            if not artifact_path.is_file():
                continue
            report.artifacts_found += 1
            icon_name = artifact_path.stem
            if icon_name not in allowed_names:
                report.unexpected_dropped += 1
                effective_logger.debug("orchestrator.unexpected_artifact path=%s", artifact_path)
                continue
            if icon_name in seen:
                report.duplicates_dropped += 1
                continue
            seen.add(icon_name)
            collected.append(CollectedArtifact(icon_name=icon_name, path=artifact_path, category=category))
    return collected


def convert_selection(
    selection: SelectionSet,
    config: ConverterConfig,
    work_root: Path,
    *,
    workers: int = 1,
    logger: logging.Logger | None = None,
) -> ConversionReport:
    """Stage, convert and collect everything in ``selection`` under ``work_root``.

    The caller owns ``work_root`` and must keep it alive until the collected
    artifacts have been installed.
    """

    effective_logger = logger or LOGGER
    report = ConversionReport()
    if selection.is_empty:
        effective_logger.info("orchestrator.nothing_to_convert")
        return report

    multi_stage = work_root / "stage" / MULTI_SIZE_LABEL
    single_stage = work_root / "stage" / SINGLE_SIZE_LABEL
    multi_out = work_root / "out" / MULTI_SIZE_LABEL
    single_out = work_root / "out" / SINGLE_SIZE_LABEL

    ledger = StagingLedger(logger=effective_logger)
    report.staging[MULTI_SIZE_LABEL] = stage_multi_size(
        selection, multi_stage, ledger, workers=workers, logger=effective_logger
    )
    report.staging[SINGLE_SIZE_LABEL] = stage_single_size(
        selection, single_stage, ledger, workers=workers, logger=effective_logger
    )

    batches = plan_batches(
        selection,
        config,
        multi_stage=multi_stage,
        single_stage=single_stage,
        multi_out=multi_out,
        single_out=single_out,
        multi_staged_files=report.staging[MULTI_SIZE_LABEL].files_present,
    )
    report.outcomes = run_batches(batches, workers=workers, logger=effective_logger)

    roots: list[tuple[str, Path]] = [(MULTI_SIZE_LABEL, multi_out)]
    roots.extend(
        (f"{SINGLE_SIZE_LABEL}/{relative_dir.as_posix()}", single_out / relative_dir)
        for relative_dir in selection.single_size_order
    )
    artifact_suffix = "." + config.artifact_extension.lstrip(".")
    report.artifacts = collect_artifacts(
        roots, artifact_suffix, selection.icon_names, report, logger=effective_logger
    )
    effective_logger.info(
        "orchestrator.collected batches=%s batches_failed=%s artifacts_found=%s artifacts=%s duplicates=%s",
        len(report.outcomes),
        report.batches_failed,
        report.artifacts_found,
        len(report.artifacts),
        report.duplicates_dropped,
    )
    return report
