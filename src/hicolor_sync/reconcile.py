"""Retire installed artifacts whose source icon left the theme."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import AbstractSet

from hicolor_sync.records import RecordCache
from hicolor_sync.utils.paths import artifact_target

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconcileResult:
    removed_artifacts: list[str] = field(default_factory=list)
    dropped_records: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def find_orphans(records: RecordCache, catalog_names: AbstractSet[str]) -> list[str]:
    """Return recorded icon names that no longer have any source in the catalog."""

    return [name for name in records if name not in catalog_names]


def reconcile_orphans(
    records: RecordCache,
    catalog_names: AbstractSet[str],
    target_root: Path,
    artifact_suffix: str,
    logger: logging.Logger | None = None,
) -> ReconcileResult:
    """Delete orphaned artifacts and drop their records.

    Names still present in the catalog are never touched, even when they
    failed to convert this run. If an artifact cannot be deleted its record is
    kept so the removal is retried on the next run.
    """

    effective_logger = logger or LOGGER
    result = ReconcileResult()
    for icon_name in find_orphans(records, catalog_names):
        target = artifact_target(target_root, icon_name, artifact_suffix)
        try:
            target.unlink()
            result.removed_artifacts.append(icon_name)
        except FileNotFoundError:
            pass
        except OSError as exc:
            effective_logger.warning("reconcile.remove_failed path=%s error=%s", target, exc)
            result.failed.append(icon_name)
            continue
        records.drop(icon_name)
        result.dropped_records.append(icon_name)

    if result.dropped_records or result.failed:
        effective_logger.info(
            "reconcile.complete removed=%s dropped=%s failed=%s",
            len(result.removed_artifacts),
            len(result.dropped_records),
            len(result.failed),
        )
    return result
