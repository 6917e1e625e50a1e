"""Decide, per collected artifact, whether to install it into the target directory."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Sequence

from hicolor_sync.orchestrator import CollectedArtifact
from hicolor_sync.records import RecordCache, file_digest
from hicolor_sync.utils.paths import artifact_target, copy_file_atomically

LOGGER = logging.getLogger(__name__)


class InstallDecision(str, Enum):
    INSTALLED = "installed"
    SKIPPED = "skipped"
    RETRACKED = "retracked"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class InstallRecord:
    icon_name: str
    category: str
    decision: InstallDecision
    digest: str | None
    target_path: Path
    reason: str


@dataclass(frozen=True, slots=True)
class HashedArtifact:
    artifact: CollectedArtifact
    target_path: Path
    new_digest: str | None
    installed_digest: str | None


def hash_artifact(artifact: CollectedArtifact, target_path: Path) -> HashedArtifact:
    installed = file_digest(target_path) if target_path.exists() else None
    return HashedArtifact(
        artifact=artifact,
        target_path=target_path,
        new_digest=file_digest(artifact.path),
        installed_digest=installed,
    )


def _copy(hashed: HashedArtifact, logger: logging.Logger) -> bool:
    try:
        copy_file_atomically(hashed.artifact.path, hashed.target_path)
    except OSError as exc:
        logger.warning(
            "install.copy_failed source=%s target=%s error=%s", hashed.artifact.path, hashed.target_path, exc
        )
        return False
    return True


def decide_and_install(
    hashed: HashedArtifact,
    records: RecordCache,
    *,
    full: bool = False,
    logger: logging.Logger | None = None,
) -> InstallRecord:
    """Apply the install policy for one artifact and update ``records`` accordingly.

    A tracked target whose current digest differs from the recorded one was
    modified outside this tool: the entry is dropped and tracking is rebuilt
    from the freshly produced artifact, overwriting the target when needed.
    """

    effective_logger = logger or LOGGER
    artifact = hashed.artifact
    icon_name = artifact.icon_name

    def result(decision: InstallDecision, reason: str) -> InstallRecord:
        return InstallRecord(
            icon_name=icon_name,
            category=artifact.category,
            decision=decision,
            digest=hashed.new_digest,
            target_path=hashed.target_path,
            reason=reason,
        )

    new_digest = hashed.new_digest
    if new_digest is None:
        effective_logger.warning("install.artifact_unreadable path=%s", artifact.path)
        return result(InstallDecision.FAILED, "artifact_unreadable")

    def install(reason: str, decision: InstallDecision = InstallDecision.INSTALLED) -> InstallRecord:
        if not _copy(hashed, effective_logger):
            return result(InstallDecision.FAILED, "copy_failed")
        records.set(icon_name, new_digest)
        return result(decision, reason)

    if full:
        return install("full_run")
    if hashed.installed_digest is None:
        return install("target_missing")

    recorded = records.get(icon_name)
    if recorded is None:
        return install("untracked_target")

    if hashed.installed_digest != recorded:
        records.drop(icon_name)
        effective_logger.warning(
            "install.untracked icon=%s reason=target_modified recorded=%s installed=%s",
            icon_name,
            recorded,
            hashed.installed_digest,
        )
        if new_digest == hashed.installed_digest:
            records.set(icon_name, new_digest)
            return result(InstallDecision.RETRACKED, "target_matches_new")
        return install("target_modified", InstallDecision.RETRACKED)

    if new_digest == recorded:
        return result(InstallDecision.SKIPPED, "unchanged")
    return install("content_changed")


def install_artifacts(
    artifacts: Sequence[CollectedArtifact],
    records: RecordCache,
    target_root: Path,
    artifact_suffix: str,
    *,
    full: bool = False,
    workers: int = 1,
    logger: logging.Logger | None = None,
) -> list[InstallRecord]:
    """Hash artifacts in parallel, then apply install decisions on one thread."""

    effective_logger = logger or LOGGER
    if not artifacts:
        return []

    def hash_one(artifact: CollectedArtifact) -> HashedArtifact:
        return hash_artifact(artifact, artifact_target(target_root, artifact.icon_name, artifact_suffix))

    with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        hashed_items = list(executor.map(hash_one, artifacts))

    install_records = [
        decide_and_install(hashed, records, full=full, logger=effective_logger) for hashed in hashed_items
    ]
    for record in install_records:
        if record.decision is not InstallDecision.SKIPPED:
            effective_logger.debug(
                "install.decision icon=%s decision=%s reason=%s", record.icon_name, record.decision.value, record.reason
            )
    return install_records
