"""Persisted icon-name to artifact-digest records."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Iterator

from hicolor_sync.utils.paths import write_text_atomically

LOGGER = logging.getLogger(__name__)

RECORD_SEPARATOR = "|"
DIGEST_CHUNK_BYTES = 1 << 16


def file_digest(path: Path) -> str | None:
    """Return the MD5 hex digest of ``path``, or ``None`` if it cannot be read.

    The digest only detects content changes; it is not a security boundary.
    """

    digest = hashlib.md5(usedforsecurity=False)
    try:
        with path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(DIGEST_CHUNK_BYTES), b""):
                digest.update(chunk)
    except OSError:
        return None
    return digest.hexdigest()


def parse_record_line(line: str) -> tuple[str, str] | None:
    """Parse ``<icon-name>|<hex-digest>``; extra fields after the digest are ignored."""

    parts = line.rstrip("\r\n").split(RECORD_SEPARATOR)
    if len(parts) < 2:
        return None
    icon_name, digest = parts[0], parts[1].strip()
    if not icon_name or not digest:
        return None
    return icon_name, digest


def render_records(records: dict[str, str]) -> str:
    """Render records sorted by icon name, one per line."""

    return "".join(f"{name}{RECORD_SEPARATOR}{records[name]}\n" for name in sorted(records))


class RecordCache:
    """In-memory record mapping owned by exactly one run.

    Loaded once, mutated as installs and removals happen, and written back
    with a single full-file replace only when something changed.
    """

    def __init__(
        self,
        path: Path,
        records: dict[str, str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.path = path
        self._records: dict[str, str] = dict(records or {})
        self._modified = False
        self._logger = logger or LOGGER

    @classmethod
    def load(cls, path: Path, logger: logging.Logger | None = None) -> "RecordCache":
        """Load records from ``path``; a missing or unreadable file yields an empty cache."""

        effective_logger = logger or LOGGER
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            effective_logger.info("records.missing path=%s; starting with empty records", path)
            return cls(path, logger=effective_logger)
        except (OSError, UnicodeDecodeError) as exc:
            effective_logger.warning("records.unreadable path=%s error=%s; starting with empty records", path, exc)
            return cls(path, logger=effective_logger)

        records: dict[str, str] = {}
        malformed = 0
        for line in text.splitlines():
            if not line.strip():
                continue
            parsed = parse_record_line(line)
            if parsed is None:
                malformed += 1
                continue
            records[parsed[0]] = parsed[1]
        if malformed:
            effective_logger.warning("records.malformed_lines path=%s count=%s", path, malformed)
        effective_logger.info("records.loaded path=%s records=%s", path, len(records))
        return cls(path, records=records, logger=effective_logger)

    def __contains__(self, icon_name: object) -> bool:
        return icon_name in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._records))

    @property
    def modified(self) -> bool:
        return self._modified

    def get(self, icon_name: str) -> str | None:
        return self._records.get(icon_name)

    def set(self, icon_name: str, digest: str) -> None:
        if self._records.get(icon_name) != digest:
            self._records[icon_name] = digest
            self._modified = True

    def drop(self, icon_name: str) -> bool:
        if icon_name not in self._records:
            return False
        del self._records[icon_name]
        self._modified = True
        return True

    def as_dict(self) -> dict[str, str]:
        return dict(self._records)

    def flush(self) -> bool:
        """Rewrite the record file if records changed; return whether a write happened."""

        if not self._modified:
            self._logger.info("records.flush_skipped path=%s reason=unchanged", self.path)
            return False
        try:
            write_text_atomically(render_records(self._records), self.path)
        except OSError as exc:
            self._logger.error("records.flush_failed path=%s error=%s", self.path, exc)
            return False
        self._modified = False
        self._logger.info("records.flushed path=%s records=%s", self.path, len(self._records))
        return True
