"""Time utility helpers for UTC-safe timestamps."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4


def now_utc() -> datetime:
    """Return current timezone-aware UTC timestamp."""

    return datetime.now(timezone.utc)


def run_id_for(prefix: str) -> str:
    """Return a short unique run identifier such as ``sync-run-1a2b3c4d5e6f``."""

    return f"{prefix}-{uuid4().hex[:12]}"
