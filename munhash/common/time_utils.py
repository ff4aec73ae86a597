"""UTC and elapsed-time helpers for run metadata."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")


def elapsed_ms(started_at: float) -> int:
    """Milliseconds since a ``time.perf_counter()`` reading."""
    return int((time.perf_counter() - started_at) * 1000)


def format_elapsed(ms: int) -> str:
    minutes, remainder = divmod(max(ms, 0), 60_000)
    seconds, millis = divmod(remainder, 1000)
    return f"{minutes}m {seconds}s {millis}ms"
