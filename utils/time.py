# utils/time.py
import time
from datetime import datetime, timezone

def utc_iso_millis(ts_ms: int | None = None) -> str:
    """UTC ISO8601 with milliseconds, e.g. 2024-01-01T09:08:57.715Z"""
    if ts_ms is None:
        ts_ms = int(time.time() * 1000)
    t = datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)
    return t.isoformat(timespec="milliseconds").replace("+00:00", "Z")
