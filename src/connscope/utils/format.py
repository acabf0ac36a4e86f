"""
Human-readable formatting for byte counts, rates and connection ages.
"""
import math
import time
from typing import Optional

_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


def format_bytes(value: int) -> str:
    """Format a byte count with 1024-based units, e.g. '1.5 KB'."""
    size = float(max(0, value))
    unit = _UNITS[0]
    for unit in _UNITS:
        if size < 1024 or unit == _UNITS[-1]:
            break
        size /= 1024
    if unit == "B":
        return f"{int(size)} B"
    return f"{size:.1f} {unit}"


def format_rate(value: int) -> str:
    return f"{format_bytes(value)}/s"


def format_duration(start_ts: Optional[float], now: Optional[float] = None) -> str:
    """Elapsed time since a start timestamp, e.g. '3m 05s'."""
    if start_ts is None or not math.isfinite(start_ts):
        return "-"
    if now is None:
        now = time.time()
    elapsed = int(max(0.0, now - start_ts))
    hours, rest = divmod(elapsed, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    if minutes:
        return f"{minutes}m {seconds:02d}s"
    return f"{seconds}s"
