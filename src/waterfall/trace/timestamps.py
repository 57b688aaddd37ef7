"""Timestamp parsing for span start/end values."""
from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Union

Timestamp = Union[str, int, float, datetime]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)

# .NET and OTLP exporters emit up to 9 fractional digits; fromisoformat on
# 3.10 only accepts exactly 3 or 6.
_FRACTION_RE = re.compile(r"\.(\d+)")


def _pad_fraction(match: re.Match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def _parse_timestamp(ts: str | None) -> datetime | None:
    """Parse ISO timestamp string to datetime."""
    if not ts:
        return None
    try:
        ts = ts.strip()
        if ts.endswith("Z"):
            ts = ts[:-1] + "+00:00"
        ts = _FRACTION_RE.sub(_pad_fraction, ts, count=1)
        return datetime.fromisoformat(ts)
    except (ValueError, TypeError):
        return None


def to_epoch_ms(value: Timestamp) -> float:
    """Convert a span timestamp to epoch milliseconds.

    Numbers are taken as epoch milliseconds already. Naive datetimes and
    ISO strings without an offset are treated as UTC.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"Not a finite timestamp: {value!r}")
        return float(value)

    if isinstance(value, datetime):
        parsed: datetime | None = value
    elif isinstance(value, str):
        parsed = _parse_timestamp(value)
    else:
        parsed = None

    if parsed is None:
        raise ValueError(f"Not a timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - _EPOCH) / _ONE_MS


def is_timestamp(value: object) -> bool:
    """Check whether ``value`` can be converted by :func:`to_epoch_ms`."""
    try:
        to_epoch_ms(value)  # type: ignore[arg-type]
    except ValueError:
        return False
    return True
