from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def tz_name(tz: Any) -> str:
    if tz is None:
        return "None"
    zone = getattr(tz, "zone", None)
    if zone:
        return zone
    key = getattr(tz, "key", None)
    if key:
        return key
    return str(tz)


def as_aware_utc(dt: datetime | str | None) -> datetime | None:
    if dt is None:
        return None
    if isinstance(dt, str):
        dt = dt.strip()
        if dt.endswith("Z"):
            dt = dt[:-1] + "+00:00"
        dt = datetime.fromisoformat(dt)
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime | str | None, tz: Any = None) -> str:
    """Render ``dt`` for humans, converted to ``tz`` (UTC when omitted)."""

    aware = as_aware_utc(dt)
    if aware is None:
        return "(unknown)"
    if tz is not None:
        aware = aware.astimezone(tz)
    return aware.strftime("%Y-%m-%d %H:%M:%S %Z")
