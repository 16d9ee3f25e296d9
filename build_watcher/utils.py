from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_FRACTION_RE = re.compile(r"\.(\d+)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def or_epoch(dt: Optional[datetime]) -> datetime:
    """Missing timestamps are treated as the Unix epoch."""
    return dt if dt is not None else EPOCH


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp such as "2021-12-11T19:42:31.123456789Z".

    Fractional seconds beyond microseconds are truncated.
    """
    normalized = value.strip()
    if normalized.endswith(("Z", "z")):
        normalized = normalized[:-1] + "+00:00"
    normalized = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), normalized, count=1)
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid timestamp format: {value}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def build_duration(start: Optional[datetime], end: Optional[datetime]) -> timedelta:
    return or_epoch(end) - or_epoch(start)


def format_duration(d: timedelta) -> str:
    """Format d as e.g. "4h23m5s", "3h10s", "2m4s" or "14s"."""
    total = max(0, int(d.total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    out = ""
    if hours:
        out += f"{hours}h"
    if minutes:
        out += f"{minutes}m"
    if seconds or not out:
        out += f"{seconds}s"
    return out
