"""Utility functions for time handling.

Readings carry integer epoch seconds. Wall-clock helpers return timezone-aware
datetimes; hour-of-day lookups take an explicit timezone so forecasts stay
reproducible regardless of the host's local zone.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def epoch_now() -> int:
    """Return current time as integer seconds since the epoch."""
    return int(time.time())


def iso_from_epoch(timestamp: int) -> str:
    """Render epoch seconds as an ISO8601 UTC string."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def resolve_timezone(name: str | None) -> tzinfo:
    """Return a tzinfo for an IANA name; empty or "UTC" maps to timezone.utc."""
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def fractional_hour(timestamp: int, tz: tzinfo = timezone.utc) -> float:
    """Hour of day (0-24) including the minute fraction."""
    moment = datetime.fromtimestamp(timestamp, tz=tz)
    return moment.hour + moment.minute / 60
