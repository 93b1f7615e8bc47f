"""Utilidades de tiempo: epoch en milisegundos y día calendario local."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo

from dateutil import tz

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE


def ensure_tz_aware(dt: datetime, zone: tzinfo | None = None) -> datetime:
    """Attach ``zone`` (host local zone by default) to a naive datetime."""
    if dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=zone if zone is not None else tz.tzlocal())


def epoch_millis(dt: datetime, zone: tzinfo | None = None) -> int:
    """Milliseconds since the Unix epoch; naive values are read in ``zone``."""
    return (ensure_tz_aware(dt, zone) - _EPOCH) // _ONE_MS


def local_day(dt: datetime, zone: tzinfo | None = None) -> date:
    """Calendar date of ``dt`` as seen in ``zone``."""
    zone = zone if zone is not None else tz.tzlocal()
    return ensure_tz_aware(dt, zone).astimezone(zone).date()
