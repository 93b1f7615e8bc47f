"""Merge y normalización del log canónico (orden, duplicados, ayuno)."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import date, datetime, timedelta, tzinfo
from functools import reduce

from dateutil import tz

from glucolog.model import LogEntry
from glucolog.timeutil import ensure_tz_aware, epoch_millis, local_day

logger = logging.getLogger(__name__)

_FastingState = tuple[date | None, list[LogEntry]]


def merge(
    existing: Sequence[LogEntry],
    incoming: Sequence[LogEntry],
    zone: tzinfo | None = None,
) -> tuple[LogEntry, ...]:
    """Combine the stored log with newly imported entries.

    Args:
        existing: Current canonical log.
        incoming: Entries produced by an import adapter or manual entry.
        zone: Zone that defines calendar days (host local zone by default).

    Returns:
        New sorted, deduplicated, fasting-flagged log.
    """
    logger.debug("Merging %d existing with %d incoming", len(existing), len(incoming))
    return normalize([*existing, *incoming], zone=zone)


def normalize(
    entries: Iterable[LogEntry], zone: tzinfo | None = None
) -> tuple[LogEntry, ...]:
    """Sort, deduplicate and flag fasting readings."""
    return flag_fasting(sort_and_deduplicate(entries, zone=zone), zone=zone)


def _sort_key(
    entry: LogEntry, zone: tzinfo | None
) -> tuple[int, float, float, str, bool, bool, int]:
    # Un valor ausente compara como 0 (compatibilidad con logs existentes).
    # Los tres últimos campos solo separan empates exactos.
    return (
        epoch_millis(entry.date, zone),
        entry.cgm or 0,
        entry.bgm or 0,
        entry.note or "",
        entry.cgm is None,
        entry.bgm is None,
        entry.type.value if entry.type is not None else -1,
    )


def _same_record(a: LogEntry, b: LogEntry, zone: tzinfo | None) -> bool:
    return (
        ensure_tz_aware(a.date, zone) == ensure_tz_aware(b.date, zone)
        and a.cgm == b.cgm
        and a.bgm == b.bgm
        and a.note == b.note
        and a.type == b.type
    )


def sort_and_deduplicate(
    entries: Iterable[LogEntry], zone: tzinfo | None = None
) -> list[LogEntry]:
    """Order entries by date/cgm/bgm/note and drop adjacent identical ones."""
    ordered = sorted(entries, key=lambda e: _sort_key(e, zone))
    out: list[LogEntry] = []
    for entry in ordered:
        if out and _same_record(out[-1], entry, zone):
            continue
        out.append(entry)
    dropped = len(ordered) - len(out)
    if dropped:
        logger.debug("Dropped %d duplicate entries", dropped)
    return out


def _fasting_step(state: _FastingState, entry: LogEntry, zone: tzinfo) -> _FastingState:
    last_bgm_day, out = state
    if entry.bgm is None:
        out.append(replace(entry, is_fasting=False))
        return last_bgm_day, out
    day = local_day(entry.date, zone)
    first_of_day = day != last_bgm_day
    out.append(replace(entry, is_fasting=first_of_day))
    return day, out


def flag_fasting(
    entries: Sequence[LogEntry], zone: tzinfo | None = None
) -> tuple[LogEntry, ...]:
    """Mark the first BGM reading of each calendar day as fasting.

    ``entries`` must already be in chronological order.
    """
    zone = zone if zone is not None else tz.tzlocal()
    initial: _FastingState = (None, [])
    _, out = reduce(lambda acc, e: _fasting_step(acc, e, zone), entries, initial)
    return tuple(out)


def filter_recent(
    entries: Sequence[LogEntry],
    days: float,
    now: datetime | None = None,
    zone: tzinfo | None = None,
) -> tuple[LogEntry, ...]:
    """Keep entries no older than ``days`` days before ``now``."""
    zone = zone if zone is not None else tz.tzlocal()
    now = ensure_tz_aware(now, zone) if now is not None else datetime.now(tz=zone)
    cutoff = now - timedelta(hours=days * 24)
    return tuple(e for e in entries if ensure_tz_aware(e.date, zone) >= cutoff)
