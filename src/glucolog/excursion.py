"""Correlación evento -> curva CGM (excursión, pico y tiempo al pico)."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import tzinfo

import pandas as pd

from glucolog.errors import MissingBaselineError
from glucolog.model import SUMMARY_TYPES, EventEntry, LogEntry
from glucolog.timeutil import MS_PER_HOUR, epoch_millis

logger = logging.getLogger(__name__)

EVENT_COLUMNS = ["datetime", "type", "note", "max_delta", "time_delta"]
SUMMARY_COLUMNS = ["type", "count", "mean_time_delta", "mean_max_delta"]


def _peak(offsets: Sequence[tuple[int, float]], peak_ms: float) -> tuple[float, int | None]:
    """Largest-magnitude delta before ``peak_ms`` and the time it first occurs.

    On equal magnitude the positive excursion wins.
    """
    lo: tuple[int, float] | None = None
    hi: tuple[int, float] | None = None
    for elapsed, delta in offsets:
        if elapsed >= peak_ms:
            continue
        if lo is None or delta < lo[1]:
            lo = (elapsed, delta)
        if hi is None or delta > hi[1]:
            hi = (elapsed, delta)
    if lo is None or hi is None:
        return float("nan"), None
    best = hi if abs(hi[1]) >= abs(lo[1]) else lo
    return best[1], best[0]


def correlate(
    entries: Sequence[LogEntry],
    window_hours: float = 4,
    peak_hours: float = 2,
    strict: bool = False,
    zone: tzinfo | None = None,
) -> list[EventEntry]:
    """Build one excursion summary per event-bearing entry.

    Each event at ``t0`` is matched with the CGM samples in
    ``[t0, t0 + window_hours]``. Offsets are measured from the first such
    sample; the peak is searched among samples less than ``peak_hours``
    after it.

    Args:
        entries: Normalized log (chronological order).
        window_hours: Length of the correlation window.
        peak_hours: Length of the peak search window.
        strict: Raise instead of skipping events without CGM data.
        zone: Zone used to read naive datetimes.

    Returns:
        Event summaries in log order.

    Raises:
        MissingBaselineError: If ``strict`` and an event has no CGM sample
            in its window.
    """
    window_ms = window_hours * MS_PER_HOUR
    peak_ms = peak_hours * MS_PER_HOUR
    cgm = [(epoch_millis(e.date, zone), e.cgm) for e in entries if e.cgm is not None]

    out: list[EventEntry] = []
    for entry in entries:
        if entry.type is None:
            continue
        t0 = epoch_millis(entry.date, zone)
        window = [(t, v) for t, v in cgm if t0 <= t <= t0 + window_ms]
        if not window:
            if strict:
                raise MissingBaselineError(
                    f"No CGM data within {window_hours}h of event at {entry.date}"
                )
            logger.warning(
                "Skipping %s event at %s: no CGM data in window",
                entry.type.display_name,
                entry.date,
            )
            continue
        t_base, v_base = window[0]
        offsets = tuple((t - t_base, v - v_base) for t, v in window)
        max_delta, time_delta = _peak(offsets, peak_ms)
        out.append(
            EventEntry(
                date=entry.date,
                type=entry.type,
                note=entry.note,
                offset_cgm=offsets,
                max_delta=max_delta,
                time_delta=time_delta,
            )
        )
    return out


def events_to_frame(events: Sequence[EventEntry]) -> pd.DataFrame:
    """One row per event (offset curve omitted)."""
    rows = [
        {
            "datetime": e.date,
            "type": e.type.display_name,
            "note": e.note,
            "max_delta": e.max_delta,
            "time_delta": e.time_delta,
        }
        for e in events
    ]
    if not rows:
        return pd.DataFrame(columns=EVENT_COLUMNS)
    return pd.DataFrame(rows, columns=EVENT_COLUMNS)


def summarize_by_type(events: Sequence[EventEntry]) -> pd.DataFrame:
    """Count, mean time-to-peak and mean peak delta per event kind.

    Kinds with no events (or no time-to-peak) get ``NaN`` means.
    """
    rows: list[dict[str, object]] = []
    for kind in SUMMARY_TYPES:
        same = [e for e in events if e.type is kind]
        times = pd.Series(
            [e.time_delta for e in same if e.time_delta is not None], dtype="float64"
        )
        deltas = pd.Series([e.max_delta for e in same], dtype="float64")
        rows.append(
            {
                "type": kind.display_name,
                "count": len(same),
                "mean_time_delta": times.mean(),
                "mean_max_delta": deltas.mean(),
            }
        )
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
