"""Segmentación de series por huecos de datos (sin interpolar entre cortes)."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, tzinfo

from glucolog.model import LogEntry
from glucolog.timeutil import MS_PER_HOUR, epoch_millis

Sample = tuple[datetime, float]


def _gap_hours_ceil(prev: datetime, cur: datetime, zone: tzinfo | None) -> int:
    elapsed = epoch_millis(cur, zone) - epoch_millis(prev, zone)
    return -(-elapsed // MS_PER_HOUR)


def segment(
    samples: Sequence[Sample], gap_hours: float, zone: tzinfo | None = None
) -> list[list[Sample]]:
    """Split a chronological series into runs separated by long gaps.

    The gap between neighbours is measured in whole hours, rounded up. A new
    run starts when that value is strictly greater than ``gap_hours``.

    Args:
        samples: ``(date, value)`` pairs in chronological order.
        gap_hours: Largest gap, in hours, allowed inside one run.
        zone: Zone used to read naive datetimes.

    Returns:
        Non-empty runs whose concatenation equals ``samples``.

    Raises:
        ValueError: If ``gap_hours`` is negative.
    """
    if gap_hours < 0:
        raise ValueError("gap_hours must be >= 0")
    runs: list[list[Sample]] = []
    for sample in samples:
        if runs and _gap_hours_ceil(runs[-1][-1][0], sample[0], zone) <= gap_hours:
            runs[-1].append(sample)
        else:
            runs.append([sample])
    return runs


def cgm_series(entries: Sequence[LogEntry]) -> list[Sample]:
    """Extract ``(date, cgm)`` pairs from a normalized log."""
    return [(e.date, e.cgm) for e in entries if e.cgm is not None]
