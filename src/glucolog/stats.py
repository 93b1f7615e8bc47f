"""Estadísticas agregadas: eAG/A1C, ESWA de ayuno, cuartiles diarios."""

from __future__ import annotations

import math
import warnings
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, tzinfo

import pandas as pd

from glucolog.errors import EmptyAggregateWarning
from glucolog.model import LogEntry
from glucolog.settings import MG_DL_PER_MMOL_L
from glucolog.timeutil import MS_PER_MINUTE, epoch_millis, local_day

# Fórmula ADAG: A1C% = (eAG mg/dL + 46.7) / 28.7
_A1C_OFFSET = 46.7
_A1C_SLOPE = 28.7

DAILY_COLUMNS = ["date", "count", "min", "q1", "median", "q3", "max"]
LOG_COLUMNS = ["datetime", "date", "cgm", "bgm", "type", "note", "is_fasting"]


@dataclass(frozen=True)
class EstimatedAverage:
    """Mean CGM (mmol/L) and the A1C percentage it implies."""

    a1c: float
    average_cgm: float
    sample_count: int


@dataclass(frozen=True)
class BoxStats:
    """Five-number summary of a sample set."""

    min: float
    q1: float
    median: float
    q3: float
    max: float


@dataclass(frozen=True)
class CalibrationDelta:
    """Difference between a BGM reading and the CGM average right after it."""

    date: datetime
    bgm: float
    delta: float | None


def estimated_average(entries: Sequence[LogEntry]) -> EstimatedAverage:
    """Estimate A1C from the mean of every CGM sample in ``entries``.

    An empty sample set averages to 0 and emits ``EmptyAggregateWarning``.
    """
    values = [e.cgm for e in entries if e.cgm is not None]
    if values:
        average = sum(values) / len(values)
    else:
        warnings.warn("No CGM samples to average", EmptyAggregateWarning, stacklevel=2)
        average = 0.0
    average_mg_dl = average * MG_DL_PER_MMOL_L
    return EstimatedAverage(
        a1c=(average_mg_dl + _A1C_OFFSET) / _A1C_SLOPE,
        average_cgm=average,
        sample_count=len(values),
    )


def fasting_series(entries: Sequence[LogEntry]) -> list[tuple[datetime, float]]:
    """``(date, bgm)`` for fasting-flagged readings, in log order."""
    return [(e.date, e.bgm) for e in entries if e.is_fasting and e.bgm is not None]


def eswa(
    samples: Sequence[tuple[datetime, float]], alpha: float
) -> list[tuple[datetime, float]]:
    """Exponentially smoothed weighted average of a chronological series.

    The first value seeds the filter and is emitted unchanged; each later
    value is ``alpha * value + (1 - alpha) * previous``.

    Args:
        samples: ``(date, value)`` pairs in ascending date order.
        alpha: Smoothing factor, strictly between 0 and 1.

    Returns:
        Smoothed ``(date, value)`` pairs, one per input sample.

    Raises:
        ValueError: If ``alpha`` is outside (0, 1).
    """
    if not 0 < alpha < 1:
        raise ValueError(f"alpha must be in (0, 1), got {alpha}")
    if not samples:
        warnings.warn("No readings to smooth", EmptyAggregateWarning, stacklevel=2)
        return []
    previous = samples[0][1]
    out = [(samples[0][0], previous)]
    for when, value in samples[1:]:
        current = alpha * value + (1 - alpha) * previous
        out.append((when, current))
        previous = current
    return out


def _quantile(ordered: Sequence[float], q: float) -> float:
    pos = (len(ordered) - 1) * q
    base = math.floor(pos)
    rest = pos - base
    if base + 1 < len(ordered):
        return ordered[base] + rest * (ordered[base + 1] - ordered[base])
    return ordered[base]


def _box_stats(ordered: Sequence[float]) -> BoxStats:
    return BoxStats(
        min=ordered[0],
        q1=_quantile(ordered, 0.25),
        median=_quantile(ordered, 0.5),
        q3=_quantile(ordered, 0.75),
        max=ordered[-1],
    )


def quartiles(values: Sequence[float]) -> BoxStats | None:
    """Min, quartiles (linear interpolation between order statistics) and max.

    Returns ``None`` with an ``EmptyAggregateWarning`` for an empty input.
    """
    if not values:
        warnings.warn("No samples for quartiles", EmptyAggregateWarning, stacklevel=2)
        return None
    return _box_stats(sorted(values))


def daily_box_stats(
    entries: Sequence[LogEntry], zone: tzinfo | None = None
) -> pd.DataFrame:
    """Per calendar day box statistics of the CGM samples."""
    cgm = [(local_day(e.date, zone), e.cgm) for e in entries if e.cgm is not None]
    if not cgm:
        return pd.DataFrame(columns=DAILY_COLUMNS)
    df = pd.DataFrame(cgm, columns=["date", "cgm"])
    rows: list[dict[str, object]] = []
    for day, group in df.groupby("date", sort=True):
        box = _box_stats(sorted(group["cgm"].tolist()))
        rows.append(
            {
                "date": day,
                "count": len(group),
                "min": box.min,
                "q1": box.q1,
                "median": box.median,
                "q3": box.q3,
                "max": box.max,
            }
        )
    return pd.DataFrame(rows, columns=DAILY_COLUMNS)


def bgm_cgm_deltas(
    entries: Sequence[LogEntry],
    minutes: float = 20,
    zone: tzinfo | None = None,
) -> list[CalibrationDelta]:
    """Compare each BGM reading with the CGM average over the next minutes.

    The delta is ``mean(cgm) - bgm`` rounded to one decimal, or ``None`` when
    no CGM sample falls within ``[t, t + minutes]``.
    """
    span = minutes * MS_PER_MINUTE
    cgm = [(epoch_millis(e.date, zone), e.cgm) for e in entries if e.cgm is not None]
    out: list[CalibrationDelta] = []
    for entry in entries:
        if entry.bgm is None:
            continue
        t0 = epoch_millis(entry.date, zone)
        window = [v for t, v in cgm if t0 <= t <= t0 + span]
        delta = round(sum(window) / len(window) - entry.bgm, 1) if window else None
        out.append(CalibrationDelta(date=entry.date, bgm=entry.bgm, delta=delta))
    return out


def log_to_frame(entries: Sequence[LogEntry], zone: tzinfo | None = None) -> pd.DataFrame:
    """Convert a log to a DataFrame (one row per entry)."""
    rows = [
        {
            "datetime": e.date,
            "date": local_day(e.date, zone),
            "cgm": e.cgm,
            "bgm": e.bgm,
            "type": e.type.display_name if e.type is not None else None,
            "note": e.note,
            "is_fasting": e.is_fasting,
        }
        for e in entries
    ]
    if not rows:
        return pd.DataFrame(columns=LOG_COLUMNS)
    return pd.DataFrame(rows, columns=LOG_COLUMNS)
