from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta

import pytest
from dateutil import tz

from glucolog.errors import MissingBaselineError
from glucolog.excursion import correlate, events_to_frame, summarize_by_type
from glucolog.merge import merge
from glucolog.model import EventEntry, EventType, LogEntry

_TZ = tz.gettz("America/Argentina/Buenos_Aires")
_T0 = datetime(2025, 12, 15, 8, 0, tzinfo=_TZ)


def _at(minutes: float, **kwargs: object) -> LogEntry:
    return LogEntry(date=_T0 + timedelta(minutes=minutes), **kwargs)  # type: ignore[arg-type]


def test_correlate_offsets_and_peak() -> None:
    log = merge(
        [],
        [
            _at(0, type=EventType.BREAKFAST, note="tostadas"),
            _at(0, cgm=5.0),
            _at(30, cgm=6.5),
            _at(90, cgm=4.0),
        ],
        zone=_TZ,
    )
    events = correlate(log, zone=_TZ)
    assert len(events) == 1
    ev = events[0]
    assert ev.type is EventType.BREAKFAST
    assert ev.note == "tostadas"
    assert ev.date == _T0
    assert [t for t, _ in ev.offset_cgm] == [0, 1_800_000, 5_400_000]
    assert [d for _, d in ev.offset_cgm] == pytest.approx([0.0, 1.5, -1.0])
    assert ev.max_delta == pytest.approx(1.5)
    assert ev.time_delta == 1_800_000


def test_correlate_negative_excursion_wins_when_larger() -> None:
    log = merge(
        [],
        [
            _at(0, type=EventType.SPORT),
            _at(5, cgm=8.0),
            _at(20, cgm=8.5),
            _at(60, cgm=6.0),
        ],
        zone=_TZ,
    )
    ev = correlate(log, zone=_TZ)[0]
    assert ev.max_delta == pytest.approx(-2.0)
    assert ev.time_delta == 55 * 60 * 1000


def test_correlate_equal_magnitude_prefers_positive() -> None:
    log = [
        _at(0, type=EventType.LUNCH),
        _at(0, cgm=5.0),
        _at(10, cgm=4.0),
        _at(20, cgm=6.0),
    ]
    ev = correlate(log, zone=_TZ)[0]
    assert ev.max_delta == 1.0
    assert ev.time_delta == 20 * 60 * 1000


def test_correlate_peak_ignores_samples_after_two_hours() -> None:
    log = [
        _at(0, type=EventType.DINNER),
        _at(0, cgm=5.0),
        _at(60, cgm=6.0),
        _at(120, cgm=9.0),
        _at(240, cgm=7.0),
        _at(241, cgm=12.0),
    ]
    ev = correlate(log, zone=_TZ)[0]
    # 240 min entra (ventana inclusiva), 241 no.
    assert len(ev.offset_cgm) == 4
    assert ev.max_delta == 1.0
    assert ev.time_delta == 3_600_000


def test_correlate_baseline_is_first_sample_in_window() -> None:
    log = [
        _at(-5, cgm=3.0),
        _at(0, type=EventType.SNACK),
        _at(10, cgm=5.0),
        _at(25, cgm=5.5),
    ]
    ev = correlate(log, zone=_TZ)[0]
    assert ev.offset_cgm[0] == (0, 0.0)
    assert ev.offset_cgm[1][0] == 15 * 60 * 1000


def test_correlate_skips_event_without_cgm(caplog: pytest.LogCaptureFixture) -> None:
    log = [_at(0, type=EventType.LUNCH), _at(300, cgm=5.0)]
    with caplog.at_level(logging.WARNING):
        assert correlate(log, zone=_TZ) == []
    assert "no CGM data" in caplog.text


def test_correlate_strict_raises_missing_baseline() -> None:
    log = [_at(0, type=EventType.LUNCH)]
    with pytest.raises(MissingBaselineError):
        correlate(log, strict=True, zone=_TZ)


def test_correlate_ignores_entries_without_type() -> None:
    log = [_at(0, cgm=5.0), _at(5, bgm=6.0, note="x")]
    assert correlate(log, zone=_TZ) == []


def test_events_to_frame_empty_has_columns() -> None:
    df = events_to_frame([])
    assert df.empty
    assert list(df.columns) == ["datetime", "type", "note", "max_delta", "time_delta"]


def test_summarize_by_type_means_and_missing_kinds() -> None:
    events = [
        EventEntry(date=_T0, type=EventType.LUNCH, note=None, max_delta=2.0, time_delta=1_800_000),
        EventEntry(date=_T0, type=EventType.LUNCH, note=None, max_delta=1.0, time_delta=3_600_000),
        EventEntry(date=_T0, type=EventType.SPORT, note=None, max_delta=-1.0, time_delta=None),
    ]
    out = summarize_by_type(events).set_index("type")
    assert list(out.index) == ["Breakfast", "Lunch", "Dinner", "Snack", "Sport"]
    assert out.loc["Lunch", "count"] == 2
    assert out.loc["Lunch", "mean_time_delta"] == 2_700_000
    assert out.loc["Lunch", "mean_max_delta"] == 1.5
    assert out.loc["Breakfast", "count"] == 0
    assert math.isnan(out.loc["Breakfast", "mean_time_delta"])
    assert math.isnan(out.loc["Sport", "mean_time_delta"])
    assert out.loc["Sport", "mean_max_delta"] == -1.0
