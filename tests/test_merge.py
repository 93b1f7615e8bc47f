from __future__ import annotations

from datetime import datetime, timedelta

from dateutil import tz

from glucolog.merge import filter_recent, flag_fasting, merge, normalize
from glucolog.model import EventType, LogEntry

_TZ = tz.gettz("America/Argentina/Buenos_Aires")


def _dt(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 12, day, hour, minute, tzinfo=_TZ)


def test_merge_empty_inputs() -> None:
    assert merge([], [], zone=_TZ) == ()


def test_merge_identical_entries_collapse() -> None:
    e = LogEntry(date=_dt(15, 8), cgm=5.5, note="x")
    out = merge([e], [e], zone=_TZ)
    assert len(out) == 1
    assert out[0].cgm == 5.5


def test_merge_keeps_distinct_readings_with_same_date() -> None:
    a = LogEntry(date=_dt(15, 8), cgm=5.5)
    b = LogEntry(date=_dt(15, 8), bgm=6.0)
    out = merge([a], [b], zone=_TZ)
    assert len(out) == 2


def test_merge_keeps_event_and_reading_at_same_instant() -> None:
    reading = LogEntry(date=_dt(15, 8), note="pan")
    event = LogEntry(date=_dt(15, 8), type=EventType.BREAKFAST, note="pan")
    assert len(merge([reading], [event], zone=_TZ)) == 2


def test_merge_orders_by_date_then_cgm_bgm_note() -> None:
    entries = [
        LogEntry(date=_dt(15, 9), cgm=4.0),
        LogEntry(date=_dt(15, 8), note="b"),
        LogEntry(date=_dt(15, 8), note="a"),
        LogEntry(date=_dt(15, 8), cgm=7.0),
        LogEntry(date=_dt(15, 8), cgm=6.0),
        LogEntry(date=_dt(15, 8), cgm=6.0, bgm=5.0),
    ]
    out = merge([], entries, zone=_TZ)
    assert [e.date for e in out] == sorted(e.date for e in out)
    same_time = [(e.cgm, e.bgm, e.note) for e in out if e.date == _dt(15, 8)]
    assert same_time == [
        (None, None, "a"),
        (None, None, "b"),
        (6.0, None, None),
        (6.0, 5.0, None),
        (7.0, None, None),
    ]


def test_merge_absent_cgm_sorts_as_zero() -> None:
    absent = LogEntry(date=_dt(15, 8), bgm=1.0)
    zero = LogEntry(date=_dt(15, 8), cgm=0.0, bgm=2.0)
    out = merge([zero], [absent], zone=_TZ)
    assert [e.bgm for e in out] == [1.0, 2.0]


def test_merge_is_idempotent() -> None:
    entries = [
        LogEntry(date=_dt(16, 7), bgm=6.1),
        LogEntry(date=_dt(15, 19), bgm=7.2),
        LogEntry(date=_dt(15, 7), bgm=5.9),
        LogEntry(date=_dt(15, 7), cgm=5.4),
    ]
    once = merge(entries, [], zone=_TZ)
    assert merge(once, [], zone=_TZ) == once


def test_merge_does_not_mutate_inputs() -> None:
    existing = [LogEntry(date=_dt(15, 9), bgm=6.0), LogEntry(date=_dt(15, 7), bgm=5.0)]
    snapshot = list(existing)
    merge(existing, [], zone=_TZ)
    assert existing == snapshot


def test_fasting_flag_first_bgm_per_day() -> None:
    entries = [
        LogEntry(date=_dt(15, 19), bgm=7.2),
        LogEntry(date=_dt(15, 7), bgm=5.9),
        LogEntry(date=_dt(16, 7), bgm=6.1),
        LogEntry(date=_dt(15, 6), cgm=5.0),
    ]
    out = merge([], entries, zone=_TZ)
    flags = [(e.date, e.is_fasting) for e in out]
    assert flags == [
        (_dt(15, 6), False),
        (_dt(15, 7), True),
        (_dt(15, 19), False),
        (_dt(16, 7), True),
    ]


def test_fasting_uses_local_calendar_day() -> None:
    # 23:30 y 00:30 locales son días distintos aunque disten una hora.
    entries = [
        LogEntry(date=_dt(15, 23, 30), bgm=6.0),
        LogEntry(date=_dt(16, 0, 30), bgm=6.5),
    ]
    out = normalize(entries, zone=_TZ)
    assert [e.is_fasting for e in out] == [True, True]


def test_flag_fasting_resets_stale_flags() -> None:
    stale = LogEntry(date=_dt(15, 8), cgm=5.0, is_fasting=True)
    assert flag_fasting([stale], zone=_TZ)[0].is_fasting is False


def test_filter_recent_keeps_window() -> None:
    now = _dt(20, 12)
    entries = [
        LogEntry(date=now - timedelta(days=4), cgm=5.0),
        LogEntry(date=now - timedelta(days=3), cgm=6.0),
        LogEntry(date=now - timedelta(hours=1), cgm=7.0),
    ]
    out = filter_recent(entries, 3, now=now, zone=_TZ)
    assert [e.cgm for e in out] == [6.0, 7.0]


def test_merge_keeps_entries_less_than_a_millisecond_apart() -> None:
    a = LogEntry(date=_dt(15, 8), cgm=5.5)
    b = LogEntry(date=_dt(15, 8) + timedelta(microseconds=300), cgm=5.5)
    assert len(merge([a], [b], zone=_TZ)) == 2
