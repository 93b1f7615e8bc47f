"""Lectura de registros canónicos (JSON) hacia entradas del log."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Any

from dateutil import parser as date_parser
from dateutil import tz

from glucolog.errors import MalformedRecordError
from glucolog.model import EventType, LogEntry
from glucolog.sources.base import DataSource, SourcePaths
from glucolog.timeutil import ensure_tz_aware

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordsPaths(SourcePaths):
    """Path to one JSON file or a folder of ``*.json`` files."""


class RecordsSource(DataSource):
    """Canonical JSON records: ``[{"date": ..., "cgm": ..., ...}, ...]``."""

    def __init__(self, paths: SourcePaths, zone: tzinfo | None = None) -> None:
        super().__init__(paths)
        self._zone = zone

    def validate(self) -> None:
        """Validate that the records file or folder exists."""
        if not self._paths.root.exists():
            raise FileNotFoundError(str(self._paths.root))

    def json_files(self) -> list[Path]:
        """Return the JSON files to read, oldest name first."""
        root = self._paths.root
        if root.is_file():
            return [root]
        files = sorted(root.glob("*.json"))
        if not files:
            raise FileNotFoundError(f"No *.json in {root}")
        return files

    def load_entries(self, path: Path, strict: bool = False) -> list[LogEntry]:
        """Parse a JSON records file.

        Args:
            path: Path to JSON file.
            strict: Raise on the first malformed record instead of skipping.

        Returns:
            Entries in file order (not normalized).

        Raises:
            ValueError: If the file is not a JSON list.
        """
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError(f"{path}: records JSON must be a list")
        return records_to_entries(raw, zone=self._zone, strict=strict)


def records_to_entries(
    records: Iterable[Any], zone: tzinfo | None = None, strict: bool = False
) -> list[LogEntry]:
    """Turn raw record mappings into log entries.

    Malformed records are logged and skipped unless ``strict``.

    Raises:
        MalformedRecordError: If ``strict`` and a record is unusable.
    """
    out: list[LogEntry] = []
    for index, record in enumerate(records):
        try:
            out.append(record_to_entry(record, zone=zone))
        except MalformedRecordError as exc:
            if strict:
                raise
            logger.warning("Skipping record %d: %s", index, exc)
    return out


def record_to_entry(record: Any, zone: tzinfo | None = None) -> LogEntry:
    """Convert one record mapping into a ``LogEntry``.

    Raises:
        MalformedRecordError: If the record has no usable ``date`` or carries
            invalid values.
    """
    if not isinstance(record, Mapping):
        raise MalformedRecordError(f"Record must be an object, got {type(record).__name__}")
    if record.get("date") in (None, ""):
        raise MalformedRecordError("Record is missing 'date'")
    return LogEntry(
        date=_parse_date(record["date"], zone),
        cgm=_parse_number(record, "cgm"),
        bgm=_parse_number(record, "bgm"),
        type=_parse_type(record.get("type")),
        note=_parse_note(record.get("note")),
    )


def entries_to_records(entries: Sequence[LogEntry]) -> list[dict[str, object]]:
    """Serializable records (ISO dates) for a log; absent facets omitted."""
    out: list[dict[str, object]] = []
    for e in entries:
        rec: dict[str, object] = {"date": e.date.isoformat()}
        if e.cgm is not None:
            rec["cgm"] = e.cgm
        if e.bgm is not None:
            rec["bgm"] = e.bgm
        if e.type is not None:
            rec["type"] = e.type.display_name
        if e.note is not None:
            rec["note"] = e.note
        out.append(rec)
    return out


def _parse_date(value: Any, zone: tzinfo | None) -> datetime:
    zone = zone if zone is not None else tz.tzlocal()
    if isinstance(value, datetime):
        return ensure_tz_aware(value, zone)
    if isinstance(value, bool):
        raise MalformedRecordError(f"Invalid date: {value!r}")
    if isinstance(value, int | float):
        # epoch en milisegundos
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).astimezone(zone)
    if isinstance(value, str):
        try:
            return ensure_tz_aware(date_parser.isoparse(value.strip()), zone)
        except ValueError as exc:
            raise MalformedRecordError(f"Invalid date: {value!r}") from exc
    raise MalformedRecordError(f"Invalid date: {value!r}")


def _parse_number(record: Mapping[str, Any], key: str) -> float | None:
    value = record.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise MalformedRecordError(f"Invalid {key}: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedRecordError(f"Invalid {key}: {value!r}") from exc
    if math.isnan(number):
        return None
    return number


def _parse_type(value: Any) -> EventType | None:
    if value is None or value == "":
        return None
    try:
        return EventType.parse(value)
    except ValueError as exc:
        raise MalformedRecordError(str(exc)) from exc


def _parse_note(value: Any) -> str | None:
    """Normaliza la nota (vacía -> None)."""
    if value is None:
        return None
    note = str(value).strip()
    return note if note else None
