"""Modelos tipados para el log canónico de glucosa y eventos derivados."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class EventType(Enum):
    """Discrete life event kinds that can be attached to a log entry."""

    FASTING = 0
    BREAKFAST = 1
    LUNCH = 2
    DINNER = 3
    SNACK = 4
    SPORT = 5

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def color(self) -> str:
        return _COLORS[self]

    @classmethod
    def parse(cls, raw: object) -> EventType:
        """Resolve an enum member from its name ("Lunch") or integer value.

        Raises:
            ValueError: If ``raw`` names no event type.
        """
        if isinstance(raw, EventType):
            return raw
        if isinstance(raw, bool):
            raise ValueError(f"Unknown event type: {raw!r}")
        if isinstance(raw, int):
            return cls(raw)
        if isinstance(raw, str):
            key = raw.strip().upper()
            if key in cls.__members__:
                return cls[key]
            if key.isdigit():
                return cls(int(key))
        raise ValueError(f"Unknown event type: {raw!r}")


_DISPLAY_NAMES: dict[EventType, str] = {
    EventType.FASTING: "Fasting",
    EventType.BREAKFAST: "Breakfast",
    EventType.LUNCH: "Lunch",
    EventType.DINNER: "Dinner",
    EventType.SNACK: "Snack",
    EventType.SPORT: "Sport",
}

_COLORS: dict[EventType, str] = {
    EventType.FASTING: "#B3E0F7",
    EventType.BREAKFAST: "#B3F7CA",
    EventType.LUNCH: "#B3F7CA",
    EventType.DINNER: "#B3F7CA",
    EventType.SNACK: "#E0F7B3",
    EventType.SPORT: "#B3F7EC",
}

# Orden de presentación para tablas resumen (Fasting no es una comida).
SUMMARY_TYPES: tuple[EventType, ...] = (
    EventType.BREAKFAST,
    EventType.LUNCH,
    EventType.DINNER,
    EventType.SNACK,
    EventType.SPORT,
)


@dataclass(frozen=True)
class LogEntry:
    """One timestamped observation: CGM sample, BGM reading and/or event.

    The ``cgm``, ``bgm`` and ``type`` facets are independent; a single entry
    may carry any combination of them. Concentrations are in mmol/L.
    """

    date: datetime
    cgm: float | None = None
    bgm: float | None = None
    type: EventType | None = None
    note: str | None = None
    is_fasting: bool = False


@dataclass(frozen=True)
class EventEntry:
    """CGM excursion following one event-bearing log entry."""

    date: datetime
    type: EventType
    note: str | None
    offset_cgm: tuple[tuple[int, float], ...] = field(default_factory=tuple)
    max_delta: float = float("nan")
    time_delta: int | None = None
