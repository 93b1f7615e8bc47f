"""Configuración de unidades, rango objetivo y parámetros de análisis."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo

from dateutil import tz

MG_DL = "mg/dL"
MMOL_L = "mmol/L"

# mmol/L -> mg/dL
MG_DL_PER_MMOL_L = 18.0182


@dataclass(frozen=True)
class Settings:
    """Display preferences. Range bounds are always stored in mmol/L."""

    unit: str = MMOL_L
    unit_multiplier: float = 1
    range_min: float = 4.0
    range_max: float = 8.5

    @classmethod
    def for_unit(cls, unit: str, **kwargs: float) -> Settings:
        """Build settings for ``unit`` with its matching multiplier."""
        if unit == MG_DL:
            return cls(unit=MG_DL, unit_multiplier=MG_DL_PER_MMOL_L, **kwargs)
        return cls(unit=MMOL_L, unit_multiplier=1, **kwargs)


def convert_unit(mmol: float, settings: Settings) -> float:
    """Convert a mmol/L concentration to the configured display unit.

    mg/dL values are rounded to whole numbers; mmol/L passes through.
    """
    if settings.unit == MG_DL:
        return round(mmol * MG_DL_PER_MMOL_L)
    return mmol


def converted_range(settings: Settings) -> tuple[float, float]:
    """Return the target range bounds in the display unit."""
    return (
        convert_unit(settings.range_min, settings),
        convert_unit(settings.range_max, settings),
    )


@dataclass(frozen=True)
class AnalysisConfig:
    """Tunables for the analytics pipeline."""

    window_hours: float = 4
    peak_hours: float = 2
    gap_hours: float = 2
    alpha: float = 0.1
    calibration_minutes: float = 20
    tz_name: str | None = None

    def tzinfo(self) -> tzinfo:
        """Resolve the calendar-day time zone (host local zone by default).

        Raises:
            ValueError: If ``tz_name`` is not a known zone.
        """
        if self.tz_name is None:
            return tz.tzlocal()
        zone = tz.gettz(self.tz_name)
        if zone is None:
            raise ValueError(f"Unknown time zone: {self.tz_name}")
        return zone
