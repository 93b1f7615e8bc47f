"""Errores y advertencias del motor de análisis."""

from __future__ import annotations


class MalformedRecordError(ValueError):
    """An imported record cannot be turned into a log entry."""


class MissingBaselineError(LookupError):
    """An event has no CGM sample inside its correlation window."""


class EmptyAggregateWarning(UserWarning):
    """A statistic was computed over an empty sample set."""
