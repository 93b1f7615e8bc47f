"""Clases base para fuentes de datos."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from glucolog.model import LogEntry


@dataclass(frozen=True)
class SourcePaths:
    """Container for source locations."""

    root: Path


class DataSource(ABC):
    """Abstract data source producing canonical log entries."""

    def __init__(self, paths: SourcePaths) -> None:
        """Create a data source.

        Args:
            paths: Source paths configuration.
        """
        self._paths = paths

    @abstractmethod
    def validate(self) -> None:
        """Validate that required folders/files exist.

        Raises:
            FileNotFoundError: If required files are missing.
        """

    @abstractmethod
    def load_entries(self, path: Path, strict: bool = False) -> list[LogEntry]:
        """Parse one file into log entries.

        Raises:
            MalformedRecordError: If ``strict`` and a record is unusable.
        """
