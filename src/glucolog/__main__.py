"""Punto de entrada ``python -m glucolog``."""

from __future__ import annotations

from glucolog.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
