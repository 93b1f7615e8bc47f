"""CLI: merge de registros de glucosa, análisis y exportación a Excel."""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path

from glucolog.excel_writer import write_report_xlsx
from glucolog.excursion import correlate, events_to_frame, summarize_by_type
from glucolog.merge import filter_recent, merge
from glucolog.model import LogEntry
from glucolog.segment import cgm_series, segment
from glucolog.settings import MG_DL, MMOL_L, AnalysisConfig, Settings, convert_unit
from glucolog.sources.records import RecordsPaths, RecordsSource, entries_to_records
from glucolog.stats import (
    bgm_cgm_deltas,
    daily_box_stats,
    estimated_average,
    eswa,
    fasting_series,
    log_to_frame,
)

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Merge de CGM/BGM/eventos y resumen de excursiones."
    )
    parser.add_argument("--log", required=True, help="Log canónico existente (JSON).")
    parser.add_argument(
        "--import",
        dest="imports",
        action="append",
        default=[],
        help="Archivo o carpeta JSON a incorporar (repetible).",
    )
    parser.add_argument(
        "--days",
        type=float,
        default=None,
        help="Analizar solo los últimos N días (default: todo el log).",
    )
    parser.add_argument("--gap-hours", type=float, default=2, help="Corte de segmentos.")
    parser.add_argument("--alpha", type=float, default=0.1, help="Factor ESWA.")
    parser.add_argument("--tz", default=None, help="Zona horaria (default: local).")
    parser.add_argument(
        "--unit", default=MMOL_L, choices=(MMOL_L, MG_DL), help="Unidad de salida."
    )
    parser.add_argument("--out", default=None, help="Reporte .xlsx de salida.")
    parser.add_argument("--merged-out", default=None, help="Log mergeado (JSON).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Logging DEBUG.")
    return parser.parse_args(argv)


def _load(path: Path, config: AnalysisConfig) -> list[LogEntry]:
    src = RecordsSource(RecordsPaths(root=path), zone=config.tzinfo())
    src.validate()
    out: list[LogEntry] = []
    for json_path in src.json_files():
        out.extend(src.load_entries(json_path))
    return out


def main(argv: list[str] | None = None) -> int:
    """Run the analysis CLI.

    Returns:
        Exit code (0 on success).
    """
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = AnalysisConfig(gap_hours=ns.gap_hours, alpha=ns.alpha, tz_name=ns.tz)
    zone = config.tzinfo()
    settings = Settings.for_unit(ns.unit)

    log_path = Path(ns.log).expanduser()
    existing: list[LogEntry] = []
    if log_path.exists():
        existing = _load(log_path, config)
    else:
        logger.info("No existing log at %s, starting empty", log_path)
    incoming: list[LogEntry] = []
    for item in ns.imports:
        incoming.extend(_load(Path(item).expanduser(), config))
    log = merge(existing, incoming, zone=zone)

    window = log
    if ns.days is not None:
        window = filter_recent(log, ns.days, now=datetime.now(tz=zone), zone=zone)

    events = correlate(
        window,
        window_hours=config.window_hours,
        peak_hours=config.peak_hours,
        zone=zone,
    )
    segments = segment(cgm_series(window), config.gap_hours, zone=zone)
    eag = estimated_average(window)
    fasting = fasting_series(window)
    smoothed = eswa(fasting, config.alpha) if fasting else []
    calibration = [
        d.delta
        for d in bgm_cgm_deltas(window, minutes=config.calibration_minutes, zone=zone)
        if d.delta is not None
    ]

    print(f"OK: Entries: {len(log)} (analysed: {len(window)})")
    print(
        f"OK: eAG: {convert_unit(eag.average_cgm, settings):.1f} {settings.unit}, "
        f"A1C {eag.a1c:.1f}% ({eag.sample_count} CGM samples)"
    )
    print(f"OK: Events: {len(events)}")
    for row in summarize_by_type(events).to_dict("records"):
        if row["count"]:
            print(f"OK:   {row['type']}: {row['count']}, peak {row['mean_max_delta']:+.1f}")
    print(f"OK: CGM segments: {len(segments)}")
    if smoothed:
        print(f"OK: Fasting ESWA: {convert_unit(smoothed[-1][1], settings):.1f} {settings.unit}")
    if calibration:
        mean_delta = convert_unit(sum(calibration) / len(calibration), settings)
        print(
            f"OK: CGM - BGM: {mean_delta:+.1f} {settings.unit} "
            f"({len(calibration)} readings)"
        )

    if ns.merged_out:
        merged_path = Path(ns.merged_out).expanduser()
        merged_path.parent.mkdir(parents=True, exist_ok=True)
        merged_path.write_text(
            json.dumps(entries_to_records(log), indent=2), encoding="utf-8"
        )
        print(f"OK: Merged log: {merged_path}")

    if ns.out:
        out_path = Path(ns.out).expanduser()
        write_report_xlsx(
            log_to_frame(window, zone),
            events_to_frame(events),
            daily_box_stats(window, zone),
            out_path,
            settings,
        )
        print(f"OK: Output: {out_path}")
    return 0
