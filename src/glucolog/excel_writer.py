"""Generación de Excel formateado con log, eventos y resumen diario."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

from glucolog.settings import MMOL_L, Settings, convert_unit

_DIA_SEMANA: tuple[str, ...] = ("lun", "mar", "mie", "jue", "vie", "sab", "dom")

_HEADER_MAP: dict[str, str] = {
    "weekday": "Día",
    "datetime": "Fecha / Hora",
    "date": "Fecha",
    "cgm": "CGM",
    "bgm": "BGM",
    "type": "Tipo",
    "note": "Nota",
    "is_fasting": "Ayuno",
    "max_delta": "Delta máx.",
    "time_delta": "Tiempo al pico\n(min)",
    "count": "Lecturas",
    "min": "Mín",
    "q1": "Q1",
    "median": "Mediana",
    "q3": "Q3",
    "max": "Máx",
}

_GLUCOSE_COLUMNS = ("cgm", "bgm", "min", "q1", "median", "q3", "max", "max_delta")

_WIDTHS: dict[str, int] = {
    "Día": 6,
    "Fecha / Hora": 18,
    "Fecha": 12,
    "Tipo": 12,
    "Nota": 30,
    "Tiempo al pico\n(min)": 14,
}


@dataclass(frozen=True)
class ExcelLayout:
    """Sheet names for the report workbook."""

    log_sheet: str = "Log"
    events_sheet: str = "Eventos"
    daily_sheet: str = "Diario"


def _weekday_label(i: object) -> str:
    """Convierte índice 0-6 (lunes-domingo) a etiqueta de 3 letras."""
    if i is None or (isinstance(i, float) and pd.isna(i)):
        return ""
    if isinstance(i, int | float):
        idx = int(i)
        return _DIA_SEMANA[idx] if 0 <= idx < 7 else ""
    return ""


def _add_weekday_column(export_df: pd.DataFrame) -> pd.DataFrame:
    """Añade columna weekday (Día) a partir de date o datetime."""
    if "date" in export_df.columns:
        source = export_df["date"]
    elif "datetime" in export_df.columns:
        source = export_df["datetime"]
    else:
        return export_df
    if source.empty:
        return export_df
    weekdays = source.map(lambda d: d.weekday() if hasattr(d, "weekday") else None)
    export_df = export_df.copy()
    export_df["weekday"] = weekdays.map(_weekday_label)
    cols = ["weekday"] + [c for c in export_df.columns if c != "weekday"]
    return export_df[cols]


def _prepare_datetime(export_df: pd.DataFrame) -> pd.DataFrame:
    """Quita timezone (Excel no soporta tz) y date si ya hay datetime."""
    export_df = export_df.copy()
    for col in ("datetime", "date"):
        if col in export_df.columns:
            export_df[col] = export_df[col].map(
                lambda d: d.replace(tzinfo=None) if hasattr(d, "tzinfo") else d
            )
    if "datetime" in export_df.columns and "date" in export_df.columns:
        export_df = export_df.drop(columns=["date"])
    return export_df


def _convert_glucose(export_df: pd.DataFrame, settings: Settings) -> pd.DataFrame:
    export_df = export_df.copy()
    for col in _GLUCOSE_COLUMNS:
        if col in export_df.columns:
            export_df[col] = export_df[col].map(
                lambda v: convert_unit(v, settings) if pd.notna(v) else None
            )
    return export_df


def _prepare_sheet(df: pd.DataFrame, settings: Settings) -> pd.DataFrame:
    export_df = _add_weekday_column(df)
    export_df = _prepare_datetime(export_df)
    export_df = _convert_glucose(export_df, settings)
    if "time_delta" in export_df.columns:
        export_df["time_delta"] = export_df["time_delta"].map(
            lambda v: v / 60000 if pd.notna(v) else None
        )
    return export_df.rename(columns=_HEADER_MAP)


def write_report_xlsx(
    log_df: pd.DataFrame,
    events_df: pd.DataFrame,
    daily_df: pd.DataFrame,
    out_path: Path,
    settings: Settings | None = None,
    layout: ExcelLayout | None = None,
) -> None:
    """Write a formatted three-sheet workbook.

    Args:
        log_df: Log frame (see ``stats.log_to_frame``).
        events_df: Event frame (see ``excursion.events_to_frame``).
        daily_df: Daily box statistics (see ``stats.daily_box_stats``).
        out_path: Output path for the XLSX file.
        settings: Display unit for glucose columns (mmol/L by default).
        layout: Sheet names.
    """
    settings = settings or Settings()
    layout = layout or ExcelLayout()
    out_path.parent.mkdir(parents=True, exist_ok=True)

    sheets = [
        (layout.log_sheet, log_df),
        (layout.events_sheet, events_df),
        (layout.daily_sheet, daily_df),
    ]
    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        for name, df in sheets:
            _prepare_sheet(df, settings).to_excel(writer, index=False, sheet_name=name)
            _format_sheet(writer.book[name], settings)


def _style_header_row(ws: Any) -> None:
    """Aplica fuente negrita, alineación y borde a la fila de cabecera."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    """Aplica alineación y borde a las filas de datos."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center")
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    """Establece anchos de columna para evitar ###."""
    for header, width in _WIDTHS.items():
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(ws: Any, col_index: dict[str, int], settings: Settings) -> None:
    """Aplica formatos numéricos por cabecera."""
    glucose_fmt = "0.0" if settings.unit == MMOL_L else "0"
    fmt_map: dict[str, str] = {
        "Fecha / Hora": "dd/mm/yyyy hh:mm",
        "Fecha": "dd/mm/yyyy",
        "Tiempo al pico\n(min)": "0",
    }
    for col in _GLUCOSE_COLUMNS:
        fmt_map[_HEADER_MAP[col]] = glucose_fmt
    for row in ws.iter_rows(min_row=2):
        for header, fmt in fmt_map.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _format_sheet(ws: Any, settings: Settings | None = None) -> None:
    """Apply borders, widths and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
        settings: Display unit, selects the glucose number format.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index, settings or Settings())
