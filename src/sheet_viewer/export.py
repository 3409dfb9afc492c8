"""Excel export — rebuilds the loaded rows as a single-sheet .xlsx."""

from __future__ import annotations

import io
import re
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from sheet_viewer import DEFAULT_EXPORT_STEM, DEFAULT_SHEET_TITLE
from sheet_viewer.columns import rows_to_frame
from sheet_viewer.io import write_bytes
from sheet_viewer.models import Row
from sheet_viewer.utils import safe_filename

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)
VALUE_FONT = Font(name="Calibri", size=11)

MAX_SHEET_TITLE = 31
_AUTO_WIDTH_SAMPLE_ROWS = 300
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")
_INVALID_TITLE_RE = re.compile(r"[\[\]:*?/\\]")
_SCALAR_TYPES = (str, int, float, bool, datetime)


# ── Names ────────────────────────────────────────────────────────


def worksheet_title(sheet: str) -> str:
    """Worksheet title for *sheet*, or ``Sheet1`` when nothing is selected."""
    cleaned = _INVALID_TITLE_RE.sub("_", ILLEGAL_CHARACTERS_RE.sub("", sheet or ""))
    cleaned = cleaned[:MAX_SHEET_TITLE].strip("'")
    return cleaned or DEFAULT_SHEET_TITLE


def export_filename(sheet: str) -> str:
    """Download file name: ``<sheet>.xlsx``, or ``data.xlsx`` without a sheet."""
    stem = safe_filename(sheet or "", DEFAULT_EXPORT_STEM)
    return f"{stem}.xlsx"


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)  # include header row
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            cell = row[0]
            width = max(width, len(str(cell.value or "")))
        width += 4
        ws.column_dimensions[letter].width = min(width, 30)


def _excel_value(val: Any) -> Any:
    if val is None:
        return None
    if not isinstance(val, _SCALAR_TYPES):
        try:
            if pd.isna(val):
                return None
        except (TypeError, ValueError):
            pass
        val = str(val)

    if isinstance(val, float) and pd.isna(val):
        return None

    if isinstance(val, str):
        val = ILLEGAL_CHARACTERS_RE.sub("", val)
        if val.startswith("'"):
            return val
        stripped = val.lstrip()
        if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES:
            return f"'{val}"

    return val


def _df_to_sheet(ws: Worksheet, df: pd.DataFrame) -> None:
    col_names = [str(c) for c in df.columns]

    if not col_names:
        ws.cell(row=1, column=1, value="No data").font = VALUE_FONT
        ws.column_dimensions["A"].width = 18
        return

    for c_idx, col_name in enumerate(col_names, 1):
        ws.cell(row=1, column=c_idx, value=ILLEGAL_CHARACTERS_RE.sub("", col_name))
    for r_idx, row_vals in enumerate(df.itertuples(index=False, name=None), 2):
        for c_idx, val in enumerate(row_vals, 1):
            ws.cell(row=r_idx, column=c_idx, value=_excel_value(val))
    _style_header(ws, len(col_names))
    ws.freeze_panes = "A2"
    if len(df) > 0:
        ws.auto_filter.ref = ws.dimensions
    _auto_width(ws)


# ── Public API ───────────────────────────────────────────────────


def build_workbook(
    rows: Sequence[Row], sheet: str, columns: Sequence[str] | None = None
) -> Workbook:
    """Build a one-sheet workbook from *rows*.

    Every column found in *rows* is written unless *columns* narrows it down.
    """
    wb = Workbook()
    ws = wb.active
    if ws is None:
        ws = wb.create_sheet()
    ws.title = worksheet_title(sheet)
    _df_to_sheet(ws, rows_to_frame(rows, columns))
    return wb


def workbook_bytes(wb: Workbook) -> bytes:
    """Serialize *wb* to the .xlsx binary format."""
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def write_export(
    out_dir: Path,
    rows: Sequence[Row],
    sheet: str,
    columns: Sequence[str] | None = None,
) -> Path | None:
    """Write ``<sheet>.xlsx`` into *out_dir* and return the path.

    Returns ``None`` without touching the disk when *rows* is empty.
    """
    if not rows:
        return None
    payload = workbook_bytes(build_workbook(rows, sheet, columns))
    return write_bytes(Path(out_dir) / export_filename(sheet), payload)
