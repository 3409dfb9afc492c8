"""Terminal table rendering for a loaded sheet."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from rich.markup import escape
from rich.table import Table as RichTable

from sheet_viewer.columns import header_labels, visible_columns
from sheet_viewer.models import Row


def display_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_table(
    rows: Sequence[Row],
    labels: Mapping[str, str] | None = None,
    title: str | None = None,
) -> RichTable | None:
    """Return a rich table of *rows*, or ``None`` when there is nothing to show.

    The first column is a 1-based row number; only visible columns follow.
    """
    if not rows:
        return None
    columns = visible_columns(rows)

    tbl = RichTable(title=escape(title) if title else None, show_lines=False)
    tbl.add_column("No", justify="right", style="bold")
    for label in header_labels(columns, labels):
        tbl.add_column(escape(label), justify="center")

    for idx, row in enumerate(rows, start=1):
        cells = [escape(display_value(row.get(col))) for col in columns]
        tbl.add_row(str(idx), *cells)
    return tbl
