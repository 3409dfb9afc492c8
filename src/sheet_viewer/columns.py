"""Column filtering + header labels — pure functions, no side effects."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import pandas as pd

from sheet_viewer import COLUMN_LABELS
from sheet_viewer.models import Row

# ── Visibility ───────────────────────────────────────────────────


def has_value(value: Any) -> bool:
    """True when *value* would show up as something other than a blank cell."""
    if value is None:
        return False
    return str(value).strip() != ""


def visible_columns(rows: Sequence[Row]) -> list[str]:
    """Return the first row's keys that carry a value in at least one row.

    Key order follows the first row. Columns that only appear in later rows
    are not considered.
    """
    if not rows:
        return []
    return [
        col for col in rows[0]
        if any(has_value(row.get(col)) for row in rows)
    ]


def all_columns(rows: Sequence[Row]) -> list[str]:
    """Union of keys across *rows*, in first-seen order."""
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


# ── Labels ───────────────────────────────────────────────────────


def column_label(name: str, labels: Mapping[str, str] | None = None) -> str:
    """Display label for column *name*.

    Explicit *labels* win over the built-in ones; anything else gets the
    day-number treatment (``hari1`` -> ``Hari 1``).
    """
    if labels and name in labels:
        return labels[name]
    if name in COLUMN_LABELS:
        return COLUMN_LABELS[name]
    return name.replace("hari", "Hari ", 1)


def header_labels(
    columns: Sequence[str], labels: Mapping[str, str] | None = None
) -> list[str]:
    return [column_label(col, labels) for col in columns]


# ── Frames ───────────────────────────────────────────────────────


def rows_to_frame(rows: Sequence[Row], columns: Sequence[str] | None = None) -> pd.DataFrame:
    """Build an object-dtype DataFrame from *rows*.

    Values keep their Python types (ints stay ints next to ``None``); keys a
    row lacks come out as missing. When *columns* is given only those columns
    are kept, in that order.
    """
    if columns is None:
        columns = all_columns(rows)
    records = [[row.get(col) for col in columns] for row in rows]
    return pd.DataFrame(records, columns=pd.Index(list(columns)), dtype=object)
