"""Data models and payload validation used across the package."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

Row = dict[str, Any]


def _to_string_list(values: Any, field_name: str) -> list[str]:
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise TypeError(f"{field_name} must be a list of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


def _to_row_list(values: Any, field_name: str) -> list[Row]:
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise TypeError(f"{field_name} must be a list of objects")
    rows: list[Row] = []
    for item in values:
        if not isinstance(item, dict):
            raise TypeError(f"{field_name} items must be objects")
        rows.append({str(key): value for key, value in item.items()})
    return rows


def parse_names(payload: Any, field_name: str) -> list[str]:
    """Validate a JSON array of file or sheet names."""
    return _to_string_list(payload, field_name)


def parse_rows(payload: Any) -> list[Row]:
    """Validate a JSON array of row objects, copying each row."""
    return _to_row_list(payload, "rows")


class ViewState(str, Enum):
    NO_FILE = "no_file"
    FILE_SELECTED = "file_selected"
    SHEET_SELECTED = "sheet_selected"
    DATA_LOADED = "data_loaded"


@dataclass(frozen=True)
class Selection:
    """The (file, sheet) pair a request was issued for.

    An empty string means "nothing selected".
    """

    file: str = ""
    sheet: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.file, str):
            raise TypeError("file must be a string")
        if not isinstance(self.sheet, str):
            raise TypeError("sheet must be a string")

    @property
    def has_file(self) -> bool:
        return bool(self.file)

    @property
    def is_complete(self) -> bool:
        return bool(self.file and self.sheet)

    def with_file(self, name: str) -> Selection:
        return Selection(file=name, sheet="")

    def with_sheet(self, name: str) -> Selection:
        return Selection(file=self.file, sheet=name)
