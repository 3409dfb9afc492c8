from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from sheet_viewer.config import ViewerConfig
from sheet_viewer.errors import ApiError
from sheet_viewer.models import Row

RAINFALL_ROWS: list[Row] = [
    {"no_das": 1, "nama_das": "A", "luas_das": 10, "hari1": None},
    {"no_das": 2, "nama_das": "B", "luas_das": 20, "hari1": 5},
]


class FakeClient:
    """In-memory stand-in for ``ApiClient``.

    ``errors`` maps a method name to the ``ApiError`` it should raise;
    ``hooks`` maps a method name to a callable run before it returns.
    """

    def __init__(self, config: ViewerConfig | None = None) -> None:
        self.config = config or ViewerConfig()
        self.files: list[str] = ["rain.xlsx"]
        self.sheets: dict[str, list[str]] = {"rain.xlsx": ["Januari", "Februari"]}
        self.rows: dict[tuple[str, str], list[Row]] = {
            ("rain.xlsx", "Januari"): [dict(r) for r in RAINFALL_ROWS],
            ("rain.xlsx", "Februari"): [],
        }
        self.errors: dict[str, ApiError] = {}
        self.hooks: dict[str, Callable[..., None]] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.uploaded: list[Path] = []

    def _enter(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        hook = self.hooks.get(name)
        if hook is not None:
            hook(*args)
        if name in self.errors:
            raise self.errors[name]

    def list_files(self) -> list[str]:
        self._enter("list_files")
        return list(self.files)

    def upload(self, path: Path) -> Any:
        self._enter("upload", path)
        self.uploaded.append(path)
        self.files.append(path.name)
        return {"message": "ok"}

    def list_sheets(self, file: str) -> list[str]:
        self._enter("list_sheets", file)
        if file not in self.sheets:
            raise ApiError(f"GET /api/sheets/{file} failed: HTTP 404", status=404)
        return list(self.sheets[file])

    def fetch_rows(self, file: str, sheet: str) -> list[Row]:
        self._enter("fetch_rows", file, sheet)
        if (file, sheet) not in self.rows:
            raise ApiError(f"GET /api/data/{file}/{sheet} failed: HTTP 404", status=404)
        return [dict(r) for r in self.rows[(file, sheet)]]


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()
