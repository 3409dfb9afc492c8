"""Client-side state for one viewing session.

The session walks ``NO_FILE -> FILE_SELECTED -> SHEET_SELECTED -> DATA_LOADED``.
Picking a file or a sheet clears everything downstream of it before any
request goes out. Each sheet/data request remembers the selection it was
issued for, and a response that comes back after the selection moved on is
dropped.

Service failures never raise out of the session: they are logged, kept in
``last_error`` and the previous state stays in place.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from sheet_viewer.client import ApiClient
from sheet_viewer.columns import visible_columns
from sheet_viewer.errors import ApiError
from sheet_viewer.export import write_export
from sheet_viewer.models import Row, Selection, ViewState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ViewerSession:
    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.files: list[str] = []
        self.sheets: list[str] = []
        self.rows: list[Row] = []
        self.selection = Selection()
        self.uploading = False
        self.last_error: ApiError | None = None

    # ── Derived state ────────────────────────────────────────────

    @property
    def selected_file(self) -> str:
        return self.selection.file

    @property
    def selected_sheet(self) -> str:
        return self.selection.sheet

    @property
    def state(self) -> ViewState:
        if not self.selection.has_file:
            return ViewState.NO_FILE
        if not self.selection.sheet:
            return ViewState.FILE_SELECTED
        if not self.rows:
            return ViewState.SHEET_SELECTED
        return ViewState.DATA_LOADED

    @property
    def visible_columns(self) -> list[str]:
        return visible_columns(self.rows)

    # ── Plumbing ─────────────────────────────────────────────────

    def _call(self, what: str, fn: Callable[[], T]) -> tuple[T | None, ApiError | None]:
        try:
            return fn(), None
        except ApiError as exc:
            logger.error("Failed to %s: %s", what, exc)
            return None, exc

    def _is_current(self, issued_for: Selection, what: str, *, file_only: bool = False) -> bool:
        if file_only and issued_for.file == self.selection.file:
            return True
        if issued_for == self.selection:
            return True
        logger.debug(
            "Discarding stale %s for %s/%s (now %s/%s)",
            what,
            issued_for.file,
            issued_for.sheet,
            self.selection.file,
            self.selection.sheet,
        )
        return False

    # ── Operations ───────────────────────────────────────────────

    def start(self) -> ViewerSession:
        """Fetch the initial file catalog."""
        self.refresh_files()
        return self

    def refresh_files(self) -> bool:
        files, error = self._call("fetch files", self.client.list_files)
        self.last_error = error
        if files is not None:
            self.files = files
        return error is None

    def upload(self, path: Path) -> bool:
        """Upload *path*, then refresh the file catalog whatever the outcome."""
        self.uploading = True
        try:
            _, error = self._call("upload file", lambda: self.client.upload(Path(path)))
        finally:
            self.uploading = False
        if error is None:
            logger.info("Uploaded %s", Path(path).name)
        self.refresh_files()
        if error is not None:
            self.last_error = error
        return error is None

    def select_file(self, name: str) -> None:
        if name != self.selection.file:
            self.sheets = []
        self.selection = self.selection.with_file(name)
        self.rows = []
        if name:
            self.load_sheets()

    def select_sheet(self, name: str) -> None:
        self.selection = self.selection.with_sheet(name)
        self.rows = []
        if self.selection.is_complete:
            self.load_data()

    def load_sheets(self) -> bool:
        issued_for = self.selection
        if not issued_for.has_file:
            return False
        sheets, error = self._call(
            f"fetch sheets for {issued_for.file!r}",
            lambda: self.client.list_sheets(issued_for.file),
        )
        if not self._is_current(issued_for, "sheets", file_only=True):
            return False
        self.last_error = error
        if sheets is not None:
            self.sheets = sheets
        return error is None

    def load_data(self) -> bool:
        issued_for = self.selection
        if not issued_for.is_complete:
            return False
        rows, error = self._call(
            f"fetch data for {issued_for.file!r}/{issued_for.sheet!r}",
            lambda: self.client.fetch_rows(issued_for.file, issued_for.sheet),
        )
        if not self._is_current(issued_for, "rows"):
            return False
        self.last_error = error
        if rows is not None:
            self.rows = list(rows)
        return error is None

    def export(self, out_dir: Path, *, visible_only: bool = False) -> Path | None:
        """Write the loaded rows to ``<sheet>.xlsx`` in *out_dir*.

        All columns go out unless *visible_only* is set. Returns ``None`` when
        nothing is loaded.
        """
        if not self.rows:
            return None
        columns = self.visible_columns if visible_only else None
        return write_export(out_dir, self.rows, self.selection.sheet, columns)
