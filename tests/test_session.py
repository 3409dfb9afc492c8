"""State-machine tests for ViewerSession."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from openpyxl import load_workbook

from sheet_viewer.errors import ApiError
from sheet_viewer.models import ViewState
from sheet_viewer.session import ViewerSession
from conftest import RAINFALL_ROWS, FakeClient


def _loaded(client: FakeClient) -> ViewerSession:
    session = ViewerSession(client).start()  # type: ignore[arg-type]
    session.select_file("rain.xlsx")
    session.select_sheet("Januari")
    return session


def test_start_fetches_file_catalog(fake_client: FakeClient) -> None:
    session = ViewerSession(fake_client).start()  # type: ignore[arg-type]

    assert session.files == ["rain.xlsx"]
    assert session.state is ViewState.NO_FILE
    assert session.last_error is None


def test_happy_path_walks_all_states(fake_client: FakeClient) -> None:
    session = ViewerSession(fake_client).start()  # type: ignore[arg-type]

    session.select_file("rain.xlsx")
    assert session.state is ViewState.FILE_SELECTED
    assert session.sheets == ["Januari", "Februari"]

    session.select_sheet("Januari")
    assert session.state is ViewState.DATA_LOADED
    assert session.rows == RAINFALL_ROWS
    assert session.visible_columns == ["no_das", "nama_das", "luas_das", "hari1"]


def test_select_file_resets_sheet_and_rows_before_fetch(fake_client: FakeClient) -> None:
    session = _loaded(fake_client)
    seen: dict[str, object] = {}

    def _observe(file: str) -> None:
        seen["sheet"] = session.selected_sheet
        seen["rows"] = list(session.rows)
        seen["sheets"] = list(session.sheets)

    fake_client.sheets["other.xlsx"] = ["S1"]
    fake_client.hooks["list_sheets"] = _observe

    session.select_file("other.xlsx")

    assert seen == {"sheet": "", "rows": [], "sheets": []}
    assert session.sheets == ["S1"]
    assert session.state is ViewState.FILE_SELECTED


def test_select_sheet_resets_rows_before_fetch(fake_client: FakeClient) -> None:
    session = _loaded(fake_client)
    seen: dict[str, object] = {}

    def _observe(file: str, sheet: str) -> None:
        seen["rows"] = list(session.rows)

    fake_client.hooks["fetch_rows"] = _observe

    session.select_sheet("Februari")

    assert seen == {"rows": []}
    assert session.state is ViewState.SHEET_SELECTED


def test_empty_selection_skips_requests(fake_client: FakeClient) -> None:
    session = ViewerSession(fake_client)  # type: ignore[arg-type]

    session.select_file("")
    session.select_sheet("Januari")

    assert fake_client.calls == []
    assert session.load_sheets() is False
    assert session.load_data() is False


def test_clearing_sheet_selection_clears_rows_without_fetch(fake_client: FakeClient) -> None:
    session = _loaded(fake_client)
    calls_before = len(fake_client.calls)

    session.select_sheet("")

    assert session.rows == []
    assert session.state is ViewState.FILE_SELECTED
    assert len(fake_client.calls) == calls_before


def test_stale_sheet_list_is_discarded(fake_client: FakeClient) -> None:
    session = ViewerSession(fake_client)  # type: ignore[arg-type]
    fake_client.sheets = {"X": ["x-sheet"], "Y": ["y-sheet"]}

    def _user_switches(file: str) -> None:
        if file == "X":
            fake_client.hooks.pop("list_sheets")
            session.select_file("Y")

    fake_client.hooks["list_sheets"] = _user_switches

    session.select_file("X")

    assert session.selected_file == "Y"
    assert session.sheets == ["y-sheet"]
    assert session.last_error is None


def test_stale_success_does_not_clear_current_failure(fake_client: FakeClient) -> None:
    session = ViewerSession(fake_client)  # type: ignore[arg-type]
    fake_client.sheets = {"X": ["x-sheet"]}

    def _user_switches(file: str) -> None:
        if file == "X":
            fake_client.hooks.pop("list_sheets")
            session.select_file("Y")

    fake_client.hooks["list_sheets"] = _user_switches

    session.select_file("X")

    assert session.selected_file == "Y"
    assert session.sheets == []
    assert session.last_error is not None
    assert session.last_error.status == 404


def test_stale_failure_does_not_overwrite_current_success(fake_client: FakeClient) -> None:
    session = _loaded(fake_client)
    fake_client.rows[("rain.xlsx", "Februari")] = [{"late": 1}]
    del fake_client.rows[("rain.xlsx", "Januari")]

    def _user_switches(file: str, sheet: str) -> None:
        if sheet == "Januari":
            fake_client.hooks.pop("fetch_rows")
            session.select_sheet("Februari")

    fake_client.hooks["fetch_rows"] = _user_switches

    session.select_sheet("Januari")

    assert session.selected_sheet == "Februari"
    assert session.rows == [{"late": 1}]
    assert session.last_error is None


def test_stale_rows_are_discarded(fake_client: FakeClient) -> None:
    session = _loaded(fake_client)
    fake_client.rows[("rain.xlsx", "Februari")] = [{"late": 1}]

    def _user_switches(file: str, sheet: str) -> None:
        if sheet == "Januari":
            fake_client.hooks.pop("fetch_rows")
            session.select_sheet("Februari")

    fake_client.hooks["fetch_rows"] = _user_switches

    session.select_sheet("Januari")

    assert session.selected_sheet == "Februari"
    assert session.rows == [{"late": 1}]


def test_fetch_failure_keeps_previous_state_and_logs(
    fake_client: FakeClient, caplog: pytest.LogCaptureFixture
) -> None:
    session = ViewerSession(fake_client).start()  # type: ignore[arg-type]
    fake_client.errors["list_files"] = ApiError("GET /api/files failed: refused")

    with caplog.at_level(logging.ERROR, logger="sheet_viewer.session"):
        ok = session.refresh_files()

    assert ok is False
    assert session.files == ["rain.xlsx"]
    assert session.last_error is fake_client.errors["list_files"]
    assert session.last_error.retryable is True
    assert "Failed to fetch files" in caplog.text


def test_last_error_clears_after_success(fake_client: FakeClient) -> None:
    session = ViewerSession(fake_client)  # type: ignore[arg-type]
    fake_client.errors["list_files"] = ApiError("boom")
    session.refresh_files()
    assert session.last_error is not None

    del fake_client.errors["list_files"]
    session.refresh_files()

    assert session.last_error is None


def test_data_failure_leaves_rows_empty(fake_client: FakeClient) -> None:
    session = ViewerSession(fake_client).start()  # type: ignore[arg-type]
    session.select_file("rain.xlsx")

    session.select_sheet("missing")

    assert session.rows == []
    assert session.state is ViewState.SHEET_SELECTED
    assert session.last_error is not None
    assert session.last_error.status == 404
    assert session.last_error.retryable is False


def test_upload_flag_is_set_only_while_in_flight(fake_client: FakeClient, tmp_path: Path) -> None:
    session = ViewerSession(fake_client)  # type: ignore[arg-type]
    src = tmp_path / "new.xlsx"
    src.write_bytes(b"PK")
    during: list[bool] = []
    fake_client.hooks["upload"] = lambda path: during.append(session.uploading)

    assert session.uploading is False
    ok = session.upload(src)

    assert ok is True
    assert during == [True]
    assert session.uploading is False
    assert session.files == ["rain.xlsx", "new.xlsx"]


def test_upload_failure_clears_flag_and_still_refreshes(
    fake_client: FakeClient, tmp_path: Path
) -> None:
    session = ViewerSession(fake_client)  # type: ignore[arg-type]
    src = tmp_path / "bad.xlsx"
    src.write_bytes(b"")
    fake_client.errors["upload"] = ApiError("POST /api/upload failed: HTTP 500", status=500)

    ok = session.upload(src)

    assert ok is False
    assert session.uploading is False
    assert ("list_files",) in fake_client.calls
    assert session.files == ["rain.xlsx"]
    assert session.last_error is fake_client.errors["upload"]


def test_upload_flag_cleared_on_unexpected_error(fake_client: FakeClient, tmp_path: Path) -> None:
    session = ViewerSession(fake_client)  # type: ignore[arg-type]

    def _explode(path: Path) -> None:
        raise RuntimeError("disk gone")

    fake_client.hooks["upload"] = _explode

    with pytest.raises(RuntimeError):
        session.upload(tmp_path / "x.xlsx")
    assert session.uploading is False


def test_export_all_columns_by_default(fake_client: FakeClient, tmp_path: Path) -> None:
    fake_client.rows[("rain.xlsx", "Januari")] = [
        {"no_das": 1, "kosong": None},
        {"no_das": 2, "kosong": None},
    ]
    session = _loaded(fake_client)

    path = session.export(tmp_path)

    assert path == tmp_path / "Januari.xlsx"
    ws = load_workbook(path)["Januari"]
    assert [c.value for c in ws[1]] == ["no_das", "kosong"]
    assert ws.max_row == 3


def test_export_visible_only(fake_client: FakeClient, tmp_path: Path) -> None:
    fake_client.rows[("rain.xlsx", "Januari")] = [{"no_das": 1, "kosong": None}]
    session = _loaded(fake_client)

    path = session.export(tmp_path, visible_only=True)

    assert path is not None
    ws = load_workbook(path)["Januari"]
    assert [c.value for c in ws[1]] == ["no_das"]


def test_export_without_rows_is_noop(fake_client: FakeClient, tmp_path: Path) -> None:
    session = ViewerSession(fake_client).start()  # type: ignore[arg-type]
    session.select_file("rain.xlsx")
    session.select_sheet("Februari")

    assert session.export(tmp_path) is None
    assert list(tmp_path.iterdir()) == []
