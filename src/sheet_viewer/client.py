"""HTTP client for the spreadsheet parsing service."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import requests

from sheet_viewer.config import ViewerConfig
from sheet_viewer.errors import ApiError
from sheet_viewer.models import Row, parse_names, parse_rows

logger = logging.getLogger(__name__)


class ApiClient:
    """Thin wrapper over the four REST endpoints of the parsing service."""

    def __init__(self, config: ViewerConfig | None = None) -> None:
        self.config = config or ViewerConfig()

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        logger.debug("%s %s", method, url)
        try:
            response = requests.request(
                method,
                url,
                headers={"Accept": "application/json"},
                timeout=self.config.timeout,
                **kwargs,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise ApiError(f"{method} {url} failed: HTTP {status}", status=status) from exc
        except requests.Timeout as exc:
            raise ApiError(f"{method} {url} timed out: {exc}") from exc
        except requests.ConnectionError as exc:
            raise ApiError(f"{method} {url} failed: {exc}") from exc
        except requests.RequestException as exc:
            raise ApiError(f"{method} {url} failed: {exc}", retryable=False) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"{method} {url} returned invalid JSON",
                status=response.status_code,
                retryable=False,
            ) from exc

    def list_files(self) -> list[str]:
        payload = self._request("GET", self.config.endpoint("api", "files"))
        try:
            return parse_names(payload, "files")
        except TypeError as exc:
            raise ApiError(f"Malformed file list: {exc}", retryable=False) from exc

    def upload(self, path: Path) -> Any:
        """POST *path* as the ``file`` form field; return the decoded reply."""
        path = Path(path)
        try:
            with path.open("rb") as fh:
                return self._request(
                    "POST",
                    self.config.endpoint("api", "upload"),
                    files={"file": (path.name, fh)},
                )
        except OSError as exc:
            raise ApiError(f"Cannot read {path}: {exc}", retryable=False) from exc

    def list_sheets(self, file: str) -> list[str]:
        payload = self._request("GET", self.config.endpoint("api", "sheets", file))
        try:
            return parse_names(payload, "sheets")
        except TypeError as exc:
            raise ApiError(
                f"Malformed sheet list for {file!r}: {exc}", retryable=False
            ) from exc

    def fetch_rows(self, file: str, sheet: str) -> list[Row]:
        payload = self._request("GET", self.config.endpoint("api", "data", file, sheet))
        try:
            return parse_rows(payload)
        except TypeError as exc:
            raise ApiError(
                f"Malformed rows for {file!r}/{sheet!r}: {exc}", retryable=False
            ) from exc
