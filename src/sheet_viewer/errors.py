"""Exception hierarchy for sheet-viewer."""

from __future__ import annotations


class ViewerError(Exception):
    """Base error for all user-facing sheet-viewer exceptions."""


class ConfigurationError(ViewerError):
    """Raised when the API address or timeout is invalid."""


class ApiError(ViewerError):
    """Raised when a request to the parsing service fails.

    Connection errors, non-2xx statuses, malformed JSON and payloads of the
    wrong shape all end up here. ``status`` is the HTTP status when the server
    answered, ``None`` otherwise.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        if retryable is None:
            # no status means the server was never reached (or timed out)
            retryable = status is None or status >= 500
        self.retryable = retryable
