"""Runtime configuration — where the parsing service lives and how long to wait."""

from __future__ import annotations

import os
import urllib.parse
from dataclasses import dataclass

from sheet_viewer import DEFAULT_API_URL
from sheet_viewer.errors import ConfigurationError

API_URL_ENV = "SHEET_VIEWER_API"
TIMEOUT_ENV = "SHEET_VIEWER_TIMEOUT"


def _normalize_api_url(raw: str) -> str:
    url = raw.strip().rstrip("/")
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ConfigurationError(
            f"Invalid API address: {raw!r} (expected http(s)://host[:port])"
        )
    return url


def _read_timeout_env(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number of seconds, got {raw!r}") from exc


@dataclass(frozen=True)
class ViewerConfig:
    """Connection settings for the parsing service.

    ``timeout`` is in seconds; ``None`` waits for as long as the server takes.
    """

    api_url: str = DEFAULT_API_URL
    timeout: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "api_url", _normalize_api_url(self.api_url))
        if self.timeout is not None:
            if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
                raise ConfigurationError("timeout must be a number of seconds")
            if self.timeout <= 0:
                raise ConfigurationError("timeout must be > 0")
            object.__setattr__(self, "timeout", float(self.timeout))

    @classmethod
    def from_env(cls) -> ViewerConfig:
        return cls(
            api_url=os.getenv(API_URL_ENV) or DEFAULT_API_URL,
            timeout=_read_timeout_env(TIMEOUT_ENV),
        )

    def endpoint(self, *segments: str) -> str:
        """Join *segments* onto the base URL, quoting each one."""
        quoted = [urllib.parse.quote(segment, safe="") for segment in segments]
        return "/".join([self.api_url, *quoted])
