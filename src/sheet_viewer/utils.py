"""Shared helpers — logging setup, file names."""

from __future__ import annotations

import logging
import re

from rich.console import Console
from rich.logging import RichHandler

_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def configure_logging(verbose: int = 0) -> None:
    """Route log records to stderr through rich.

    WARNING by default, INFO with one ``-v``, DEBUG with two or more.
    """
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def safe_filename(name: str, default: str) -> str:
    """Replace characters that are not allowed in file names.

    Falls back to *default* when nothing usable is left.
    """
    cleaned = _UNSAFE_FILENAME_RE.sub("_", name).strip().strip(".")
    return cleaned or default
