"""I/O helpers — write downloaded artifacts to disk."""

from __future__ import annotations

from pathlib import Path


def write_bytes(path: Path, payload: bytes) -> Path:
    """Write *payload* to *path* atomically and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_bytes(payload)
    tmp_path.replace(path)
    return path
