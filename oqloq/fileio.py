"""File helpers for the Oqloq workspace: settings YAML and per-key record files.

Every write goes through one routine: write a sibling temp file while
holding an exclusive flock, fsync, then os.replace over the target so a
reader sees either the old or the new record, never a torn one.
"""

from __future__ import annotations

import fcntl
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

RECORD_SUFFIX = ".json"


def read_text(path: Path) -> str | None:
    """Contents of *path* as UTF-8, or None when the file does not exist.

    Bytes that do not decode raise UnicodeDecodeError; callers that promise
    a default on bad data catch it.
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def replace_atomic(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.replace(temp_path, path)
    except Exception:
        Path(temp_path).unlink(missing_ok=True)
        raise


def remove_file(path: Path) -> bool:
    """Delete a file if present. Returns True when something was removed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


# ── Settings (YAML) ───────────────────────────────────────────


def read_yaml(path: Path) -> dict[str, Any]:
    """Mapping stored in a YAML file; {} when missing, empty or not a mapping."""
    text = read_text(path)
    if not text or not text.strip():
        return {}
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


def write_yaml_atomic(path: Path, data: dict[str, Any]) -> None:
    replace_atomic(path, yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False))


# ── Record files (one JSON text value per storage key) ────────


def record_path(directory: Path, key: str) -> Path:
    return directory / f"{key}{RECORD_SUFFIX}"


def read_record_file(directory: Path, key: str) -> str | None:
    return read_text(record_path(directory, key))


def write_record_file(directory: Path, key: str, value: str) -> None:
    replace_atomic(record_path(directory, key), value)


def remove_record_file(directory: Path, key: str) -> bool:
    return remove_file(record_path(directory, key))
