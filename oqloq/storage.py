"""Key-value persistence port for Oqloq.

Every record is a JSON text value stored under a fixed key. Stores talk to
a StoragePort so tests can swap the file-backed storage for MemoryStorage.
Reads never raise for bad data: a corrupt record is logged and replaced by
the caller's default. Writes propagate their errors.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Callable, Protocol, TypeVar

from oqloq.fileio import read_record_file, remove_record_file, write_record_file

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ── Keys ──────────────────────────────────────────────────────

BLOCKS_KEY = "oqlock_blocks"
TEMPLATES_KEY = "oqlock_templates"
CURRENT_TEMPLATE_KEY = "oqlock_current_template"
DELETED_DEFAULT_TEMPLATES_KEY = "oqlock_deleted_default_templates"
DAY_SCHEDULES_KEY = "oqlock_day_schedules"
POMODORO_SETTINGS_KEY = "pomodoroSettings"

ALL_KEYS = (
    BLOCKS_KEY,
    TEMPLATES_KEY,
    CURRENT_TEMPLATE_KEY,
    DELETED_DEFAULT_TEMPLATES_KEY,
    DAY_SCHEDULES_KEY,
    POMODORO_SETTINGS_KEY,
)


# ── Port + implementations ────────────────────────────────────


class StoragePort(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStorage:
    """One `<key>.json` file per key inside *directory*, written atomically."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    @staticmethod
    def _check(key: str) -> str:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return key

    def get_item(self, key: str) -> str | None:
        return read_record_file(self.directory, self._check(key))

    def set_item(self, key: str, value: str) -> None:
        write_record_file(self.directory, self._check(key), value)

    def remove_item(self, key: str) -> None:
        remove_record_file(self.directory, self._check(key))


# ── Typed record helpers ──────────────────────────────────────


def read_record(storage: StoragePort, key: str, parse: Callable[[Any], T], default: Callable[[], T]) -> T:
    """Decode the JSON value at *key* with *parse*.

    A missing key yields default(). Unreadable storage (including bytes that
    are not UTF-8), invalid JSON, non-finite numbers, pathologically deep
    nesting or a shape error raised by *parse* is logged and also yields
    default().
    """
    try:
        raw = storage.get_item(key)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read %s, using default: %s", key, e)
        return default()
    if raw is None or not raw.strip():
        return default()
    try:
        return parse(json.loads(raw))
    except (ValueError, TypeError, KeyError, AttributeError, OverflowError, RecursionError) as e:
        logger.warning("Corrupt record under %s, using default: %s", key, e)
        return default()


def write_record(storage: StoragePort, key: str, value: Any) -> None:
    storage.set_item(key, json.dumps(value, ensure_ascii=False))


def clear_all(storage: StoragePort) -> None:
    """Remove every Oqloq record (full reset)."""
    for key in ALL_KEYS:
        storage.remove_item(key)
