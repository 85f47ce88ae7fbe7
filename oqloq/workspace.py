"""Workspace root, settings, timezone and path helpers for Oqloq."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from oqloq.fileio import read_yaml, write_yaml_atomic
from oqloq.models import Settings
from oqloq.timemath import day_of_week

logger = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Get the workspace root directory (contains settings.yaml and data/)."""
    return Path(
        os.environ.get("OQLOQ_ROOT", str(Path.home() / "oqloq"))
    ).expanduser().resolve()


# ── Path helpers ──────────────────────────────────────────────

def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"


def storage_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "data"


# ── Settings ──────────────────────────────────────────────────

def load_settings(root: Path | None = None) -> Settings:
    """Load settings.yaml, falling back to defaults when missing or unreadable."""
    path = settings_path(root)
    try:
        return Settings.from_dict(read_yaml(path))
    except (yaml.YAMLError, ValueError, TypeError) as e:
        logger.warning("Ignoring unreadable settings at %s: %s", path, e)
        return Settings()


def save_settings(settings: Settings, root: Path | None = None) -> None:
    write_yaml_atomic(settings_path(root), settings.to_dict())


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from settings.yaml, defaulting to UTC."""
    name = load_settings(root).timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", name)
        return ZoneInfo("UTC")


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in user's timezone."""
    return datetime.now(get_user_timezone(root))


def today_weekday(root: Path | None = None) -> int:
    """Today's weekday in the user's timezone, 0 = Sunday."""
    return day_of_week(now_local(root))
