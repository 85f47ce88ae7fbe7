"""Conversions between minute-of-day, dial angle and wall-clock text.

The dial maps 24 hours onto 360 degrees (one minute is 0.25 degrees).
Angle 0 is the top of the dial and angles grow clockwise. Conversions use
floats; round before comparing minutes for equality.
"""

from __future__ import annotations

import math
from datetime import date, datetime

MINUTES_PER_DAY = 1440
LAST_MINUTE = MINUTES_PER_DAY - 1
DEGREES_PER_MINUTE = 360 / MINUTES_PER_DAY


def round_half_up(value: float) -> int:
    """Nearest integer with .5 going up, so 2.5 -> 3 and -2.5 -> -2."""
    return math.floor(value + 0.5)


def minutes_to_degrees(minute: float) -> float:
    return minute / MINUTES_PER_DAY * 360


def degrees_to_minutes(degrees: float) -> int:
    """Nearest whole minute for an angle, wrapped into [0, 1440)."""
    return round_half_up(degrees / 360 * MINUTES_PER_DAY) % MINUTES_PER_DAY


def minutes_to_radians(minute: float) -> float:
    """Screen angle in radians, shifted by -90 degrees so minute 0 points up."""
    return math.radians(minutes_to_degrees(minute) - 90)


def current_minute_of_day(now: datetime | None = None) -> int:
    """Minute of day on *now*'s wall clock.

    Without *now* the host's local clock is read. Callers that honour the
    configured timezone pass workspace.now_local().
    """
    if now is None:
        now = datetime.now()
    return now.hour * 60 + now.minute


def current_time_formatted(now: datetime | None = None) -> str:
    if now is None:
        now = datetime.now()
    return f"{now.hour:02d}:{now.minute:02d}"


def format_minutes(minute: int) -> str:
    """'HH:MM' for a minute-of-day. 1440 renders as '24:00'."""
    hours, mins = divmod(int(minute), 60)
    return f"{hours:02d}:{mins:02d}"


def parse_hhmm(text: str) -> int:
    """Inverse of format_minutes. Only integer parsing is checked."""
    hours, minutes = text.strip().split(":")
    return int(hours) * 60 + int(minutes)


def clamp_minute(value: float) -> int:
    return max(0, min(LAST_MINUTE, round_half_up(value)))


def round_to_slot(minute: int, slot: int = 30) -> int:
    """Nearest multiple of *slot*, kept inside the day."""
    return clamp_minute(round_half_up(minute / slot) * slot)


def is_minute_in_block(minute: int, start: int, end: int) -> bool:
    return start <= minute < end


def day_of_week(d: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (d.weekday() + 1) % 7


def seconds_until_next_minute(now: datetime | None = None) -> float:
    """Delay before the next wall-clock minute boundary, in (0, 60]."""
    if now is None:
        now = datetime.now()
    return 60 - now.second - now.microsecond / 1_000_000
