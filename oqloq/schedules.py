"""Per-weekday saved block-sets.

At most one schedule per weekday (0 = Sunday ... 6 = Saturday). Saving a
day again overwrites it. Schedules are independent of templates.
"""

from __future__ import annotations

import logging
from typing import Iterable

from oqloq.models import DaySchedule, RoutineBlock, clone_blocks
from oqloq.storage import DAY_SCHEDULES_KEY, StoragePort, read_record, write_record

logger = logging.getLogger(__name__)


DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
DAY_NAMES_SHORT = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
DAY_ORDER = (1, 2, 3, 4, 5, 6, 0)  # Monday-first display order
WEEKDAYS = (1, 2, 3, 4, 5)
WEEKEND = (0, 6)


def _check_day(day: int) -> int:
    if not isinstance(day, int) or isinstance(day, bool) or not 0 <= day <= 6:
        raise ValueError(f"Invalid day of week: {day!r} (expected 0-6, 0 = Sunday)")
    return day


def _parse_schedules(data: object) -> list[DaySchedule]:
    if not isinstance(data, list):
        raise TypeError("day schedules must be a list")
    return [DaySchedule.from_dict(s) for s in data]


class ScheduleStore:
    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage

    def _load(self) -> list[DaySchedule]:
        return read_record(self._storage, DAY_SCHEDULES_KEY, _parse_schedules, list)

    def _save(self, schedules: list[DaySchedule]) -> None:
        write_record(self._storage, DAY_SCHEDULES_KEY, [s.to_dict() for s in schedules])

    def list_all(self) -> list[DaySchedule]:
        return self._load()

    def get_for_weekday(self, day: int) -> DaySchedule | None:
        _check_day(day)
        for s in self._load():
            if s.day_of_week == day:
                return s
        return None

    def save(self, day: int, blocks: list[RoutineBlock]) -> DaySchedule:
        """Store a copy of *blocks* for *day*, replacing any earlier entry."""
        _check_day(day)
        schedule = DaySchedule(day_of_week=day, blocks=clone_blocks(blocks))
        schedules = self._load()
        for i, s in enumerate(schedules):
            if s.day_of_week == day:
                schedules[i] = schedule
                break
        else:
            schedules.append(schedule)
        self._save(schedules)
        logger.info("Saved schedule for %s (%d blocks)", DAY_NAMES[day], len(blocks))
        return schedule

    def save_many(self, days: Iterable[int], blocks: list[RoutineBlock]) -> list[DaySchedule]:
        return [self.save(day, blocks) for day in dict.fromkeys(days)]

    def delete(self, day: int) -> bool:
        _check_day(day)
        schedules = self._load()
        remaining = [s for s in schedules if s.day_of_week != day]
        if len(remaining) == len(schedules):
            return False
        self._save(remaining)
        logger.info("Deleted schedule for %s", DAY_NAMES[day])
        return True

    def copy(self, from_day: int, to_days: Iterable[int]) -> bool:
        """Copy one weekday's blocks onto other weekdays.

        Returns False when *from_day* has no saved schedule.
        """
        source = self.get_for_weekday(from_day)
        if source is None:
            return False
        self.save_many(to_days, source.blocks)
        return True
