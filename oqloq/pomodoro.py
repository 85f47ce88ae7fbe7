"""Pomodoro settings persistence and work/break phase arithmetic.

The countdown itself belongs to the front end; this module decides how
long each phase lasts and which phase follows.
"""

from __future__ import annotations

from dataclasses import dataclass

from oqloq.models import PomodoroSettings
from oqloq.storage import POMODORO_SETTINGS_KEY, StoragePort, read_record, write_record

WORK = "work"
SHORT_BREAK = "shortBreak"
LONG_BREAK = "longBreak"
MODES = (WORK, SHORT_BREAK, LONG_BREAK)


def load_settings(storage: StoragePort) -> PomodoroSettings:
    return read_record(storage, POMODORO_SETTINGS_KEY, PomodoroSettings.from_dict, PomodoroSettings)


def save_settings(storage: StoragePort, settings: PomodoroSettings) -> None:
    write_record(storage, POMODORO_SETTINGS_KEY, settings.to_dict())


def reset_settings(storage: StoragePort) -> PomodoroSettings:
    settings = PomodoroSettings()
    save_settings(storage, settings)
    return settings


@dataclass
class PomodoroCycle:
    mode: str = WORK
    completed: int = 0  # finished work sessions

    def duration_seconds(self, settings: PomodoroSettings) -> int:
        minutes = {
            WORK: settings.work_duration,
            SHORT_BREAK: settings.short_break,
            LONG_BREAK: settings.long_break,
        }[self.mode]
        return minutes * 60

    def advance(self, settings: PomodoroSettings) -> str:
        """Move to the next phase (on completion or skip) and return it.

        Every long_break_interval-th finished work session earns a long break.
        """
        if self.mode == WORK:
            self.completed += 1
            if self.completed % max(1, settings.long_break_interval) == 0:
                self.mode = LONG_BREAK
            else:
                self.mode = SHORT_BREAK
        else:
            self.mode = WORK
        return self.mode


def format_countdown(seconds: int) -> str:
    """MM:SS"""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins:02d}:{secs:02d}"
