"""Typed dataclasses for the Oqloq data model.

All persisted models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored. Required keys that are missing raise KeyError so a
damaged record is detected by the storage layer and replaced by its default.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any


# ── Checklist ─────────────────────────────────────────────────


@dataclass
class Todo:
    id: str = ""
    text: str = ""
    completed: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Todo:
        return cls(
            id=str(d["id"]),
            text=str(d.get("text", "")),
            completed=bool(d.get("completed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}


# ── Blocks ────────────────────────────────────────────────────


@dataclass
class RoutineBlock:
    """A titled, colored [start_minute, end_minute) segment of the day."""

    id: str
    title: str
    color: str
    start_minute: int
    end_minute: int  # exclusive; 1440 means end of day
    todos: list[Todo] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> RoutineBlock:
        return cls(
            id=str(d["id"]),
            title=str(d.get("title", "")),
            color=str(d.get("color", "")),
            start_minute=int(d["startMinute"]),
            end_minute=int(d["endMinute"]),
            todos=[Todo.from_dict(t) for t in (d.get("todos") or [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "color": self.color,
            "startMinute": self.start_minute,
            "endMinute": self.end_minute,
            "todos": [t.to_dict() for t in self.todos],
        }

    def duration_minutes(self) -> int:
        return max(0, self.end_minute - self.start_minute)

    def contains(self, minute: int) -> bool:
        return self.start_minute <= minute < self.end_minute

    def overlaps(self, other: RoutineBlock) -> bool:
        return self.start_minute < other.end_minute and other.start_minute < self.end_minute


def clone_blocks(blocks: list[RoutineBlock]) -> list[RoutineBlock]:
    """Deep copy a block-set, todos included."""
    return copy.deepcopy(list(blocks))


def blocks_from_list(data: Any) -> list[RoutineBlock]:
    if not isinstance(data, list):
        raise TypeError(f"expected a list of blocks, got {type(data).__name__}")
    return [RoutineBlock.from_dict(b) for b in data]


def blocks_to_list(blocks: list[RoutineBlock]) -> list[dict[str, Any]]:
    return [b.to_dict() for b in blocks]


# ── Templates & schedules ─────────────────────────────────────


@dataclass
class Template:
    id: str
    name: str
    blocks: list[RoutineBlock] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Template:
        return cls(
            id=str(d["id"]),
            name=str(d.get("name", "")),
            blocks=blocks_from_list(d.get("blocks") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "blocks": blocks_to_list(self.blocks)}


@dataclass
class DaySchedule:
    day_of_week: int  # 0 = Sunday ... 6 = Saturday
    blocks: list[RoutineBlock] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DaySchedule:
        day = int(d["dayOfWeek"])
        if not 0 <= day <= 6:
            raise ValueError(f"dayOfWeek out of range: {day}")
        return cls(day_of_week=day, blocks=blocks_from_list(d.get("blocks") or []))

    def to_dict(self) -> dict[str, Any]:
        return {"dayOfWeek": self.day_of_week, "blocks": blocks_to_list(self.blocks)}


# ── Pomodoro ──────────────────────────────────────────────────


@dataclass
class PomodoroSettings:
    work_duration: int = 25  # minutes
    short_break: int = 5
    long_break: int = 15
    long_break_interval: int = 4  # work sessions per long break

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PomodoroSettings:
        """Stored values win over defaults; absent keys keep the default."""
        if not d or not isinstance(d, dict):
            return cls()
        defaults = cls()
        return cls(
            work_duration=int(d.get("workDuration", defaults.work_duration)),
            short_break=int(d.get("shortBreak", defaults.short_break)),
            long_break=int(d.get("longBreak", defaults.long_break)),
            long_break_interval=max(1, int(d.get("longBreakInterval", defaults.long_break_interval))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "workDuration": self.work_duration,
            "shortBreak": self.short_break,
            "longBreak": self.long_break,
            "longBreakInterval": self.long_break_interval,
        }


# ── Settings ──────────────────────────────────────────────────


THEMES = ("light", "dark", "auto")


@dataclass
class DialSettings:
    outer_radius: float = 180.0
    thickness: float = 40.0

    @property
    def inner_radius(self) -> float:
        return self.outer_radius - self.thickness

    @property
    def size(self) -> float:
        return self.outer_radius * 2 + 40


@dataclass
class Settings:
    timezone: str = "UTC"
    theme: str = "light"
    dial: DialSettings = field(default_factory=DialSettings)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        theme = str(d.get("theme", "light")).strip().lower()
        dial = d.get("dial") if isinstance(d.get("dial"), dict) else {}
        return cls(
            timezone=str(d.get("timezone", "UTC")),
            theme=theme if theme in THEMES else "light",
            dial=DialSettings(
                outer_radius=float(dial.get("outer_radius", 180)),
                thickness=float(dial.get("thickness", 40)),
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "theme": self.theme,
            "dial": {"outer_radius": self.dial.outer_radius, "thickness": self.dial.thickness},
        }
