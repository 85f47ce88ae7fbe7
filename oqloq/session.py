"""Planner: the stores wired over one storage port, plus session start.

Consumers (web UI, terminal dashboard) go through a Planner instead of
touching the stores' storage keys directly.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from oqloq.blocks import BlockStore
from oqloq.models import DaySchedule, RoutineBlock, Template
from oqloq.schedules import DAY_NAMES, ScheduleStore
from oqloq.storage import FileStorage, StoragePort, clear_all
from oqloq.templates import FALLBACK_TEMPLATE_ID, TemplateStore, default_blocks
from oqloq.workspace import storage_dir, workspace_root

logger = logging.getLogger(__name__)


class Planner:
    def __init__(self, storage: StoragePort) -> None:
        self.storage = storage
        self.blocks = BlockStore(storage, default_blocks)
        self.templates = TemplateStore(storage, self.blocks)
        self.schedules = ScheduleStore(storage)
        self._started = False

    def start(self, weekday: int) -> DaySchedule | None:
        """Apply *weekday*'s saved schedule over the live blocks, once.

        A schedule beats whichever template was last active, for today only.
        Only the first call does anything; a long-running session is not
        re-evaluated when the date changes.
        """
        if self._started:
            return None
        self._started = True
        schedule = self.schedules.get_for_weekday(weekday)
        if schedule is None:
            return None
        self.blocks.replace_all(schedule.blocks)
        logger.info("Loaded %s schedule at session start", DAY_NAMES[weekday])
        return schedule

    def reset(self) -> None:
        """Erase every Oqloq record; the stores come back as on a fresh install."""
        clear_all(self.storage)
        self.blocks = BlockStore(self.storage, default_blocks)
        self.templates = TemplateStore(self.storage, self.blocks)
        logger.info("Cleared all Oqloq data")

    # ── Templates ─────────────────────────────────────────────

    def switch_template(self, template_id: str) -> list[RoutineBlock]:
        return self.templates.switch_to(template_id)

    def save_as_template(self, name: str) -> Template:
        if not name.strip():
            raise ValueError("Template name is required")
        return self.templates.create_from_blocks(name, self.blocks.list_blocks())

    def delete_template(self, template_id: str) -> bool:
        """Delete a template; if it was the active one, fall back to the first built-in."""
        was_current = self.templates.current_template_id() == template_id
        removed = self.templates.remove(template_id)
        if removed and was_current:
            self.templates.switch_to(FALLBACK_TEMPLATE_ID)
        return removed

    # ── Schedules ─────────────────────────────────────────────

    def save_schedule(self, days: Iterable[int]) -> list[DaySchedule]:
        return self.schedules.save_many(days, self.blocks.list_blocks())

    def load_schedule(self, day: int) -> list[RoutineBlock] | None:
        schedule = self.schedules.get_for_weekday(day)
        if schedule is None:
            return None
        self.blocks.replace_all(schedule.blocks)
        return self.blocks.list_blocks()


def open_planner(root: Path | None = None) -> Planner:
    """Planner backed by files under the workspace's data directory."""
    if root is None:
        root = workspace_root()
    return Planner(FileStorage(storage_dir(root)))
