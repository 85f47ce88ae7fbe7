#!/usr/bin/env python3
"""Oqloq TUI: the day's routine blocks, the active block and a pomodoro, in Textual."""

from __future__ import annotations

import logging
import os
import sys

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.timer import Timer
from textual.widgets import Checkbox, DataTable, Footer, Header, Label, Static

from oqloq import (
    DAY_NAMES,
    Planner,
    PomodoroCycle,
    RoutineBlock,
    current_minute_of_day,
    current_time_formatted,
    format_countdown,
    format_minutes,
    now_local,
    open_planner,
    seconds_until_next_minute,
    workspace_root,
)
from oqloq import pomodoro
from oqloq.timemath import day_of_week

logger = logging.getLogger(__name__)


CSS = """
Screen {
    layout: vertical;
}

#main-layout {
    height: 1fr;
}

#left-pane {
    width: 2fr;
    min-width: 40;
    border-right: tall $primary-background-darken-2;
    padding: 0 1;
}

#right-pane {
    width: 1fr;
    min-width: 30;
    padding: 0 1;
}

#blocks-table {
    height: 1fr;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

#active-block {
    height: auto;
    padding: 0 1;
}

#todo-list {
    height: auto;
    max-height: 60%;
    padding: 0 1;
}

.todo-done {
    opacity: 50%;
}

.todo-done Checkbox {
    text-style: strike;
}

#pomodoro {
    height: auto;
    padding: 1 2;
    border: tall $primary-background-darken-2;
}
"""


def _block_label(block: RoutineBlock) -> str:
    return f"{block.title}  {format_minutes(block.start_minute)}-{format_minutes(block.end_minute)}"


# ── Custom widgets ─────────────────────────────────────────────


class TodoItem(Horizontal):
    """One checklist row of the active block."""

    def __init__(self, block_id: str, todo_id: str, text: str, done: bool, **kwargs) -> None:
        super().__init__(**kwargs)
        self.block_id = block_id
        self.todo_id = todo_id
        self.item_text = text
        self.item_done = done

    def compose(self) -> ComposeResult:
        yield Checkbox(self.item_text, value=self.item_done)

    def on_mount(self) -> None:
        if self.item_done:
            self.add_class("todo-done")


# ── Main app ───────────────────────────────────────────────────


class DialApp(App):
    """Oqloq: the 24-hour routine as a terminal dashboard."""

    TITLE = "Oqloq"
    CSS = CSS
    AUTO_FOCUS = None

    BINDINGS = [
        Binding("t", "next_template", "Template"),
        Binding("l", "load_today", "Load Today"),
        Binding("s", "save_today", "Save Today"),
        Binding("p", "toggle_pomodoro", "Start/Pause"),
        Binding("n", "skip_phase", "Skip"),
        Binding("r", "reset_pomodoro", "Reset"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, planner: Planner | None = None) -> None:
        super().__init__()
        self.planner = planner or open_planner()
        self._active_id: str | None = None
        self._align_timer: Timer | None = None
        self._minute_timer: Timer | None = None
        self._pomodoro_timer: Timer | None = None
        self._cycle = PomodoroCycle()
        self._pomodoro_settings = pomodoro.load_settings(self.planner.storage)
        self._remaining = self._cycle.duration_seconds(self._pomodoro_settings)
        self._running = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            Vertical(
                Label("Blocks", classes="section-title"),
                DataTable(id="blocks-table", cursor_type="row"),
                id="left-pane",
            ),
            Vertical(
                Label("Now", classes="section-title"),
                Static(id="active-block"),
                VerticalScroll(Vertical(id="todo-list"), can_focus=False),
                Label("Pomodoro", classes="section-title"),
                Static(id="pomodoro"),
                id="right-pane",
            ),
            id="main-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        now = now_local()
        schedule = self.planner.start(day_of_week(now))
        if schedule is not None:
            self.notify(f"Loaded {DAY_NAMES[schedule.day_of_week]} schedule", title="Schedule")

        table: DataTable = self.query_one("#blocks-table", DataTable)
        table.add_columns("Start", "End", "Title", "Todos")
        self._refresh_all()

        # First tick lands on the next minute boundary, then every 60s.
        self._align_timer = self.set_timer(seconds_until_next_minute(now), self._start_minute_ticks)

    def on_unmount(self) -> None:
        for timer in (self._align_timer, self._minute_timer, self._pomodoro_timer):
            if timer is not None:
                timer.stop()

    def _start_minute_ticks(self) -> None:
        self._align_timer = None
        self._tick_minute()
        self._minute_timer = self.set_interval(60, self._tick_minute)

    def _tick_minute(self) -> None:
        self._update_clock()
        self._refresh_active()

    # ── Rendering ──────────────────────────────────────────────

    def _refresh_all(self) -> None:
        self._update_clock()
        self._rebuild_table()
        self._refresh_active(force=True)
        self._update_pomodoro()

    def _update_clock(self) -> None:
        now = now_local()
        template = self.planner.templates.current_template()
        self.sub_title = f"{current_time_formatted(now)}  {DAY_NAMES[day_of_week(now)]}  [{template.name}]"

    def _rebuild_table(self) -> None:
        table: DataTable = self.query_one("#blocks-table", DataTable)
        table.clear()
        for b in sorted(self.planner.blocks.list_blocks(), key=lambda b: b.start_minute):
            done = sum(1 for t in b.todos if t.completed)
            table.add_row(
                format_minutes(b.start_minute),
                format_minutes(b.end_minute),
                b.title,
                f"{done}/{len(b.todos)}" if b.todos else "",
                key=b.id,
            )

    def _refresh_active(self, force: bool = False) -> None:
        block = self.planner.blocks.active_block(current_minute_of_day(now_local()))
        block_id = block.id if block else None
        if block_id == self._active_id and not force:
            return
        self._active_id = block_id

        self.query_one("#active-block", Static).update(
            _block_label(block) if block else "No block right now"
        )
        todo_list = self.query_one("#todo-list", Vertical)
        todo_list.remove_children()
        if block is None:
            return
        for t in block.todos:
            todo_list.mount(TodoItem(block.id, t.id, t.text, t.completed))

    def _update_pomodoro(self) -> None:
        state = "running" if self._running else "paused"
        phase = {
            pomodoro.WORK: "Work",
            pomodoro.SHORT_BREAK: "Short break",
            pomodoro.LONG_BREAK: "Long break",
        }[self._cycle.mode]
        self.query_one("#pomodoro", Static).update(
            f"{phase}  {format_countdown(self._remaining)}  ({state})\n"
            f"Completed: {self._cycle.completed}"
        )

    # ── Checklist ──────────────────────────────────────────────

    @on(Checkbox.Changed)
    def _on_todo_toggle(self, event: Checkbox.Changed) -> None:
        row = event.checkbox.parent
        if not isinstance(row, TodoItem):
            return
        todo = self.planner.blocks.toggle_todo(row.block_id, row.todo_id)
        if todo is None:
            return
        row.set_class(todo.completed, "todo-done")
        self._rebuild_table()

    # ── Templates & schedules ─────────────────────────────────

    def action_next_template(self) -> None:
        templates = self.planner.templates.list_all()
        if not templates:
            return
        ids = [t.id for t in templates]
        current = self.planner.templates.current_template_id()
        nxt = ids[(ids.index(current) + 1) % len(ids)] if current in ids else ids[0]
        self.planner.switch_template(nxt)
        logger.info("Switched template to %s", nxt)
        self._refresh_all()
        self.notify(f"Switched to {self.planner.templates.current_template().name}", title="Template")

    def action_load_today(self) -> None:
        day = day_of_week(now_local())
        if self.planner.load_schedule(day) is None:
            self.notify(f"No schedule saved for {DAY_NAMES[day]}", severity="warning")
            return
        self._refresh_all()
        self.notify(f"Loaded {DAY_NAMES[day]} schedule", title="Schedule")

    def action_save_today(self) -> None:
        day = day_of_week(now_local())
        self.planner.save_schedule([day])
        self.notify(f"Saved blocks as the {DAY_NAMES[day]} schedule", title="Schedule")

    # ── Pomodoro ───────────────────────────────────────────────

    def action_toggle_pomodoro(self) -> None:
        if self._running:
            self._running = False
            if self._pomodoro_timer is not None:
                self._pomodoro_timer.stop()
                self._pomodoro_timer = None
        else:
            self._running = True
            self._pomodoro_timer = self.set_interval(1, self._tick_pomodoro)
        self._update_pomodoro()

    def _tick_pomodoro(self) -> None:
        self._remaining -= 1
        if self._remaining <= 0:
            finished = self._cycle.mode
            self._next_phase()
            self.bell()
            self.notify("Time for a break!" if finished == pomodoro.WORK else "Back to work!", title="Pomodoro")
        self._update_pomodoro()

    def _next_phase(self) -> None:
        self._pomodoro_settings = pomodoro.load_settings(self.planner.storage)
        self._cycle.advance(self._pomodoro_settings)
        self._remaining = self._cycle.duration_seconds(self._pomodoro_settings)

    def action_skip_phase(self) -> None:
        self._next_phase()
        self._update_pomodoro()

    def action_reset_pomodoro(self) -> None:
        if self._pomodoro_timer is not None:
            self._pomodoro_timer.stop()
            self._pomodoro_timer = None
        self._running = False
        self._cycle = PomodoroCycle()
        self._pomodoro_settings = pomodoro.load_settings(self.planner.storage)
        self._remaining = self._cycle.duration_seconds(self._pomodoro_settings)
        self._update_pomodoro()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("OQLOQ_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    root = workspace_root()
    if not root.exists():
        print(f"Workspace not found: {root}")
        print("Set OQLOQ_ROOT or create the directory first.")
        sys.exit(1)

    app = DialApp(open_planner(root))
    app.run()


if __name__ == "__main__":
    main()
