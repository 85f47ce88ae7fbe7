from __future__ import annotations

import logging
import os
import secrets
from pathlib import Path
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Response, status
from fastapi.responses import HTMLResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from oqloq import (
    COLOR_PALETTE,
    DAY_ORDER,
    MINUTES_PER_DAY,
    BlockHit,
    BlockNotFoundError,
    EmptySlot,
    Planner,
    Point,
    RoutineBlock,
    arc_path,
    current_minute_of_day,
    current_time_formatted,
    format_minutes,
    hit_test,
    load_settings,
    new_block,
    now_local,
    open_planner,
    point_on_ring,
    round_to_slot,
    validate_block,
    workspace_root,
)
from oqloq import pomodoro
from oqloq.models import PomodoroSettings
from oqloq.timemath import day_of_week

logger = logging.getLogger(__name__)

app = FastAPI(title="Oqloq", version="0.1.0")

security = HTTPBasic(auto_error=False)


# ── Auth ──────────────────────────────────────────────────────


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("OQLOQ_USERNAME", "")
    expected_password = os.environ.get("OQLOQ_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Planner (one per workspace, session started on first use) ─

_planners: dict[Path, Planner] = {}


def get_planner(username: str = Depends(get_current_user)) -> Planner:
    """Planner for the current workspace; authentication is checked before it is opened."""
    root = workspace_root()
    planner = _planners.get(root)
    if planner is None:
        planner = open_planner(root)
        logger.info("Opened planner at %s", root)
        planner.start(day_of_week(now_local(root)))
        _planners[root] = planner
    return planner


NEW_BLOCK_MINUTES = 120


def _creation_defaults(payload: dict[str, Any], root: Path) -> dict[str, Any]:
    """Pre-fill a new block: it starts at the current half-hour slot and runs two hours."""
    filled = dict(payload)
    if filled.get("startMinute") is None:
        filled["startMinute"] = round_to_slot(current_minute_of_day(now_local(root)))
    if filled.get("endMinute") is None:
        try:
            start = int(filled["startMinute"])
        except (TypeError, ValueError):
            return filled
        filled["endMinute"] = min(start + NEW_BLOCK_MINUTES, MINUTES_PER_DAY)
    filled.setdefault("color", COLOR_PALETTE[0])
    return filled


def _block_from_payload(payload: dict[str, Any], block_id: str | None = None) -> RoutineBlock:
    try:
        title = str(payload.get("title", ""))
        start = int(payload["startMinute"])
        end = int(payload["endMinute"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=400, detail="title, startMinute and endMinute are required")
    errors = validate_block(title, start, end)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))
    block = new_block(title, str(payload.get("color", COLOR_PALETTE[0])), start, end)
    if block_id is not None:
        block.id = block_id
    return block


def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _not_found(e: BlockNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/", response_class=HTMLResponse)
def index(planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> HTMLResponse:
    rows = []
    for b in planner.blocks.list_blocks():
        title = _escape(b.title)
        rows.append(
            f'<li><span class="swatch" style="background:{_escape(b.color)}"></span>'
            f"{format_minutes(b.start_minute)}\u2013{format_minutes(b.end_minute)} {title}</li>"
        )
    theme = load_settings().theme
    html = f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>Oqloq</title>
  <style>
    .swatch {{ display:inline-block; width:10px; height:10px; margin-right:6px; }}
    body.theme-dark {{ background:#1E1E24; color:#EDEDF2; }}
  </style>
</head>
<body class="theme-{theme}">
  <h1>Oqloq</h1>
  <img src="/dial.svg" alt="24-hour dial" />
  <ul>{"".join(rows)}</ul>
</body>
</html>
"""
    return HTMLResponse(html)


# ── Blocks ────────────────────────────────────────────────────


@app.get("/api/blocks")
def api_list_blocks(planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"blocks": [b.to_dict() for b in planner.blocks.list_blocks()]}


@app.post("/api/blocks")
def api_create_block(
    payload: dict[str, Any] = Body(...),
    planner: Planner = Depends(get_planner),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    block = planner.blocks.add(_block_from_payload(_creation_defaults(payload, workspace_root())))
    return {"ok": True, "block": block.to_dict()}


@app.put("/api/blocks/{block_id}")
def api_update_block(
    block_id: str,
    payload: dict[str, Any] = Body(...),
    planner: Planner = Depends(get_planner),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    current = planner.blocks.get(block_id)
    if current is None:
        raise HTTPException(status_code=404, detail=f"Block not found: {block_id}")
    merged = {**current.to_dict(), **payload}
    edited = _block_from_payload(merged, block_id)
    try:
        updated = planner.blocks.update(block_id, {
            "title": edited.title,
            "color": edited.color,
            "start_minute": edited.start_minute,
            "end_minute": edited.end_minute,
        })
    except BlockNotFoundError as e:
        raise _not_found(e)
    return {"ok": True, "block": updated.to_dict()}


@app.delete("/api/blocks/{block_id}")
def api_delete_block(block_id: str, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    if not planner.blocks.delete(block_id):
        raise HTTPException(status_code=404, detail=f"Block not found: {block_id}")
    return {"ok": True, "block_id": block_id}


@app.post("/api/blocks/{block_id}/todos")
def api_add_todo(
    block_id: str,
    payload: dict[str, Any] = Body(...),
    planner: Planner = Depends(get_planner),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        todo = planner.blocks.add_todo(block_id, str(payload.get("text", "")))
    except BlockNotFoundError as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "todo": todo.to_dict()}


@app.post("/api/blocks/{block_id}/todos/{todo_id}/toggle")
def api_toggle_todo(block_id: str, todo_id: str, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    try:
        todo = planner.blocks.toggle_todo(block_id, todo_id)
    except BlockNotFoundError as e:
        raise _not_found(e)
    if todo is None:
        raise HTTPException(status_code=404, detail=f"Todo not found: {todo_id}")
    return {"ok": True, "todo": todo.to_dict()}


@app.delete("/api/blocks/{block_id}/todos/{todo_id}")
def api_delete_todo(block_id: str, todo_id: str, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    try:
        deleted = planner.blocks.delete_todo(block_id, todo_id)
    except BlockNotFoundError as e:
        raise _not_found(e)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Todo not found: {todo_id}")
    return {"ok": True, "todo_id": todo_id}


# ── Templates ─────────────────────────────────────────────────


@app.get("/api/templates")
def api_list_templates(planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {
        "current": planner.templates.current_template_id(),
        "templates": [
            {**t.to_dict(), "builtIn": planner.templates.is_built_in(t.id)}
            for t in planner.templates.list_all()
        ],
    }


@app.post("/api/templates")
def api_save_template(
    payload: dict[str, Any] = Body(...),
    planner: Planner = Depends(get_planner),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        template = planner.save_as_template(str(payload.get("name", "")))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "template": template.to_dict()}


@app.post("/api/templates/{template_id}/switch")
def api_switch_template(template_id: str, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    blocks = planner.switch_template(template_id)
    return {
        "ok": True,
        "current": planner.templates.current_template_id(),
        "blocks": [b.to_dict() for b in blocks],
    }


@app.delete("/api/templates/{template_id}")
def api_delete_template(template_id: str, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    if not planner.delete_template(template_id):
        raise HTTPException(status_code=404, detail=f"Template not found: {template_id}")
    return {"ok": True, "current": planner.templates.current_template_id()}


# ── Day schedules ─────────────────────────────────────────────


def _day(day: int) -> int:
    if not 0 <= day <= 6:
        raise HTTPException(status_code=400, detail=f"Invalid day of week: {day}")
    return day


@app.get("/api/schedules")
def api_list_schedules(planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    schedules = sorted(planner.schedules.list_all(), key=lambda s: DAY_ORDER.index(s.day_of_week))
    return {"schedules": [s.to_dict() for s in schedules]}


@app.put("/api/schedules/{day}")
def api_save_schedule(day: int, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    saved = planner.save_schedule([_day(day)])
    return {"ok": True, "schedule": saved[0].to_dict()}


@app.delete("/api/schedules/{day}")
def api_delete_schedule(day: int, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"ok": True, "deleted": planner.schedules.delete(_day(day))}


@app.post("/api/schedules/{day}/load")
def api_load_schedule(day: int, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    blocks = planner.load_schedule(_day(day))
    if blocks is None:
        raise HTTPException(status_code=404, detail=f"No schedule saved for day {day}")
    return {"ok": True, "blocks": [b.to_dict() for b in blocks]}


@app.post("/api/schedules/{day}/copy")
def api_copy_schedule(
    day: int,
    payload: dict[str, Any] = Body(...),
    planner: Planner = Depends(get_planner),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        to_days = [_day(int(d)) for d in payload.get("to_days", [])]
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="to_days must be a list of weekdays 0-6")
    if not to_days:
        raise HTTPException(status_code=400, detail="Missing to_days")
    if not planner.schedules.copy(_day(day), to_days):
        raise HTTPException(status_code=404, detail=f"No schedule saved for day {day}")
    return {"ok": True, "copied_to": to_days}


# ── Clock & dial ──────────────────────────────────────────────


@app.get("/api/clock")
def api_clock(planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    now = now_local()
    minute = current_minute_of_day(now)
    active = planner.blocks.active_block(minute)
    return {
        "minute": minute,
        "time": current_time_formatted(now),
        "dayOfWeek": day_of_week(now),
        "activeBlock": active.to_dict() if active else None,
    }


@app.get("/api/hit")
def api_hit(x: float, y: float, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Hit-test a click given in dial (SVG viewBox) coordinates."""
    dial = load_settings().dial
    center = Point(dial.size / 2, dial.size / 2)
    result = hit_test(Point(x, y), center, dial.inner_radius, dial.outer_radius, planner.blocks.list_blocks())
    if isinstance(result, BlockHit):
        return {"hit": "block", "blockId": result.block_id}
    if isinstance(result, EmptySlot):
        return {"hit": "empty", "minute": result.minute, "time": format_minutes(result.minute)}
    return {"hit": None}


@app.get("/dial.svg")
def dial_svg(planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> Response:
    dial = load_settings().dial
    size = dial.size
    center = Point(size / 2, size / 2)
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{size:g}" height="{size:g}" viewBox="0 0 {size:g} {size:g}">',
    ]
    for b in planner.blocks.list_blocks():
        d = arc_path(b, dial.outer_radius, dial.thickness, center).to_svg()
        parts.append(
            f'<path d="{d}" fill="{_escape(b.color)}" data-block-id="{_escape(b.id)}">'
            f"<title>{_escape(b.title)}</title></path>"
        )
    minute = current_minute_of_day(now_local())
    tip = point_on_ring(minute, dial.outer_radius, center)
    parts.append(
        f'<line x1="{center.x:g}" y1="{center.y:g}" x2="{tip.x:.2f}" y2="{tip.y:.2f}" stroke="#FF6B6B" stroke-width="3" />'
    )
    parts.append("</svg>")
    return Response("".join(parts), media_type="image/svg+xml")


# ── Pomodoro settings ─────────────────────────────────────────


@app.get("/api/pomodoro/settings")
def api_get_pomodoro(planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return pomodoro.load_settings(planner.storage).to_dict()


@app.put("/api/pomodoro/settings")
def api_put_pomodoro(
    payload: dict[str, Any] = Body(...),
    planner: Planner = Depends(get_planner),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    current = pomodoro.load_settings(planner.storage).to_dict()
    try:
        settings = PomodoroSettings.from_dict({**current, **payload})
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="Pomodoro durations must be integers")
    if min(settings.work_duration, settings.short_break, settings.long_break) <= 0:
        raise HTTPException(status_code=400, detail="Pomodoro durations must be positive")
    pomodoro.save_settings(planner.storage, settings)
    return {"ok": True, "settings": settings.to_dict()}


# ── Data ──────────────────────────────────────────────────────


@app.delete("/api/data")
def api_clear_data(planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
    planner.reset()
    return {"ok": True, "blocks": [b.to_dict() for b in planner.blocks.list_blocks()]}
