"""Oqloq core library: 24-hour dial geometry and routine data engine.

Public API re-exports for convenient imports:
    from oqloq import Planner, hit_test, minutes_to_degrees, ...
"""

# Workspace & settings
from oqloq.workspace import (
    workspace_root,
    settings_path,
    storage_dir,
    load_settings,
    save_settings,
    get_user_timezone,
    now_local,
    today_weekday,
)

# Time <-> angle
from oqloq.timemath import (
    MINUTES_PER_DAY,
    minutes_to_degrees,
    degrees_to_minutes,
    minutes_to_radians,
    current_minute_of_day,
    current_time_formatted,
    format_minutes,
    parse_hhmm,
    clamp_minute,
    round_half_up,
    round_to_slot,
    is_minute_in_block,
    day_of_week,
    seconds_until_next_minute,
)

# Dial geometry
from oqloq.geometry import (
    Point,
    ArcPath,
    BlockHit,
    EmptySlot,
    arc_path,
    point_on_ring,
    point_to_minute,
    find_block_at,
    hit_test,
)

# Storage
from oqloq.storage import (
    StoragePort,
    MemoryStorage,
    FileStorage,
    read_record,
    write_record,
    clear_all,
)

# Stores
from oqloq.blocks import (
    COLOR_PALETTE,
    BlockNotFoundError,
    BlockStore,
    new_block,
    validate_block,
)
from oqloq.templates import (
    DEFAULT_TEMPLATES,
    TemplateStore,
    Visibility,
)
from oqloq.schedules import (
    DAY_NAMES,
    DAY_ORDER,
    WEEKDAYS,
    WEEKEND,
    ScheduleStore,
)
from oqloq.session import Planner, open_planner

# Pomodoro
from oqloq.pomodoro import PomodoroCycle, format_countdown

# Models
from oqloq.models import (
    Todo,
    RoutineBlock,
    Template,
    DaySchedule,
    PomodoroSettings,
    DialSettings,
    Settings,
)
