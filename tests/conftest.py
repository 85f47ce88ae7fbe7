"""Shared test fixtures for Oqloq tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from oqloq.models import RoutineBlock, Todo
from oqloq.session import Planner
from oqloq.storage import MemoryStorage


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def planner(storage: MemoryStorage) -> Planner:
    return Planner(storage)


@pytest.fixture
def sample_blocks() -> list[RoutineBlock]:
    return [
        RoutineBlock(id="sleep", title="Sleep", color="#A8D8FF", start_minute=0, end_minute=420),
        RoutineBlock(
            id="work",
            title="Work",
            color="#FFD6A5",
            start_minute=540,
            end_minute=1020,
            todos=[Todo(id="t1", text="Inbox zero"), Todo(id="t2", text="Review PR", completed=True)],
        ),
        RoutineBlock(id="evening", title="Evening", color="#E0D5FF", start_minute=1200, end_minute=1440),
    ]


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with a settings file."""
    root = tmp_path / "workspace"
    (root / "data").mkdir(parents=True)

    settings = {
        "timezone": "UTC",
        "theme": "dark",
        "dial": {"outer_radius": 180, "thickness": 40},
    }
    (root / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    # Set env var
    os.environ["OQLOQ_ROOT"] = str(root)
    yield root
    # Cleanup
    if "OQLOQ_ROOT" in os.environ:
        del os.environ["OQLOQ_ROOT"]
