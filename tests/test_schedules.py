"""Tests for oqloq/schedules.py: per-weekday block-sets."""

import json

import pytest

from oqloq.schedules import WEEKDAYS, ScheduleStore
from oqloq.storage import DAY_SCHEDULES_KEY


def test_empty_store(storage):
    schedules = ScheduleStore(storage)
    assert schedules.list_all() == []
    assert schedules.get_for_weekday(3) is None


def test_save_and_get(storage, sample_blocks):
    schedules = ScheduleStore(storage)
    saved = schedules.save(1, sample_blocks)
    assert saved.day_of_week == 1
    got = schedules.get_for_weekday(1)
    assert [b.id for b in got.blocks] == ["sleep", "work", "evening"]
    stored = json.loads(storage.get_item(DAY_SCHEDULES_KEY))
    assert stored[0]["dayOfWeek"] == 1


def test_save_overwrites_same_day(storage, sample_blocks):
    schedules = ScheduleStore(storage)
    schedules.save(2, sample_blocks)
    schedules.save(2, sample_blocks[:1])
    assert len(schedules.list_all()) == 1
    assert len(schedules.get_for_weekday(2).blocks) == 1


def test_save_stores_a_copy(storage, sample_blocks):
    schedules = ScheduleStore(storage)
    schedules.save(0, sample_blocks)
    sample_blocks[1].todos[0].text = "changed"
    assert schedules.get_for_weekday(0).blocks[1].todos[0].text == "Inbox zero"


@pytest.mark.parametrize("day", [-1, 7, True])
def test_invalid_day_rejected(storage, sample_blocks, day):
    schedules = ScheduleStore(storage)
    with pytest.raises(ValueError):
        schedules.save(day, sample_blocks)
    with pytest.raises(ValueError):
        schedules.get_for_weekday(day)
    with pytest.raises(ValueError):
        schedules.delete(day)


def test_save_many_weekdays(storage, sample_blocks):
    schedules = ScheduleStore(storage)
    saved = schedules.save_many(list(WEEKDAYS) + [1], sample_blocks)
    assert [s.day_of_week for s in saved] == [1, 2, 3, 4, 5]
    assert schedules.get_for_weekday(0) is None
    assert schedules.get_for_weekday(5) is not None


def test_delete(storage, sample_blocks):
    schedules = ScheduleStore(storage)
    schedules.save(6, sample_blocks)
    assert schedules.delete(6) is True
    assert schedules.get_for_weekday(6) is None
    assert schedules.delete(6) is False


def test_copy(storage, sample_blocks):
    schedules = ScheduleStore(storage)
    schedules.save(1, sample_blocks)
    assert schedules.copy(1, [2, 3]) is True
    assert [b.id for b in schedules.get_for_weekday(3).blocks] == ["sleep", "work", "evening"]


def test_copy_without_source(storage):
    schedules = ScheduleStore(storage)
    assert schedules.copy(4, [5]) is False
    assert schedules.list_all() == []


def test_corrupt_schedules_fall_back_to_empty(storage):
    storage.set_item(DAY_SCHEDULES_KEY, json.dumps([{"dayOfWeek": 9, "blocks": []}]))
    assert ScheduleStore(storage).list_all() == []
