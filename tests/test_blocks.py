"""Tests for oqloq/blocks.py: CRUD, checklist, validation, persistence."""

import json

import pytest

from oqloq.blocks import BlockNotFoundError, BlockStore, new_block, validate_block
from oqloq.models import RoutineBlock, Todo
from oqloq.storage import BLOCKS_KEY, MemoryStorage
from oqloq.templates import default_blocks


def _store(storage, blocks=None):
    if blocks is not None:
        storage.set_item(BLOCKS_KEY, json.dumps([b.to_dict() for b in blocks]))
    return BlockStore(storage, default_blocks)


def _stored_ids(storage):
    return [b["id"] for b in json.loads(storage.get_item(BLOCKS_KEY))]


def test_validate_block_valid():
    assert validate_block("Work", 540, 1020) == []
    assert validate_block("Night", 1200, 1440) == []


def test_validate_block_missing_title():
    errors = validate_block("  ", 0, 60)
    assert any("Title" in e for e in errors)


def test_validate_block_end_before_start():
    errors = validate_block("X", 600, 600)
    assert "End time must be after start time" in errors


def test_validate_block_out_of_range():
    errors = validate_block("X", -1, 1441)
    assert any("Start" in e for e in errors)
    assert any("End" in e for e in errors)


def test_new_block_generates_id():
    a = new_block(" Gym ", "#FFB4D6", 420, 480)
    b = new_block("Gym", "#FFB4D6", 420, 480)
    assert a.id.startswith("block_")
    assert a.id != b.id
    assert a.title == "Gym"
    assert a.todos == []


def test_empty_storage_loads_default_blocks(storage):
    store = _store(storage)
    ids = [b.id for b in store.list_blocks()]
    assert ids == ["student-sleep-1", "student-school", "student-study", "student-free"]


def test_corrupt_blocks_fall_back_to_defaults(storage):
    storage.set_item(BLOCKS_KEY, "{not json")
    store = _store(storage)
    assert len(store.list_blocks()) == 4


def test_add_persists(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    block = new_block("Lunch", "#FFF4B0", 720, 780)
    store.add(block)
    assert store.get(block.id) is not None
    assert _stored_ids(storage) == ["sleep", "work", "evening", block.id]


def test_add_duplicate_id_rejected(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    with pytest.raises(ValueError):
        store.add(RoutineBlock(id="work", title="Dup", color="#000", start_minute=0, end_minute=10))


def test_update_merges_fields(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    updated = store.update("work", {"title": "Deep Work", "end_minute": 1080})
    assert updated.title == "Deep Work"
    assert updated.start_minute == 540
    assert updated.end_minute == 1080
    assert len(updated.todos) == 2
    stored = json.loads(storage.get_item(BLOCKS_KEY))
    assert stored[1]["title"] == "Deep Work"
    assert stored[1]["endMinute"] == 1080


def test_update_unknown_block(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    with pytest.raises(BlockNotFoundError) as exc:
        store.update("missing", {"title": "X"})
    assert exc.value.block_id == "missing"


def test_update_unknown_field(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    with pytest.raises(ValueError):
        store.update("work", {"id": "other"})


def test_upsert_updates_or_appends(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    store.upsert(RoutineBlock(id="work", title="Office", color="#CAFFBF", start_minute=540, end_minute=1020))
    assert store.get("work").title == "Office"
    store.upsert(RoutineBlock(id="gym", title="Gym", color="#CAFFBF", start_minute=1020, end_minute=1080))
    assert [b.id for b in store.list_blocks()][-1] == "gym"


def test_delete(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    assert store.delete("work") is True
    assert store.get("work") is None
    assert _stored_ids(storage) == ["sleep", "evening"]


def test_delete_unknown_is_noop(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    before = storage.get_item(BLOCKS_KEY)
    assert store.delete("missing") is False
    assert storage.get_item(BLOCKS_KEY) == before


def test_replace_all_copies_blocks(storage, sample_blocks):
    store = _store(storage)
    store.replace_all(sample_blocks)
    sample_blocks[0].title = "Changed"
    assert store.get("sleep").title == "Sleep"
    assert _stored_ids(storage) == ["sleep", "work", "evening"]


def test_list_blocks_returns_copy_of_order(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    listing = store.list_blocks()
    listing.clear()
    assert len(store.list_blocks()) == 3


def test_returned_blocks_do_not_alias_the_store(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    store.list_blocks()[0].title = "Nap"
    store.get("work").todos.append(Todo(id="x", text="Extra"))
    store.active_block(600).end_minute = 600
    assert store.get("sleep").title == "Sleep"
    assert len(store.get("work").todos) == 2
    assert store.get("work").end_minute == 1020
    assert _stored_ids(storage) == ["sleep", "work", "evening"]


def test_added_and_updated_blocks_are_copied_in(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    block = new_block("Gym", "#FFB4D6", 1020, 1080)
    returned = store.add(block)
    block.title = "Changed"
    returned.title = "Changed too"
    assert store.get(block.id).title == "Gym"

    todos = list(store.get("work").todos)
    store.update("work", {"todos": todos})
    todos[0].completed = True
    assert store.get("work").todos[0].completed is False


def test_active_block(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    assert store.active_block(600).id == "work"
    assert store.active_block(480) is None
    assert store.active_block(1439).id == "evening"


def test_overlapping_blocks_allowed(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    store.add(RoutineBlock(id="meeting", title="Meeting", color="#000", start_minute=600, end_minute=660))
    # earlier-listed block still wins
    assert store.active_block(630).id == "work"


def test_add_todo(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    todo = store.add_todo("sleep", "  Lights off  ")
    assert todo.id.startswith("todo_")
    assert todo.text == "Lights off"
    assert todo.completed is False
    stored = json.loads(storage.get_item(BLOCKS_KEY))
    assert stored[0]["todos"][0]["text"] == "Lights off"


def test_add_todo_empty_text(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    with pytest.raises(ValueError):
        store.add_todo("sleep", "   ")


def test_add_todo_unknown_block(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    with pytest.raises(BlockNotFoundError):
        store.add_todo("missing", "x")


def test_toggle_todo(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    todo = store.toggle_todo("work", "t1")
    assert todo.completed is True
    assert store.get("work").todos[0].completed is True
    assert store.toggle_todo("work", "t1").completed is False
    assert store.toggle_todo("work", "nope") is None


def test_delete_todo(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    assert store.delete_todo("work", "t2") is True
    assert [t.id for t in store.get("work").todos] == ["t1"]
    assert store.delete_todo("work", "t2") is False


def test_changes_survive_reload(storage, sample_blocks):
    store = _store(storage, sample_blocks)
    store.update("sleep", {"end_minute": 450})
    reloaded = BlockStore(storage, default_blocks)
    assert reloaded.get("sleep").end_minute == 450


def test_defaults_not_shared_between_stores():
    a = BlockStore(MemoryStorage(), default_blocks)
    a.update("student-school", {"title": "Uni"})
    b = BlockStore(MemoryStorage(), default_blocks)
    assert b.get("student-school").title == "School"
