"""Tests for oqloq/storage.py and oqloq/fileio.py: storage port and record helpers."""

import json

import pytest

from oqloq import fileio
from oqloq.fileio import read_yaml, remove_file, replace_atomic, write_yaml_atomic
from oqloq.storage import (
    ALL_KEYS,
    BLOCKS_KEY,
    POMODORO_SETTINGS_KEY,
    FileStorage,
    MemoryStorage,
    clear_all,
    read_record,
    write_record,
)


class BrokenStorage(MemoryStorage):
    def get_item(self, key):
        raise OSError("disk gone")


def test_memory_storage_roundtrip():
    s = MemoryStorage()
    assert s.get_item("k") is None
    s.set_item("k", "v")
    assert s.get_item("k") == "v"
    s.remove_item("k")
    s.remove_item("k")
    assert s.get_item("k") is None


def test_file_storage_roundtrip(tmp_path):
    s = FileStorage(tmp_path / "data")
    assert s.get_item(BLOCKS_KEY) is None
    s.set_item(BLOCKS_KEY, '[{"a": "ü"}]')
    assert (tmp_path / "data" / f"{BLOCKS_KEY}.json").exists()
    assert s.get_item(BLOCKS_KEY) == '[{"a": "ü"}]'
    s.remove_item(BLOCKS_KEY)
    assert s.get_item(BLOCKS_KEY) is None


def test_file_storage_rejects_path_keys(tmp_path):
    s = FileStorage(tmp_path)
    with pytest.raises(ValueError):
        s.set_item("../escape", "x")


def test_file_storage_leaves_no_temp_files(tmp_path):
    s = FileStorage(tmp_path)
    s.set_item(BLOCKS_KEY, "[]")
    s.set_item(BLOCKS_KEY, "[1]")
    assert [p.name for p in tmp_path.iterdir()] == [f"{BLOCKS_KEY}.json"]


def test_file_storage_write_failure_propagates_and_cleans_up(tmp_path, monkeypatch):
    def fail(src, dst):
        raise OSError("read-only")

    s = FileStorage(tmp_path)
    monkeypatch.setattr(fileio.os, "replace", fail)
    with pytest.raises(OSError):
        s.set_item(BLOCKS_KEY, "[]")
    assert list(tmp_path.iterdir()) == []


def test_read_record_undecodable_file_uses_default(tmp_path, caplog):
    (tmp_path / f"{BLOCKS_KEY}.json").write_bytes(b"\xff\xfe[]")
    with caplog.at_level("WARNING", logger="oqloq.storage"):
        assert read_record(FileStorage(tmp_path), BLOCKS_KEY, list, lambda: ["default"]) == ["default"]
    assert "Could not read oqlock_blocks" in caplog.text


@pytest.mark.parametrize(
    "raw",
    [
        "Infinity",
        '[{"id": "a", "startMinute": 1e400, "endMinute": 5}]',
        "[" * 100000 + "]" * 100000,
        '"just a string"',
        "42",
    ],
)
def test_read_record_hostile_values_use_default(raw):
    from oqloq.models import blocks_from_list

    s = MemoryStorage({BLOCKS_KEY: raw})
    assert read_record(s, BLOCKS_KEY, blocks_from_list, lambda: ["default"]) == ["default"]


def test_read_record_missing_uses_default():
    assert read_record(MemoryStorage(), "x", list, lambda: ["default"]) == ["default"]


def test_read_record_blank_uses_default():
    s = MemoryStorage({"x": "  "})
    assert read_record(s, "x", list, lambda: ["default"]) == ["default"]


def test_read_record_invalid_json_logs_warning(caplog):
    s = MemoryStorage({"x": "{oops"})
    with caplog.at_level("WARNING", logger="oqloq.storage"):
        assert read_record(s, "x", list, lambda: []) == []
    assert "Corrupt record under x" in caplog.text


def test_read_record_parse_error_uses_default():
    def parse(data):
        return data["missing"]

    s = MemoryStorage({"x": "{}"})
    assert read_record(s, "x", parse, lambda: "fallback") == "fallback"


def test_read_record_unreadable_storage():
    assert read_record(BrokenStorage(), "x", list, lambda: []) == []


def test_write_record_is_json():
    s = MemoryStorage()
    write_record(s, "x", {"name": "Café"})
    assert json.loads(s.get_item("x")) == {"name": "Café"}
    assert "Café" in s.get_item("x")


def test_clear_all():
    s = MemoryStorage({k: "[]" for k in ALL_KEYS})
    s.set_item("unrelated", "1")
    clear_all(s)
    assert s.items == {"unrelated": "1"}


def test_pomodoro_key_name():
    assert POMODORO_SETTINGS_KEY == "pomodoroSettings"


def test_yaml_roundtrip(tmp_path):
    path = tmp_path / "nested" / "settings.yaml"
    write_yaml_atomic(path, {"timezone": "Europe/Paris", "dial": {"thickness": 30}})
    assert read_yaml(path) == {"timezone": "Europe/Paris", "dial": {"thickness": 30}}


def test_read_yaml_missing_or_not_a_mapping(tmp_path):
    assert read_yaml(tmp_path / "none.yaml") == {}
    path = tmp_path / "list.yaml"
    replace_atomic(path, "- a\n- b\n")
    assert read_yaml(path) == {}


def test_remove_file(tmp_path):
    path = tmp_path / "f.txt"
    replace_atomic(path, "x")
    assert remove_file(path) is True
    assert remove_file(path) is False
