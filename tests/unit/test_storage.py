"""Unit tests for local key-value storage."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from relaychat.exceptions import StorageError
from relaychat.storage import JsonFileStorage, MemoryStorage


def _read_json(path: Path) -> dict:
    with open(path, encoding="utf-8") as handle:
        return json.load(handle)


class TestMemoryStorage:
    def test_set_get_remove(self):
        storage = MemoryStorage()

        storage.set_item("k", "v")
        assert storage.get_item("k") == "v"

        storage.remove_item("k")
        assert storage.get_item("k") is None

    def test_remove_missing_key_is_ignored(self):
        MemoryStorage().remove_item("missing")

    def test_clear(self):
        storage = MemoryStorage({"a": "1", "b": "2"})

        storage.clear()

        assert storage.get_item("a") is None
        assert storage.get_item("b") is None


class TestJsonFileStorage:
    def test_missing_file_reads_as_empty(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "absent.json")

        assert storage.get_item("k") is None
        assert not (tmp_path / "absent.json").exists()

    def test_values_persist_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "storage.json"
        JsonFileStorage(path).set_item("chats", "[]")

        assert JsonFileStorage(path).get_item("chats") == "[]"
        assert _read_json(path) == {"chats": "[]"}

    def test_set_preserves_other_keys(self, tmp_path):
        path = tmp_path / "storage.json"
        storage = JsonFileStorage(path)

        storage.set_item("a", "1")
        storage.set_item("b", "2")

        assert _read_json(path) == {"a": "1", "b": "2"}

    def test_remove_item(self, tmp_path):
        path = tmp_path / "storage.json"
        storage = JsonFileStorage(path)
        storage.set_item("a", "1")
        storage.set_item("b", "2")

        storage.remove_item("a")

        assert _read_json(path) == {"b": "2"}

    def test_corrupt_file_raises_storage_error(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("not json", encoding="utf-8")

        with pytest.raises(StorageError, match="Failed to read"):
            JsonFileStorage(path).get_item("k")

    def test_non_object_file_raises_storage_error(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(StorageError, match="JSON object"):
            JsonFileStorage(path).get_item("k")

    def test_non_string_value_raises_storage_error(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text(json.dumps({"k": [1]}), encoding="utf-8")

        with pytest.raises(StorageError, match="not a string"):
            JsonFileStorage(path).get_item("k")

    def test_set_overwrites_corrupt_file(self, tmp_path, caplog):
        path = tmp_path / "storage.json"
        path.write_text("not json", encoding="utf-8")

        JsonFileStorage(path).set_item("k", "v")

        assert _read_json(path) == {"k": "v"}
        assert "Overwriting unreadable storage file" in caplog.text

    def test_clear_removes_file(self, tmp_path):
        path = tmp_path / "storage.json"
        storage = JsonFileStorage(path)
        storage.set_item("k", "v")

        storage.clear()

        assert not path.exists()
        assert storage.get_item("k") is None
