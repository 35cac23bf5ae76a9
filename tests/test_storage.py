"""Tests for device-local storage"""

import json

from storefront.database import LocalStorage


def test_in_memory_storage_round_trip():
    storage = LocalStorage()
    storage.set_item("token", "abc")

    assert storage.get_item("token") == "abc"
    assert "token" in storage

    storage.remove_item("token")
    assert storage.get_item("token") is None


def test_removing_missing_key_is_noop():
    storage = LocalStorage()
    storage.remove_item("missing")
    assert storage.keys() == []


def test_file_storage_survives_restart(tmp_path):
    path = str(tmp_path / "state" / "storage.json")

    LocalStorage(path).set_item("cart", "[]")

    assert LocalStorage(path).get_item("cart") == "[]"
    with open(path, encoding="utf-8") as f:
        assert json.load(f) == {"cart": "[]"}


def test_unreadable_file_starts_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")

    storage = LocalStorage(str(path))

    assert storage.keys() == []


def test_non_object_file_starts_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")

    assert LocalStorage(str(path)).keys() == []


def test_clear_removes_everything(tmp_path):
    path = str(tmp_path / "storage.json")
    storage = LocalStorage(path)
    storage.set_item("token", "abc")
    storage.set_item("cart", "[]")

    storage.clear()

    assert LocalStorage(path).keys() == []
