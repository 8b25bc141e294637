from __future__ import annotations

import sqlite3

import pytest

from equipment_reservation_api.app.core.config import settings
from equipment_reservation_api.app.core.db import EntityStore, get_store
from equipment_reservation_api.app.core.exceptions import StaleWriteError, StorageCorruptionError


def _corrupt(db_file, key, value):
    with sqlite3.connect(db_file) as conn:
        conn.execute("UPDATE collections SET value = ? WHERE key = ?", (value, key))


def test_first_load_seeds_and_persists_default(store_path):
    store = EntityStore(str(store_path))
    calls = []

    def default():
        calls.append(1)
        return [{"id": "a"}]

    assert store.load("things", default) == [{"id": "a"}]
    assert store.load("things", default) == [{"id": "a"}]
    # seeded once, then read back from storage
    assert len(calls) == 1
    assert store.version("things") == 1


def test_missing_collection_without_default_is_empty(store_path):
    store = EntityStore(str(store_path))
    assert store.load("nothing") == []


def test_save_overwrites_whole_collection(store_path):
    store = EntityStore(str(store_path))
    store.load("things", [{"id": "a"}, {"id": "b"}])
    version = store.save("things", [{"id": "c"}])
    assert version == 2
    assert store.load("things") == [{"id": "c"}]

    reopened = EntityStore(str(store_path))
    assert reopened.load("things") == [{"id": "c"}]


def test_stale_write_is_rejected(store_path):
    store = EntityStore(str(store_path))
    records, version = store.load_versioned("things", [{"id": "a"}])
    store.save("things", records + [{"id": "b"}], expected_version=version)

    with pytest.raises(StaleWriteError) as excinfo:
        store.save("things", records + [{"id": "x"}], expected_version=version)
    assert excinfo.value.expected == version
    assert excinfo.value.actual == version + 1
    assert store.load("things") == [{"id": "a"}, {"id": "b"}]


def test_corrupted_json_raises(store_path):
    store = EntityStore(str(store_path))
    store.load("things", [{"id": "a"}])
    _corrupt(store_path, "things", "{not json")

    with pytest.raises(StorageCorruptionError):
        store.load("things", [{"id": "a"}])


def test_non_array_value_is_corruption(store_path):
    store = EntityStore(str(store_path))
    store.load("things", [])
    _corrupt(store_path, "things", '{"id": "a"}')

    with pytest.raises(StorageCorruptionError):
        store.load("things")


def test_corruption_can_reset_to_default(store_path, monkeypatch):
    monkeypatch.setattr(settings, "reset_on_corruption", True)
    store = EntityStore(str(store_path))
    store.load("things", [{"id": "a"}])
    store.save("things", [{"id": "b"}])
    _corrupt(store_path, "things", "garbage")

    assert store.load("things", [{"id": "a"}]) == [{"id": "a"}]
    assert store.load("things") == [{"id": "a"}]


def test_transaction_rolls_back_every_write(store_path):
    store = EntityStore(str(store_path))
    store.load("left", [{"id": 1}])
    store.load("right", [{"id": 2}])

    with pytest.raises(RuntimeError):
        with store.transaction() as uow:
            uow.save("left", [])
            uow.save("right", [])
            raise RuntimeError("second write failed")

    assert store.load("left") == [{"id": 1}]
    assert store.load("right") == [{"id": 2}]


def test_get_store_follows_configured_path(store_path):
    store = get_store()
    assert store.db_path == str(store_path)
    assert get_store() is store
