# tests/test_store.py
"""
Tests for persistent stores.
"""

import json
import threading

from versefeed.services.feed import JsonFileStore, MemoryStore
from versefeed.services.feed.store import load_json, save_json


def test_json_file_store_round_trip(tmp_path):
    store = JsonFileStore(str(tmp_path / "data"))
    assert store.get("missing") is None

    store.set("selected-edition-id", "de4e12af7f28f599-02")
    store.set("liked-verse-ids", json.dumps({"JHN.3.16": True}))

    reopened = JsonFileStore(str(tmp_path / "data"))
    assert reopened.get("selected-edition-id") == "de4e12af7f28f599-02"
    assert json.loads(reopened.get("liked-verse-ids")) == {"JHN.3.16": True}
    assert list((tmp_path / "data").glob(".*.tmp")) == []


def test_json_file_store_tolerates_corrupt_file(tmp_path):
    store = JsonFileStore(str(tmp_path))
    store.path.write_text("{broken", encoding="utf-8")

    assert store.get("anything") is None
    store.set("k", "v")
    assert store.get("k") == "v"


def test_load_json_defaults():
    store = MemoryStore({"good": '{"a": true}', "bad": "nope", "wrong": "[1, 2]"})
    assert load_json(store, "good", {}) == {"a": True}
    assert load_json(store, "bad", {}) == {}
    assert load_json(store, "wrong", {}) == {}
    assert load_json(store, "missing", []) == []


def test_save_json_keeps_unicode():
    store = MemoryStore()
    save_json(store, "k", [{"text": "Ἐν ἀρχῇ ἦν ὁ λόγος"}])
    assert "λόγος" in store.get("k")


def test_concurrent_writers_keep_every_key(tmp_path):
    store = JsonFileStore(str(tmp_path))
    other = JsonFileStore(str(tmp_path))
    errors = []

    def write(target, prefix):
        try:
            for n in range(200):
                target.set(f"{prefix}-{n}", str(n))
        except Exception as e:
            errors.append(e)

    threads = [
        threading.Thread(target=write, args=(store, "likes")),
        threading.Thread(target=write, args=(other, "snapshots")),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert len(data) == 400
    assert data["likes-199"] == "199"
    assert data["snapshots-0"] == "0"
    assert list(tmp_path.glob(".*.tmp")) == []
