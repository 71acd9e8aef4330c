# tests/io/test_segment_store.py
import json

import pytest

from route_mesh.app.segments import SegmentRepository
from route_mesh.domain.hooks import NoopHooks
from route_mesh.io.segment_store import JsonFileStore, MemoryStore


def test_memory_store_copies_initial_data():
    initial = {"a": 1}
    store = MemoryStore(initial)
    store.set("b", 2)
    assert initial == {"a": 1}
    assert (store.get("a"), store.get("b"), store.get("c")) == (1, 2, None)
    store.delete("a")
    store.delete("missing")
    assert store.get("a") is None


def test_json_file_store_round_trip(tmp_path):
    path = tmp_path / "nested" / "store.json"
    store = JsonFileStore(path)
    assert store.get("saved_paths") is None

    store.set("saved_paths", [{"label": "x"}])
    store.set("other", True)
    assert json.loads(path.read_text()) == {"saved_paths": [{"label": "x"}], "other": True}

    again = JsonFileStore(path)
    assert again.get("saved_paths") == [{"label": "x"}]
    again.delete("saved_paths")
    assert json.loads(path.read_text()) == {"other": True}
    assert list(tmp_path.joinpath("nested").glob("*.tmp")) == []


def test_json_file_store_ignores_non_object_files(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("[1, 2, 3]")
    store = JsonFileStore(path)
    assert store.get("saved_paths") is None
    store.set("k", "v")
    assert json.loads(path.read_text()) == {"k": "v"}


class RecordingHooks(NoopHooks):
    def __init__(self):
        self.skipped = []

    def record_skipped(self, *, key, index, reason):
        self.skipped.append((key, index, reason))


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "store.json"
    path.write_text('{"saved_paths": [')
    hooks = RecordingHooks()
    store = JsonFileStore(path, hooks=hooks)

    assert store.get("saved_paths") is None
    assert hooks.skipped == [("saved_paths", None, "corrupt_store")]
    assert SegmentRepository(store).load() == []


def test_failed_write_leaves_no_temp_file(tmp_path):
    path = tmp_path / "store.json"
    store = JsonFileStore(path)
    store.set("k", "v")

    with pytest.raises(TypeError):
        store.set("bad", object())
    assert list(tmp_path.glob("*.tmp")) == []
    assert json.loads(path.read_text()) == {"k": "v"}
