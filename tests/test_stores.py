"""
Tests for task store adapters (task_sync/stores/).
"""

import json
from datetime import date

import pytest

from task_sync.core.config import StoreConfig
from task_sync.core.exceptions import ApplyError, ConfigurationError, StoreError
from task_sync.core.models import CreateRequest, UpdateRequest
from task_sync.stores import InMemoryTaskStore, JsonFileTaskStore, PaginatedTaskStore, build_store
from task_sync.utils.io import locked_json, read_json, write_json_atomic

from .conftest import T0, FakeClock, task


def write_tasks(path, tasks):
    path.write_text(json.dumps({"tasks": tasks}))


class TestJsonFileTaskStore:
    """Test suite for JsonFileTaskStore."""

    def test_fetch_all_walks_every_page(self, tmp_path):
        path = tmp_path / "tasks.json"
        write_tasks(path, [{"id": str(n), "title": f"Task {n}"} for n in range(5)])
        store = JsonFileTaskStore(str(path), page_size=2)

        records = store.fetch_all()

        assert [record.id for record in records] == ["0", "1", "2", "3", "4"]

    def test_page_cursors(self, tmp_path):
        path = tmp_path / "tasks.json"
        write_tasks(path, [{"id": str(n), "title": f"Task {n}"} for n in range(3)])
        store = JsonFileTaskStore(str(path), page_size=2)

        first, cursor = store.fetch_page(None)
        second, end = store.fetch_page(cursor)

        assert len(first) == 2
        assert cursor == "2"
        assert [record.id for record in second] == ["2"]
        assert end is None

    def test_deleted_entries_are_skipped(self, tmp_path):
        path = tmp_path / "tasks.json"
        write_tasks(path, [
            {"id": "1", "title": "Keep", "status": "done"},
            {"id": "2", "title": "Gone", "deleted": True},
        ])

        records = JsonFileTaskStore(str(path)).fetch_all()

        assert [(record.title, record.completed) for record in records] == [("Keep", True)]

    def test_missing_file_is_empty(self, tmp_path):
        assert JsonFileTaskStore(str(tmp_path / "absent.json")).fetch_all() == []

    def test_malformed_file_raises_store_error(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text("{oops")

        with pytest.raises(StoreError):
            JsonFileTaskStore(str(path)).fetch_all()

    def test_wrong_shape_raises_store_error(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"tasks": "nope"}))

        with pytest.raises(StoreError, match="'tasks' list"):
            JsonFileTaskStore(str(path)).fetch_all()

    def test_create_persists_with_timestamp(self, tmp_path):
        path = tmp_path / "tasks.json"
        store = JsonFileTaskStore(str(path), clock=FakeClock())

        created = store.create(CreateRequest(title="Buy milk", due=date(2024, 5, 3), notes="2%"))

        assert created.id
        assert created.last_modified == T0
        on_disk = json.loads(path.read_text())["tasks"]
        assert on_disk[0]["title"] == "Buy milk"
        assert on_disk[0]["due"] == "2024-05-03"
        assert store.fetch_all() == [created]

    def test_update_applies_only_set_fields(self, tmp_path):
        path = tmp_path / "tasks.json"
        write_tasks(path, [{"id": "1", "title": "X", "notes": "keep", "completed": False}])
        clock = FakeClock()
        store = JsonFileTaskStore(str(path), clock=clock)

        updated = store.update("1", UpdateRequest(completed=True))

        assert updated.completed is True
        assert updated.notes == "keep"
        assert updated.last_modified == clock()
        assert json.loads(path.read_text())["tasks"][0]["completed"] is True

    def test_update_unknown_id(self, tmp_path):
        path = tmp_path / "tasks.json"
        write_tasks(path, [{"id": "1", "title": "X"}])

        with pytest.raises(ApplyError):
            JsonFileTaskStore(str(path)).update("404", UpdateRequest(completed=True))

    def test_repeated_cursor_is_detected(self):
        class LoopingStore(PaginatedTaskStore):
            def fetch_page(self, cursor):
                return [task("x")], "same"

            def create(self, request):
                raise NotImplementedError

            def update(self, record_id, request):
                raise NotImplementedError

        with pytest.raises(RuntimeError, match="repeated page cursor"):
            LoopingStore("loop").fetch_all()


class TestInMemoryTaskStore:
    def test_update_bumps_timestamp_and_merges(self):
        clock = FakeClock()
        store = InMemoryTaskStore("mem", clock=clock, records=[task("X", notes="n", id="1", ms=-5000)])

        updated = store.update("1", UpdateRequest(completed=True))

        assert updated.completed is True
        assert updated.notes == "n"
        assert updated.last_modified == clock()

    def test_update_unknown_id(self):
        with pytest.raises(ApplyError):
            InMemoryTaskStore("mem").update("missing", UpdateRequest(notes="x"))

    def test_lazy_listing_hides_notes(self):
        store = InMemoryTaskStore("mem", lazy_notes=True, records=[task("X", notes="body", id="1")])

        assert store.fetch_all()[0].notes == ""
        assert store.fetch_notes("1") == "body"


class TestBuildStore:
    def test_json_store(self, tmp_path):
        store = build_store(StoreConfig(name="Tracker", type="json", path=str(tmp_path / "t.json"),
                                        page_size=10, notes_max_length=500))

        assert isinstance(store, JsonFileTaskStore)
        assert store.name == "Tracker"
        assert store.page_size == 10
        assert store.notes_max_length == 500

    def test_memory_store(self):
        assert isinstance(build_store(StoreConfig(name="Scratch")), InMemoryTaskStore)

    def test_json_store_requires_path(self):
        with pytest.raises(ConfigurationError):
            build_store(StoreConfig(name="Tracker", type="json"))

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError):
            build_store(StoreConfig(name="X", type="carrier-pigeon"))


class TestLockedIO:
    """Test suite for task_sync/utils/io.py."""

    def test_write_then_read(self, tmp_path):
        path = tmp_path / "doc.json"
        write_json_atomic(str(path), {"a": 1})
        assert read_json(str(path)) == {"a": 1}

    def test_read_missing_returns_default(self, tmp_path):
        assert read_json(str(tmp_path / "missing.json"), default={"tasks": []}) == {"tasks": []}

    def test_locked_json_writes_back(self, tmp_path):
        path = tmp_path / "doc.json"
        with locked_json(str(path), default={"n": 0}) as holder:
            holder[0]["n"] += 1

        assert read_json(str(path)) == {"n": 1}

    def test_locked_json_discards_on_error(self, tmp_path):
        path = tmp_path / "doc.json"
        write_json_atomic(str(path), {"n": 0})

        with pytest.raises(KeyError):
            with locked_json(str(path)) as holder:
                holder[0]["n"] = 99
                raise KeyError("abort")

        assert read_json(str(path)) == {"n": 0}
