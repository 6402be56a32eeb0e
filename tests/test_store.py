"""Tests for the bundled reminders store backends."""

from __future__ import annotations

import json
from datetime import datetime

import pytest

from org_reminders.errors import StoreError
from org_reminders.store import (
    InMemoryReminderStore,
    JsonFileReminderStore,
    create_store,
)


def _update(store, record, **changes):
    fields = {
        "list_key": record.list_key,
        "title": record.title,
        "notes": record.notes,
        "url": record.url,
        "is_completed": record.is_completed,
        "priority": record.priority,
        "due_date": record.due_date,
    }
    fields.update(changes)
    return store.update_reminder(record.key, **fields)


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class TestInMemoryStore:
    def test_create_list_and_reminder(self):
        store = InMemoryReminderStore()
        work = store.create_list("Work")
        due = datetime(2024, 1, 5, 9, 0)

        record = store.create_reminder("Write report", "n", work.key, due, 1)

        assert work.key == work.key.upper()
        assert record.list_title == "Work"
        assert (record.due_date, record.priority) == (due, 1)
        assert record.last_modified is not None
        assert store.reminders() == [record]

    def test_unknown_list_raises(self):
        with pytest.raises(StoreError, match="List not found"):
            InMemoryReminderStore().create_reminder("x", None, "NOPE", None, 0)

    def test_completion_is_stamped_and_cleared(self):
        store = InMemoryReminderStore()
        work = store.create_list("Work")
        record = store.create_reminder("x", None, work.key, None, 0)

        done = _update(store, record, is_completed=True)
        assert done.completion_date is not None

        reopened = _update(store, done, is_completed=False)
        assert reopened.completion_date is None

    def test_filter_completed(self):
        store = InMemoryReminderStore()
        work = store.create_list("Work")
        open_one = store.create_reminder("open", None, work.key, None, 0)
        done = store.create_reminder("done", None, work.key, None, 0)
        _update(store, done, is_completed=True)

        assert store.reminders(include_completed=False) == [open_one]
        assert len(store.reminders()) == 2

    def test_delete_reminder_checks_list(self):
        store = InMemoryReminderStore()
        work = store.create_list("Work")
        home = store.create_list("Home")
        record = store.create_reminder("x", None, work.key, None, 0)

        with pytest.raises(StoreError, match="is not in list"):
            store.delete_reminder(record.key, home.key)
        assert store.delete_reminder(record.key, work.key) == record
        with pytest.raises(StoreError, match="Reminder not found"):
            store.delete_reminder(record.key, work.key)

    def test_delete_list_cascades(self):
        store = InMemoryReminderStore()
        work = store.create_list("Work")
        store.create_reminder("x", None, work.key, None, 0)

        assert store.delete_list(work.key) == work
        assert store.lists() == []
        assert store.reminders() == []


# ---------------------------------------------------------------------------
# JSON file store
# ---------------------------------------------------------------------------


class TestJsonFileStore:
    def test_missing_file_starts_empty(self, tmp_path):
        store = JsonFileReminderStore(tmp_path / "store.json")
        assert store.lists() == []
        assert not (tmp_path / "store.json").exists()

    def test_mutations_persist(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        store = JsonFileReminderStore(path)
        work = store.create_list("Work")
        record = store.create_reminder(
            "x", "notes", work.key, datetime(2024, 1, 5, 9, 0), 5
        )

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["version"] == 1
        assert [x["title"] for x in data["lists"]] == ["Work"]

        reloaded = JsonFileReminderStore(path)
        assert reloaded.lists() == [work]
        assert reloaded.reminders() == [record]
        assert list(path.parent.glob("*.tmp")) == []

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError, match="Cannot read store"):
            JsonFileReminderStore(path)

    def test_invalid_record_raises(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"lists": [{"key": "L1"}]}))
        with pytest.raises(StoreError):
            JsonFileReminderStore(path)


class TestCreateStore:
    def test_memory(self):
        assert isinstance(create_store("memory"), InMemoryReminderStore)

    def test_json(self, tmp_path):
        store = create_store("json", tmp_path / "s.json")
        assert isinstance(store, JsonFileReminderStore)

    def test_json_without_path(self):
        with pytest.raises(ValueError, match="needs a store path"):
            create_store("json")

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown store backend"):
            create_store("sqlite")
