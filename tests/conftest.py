"""Shared pytest fixtures for org-reminders tests."""

from __future__ import annotations

import textwrap
import uuid
from datetime import datetime
from typing import Dict, List, Optional

import pytest

from org_reminders.errors import StoreError
from org_reminders.org.document import OrgDocument
from org_reminders.store.base import ListRecord, ReminderRecord

SAMPLE_ORG = textwrap.dedent(
    """\
    * Work [1/2]
    :PROPERTIES:
    :LIST-ID: L1
    :END:
    ** TODO [#A] Write report
    SCHEDULED: <2024-01-05 Fri 09:00>
    :PROPERTIES:
    :EXTERNAL-ID: X1
    :LAST-MODIFIED: 2024-01-02 10:00:00
    :END:
    Quarterly numbers
    ** DONE Call Bob
    CLOSED: [2024-01-03 Wed 12:30]
    :PROPERTIES:
    :EXTERNAL-ID: X2
    :LAST-MODIFIED: 2024-01-03 12:30:00
    :END:
    * Home [0/1]
    :PROPERTIES:
    :LIST-ID: L2
    :END:
    ** TODO Buy milk
    :PROPERTIES:
    :EXTERNAL-ID: X3
    :LAST-MODIFIED: 2024-01-01 08:00:00
    :END:
    """
)


class FakeReminderStore:
    """Minimal ReminderStore replacement for testing.

    Keeps records in dicts, stamps every mutation with ``clock`` and
    records each call in ``calls``.
    """

    def __init__(self, clock: Optional[datetime] = None) -> None:
        self.clock = clock or datetime(2024, 6, 1, 12, 0, 0)
        self.list_records: Dict[str, ListRecord] = {}
        self.reminder_records: Dict[str, ReminderRecord] = {}
        self.calls: List[tuple] = []
        self.fail_on: set = set()

    # -- seeding helpers ---------------------------------------------------

    def add_list(self, key: str, title: str) -> ListRecord:
        record = ListRecord(key=key, title=title)
        self.list_records[key] = record
        return record

    def add_reminder(self, key: str, list_key: str, title: str, **fields):
        fields.setdefault("last_modified", self.clock)
        record = ReminderRecord(
            key=key,
            title=title,
            list_key=list_key,
            list_title=self.list_records[list_key].title,
            **fields,
        )
        self.reminder_records[key] = record
        return record

    def _check(self, name: str) -> None:
        if name in self.fail_on:
            raise StoreError(f"{name} failed")

    # -- ReminderStore protocol -------------------------------------------

    def create_list(self, title: str) -> Optional[ListRecord]:
        self.calls.append(("create_list", title))
        self._check("create_list")
        return self.add_list(f"L-{uuid.uuid4().hex[:8].upper()}", title)

    def delete_list(self, key: str) -> Optional[ListRecord]:
        self.calls.append(("delete_list", key))
        self._check("delete_list")
        for reminder_key in [
            k for k, r in self.reminder_records.items() if r.list_key == key
        ]:
            del self.reminder_records[reminder_key]
        return self.list_records.pop(key, None)

    def lists(self) -> List[ListRecord]:
        return list(self.list_records.values())

    def create_reminder(
        self, title, notes, list_key, due_date, priority, url=None
    ) -> Optional[ReminderRecord]:
        self.calls.append(("create_reminder", title, list_key))
        self._check("create_reminder")
        return self.add_reminder(
            f"R-{uuid.uuid4().hex[:8].upper()}",
            list_key,
            title,
            notes=notes,
            due_date=due_date,
            priority=priority,
        )

    def update_reminder(
        self,
        key,
        list_key,
        title,
        notes,
        url,
        is_completed,
        priority,
        due_date=None,
    ) -> Optional[ReminderRecord]:
        self.calls.append(("update_reminder", key, title))
        self._check("update_reminder")
        current = self.reminder_records.get(key)
        if current is None:
            return None
        record = current.model_copy(
            update={
                "title": title,
                "list_key": list_key,
                "notes": notes,
                "is_completed": is_completed,
                "priority": priority,
                "due_date": due_date,
                "last_modified": self.clock,
            }
        )
        self.reminder_records[key] = record
        return record

    def delete_reminder(self, key, list_key) -> Optional[ReminderRecord]:
        self.calls.append(("delete_reminder", key, list_key))
        self._check("delete_reminder")
        return self.reminder_records.pop(key, None)

    def reminders(self, include_completed: bool = True) -> List[ReminderRecord]:
        return [
            r
            for r in self.reminder_records.values()
            if include_completed or not r.is_completed
        ]

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def sample_org() -> str:
    return SAMPLE_ORG


@pytest.fixture
def sample_document() -> OrgDocument:
    return OrgDocument.load(SAMPLE_ORG)


@pytest.fixture
def org_file(tmp_path):
    """Write SAMPLE_ORG to a temp file and return its path."""
    path = tmp_path / "reminders.org"
    path.write_text(SAMPLE_ORG, encoding="utf-8")
    return path


@pytest.fixture
def fake_store() -> FakeReminderStore:
    return FakeReminderStore()


@pytest.fixture
def seeded_store() -> FakeReminderStore:
    """A store agreeing with SAMPLE_ORG (same keys, titles and times)."""
    store = FakeReminderStore()
    store.add_list("L1", "Work")
    store.add_list("L2", "Home")
    store.add_reminder(
        "X1",
        "L1",
        "Write report",
        priority=1,
        notes="Quarterly numbers",
        due_date=datetime(2024, 1, 5, 9, 0),
        last_modified=datetime(2024, 1, 2, 10, 0, 0),
    )
    store.add_reminder(
        "X2",
        "L1",
        "Call Bob",
        is_completed=True,
        completion_date=datetime(2024, 1, 3, 12, 30),
        last_modified=datetime(2024, 1, 3, 12, 30, 0),
    )
    store.add_reminder(
        "X3",
        "L2",
        "Buy milk",
        last_modified=datetime(2024, 1, 1, 8, 0, 0),
    )
    return store
