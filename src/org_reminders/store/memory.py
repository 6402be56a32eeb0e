"""Dict-backed reminders store.

Keys are upper-case UUIDs. Every mutation stamps ``last_modified`` with the
current time; completing a reminder stamps ``completion_date``.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from ..errors import StoreError
from .base import ListRecord, ReminderRecord

logger = logging.getLogger(__name__)


def _new_key() -> str:
    return str(uuid.uuid4()).upper()


class InMemoryReminderStore:
    """Reminders store kept in process memory."""

    def __init__(self) -> None:
        self._lists: dict[str, ListRecord] = {}
        self._reminders: dict[str, ReminderRecord] = {}

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def create_list(self, title: str) -> ListRecord | None:
        record = ListRecord(key=_new_key(), title=title)
        self._lists[record.key] = record
        logger.debug("Created list %s (%s)", record.key, title)
        self._changed()
        return record

    def delete_list(self, key: str) -> ListRecord | None:
        record = self._lists.pop(key, None)
        if record is None:
            raise StoreError(f"List not found: {key}")
        for reminder_key in [
            k for k, r in self._reminders.items() if r.list_key == key
        ]:
            del self._reminders[reminder_key]
        self._changed()
        return record

    def lists(self) -> list[ListRecord]:
        return list(self._lists.values())

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    def create_reminder(
        self,
        title: str,
        notes: str | None,
        list_key: str,
        due_date: datetime | None,
        priority: int,
        url: str | None = None,
    ) -> ReminderRecord | None:
        owner = self._require_list(list_key)
        record = ReminderRecord(
            key=_new_key(),
            title=title,
            list_key=owner.key,
            list_title=owner.title,
            notes=notes,
            url=url,
            priority=priority,
            due_date=due_date,
            last_modified=datetime.now(),
        )
        self._reminders[record.key] = record
        self._changed()
        return record

    def update_reminder(
        self,
        key: str,
        list_key: str,
        title: str,
        notes: str | None,
        url: str | None,
        is_completed: bool,
        priority: int,
        due_date: datetime | None = None,
    ) -> ReminderRecord | None:
        current = self._require_reminder(key)
        owner = self._require_list(list_key)
        stamp = datetime.now()
        completion_date = current.completion_date
        if is_completed and not current.is_completed:
            completion_date = stamp
        elif not is_completed:
            completion_date = None
        record = current.model_copy(
            update={
                "title": title,
                "list_key": owner.key,
                "list_title": owner.title,
                "notes": notes,
                "url": url,
                "is_completed": is_completed,
                "priority": priority,
                "due_date": due_date,
                "completion_date": completion_date,
                "last_modified": stamp,
            }
        )
        self._reminders[key] = record
        self._changed()
        return record

    def delete_reminder(
        self, key: str, list_key: str
    ) -> ReminderRecord | None:
        record = self._require_reminder(key)
        if record.list_key != list_key:
            raise StoreError(
                f"Reminder {key} is not in list {list_key}"
            )
        del self._reminders[key]
        self._changed()
        return record

    def reminders(
        self, include_completed: bool = True
    ) -> list[ReminderRecord]:
        return [
            r
            for r in self._reminders.values()
            if include_completed or not r.is_completed
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_list(self, key: str) -> ListRecord:
        record = self._lists.get(key)
        if record is None:
            raise StoreError(f"List not found: {key}")
        return record

    def _require_reminder(self, key: str) -> ReminderRecord:
        record = self._reminders.get(key)
        if record is None:
            raise StoreError(f"Reminder not found: {key}")
        return record

    def _changed(self) -> None:
        """Hook called after every mutation."""
