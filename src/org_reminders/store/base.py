"""Store collaborator contract.

The reconciler reaches the reminders store only through ``ReminderStore``.
Records cross the boundary as pydantic models; a failed call either
returns ``None`` or raises ``StoreError``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from pydantic import BaseModel


class ListRecord(BaseModel):
    """A list as the store reports it."""

    key: str
    title: str


class ReminderRecord(BaseModel):
    """A reminder as the store reports it.

    Attributes:
        key: Store identifier.
        title: Reminder text.
        list_key: Identifier of the owning list.
        list_title: Title of the owning list.
        notes: Free-text notes.
        url: Optional link attached to the reminder.
        priority: 0 (none), 1 (high), 5 (medium) or 9 (low).
        is_completed: Completion flag.
        due_date: Due date.
        completion_date: When the reminder was completed.
        last_modified: Last modification time.
    """

    key: str
    title: str
    list_key: str
    list_title: str = ""
    notes: str | None = None
    url: str | None = None
    priority: int = 0
    is_completed: bool = False
    due_date: datetime | None = None
    completion_date: datetime | None = None
    last_modified: datetime | None = None


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ReminderStore(Protocol):
    """Protocol that every reminders backend must satisfy."""

    def create_list(self, title: str) -> ListRecord | None:
        ...  # pragma: no cover

    def delete_list(self, key: str) -> ListRecord | None:
        """Delete a list and every reminder in it."""
        ...  # pragma: no cover

    def lists(self) -> list[ListRecord]:
        ...  # pragma: no cover

    def create_reminder(
        self,
        title: str,
        notes: str | None,
        list_key: str,
        due_date: datetime | None,
        priority: int,
        url: str | None = None,
    ) -> ReminderRecord | None:
        ...  # pragma: no cover

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
        """Overwrite a reminder's fields.

        ``due_date`` replaces the stored due date; ``None`` clears it.
        """
        ...  # pragma: no cover

    def delete_reminder(
        self, key: str, list_key: str
    ) -> ReminderRecord | None:
        ...  # pragma: no cover

    def reminders(
        self, include_completed: bool = True
    ) -> list[ReminderRecord]:
        ...  # pragma: no cover
