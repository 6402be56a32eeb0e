"""Content hashing for change detection.

The hash covers the fields a person edits in the outline: title, priority,
completion, deletion, due date and notes. It is stamped into the item's
``HASH`` property together with ``LAST-MODIFIED``, so an edit made while no
sync was running still gets a fresh modification time on the next pass.
"""

from __future__ import annotations

import hashlib

from ..org.enums import DateFormat
from .models import CanonicalItem


def _flag(value: bool) -> str:
    return "true" if value else "false"


def hash_input(item: CanonicalItem) -> str:
    """Canonical string the hash is computed over."""
    due = item.due_date.strftime(DateFormat.OTHER.value) if item.due_date else ""
    return "".join(
        [
            item.title,
            str(item.priority),
            _flag(item.is_completed),
            _flag(item.is_deleted),
            due,
            item.notes or "",
        ]
    )


def compute_hash(item: CanonicalItem) -> str:
    """SHA-256 hex digest of ``hash_input(item)``."""
    return hashlib.sha256(hash_input(item).encode("utf-8")).hexdigest()


def modified(item: CanonicalItem) -> str | None:
    """Return the new hash if *item* changed since it was stamped.

    Items never stamped count as changed.
    """
    current = compute_hash(item)
    if current == item.hash:
        return None
    return current
