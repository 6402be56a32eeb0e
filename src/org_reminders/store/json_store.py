"""Reminders store persisted to a JSON file.

Layout::

    {
      "version": 1,
      "lists": [{"key": ..., "title": ...}, ...],
      "reminders": [{"key": ..., "title": ..., ...}, ...]
    }

The file is rewritten after every mutation. ``_save()`` writes to a temp
file then calls ``os.replace()`` so readers never see partial data.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from ..errors import StoreError
from .base import ListRecord, ReminderRecord
from .memory import InMemoryReminderStore

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class JsonFileReminderStore(InMemoryReminderStore):
    """``InMemoryReminderStore`` backed by a JSON file.

    Args:
        path: Store file. Missing files start an empty store.

    Raises:
        StoreError: If the file exists but cannot be decoded.
    """

    def __init__(self, path: Path | str) -> None:
        super().__init__()
        self.path = Path(path).expanduser()
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            logger.info("Store file %s not found, starting empty", self.path)
            return
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
            lists = [ListRecord.model_validate(x) for x in data.get("lists", [])]
            reminders = [
                ReminderRecord.model_validate(x)
                for x in data.get("reminders", [])
            ]
        except (OSError, ValueError) as exc:
            raise StoreError(f"Cannot read store {self.path}: {exc}") from exc
        self._lists = {record.key: record for record in lists}
        self._reminders = {record.key: record for record in reminders}

    def _changed(self) -> None:
        self._save()

    def _save(self) -> None:
        data = {
            "version": STORE_VERSION,
            "lists": [r.model_dump(mode="json") for r in self._lists.values()],
            "reminders": [
                r.model_dump(mode="json") for r in self._reminders.values()
            ],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            # Clean up temp file on any failure.
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
