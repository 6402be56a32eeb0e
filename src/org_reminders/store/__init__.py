"""Reminders store collaborator: contract and bundled backends."""

from ..errors import StoreError
from .base import ListRecord, ReminderRecord, ReminderStore
from .json_store import JsonFileReminderStore
from .memory import InMemoryReminderStore


def create_store(backend: str, path=None) -> ReminderStore:
    """Build a store backend by name.

    Args:
        backend: ``"json"`` or ``"memory"``.
        path: Store file for the ``json`` backend.

    Raises:
        ValueError: On an unknown backend or a ``json`` backend without a
            path.
    """
    if backend == "memory":
        return InMemoryReminderStore()
    if backend == "json":
        if path is None:
            raise ValueError("The json store backend needs a store path")
        return JsonFileReminderStore(path)
    raise ValueError(f"Unknown store backend: {backend!r}")


__all__ = [
    "InMemoryReminderStore",
    "JsonFileReminderStore",
    "ListRecord",
    "ReminderRecord",
    "ReminderStore",
    "StoreError",
    "create_store",
]
