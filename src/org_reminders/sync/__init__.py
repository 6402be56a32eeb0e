"""Two-way sync between an Org outline and a reminders store."""

from .converter import ModelConverter
from .engine import SyncEngine
from .hashing import compute_hash, modified
from .models import (
    CanonicalItem,
    CanonicalList,
    PassState,
    SyncLogEntry,
    SyncReport,
    SyncResult,
    SyncTarget,
    SyncVerb,
)
from .reconcile import ItemAdapter, ListAdapter, Reconciler
from .reporter import SyncLogger
from .scheduler import SyncScheduler

__all__ = [
    "CanonicalItem",
    "CanonicalList",
    "ItemAdapter",
    "ListAdapter",
    "ModelConverter",
    "PassState",
    "Reconciler",
    "SyncEngine",
    "SyncLogEntry",
    "SyncLogger",
    "SyncReport",
    "SyncResult",
    "SyncScheduler",
    "SyncTarget",
    "SyncVerb",
    "compute_hash",
    "modified",
]
