"""Pydantic models for the reconciliation engine.

Defines the data contracts shared by the converter, the reconciler and the
reporter:

- ``CanonicalList`` / ``CanonicalItem``: the intermediate representation
  both the document side and the store side are converted to.
- ``Entity``: tagged union of the two, discriminated by ``kind``.
- ``SyncTarget`` / ``SyncVerb``: where an action is applied and what it is.
- ``SyncLogEntry``: one reported action with its entity payload.
- ``SyncResult``: outcome of one action.
- ``SyncReport``: aggregate results of a pass.
- ``PassState``: stages of a reconciliation pass.

Canonical entities are mutable so the engine can adopt store-assigned
identifiers in place; results and reports are frozen.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ..org.headline import Headline


class CanonicalList(BaseModel):
    """A list of reminders.

    Attributes:
        id: Store identifier; ``None`` until the store assigns one.
        title: List name.
        is_deleted: The document marks the list for deletion.
        origin: Document headline this entity was read from, if any.
    """

    kind: Literal["list"] = "list"
    id: str | None = None
    title: str
    is_deleted: bool = False
    origin: Headline | None = Field(default=None, exclude=True, repr=False)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CanonicalList):
            return NotImplemented
        return (self.id, self.title) == (other.id, other.title)

    def __hash__(self) -> int:
        return hash((self.id, self.title))

    @property
    def key(self) -> str | None:
        return self.id


class CanonicalItem(BaseModel):
    """A reminder.

    Attributes:
        title: Reminder text.
        list: Owning list.
        external_id: Store identifier; ``None`` until the store assigns one.
        priority: 0 (none), 1 (high), 5 (medium) or 9 (low).
        is_completed: Completion flag.
        is_deleted: The document marks the reminder for deletion.
        due_date: Due date, minute precision.
        completion_date: Completion date, minute precision.
        last_modified: Last modification, whole seconds.
        notes: Free-text notes, ``None`` when blank.
        hash: Content hash recorded at the last stamping.
        origin: Document headline this entity was read from, if any.
    """

    kind: Literal["item"] = "item"
    title: str
    list: CanonicalList
    external_id: str | None = None
    priority: int = 0
    is_completed: bool = False
    is_deleted: bool = False
    due_date: datetime | None = None
    completion_date: datetime | None = None
    last_modified: datetime | None = None
    notes: str | None = None
    hash: str | None = None
    origin: Headline | None = Field(default=None, exclude=True, repr=False)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def key(self) -> str | None:
        return self.external_id


Entity = Annotated[
    Union[CanonicalList, CanonicalItem], Field(discriminator="kind")
]


class SyncTarget(str, Enum):
    """Side an action is applied to."""

    DOCUMENT = "document"
    STORE = "store"

    @property
    def label(self) -> str:
        return "Org Mode" if self is SyncTarget.DOCUMENT else "Reminders"


class SyncVerb(str, Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    SYNC = "sync"


class PassState(str, Enum):
    """Stages of one reconciliation pass."""

    IDLE = "idle"
    FETCH_STORE = "fetch_store"
    FETCH_DOCUMENT = "fetch_document"
    RECONCILE = "reconcile"
    APPLY_DOCUMENT_MUTATIONS = "apply_document_mutations"


class SyncLogEntry(BaseModel):
    """One reported action.

    Attributes:
        target: Side the action applies to.
        verb: Action performed.
        entity: Entity payload after the action.
        timestamp: When the action was reported.
    """

    target: SyncTarget
    verb: SyncVerb
    entity: Entity
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}

    @property
    def key(self) -> str:
        return self.entity.key or ""

    def payload(self) -> dict[str, Any]:
        """JSON-ready dict of the entity, ``None`` fields dropped."""
        return self.entity.model_dump(mode="json", exclude_none=True)


class SyncResult(BaseModel):
    """Outcome of one action.

    Attributes:
        target: Side the action applies to.
        verb: Action performed (or attempted).
        kind: ``"list"`` or ``"item"``.
        key: Entity identifier, if known.
        title: Entity title.
        success: Whether the action succeeded.
        error: Error message if it failed.
    """

    target: SyncTarget
    verb: SyncVerb
    kind: Literal["list", "item"]
    key: str | None = None
    title: str = ""
    success: bool = True
    error: str | None = None

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for one pass.

    Attributes:
        mode: ``"once"``, ``"all"`` or ``"update-hash"``.
        dry_run: Whether actions were only planned.
        results: Individual action results in the order taken.
        started_at: ISO 8601 timestamp when the pass started.
        completed_at: ISO 8601 timestamp when the pass ended.
        state: Stage the pass was in when it ended.
        error: Pass-level failure, if the pass was aborted.
    """

    mode: str = "once"
    dry_run: bool = False
    results: list[SyncResult] = []
    started_at: str
    completed_at: str | None = None
    state: PassState = PassState.IDLE
    error: str | None = None

    model_config = {"frozen": True}

    def _select(self, target: SyncTarget, verb: SyncVerb) -> list[SyncResult]:
        return [
            r
            for r in self.results
            if r.target == target and r.verb == verb and r.success
        ]

    @property
    def added_document(self) -> list[SyncResult]:
        return self._select(SyncTarget.DOCUMENT, SyncVerb.ADD)

    @property
    def updated_document(self) -> list[SyncResult]:
        return self._select(SyncTarget.DOCUMENT, SyncVerb.UPDATE)

    @property
    def deleted_document(self) -> list[SyncResult]:
        return self._select(SyncTarget.DOCUMENT, SyncVerb.DELETE)

    @property
    def added_store(self) -> list[SyncResult]:
        return self._select(SyncTarget.STORE, SyncVerb.ADD)

    @property
    def updated_store(self) -> list[SyncResult]:
        return self._select(SyncTarget.STORE, SyncVerb.UPDATE)

    @property
    def deleted_store(self) -> list[SyncResult]:
        return self._select(SyncTarget.STORE, SyncVerb.DELETE)

    @property
    def errors(self) -> list[SyncResult]:
        return [r for r in self.results if not r.success]

    @property
    def ok(self) -> bool:
        return self.error is None and not self.errors

    def summary(self) -> str:
        """Format a human-readable summary of the pass."""
        lines = [
            f"Sync report ({self.mode})"
            + (" (dry run)" if self.dry_run else ""),
            f"  Added to document:     {len(self.added_document)}",
            f"  Updated in document:   {len(self.updated_document)}",
            f"  Deleted from document: {len(self.deleted_document)}",
            f"  Added to store:        {len(self.added_store)}",
            f"  Updated in store:      {len(self.updated_store)}",
            f"  Deleted from store:    {len(self.deleted_store)}",
            f"  Errors:                {len(self.errors)}",
            f"  Total:                 {len(self.results)}",
        ]
        return "\n".join(lines)
