"""Key-based reconciliation of document-side and store-side entities.

For one entity kind the ``Reconciler``:

1. Creates every document entity without a key in the store, then queues
   a document update that records the assigned key.
2. Queues a document delete for every keyed document entity missing from
   the store.
3. Resolves every pair present on both sides with ``sync_item()``.
4. Queues a document insert for every store entity missing from the
   document.

Store calls happen immediately; document edits are queued as
``DocumentMutation`` objects and applied in order by ``apply()``. Each
entity is isolated: a failing store call is recorded as a failed
``SyncResult`` and the pass moves on.

The per-kind behaviour lives in an ``EntityAdapter``. Lists carry no
modification clock, so a title mismatch always lets the store win; items
are resolved by the strictly later ``last_modified``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence

from ..errors import StoreError
from ..org.enums import PlanKey
from ..org.headline import Headline
from ..org.writer import OrgWriter
from ..store.base import ReminderStore
from .converter import ModelConverter
from .models import (
    CanonicalItem,
    CanonicalList,
    Entity,
    SyncResult,
    SyncTarget,
    SyncVerb,
)
from .reporter import SyncLogger

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Adapter protocol
# ---------------------------------------------------------------------------


class EntityAdapter(Protocol):
    """Capabilities the reconciler needs for one entity kind."""

    kind: str
    timestamped: bool

    def key(self, entity: Entity) -> str | None:
        ...  # pragma: no cover

    def last_modified(self, entity: Entity) -> datetime | None:
        ...  # pragma: no cover

    def differs(self, doc: Entity, store: Entity) -> bool:
        ...  # pragma: no cover

    def create_in_store(self, entity: Entity) -> Entity | None:
        ...  # pragma: no cover

    def update_in_store(
        self, entity: Entity, current: Entity
    ) -> Entity | None:
        """Push the document-side *entity* over the store-side *current*."""
        ...  # pragma: no cover

    def delete_in_store(self, entity: Entity) -> Entity | None:
        ...  # pragma: no cover

    def adopt(self, entity: Entity, created: Entity) -> None:
        """Copy the store-assigned key of *created* onto *entity*."""
        ...  # pragma: no cover

    def to_headline(self, entity: Entity) -> Headline:
        ...  # pragma: no cover

    def parent_headline(self, entity: Entity) -> Headline | None:
        ...  # pragma: no cover


class ListAdapter:
    """Lists: keyed by ``id``, no clock, compared by title."""

    kind = "list"
    timestamped = False

    def __init__(
        self, store: ReminderStore, converter: ModelConverter | None = None
    ) -> None:
        self.store = store
        self.converter = converter or ModelConverter()

    def key(self, entity: CanonicalList) -> str | None:
        return entity.id

    def last_modified(self, entity: CanonicalList) -> datetime | None:
        return None

    def differs(self, doc: CanonicalList, store: CanonicalList) -> bool:
        return doc.title != store.title

    def create_in_store(self, entity: CanonicalList) -> CanonicalList | None:
        record = self.store.create_list(entity.title)
        return self.converter.from_list_record(record) if record else None

    def update_in_store(
        self, entity: CanonicalList, current: CanonicalList
    ) -> CanonicalList | None:
        # Never called: without a clock the document side never wins.
        raise StoreError("Lists are never updated in the store")

    def delete_in_store(self, entity: CanonicalList) -> CanonicalList | None:
        record = self.store.delete_list(entity.id or "")
        return self.converter.from_list_record(record) if record else None

    def adopt(self, entity: CanonicalList, created: CanonicalList) -> None:
        entity.id = created.id

    def to_headline(self, entity: CanonicalList) -> Headline:
        return self.converter.to_list_headline(entity)

    def parent_headline(self, entity: CanonicalList) -> Headline | None:
        return None


def _has_unparsed_schedule(entity: CanonicalItem) -> bool:
    """Whether the source headline carries a SCHEDULED plan, parsed or not."""
    origin = entity.origin
    return origin is not None and PlanKey.SCHEDULED.value in origin.plans


class ItemAdapter:
    """Reminders: keyed by ``external_id``, resolved by ``last_modified``."""

    kind = "item"
    timestamped = True

    def __init__(
        self, store: ReminderStore, converter: ModelConverter | None = None
    ) -> None:
        self.store = store
        self.converter = converter or ModelConverter()

    def key(self, entity: CanonicalItem) -> str | None:
        return entity.external_id

    def last_modified(self, entity: CanonicalItem) -> datetime | None:
        return entity.last_modified

    def differs(self, doc: CanonicalItem, store: CanonicalItem) -> bool:
        return doc.hash != store.hash

    def create_in_store(self, entity: CanonicalItem) -> CanonicalItem | None:
        if not entity.list.id:
            raise StoreError(
                f"List {entity.list.title!r} has no store identifier"
            )
        record = self.store.create_reminder(
            entity.title,
            entity.notes,
            entity.list.id,
            entity.due_date,
            entity.priority,
        )
        if record is not None and entity.is_completed:
            record = self.store.update_reminder(
                record.key,
                record.list_key,
                record.title,
                record.notes,
                record.url,
                True,
                record.priority,
                due_date=record.due_date,
            )
        return self.converter.from_reminder_record(record) if record else None

    def update_in_store(
        self, entity: CanonicalItem, current: CanonicalItem
    ) -> CanonicalItem | None:
        due_date = entity.due_date
        if due_date is None and _has_unparsed_schedule(entity):
            # Keep the store date rather than clearing it.
            due_date = current.due_date
        record = self.store.update_reminder(
            entity.external_id or "",
            entity.list.id or "",
            entity.title,
            entity.notes,
            None,
            entity.is_completed,
            entity.priority,
            due_date=due_date,
        )
        return self.converter.from_reminder_record(record) if record else None

    def delete_in_store(self, entity: CanonicalItem) -> CanonicalItem | None:
        record = self.store.delete_reminder(
            entity.external_id or "", entity.list.id or ""
        )
        return self.converter.from_reminder_record(record) if record else None

    def adopt(self, entity: CanonicalItem, created: CanonicalItem) -> None:
        entity.external_id = created.external_id

    def to_headline(self, entity: CanonicalItem) -> Headline:
        return self.converter.to_item_headline(entity)

    def parent_headline(self, entity: CanonicalItem) -> Headline | None:
        return self.converter.to_list_headline(entity.list)


# ---------------------------------------------------------------------------
# Document mutation queue
# ---------------------------------------------------------------------------


@dataclass
class DocumentMutation:
    """One queued document edit.

    Attributes:
        verb: ``ADD``, ``UPDATE`` or ``DELETE``.
        entity: Entity reported for the edit.
        headline: New field values (add and update).
        target: Existing headline to overwrite or remove.
        parent: Parent headline to insert under.
        occurrence: Which identity match to remove (duplicates).
    """

    verb: SyncVerb
    entity: Entity
    headline: Headline | None = None
    target: Headline | None = None
    parent: Headline | None = None
    occurrence: int = 0


# ---------------------------------------------------------------------------
# Reconciler
# ---------------------------------------------------------------------------


class Reconciler:
    """Decide and perform the actions that make two collections agree.

    Args:
        reporter: Action log every action is reported to.
        dry_run: Record planned actions without calling the store or
            editing the document.
    """

    def __init__(
        self, reporter: SyncLogger | None = None, dry_run: bool = False
    ) -> None:
        self.reporter = reporter or SyncLogger()
        self.dry_run = dry_run
        self.results: list[SyncResult] = []
        self.mutations: list[DocumentMutation] = []

    def reconcile(
        self,
        doc_entities: Sequence[Entity],
        store_entities: Sequence[Entity],
        adapter: EntityAdapter,
    ) -> None:
        """Reconcile one entity kind, document order first."""
        store_index = {
            adapter.key(e): e for e in store_entities if adapter.key(e)
        }
        doc_keys = {adapter.key(e) for e in doc_entities if adapter.key(e)}

        for entity in doc_entities:
            key = adapter.key(entity)
            if key is None:
                self._create(entity, adapter)
            elif key not in store_index:
                self._queue(
                    DocumentMutation(
                        SyncVerb.DELETE, entity, target=entity.origin
                    )
                )
            else:
                self.sync_item(entity, store_index[key], adapter)

        for entity in store_entities:
            key = adapter.key(entity)
            if key is not None and key not in doc_keys:
                self._queue(
                    DocumentMutation(
                        SyncVerb.ADD,
                        entity,
                        headline=adapter.to_headline(entity),
                        parent=adapter.parent_headline(entity),
                    )
                )

    def sync_item(
        self, doc: Entity, store: Entity, adapter: EntityAdapter
    ) -> None:
        """Resolve one entity present on both sides."""
        if doc.is_deleted:
            if self._store_call(SyncVerb.DELETE, doc, adapter.delete_in_store):
                self._queue(
                    DocumentMutation(SyncVerb.DELETE, doc, target=doc.origin)
                )
            return

        if not adapter.timestamped:
            if adapter.differs(doc, store):
                self._queue_update(store, doc, adapter)
            return

        doc_modified = adapter.last_modified(doc)
        store_modified = adapter.last_modified(store)
        if doc_modified is None or store_modified is None:
            logger.debug(
                "Skipping %s %s: missing modification time",
                adapter.kind,
                adapter.key(doc),
            )
            return
        if doc_modified == store_modified:
            return
        if doc_modified > store_modified:
            self._store_call(
                SyncVerb.UPDATE,
                doc,
                lambda entity: adapter.update_in_store(entity, store),
            )
        else:
            self._queue_update(store, doc, adapter)

    def remove_duplicates(
        self, doc_entities: Sequence[Entity], adapter: EntityAdapter
    ) -> list[Entity]:
        """Queue deletes for repeated keys and return the survivors.

        The first occurrence of a key is kept; later ones are deleted,
        last first, so the remaining occurrence indices stay valid.
        """
        groups: dict[str, list[Entity]] = defaultdict(list)
        for entity in doc_entities:
            key = adapter.key(entity)
            if key:
                groups[key].append(entity)

        dropped: set[int] = set()
        for key, group in groups.items():
            if len(group) < 2:
                continue
            logger.warning(
                "Found %d %ss sharing key %s", len(group), adapter.kind, key
            )
            for occurrence in range(len(group) - 1, 0, -1):
                duplicate = group[occurrence]
                self._queue(
                    DocumentMutation(
                        SyncVerb.DELETE,
                        duplicate,
                        target=duplicate.origin,
                        occurrence=occurrence,
                    )
                )
                dropped.add(id(duplicate))
        return [e for e in doc_entities if id(e) not in dropped]

    def apply(self, writer: OrgWriter | None) -> None:
        """Apply queued document edits in order.

        With no writer (dry run) the edits are only reported.
        """
        mutations, self.mutations = self.mutations, []
        for mutation in mutations:
            if writer is None:
                self._record(SyncTarget.DOCUMENT, mutation.verb, mutation.entity)
                continue
            try:
                applied = self._apply_one(writer, mutation)
            except Exception as exc:
                logger.exception(
                    "Document %s failed for %r",
                    mutation.verb.value,
                    mutation.entity.title,
                )
                self._fail(
                    SyncTarget.DOCUMENT, mutation.verb, mutation.entity, exc
                )
                continue
            if applied:
                self._record(SyncTarget.DOCUMENT, mutation.verb, mutation.entity)
            else:
                self._fail(
                    SyncTarget.DOCUMENT,
                    mutation.verb,
                    mutation.entity,
                    "headline not found",
                )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_one(writer: OrgWriter, mutation: DocumentMutation) -> bool:
        if mutation.verb is SyncVerb.DELETE:
            if mutation.target is None:
                return False
            return writer.delete(
                mutation.target, occurrence=mutation.occurrence
            )
        if mutation.headline is None:
            raise ValueError(
                f"{mutation.verb.value} of {mutation.entity.title!r} "
                "carries no headline"
            )
        if mutation.verb is SyncVerb.ADD:
            writer.insert(mutation.headline, parent=mutation.parent)
            return True
        return writer.update(mutation.headline, target=mutation.target)

    def _create(self, entity: Entity, adapter: EntityAdapter) -> None:
        if entity.is_deleted:
            logger.info(
                "Skipping deleted %s %r that was never synced",
                adapter.kind,
                entity.title,
            )
            return
        if self.dry_run:
            self._record(SyncTarget.STORE, SyncVerb.ADD, entity)
            self._queue(
                DocumentMutation(SyncVerb.UPDATE, entity, target=entity.origin)
            )
            return
        try:
            created = adapter.create_in_store(entity)
        except Exception as exc:
            logger.error(
                "Failed to create %s %r in store: %s",
                adapter.kind,
                entity.title,
                exc,
            )
            self._fail(SyncTarget.STORE, SyncVerb.ADD, entity, exc)
            return
        if created is None:
            self._fail(
                SyncTarget.STORE, SyncVerb.ADD, entity, "store returned no record"
            )
            return
        self._record(SyncTarget.STORE, SyncVerb.ADD, created)
        adapter.adopt(entity, created)
        self._queue(
            DocumentMutation(
                SyncVerb.UPDATE,
                created,
                headline=adapter.to_headline(created),
                target=entity.origin,
            )
        )

    def _store_call(self, verb: SyncVerb, entity: Entity, call) -> bool:
        """Run one store call, recording its result."""
        if self.dry_run:
            self._record(SyncTarget.STORE, verb, entity)
            return True
        try:
            outcome = call(entity)
        except Exception as exc:
            logger.error(
                "Store %s failed for %r: %s", verb.value, entity.title, exc
            )
            self._fail(SyncTarget.STORE, verb, entity, exc)
            return False
        if outcome is None:
            self._fail(SyncTarget.STORE, verb, entity, "store returned no record")
            return False
        self._record(SyncTarget.STORE, verb, outcome)
        return True

    def _queue_update(
        self, winner: Entity, loser: Entity, adapter: EntityAdapter
    ) -> None:
        self._queue(
            DocumentMutation(
                SyncVerb.UPDATE,
                winner,
                headline=adapter.to_headline(winner),
                target=loser.origin,
            )
        )

    def _queue(self, mutation: DocumentMutation) -> None:
        self.mutations.append(mutation)

    def _record(self, target: SyncTarget, verb: SyncVerb, entity: Entity) -> None:
        self.reporter.log(target, verb, entity)
        self.results.append(
            SyncResult(
                target=target,
                verb=verb,
                kind=entity.kind,
                key=entity.key,
                title=entity.title,
            )
        )

    def _fail(
        self,
        target: SyncTarget,
        verb: SyncVerb,
        entity: Entity,
        error: Exception | str,
    ) -> None:
        self.results.append(
            SyncResult(
                target=target,
                verb=verb,
                kind=entity.kind,
                key=entity.key,
                title=entity.title,
                success=False,
                error=str(error),
            )
        )
