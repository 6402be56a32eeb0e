"""Sync pass driver.

``SyncEngine`` runs one pass between an ``OrgDocument`` and a
``ReminderStore``::

    IDLE -> FETCH_STORE -> FETCH_DOCUMENT -> RECONCILE
         -> APPLY_DOCUMENT_MUTATIONS -> IDLE

Before the pass, items edited by hand are re-stamped (``update_hash()``)
so their new ``LAST-MODIFIED`` lets the document win. Lists are reconciled
before items. A failure aborts the pass; the report records the stage it
failed in and the next pass starts from scratch.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..org.document import OrgDocument
from ..org.headline import Headline
from ..org.writer import OrgWriter
from ..store.base import ReminderStore
from .converter import ModelConverter
from .dates import now
from .hashing import modified
from .models import (
    CanonicalItem,
    CanonicalList,
    PassState,
    SyncReport,
    SyncResult,
    SyncTarget,
    SyncVerb,
)
from .reconcile import ItemAdapter, ListAdapter, Reconciler
from .reporter import SyncLogger

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SyncEngine:
    """Synchronize one Org document with one reminders store.

    Args:
        document: The Org document (usually file-backed).
        store: The reminders store collaborator.
        reporter: Action log; a fresh ``SyncLogger`` by default.
        converter: Entity converter.
    """

    def __init__(
        self,
        document: OrgDocument,
        store: ReminderStore,
        reporter: SyncLogger | None = None,
        converter: ModelConverter | None = None,
    ) -> None:
        self.document = document
        self.store = store
        self.reporter = reporter or SyncLogger()
        self.converter = converter or ModelConverter()
        self.writer = OrgWriter(document)
        self.state = PassState.IDLE
        self._lists = ListAdapter(store, self.converter)
        self._items = ItemAdapter(store, self.converter)

    # ------------------------------------------------------------------
    # Sync once
    # ------------------------------------------------------------------

    def run(self, dry_run: bool = False) -> SyncReport:
        """Run one reconciliation pass.

        Args:
            dry_run: Report the planned actions without calling the store
                or editing the file.

        Returns:
            The pass report. Pass-level failures are reported in
            ``SyncReport.error`` rather than raised.
        """
        started = _utc_now()
        results: list[SyncResult] = []
        error: str | None = None
        failed_state = PassState.IDLE
        reconciler = Reconciler(self.reporter, dry_run=dry_run)

        logger.info("Starting sync pass%s", " (dry run)" if dry_run else "")
        try:
            if dry_run:
                self._reload()
            else:
                results.extend(self._stamp(now()))

            self.state = PassState.FETCH_STORE
            store_lists = self.converter.from_list_records(self.store.lists())
            store_items = self.converter.from_reminder_records(
                self.store.reminders(include_completed=True)
            )

            self.state = PassState.FETCH_DOCUMENT
            headlines = self.document.headlines()
            doc_lists = self.converter.to_canonical_lists(headlines)
            doc_items = self.converter.to_canonical_items(headlines, doc_lists)

            self.state = PassState.RECONCILE
            doc_items = reconciler.remove_duplicates(doc_items, self._items)
            removed = _removed_list_keys(doc_lists, store_lists)
            reconciler.reconcile(doc_lists, store_lists, self._lists)
            reconciler.reconcile(
                [i for i in doc_items if i.list.id not in removed],
                [i for i in store_items if i.list.id not in removed],
                self._items,
            )

            self.state = PassState.APPLY_DOCUMENT_MUTATIONS
            reconciler.apply(None if dry_run else self.writer)
        except Exception as exc:
            logger.exception("Sync pass failed during %s", self.state.value)
            error = str(exc)
            failed_state = self.state
        finally:
            self.state = PassState.IDLE

        results.extend(reconciler.results)
        report = SyncReport(
            mode="once",
            dry_run=dry_run,
            results=results,
            started_at=started,
            completed_at=_utc_now(),
            state=failed_state,
            error=error,
        )
        logger.info(
            "Sync pass finished: %d actions, %d errors",
            len(report.results),
            len(report.errors),
        )
        return report

    # ------------------------------------------------------------------
    # Sync all
    # ------------------------------------------------------------------

    def mirror(self, dry_run: bool = False) -> SyncReport:
        """Rewrite the whole document from the store's contents."""
        started = _utc_now()
        results: list[SyncResult] = []
        error: str | None = None
        try:
            lists = self.converter.from_list_records(self.store.lists())
            items = self.converter.from_reminder_records(
                self.store.reminders(include_completed=True)
            )
            headlines = self.converter.to_headlines(lists, items)
            if not dry_run:
                self.writer.flush_headlines(headlines)
            for entity in [*lists, *items]:
                self.reporter.log(SyncTarget.DOCUMENT, SyncVerb.ADD, entity)
                results.append(
                    SyncResult(
                        target=SyncTarget.DOCUMENT,
                        verb=SyncVerb.ADD,
                        kind=entity.kind,
                        key=entity.key,
                        title=entity.title,
                    )
                )
        except Exception as exc:
            logger.exception("Full sync failed")
            error = str(exc)

        return SyncReport(
            mode="all",
            dry_run=dry_run,
            results=results,
            started_at=started,
            completed_at=_utc_now(),
            error=error,
        )

    # ------------------------------------------------------------------
    # Hash stamping
    # ------------------------------------------------------------------

    def update_hash(self, as_of: datetime | None = None) -> SyncReport:
        """Re-read the file, drop duplicates and stamp changed items."""
        started = _utc_now()
        results: list[SyncResult] = []
        error: str | None = None
        try:
            results = self._stamp(as_of or now())
        except Exception as exc:
            logger.exception("Hash update failed")
            error = str(exc)
        return SyncReport(
            mode="update-hash",
            results=results,
            started_at=started,
            completed_at=_utc_now(),
            error=error,
        )

    def _stamp(self, as_of: datetime) -> list[SyncResult]:
        self._reload()
        headlines = self.document.headlines()
        items = self.converter.to_canonical_items(headlines)

        reconciler = Reconciler(self.reporter)
        reconciler.remove_duplicates(items, self._items)
        reconciler.apply(self.writer)

        results = list(reconciler.results)
        for headline in self.writer.update_changed_hashes(
            as_of, self._changed_hash
        ):
            item = self._to_item(headline)
            self.reporter.log(SyncTarget.DOCUMENT, SyncVerb.UPDATE, item)
            results.append(
                SyncResult(
                    target=SyncTarget.DOCUMENT,
                    verb=SyncVerb.UPDATE,
                    kind="item",
                    key=item.key,
                    title=item.title,
                )
            )
        return results

    def _changed_hash(self, headline: Headline) -> str | None:
        return modified(self._to_item(headline))

    def _to_item(self, headline: Headline) -> CanonicalItem:
        parent = self.document.parent_of(headline)
        owner = (
            self.converter.to_canonical_list(parent)
            if parent is not None
            else CanonicalList(title="")
        )
        return self.converter.to_canonical_item(headline, owner)

    def _reload(self) -> None:
        self.document.refresh_source()
        self.document.refresh()


def _removed_list_keys(
    doc_lists: list[CanonicalList], store_lists: list[CanonicalList]
) -> set[str]:
    """Keys of lists this pass deletes on one side or the other."""
    store_keys = {entity.id for entity in store_lists}
    return {
        entity.id
        for entity in doc_lists
        if entity.id and (entity.is_deleted or entity.id not in store_keys)
    }
