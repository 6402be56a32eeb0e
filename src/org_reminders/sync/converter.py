"""Conversion between headlines, store records and canonical entities.

Headline -> canonical:

- ``LIST-ID`` / ``EXTERNAL-ID`` properties become identifiers.
- The ``DELETED`` tag becomes ``is_deleted``.
- ``DONE`` becomes ``is_completed``.
- Priority letters map A=1, B=5, C=9, anything else 0.
- ``SCHEDULED`` / ``CLOSED`` plans become due / completion dates.
- ``LAST-MODIFIED`` and ``HASH`` are read from the property drawer.
- The body becomes notes.

A date that does not match its format is logged and left out; the rest of
the entity is still converted.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from ..errors import DateFormatError
from ..org.enums import (
    DELETED_TAG,
    DateFormat,
    PlanKey,
    Priority,
    PropertyKey,
    Status,
)
from ..org.headline import Headline
from ..store.base import ListRecord, ReminderRecord
from .dates import format_date, parse_date, truncate
from .hashing import compute_hash
from .models import CanonicalItem, CanonicalList

logger = logging.getLogger(__name__)

_TO_STORE_PRIORITY = {
    Priority.HIGH.value: 1,
    Priority.MEDIUM.value: 5,
    Priority.LOW.value: 9,
}
_TO_ORG_PRIORITY = {v: k for k, v in _TO_STORE_PRIORITY.items()}


def to_store_priority(letter: str | None) -> int:
    return _TO_STORE_PRIORITY.get(letter or "", 0)


def to_org_priority(value: int) -> str | None:
    return _TO_ORG_PRIORITY.get(value)


def _parse_optional(text: str | None, fmt: DateFormat) -> datetime | None:
    if not text:
        return None
    try:
        return parse_date(text, fmt)
    except DateFormatError as exc:
        logger.warning("%s", exc)
        return None


def _truncate_optional(
    value: datetime | None, fmt: DateFormat
) -> datetime | None:
    return truncate(value, fmt) if value is not None else None


def _blank_to_none(text: str | None) -> str | None:
    if text is None or not text.strip():
        return None
    return text.strip()


class ModelConverter:
    """Stateless converter between the three representations."""

    # ------------------------------------------------------------------
    # Headline -> canonical
    # ------------------------------------------------------------------

    def to_canonical_list(self, headline: Headline) -> CanonicalList:
        return CanonicalList(
            id=headline.properties.get(PropertyKey.LIST_ID.value),
            title=headline.title,
            is_deleted=headline.is_deleted,
            origin=headline,
        )

    def to_canonical_lists(
        self, headlines: Iterable[Headline]
    ) -> list[CanonicalList]:
        return [self.to_canonical_list(h) for h in headlines]

    def to_canonical_item(
        self, headline: Headline, parent: CanonicalList
    ) -> CanonicalItem:
        props = headline.properties
        return CanonicalItem(
            title=headline.title,
            list=parent,
            external_id=props.get(PropertyKey.EXTERNAL_ID.value),
            priority=to_store_priority(headline.priority),
            is_completed=headline.status == Status.DONE.value,
            is_deleted=headline.is_deleted,
            due_date=_parse_optional(
                headline.plans.get(PlanKey.SCHEDULED.value),
                DateFormat.SCHEDULED,
            ),
            completion_date=_parse_optional(
                headline.plans.get(PlanKey.CLOSED.value), DateFormat.CLOSED
            ),
            last_modified=_parse_optional(
                props.get(PropertyKey.LAST_MODIFIED.value), DateFormat.OTHER
            ),
            notes=_blank_to_none(headline.content),
            hash=props.get(PropertyKey.HASH.value),
            origin=headline,
        )

    def to_canonical_items(
        self,
        headlines: Iterable[Headline],
        lists: Iterable[CanonicalList] | None = None,
    ) -> list[CanonicalItem]:
        """Convert the level-2 children of *headlines*.

        Args:
            headlines: Level-1 headlines.
            lists: Canonical lists already built for *headlines*, in the
                same order. Items then share those list objects, so an
                identifier assigned to a list is visible from its items.
        """
        headlines = list(headlines)
        parents = (
            list(lists)
            if lists is not None
            else self.to_canonical_lists(headlines)
        )
        return [
            self.to_canonical_item(child, parent)
            for headline, parent in zip(headlines, parents)
            for child in headline.children
        ]

    # ------------------------------------------------------------------
    # Store record -> canonical
    # ------------------------------------------------------------------

    def from_list_record(self, record: ListRecord) -> CanonicalList:
        return CanonicalList(id=record.key, title=record.title)

    def from_list_records(
        self, records: Iterable[ListRecord]
    ) -> list[CanonicalList]:
        return [self.from_list_record(r) for r in records]

    def from_reminder_record(self, record: ReminderRecord) -> CanonicalItem:
        item = CanonicalItem(
            title=record.title,
            list=CanonicalList(id=record.list_key, title=record.list_title),
            external_id=record.key,
            priority=record.priority,
            is_completed=record.is_completed,
            due_date=_truncate_optional(record.due_date, DateFormat.SCHEDULED),
            completion_date=_truncate_optional(
                record.completion_date, DateFormat.CLOSED
            ),
            last_modified=_truncate_optional(
                record.last_modified, DateFormat.OTHER
            ),
            notes=_blank_to_none(record.notes),
        )
        item.hash = compute_hash(item)
        return item

    def from_reminder_records(
        self, records: Iterable[ReminderRecord]
    ) -> list[CanonicalItem]:
        return [self.from_reminder_record(r) for r in records]

    # ------------------------------------------------------------------
    # Canonical -> headline
    # ------------------------------------------------------------------

    def to_list_headline(self, entity: CanonicalList) -> Headline:
        properties = {}
        if entity.id:
            properties[PropertyKey.LIST_ID.value] = entity.id
        return Headline(
            level=1,
            title=entity.title,
            properties=properties,
            tags=[DELETED_TAG] if entity.is_deleted else [],
        )

    def to_item_headline(self, entity: CanonicalItem) -> Headline:
        plans = {}
        if entity.completion_date is not None:
            plans[PlanKey.CLOSED.value] = format_date(
                entity.completion_date, DateFormat.CLOSED
            )
        if entity.due_date is not None:
            plans[PlanKey.SCHEDULED.value] = format_date(
                entity.due_date, DateFormat.SCHEDULED
            )

        properties = {}
        if entity.external_id:
            properties[PropertyKey.EXTERNAL_ID.value] = entity.external_id
        if entity.last_modified is not None:
            properties[PropertyKey.LAST_MODIFIED.value] = format_date(
                entity.last_modified, DateFormat.OTHER
            )
        properties[PropertyKey.HASH.value] = entity.hash or compute_hash(entity)

        return Headline(
            level=2,
            title=entity.title,
            status=(
                Status.DONE.value if entity.is_completed else Status.TODO.value
            ),
            priority=to_org_priority(entity.priority),
            plans=plans,
            properties=properties,
            tags=[DELETED_TAG] if entity.is_deleted else [],
            content=entity.notes,
        )

    def to_headlines(
        self,
        lists: Iterable[CanonicalList],
        items: Iterable[CanonicalItem],
    ) -> list[Headline]:
        """Group *items* under their lists as a headline forest.

        Lists keep their given order; a list only referenced by an item is
        appended after them.
        """
        forest: dict[str | None, Headline] = {}
        for entity in lists:
            forest.setdefault(entity.id, self.to_list_headline(entity))
        for item in items:
            parent = forest.get(item.list.id)
            if parent is None:
                parent = self.to_list_headline(item.list)
                forest[item.list.id] = parent
            parent.children.append(self.to_item_headline(item))
        return list(forest.values())
