"""Surgical edits of an ``OrgDocument``.

Each operation locates the live headline, splices the document text using
the headline's node range, and lets the document flush and re-parse before
returning. All of it runs under the document lock so edits never
interleave.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable

from .document import OrgDocument
from .enums import DateFormat, PropertyKey
from .headline import Headline

logger = logging.getLogger(__name__)


class OrgWriter:
    """Apply insert/update/delete operations to an ``OrgDocument``.

    Args:
        document: The document to edit.
    """

    def __init__(self, document: OrgDocument) -> None:
        self.document = document

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(self, headline: Headline, occurrence: int = 0) -> bool:
        """Remove a headline (and its nested sections) from the text.

        Args:
            headline: The headline to remove; a stale or detached headline
                is matched by identity, then by shape.
            occurrence: Which identity match to remove when several
                headlines share one identifier.

        Returns:
            ``True`` if a headline was removed.
        """
        doc = self.document
        with doc.lock:
            if occurrence:
                matches = doc.find_all_by_identity(headline)
                live = matches[occurrence] if occurrence < len(matches) else None
            else:
                live = doc.locate(headline)
            if live is None:
                logger.warning(
                    "Cannot delete %r: headline not found", headline.title
                )
                return False

            start, end = doc.node_range(live)
            if start > 0 and doc.source[start - 1] == "\n":
                start -= 1
            elif doc.source[end : end + 1] == "\n":
                end += 1
            doc.splice(start, end, "")
            return True

    # ------------------------------------------------------------------
    # Insert
    # ------------------------------------------------------------------

    def insert(
        self, headline: Headline, parent: Headline | None = None
    ) -> int:
        """Insert *headline* as the last child of *parent*.

        Falls back to the end of the document when there is no parent or
        the parent cannot be located.

        Returns:
            The character index the text was inserted at.
        """
        doc = self.document
        with doc.lock:
            text = headline.to_org()
            live_parent = doc.locate(parent) if parent is not None else None
            if live_parent is not None:
                _, position = doc.node_range(live_parent)
            else:
                if parent is not None:
                    logger.warning(
                        "Parent %r not found, appending %r at end",
                        parent.title,
                        headline.title,
                    )
                position = len(doc.source)
                if not doc.source or doc.source.endswith("\n"):
                    text = text[1:] + "\n"
            doc.splice(position, position, text)
            return position

    def insert_at(self, headline: Headline, position: int) -> None:
        """Insert *headline* at an explicit character index."""
        doc = self.document
        with doc.lock:
            text = headline.to_org()
            if position == 0 or doc.source[position - 1 : position] == "\n":
                text = text[1:] + "\n"
            doc.splice(position, position, text)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update(
        self, headline: Headline, target: Headline | None = None
    ) -> bool:
        """Rewrite the own fields of a headline, keeping its children.

        Args:
            headline: Headline carrying the new field values.
            target: Headline to overwrite. Defaults to *headline* itself,
                located by identity and then by shape.

        Returns:
            ``True`` if a headline was rewritten.
        """
        doc = self.document
        with doc.lock:
            live = doc.locate(target if target is not None else headline)
            if live is None:
                logger.warning(
                    "Cannot update %r: headline not found", headline.title
                )
                return False

            # Statistics of a list come from the children in the file.
            replacement = replace(
                headline,
                level=live.level,
                children=live.children,
                node_ref=None,
            )
            start, end = doc.own_range(live)
            doc.splice(start, end, replacement.own_text()[1:])
            return True

    # ------------------------------------------------------------------
    # Hash stamping
    # ------------------------------------------------------------------

    def update_changed_hashes(
        self,
        as_of: datetime,
        modified: Callable[[Headline], str | None],
    ) -> list[Headline]:
        """Stamp ``HASH``/``LAST-MODIFIED`` on every changed item.

        Args:
            as_of: Timestamp written to ``LAST-MODIFIED``.
            modified: Change detector returning the new hash of a
                level-2 headline, or ``None`` when it is unchanged.

        Returns:
            The headlines that were re-stamped.
        """
        stamp = as_of.strftime(DateFormat.OTHER.value)
        doc = self.document
        stamped: list[Headline] = []
        with doc.lock:
            for position in range(len(doc.items())):
                # Updates keep item order, so positions stay valid.
                item = doc.items()[position]
                new_hash = modified(item)
                if new_hash is None:
                    continue
                external_id = item.identity
                if external_id:
                    logger.info("Update item: %s", external_id)
                properties = dict(item.properties)
                properties[PropertyKey.HASH.value] = new_hash
                properties[PropertyKey.LAST_MODIFIED.value] = stamp
                updated = replace(item, properties=properties)
                if self.update(updated, target=item):
                    stamped.append(updated)
        return stamped

    # ------------------------------------------------------------------
    # Whole-document rewrite
    # ------------------------------------------------------------------

    def flush_headlines(self, headlines: Iterable[Headline]) -> None:
        """Replace the whole document with *headlines*."""
        doc = self.document
        with doc.lock:
            doc.source = "".join(h.to_org() for h in headlines)
            doc.flush()
