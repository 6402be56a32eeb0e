"""Typed document model over an Org syntax tree.

``OrgDocument`` owns the current source text, its syntax tree, and the
headline forest derived from it. Headlines live in an arena (a flat list in
document order); a headline's parent is an index into that arena.

Every edit bumps ``generation``. Headlines from an older generation still
carry their field values but their ``NodeRef`` is stale, so range lookups go
through ``locate()``, which re-finds the live headline by identity or shape.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from ..errors import ParseError, StaleNodeError
from ..file_handler import read_file_with_encoding, write_file
from .enums import NodeType, Priority, Status
from .headline import Headline, NodeRef, strip_statistics
from .syntax import OrgParser, SyntaxNode, SyntaxParser, SyntaxTree

logger = logging.getLogger(__name__)


class OrgDocument:
    """An Org outline, optionally backed by a file.

    Args:
        source: Initial text.
        parser: Parser collaborator (defaults to ``OrgParser``).
        path: File that ``refresh_source()`` reads and ``flush()`` writes.
    """

    def __init__(
        self,
        source: str = "",
        parser: SyntaxParser | None = None,
        path: Path | None = None,
    ) -> None:
        self.source = source
        self.path = path
        self.tree: SyntaxTree | None = None
        self.generation = 0
        self._parser = parser or OrgParser()
        self._lock = threading.RLock()
        self._arena: list[Headline] = []
        self._headlines: list[Headline] = []

    @classmethod
    def load(
        cls, text: str, parser: SyntaxParser | None = None
    ) -> OrgDocument:
        """Parse *text* into a document.

        Raises:
            ParseError: If the parser produced no root node.
        """
        document = cls(text, parser=parser)
        document.refresh(incremental=False)
        return document

    @classmethod
    def from_file(
        cls, path: Path | str, parser: SyntaxParser | None = None
    ) -> OrgDocument:
        document = cls(parser=parser, path=Path(path))
        document.refresh_source()
        document.refresh(incremental=False)
        return document

    @property
    def lock(self) -> threading.RLock:
        """Exclusive-access lock for mutations of this document."""
        return self._lock

    # ------------------------------------------------------------------
    # Source and tree maintenance
    # ------------------------------------------------------------------

    def refresh_source(self) -> None:
        """Re-read the backing file, if any."""
        if self.path is None:
            return
        with self._lock:
            if not self.path.exists():
                logger.warning("Org file does not exist: %s", self.path)
                self.source = ""
                return
            self.source, _ = read_file_with_encoding(self.path)

    def refresh(self, incremental: bool = True) -> None:
        """Re-parse ``source`` and rebuild the headline forest.

        The previous tree and forest are kept if parsing fails.
        """
        with self._lock:
            if incremental and self.tree is not None:
                tree = self._parser.reparse(self.tree, self.source)
            else:
                tree = self._parser.parse(self.source)
            if tree.root is None:
                raise ParseError("Parser produced no root node")

            generation = self.generation + 1
            arena, headlines = self._build_forest(tree, generation)
            self.tree = tree
            self.generation = generation
            self._arena = arena
            self._headlines = headlines

    def flush(self) -> None:
        """Write ``source`` to the backing file and re-parse from disk."""
        with self._lock:
            if self.path is not None:
                write_file(self.path, self.source)
                self.refresh_source()
            self.refresh()

    def splice(self, start: int, end: int, text: str) -> None:
        """Replace ``source[start:end]`` with *text* and flush."""
        with self._lock:
            self.source = self.source[:start] + text + self.source[end:]
            self.flush()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def headlines(self) -> list[Headline]:
        """Level-1 headlines in document order."""
        return list(self._headlines)

    def items(self) -> list[Headline]:
        """All level-2 headlines in document order."""
        return [child for h in self._headlines for child in h.children]

    def is_live(self, headline: Headline) -> bool:
        ref = headline.node_ref
        return ref is not None and ref.generation == self.generation

    def parent_of(self, headline: Headline) -> Headline | None:
        live = self.locate(headline)
        if live is None or live.parent_index is None:
            return None
        return self._arena[live.parent_index]

    def find_all_by_identity(self, wanted: Headline) -> list[Headline]:
        identity = wanted.identity
        if identity is None:
            return []
        candidates = self._headlines if wanted.level == 1 else self.items()
        return [
            h
            for h in candidates
            if h.level == wanted.level and h.identity == identity
        ]

    def find_by_identity(self, wanted: Headline) -> Headline | None:
        matches = self.find_all_by_identity(wanted)
        return matches[0] if matches else None

    def find_by_shape(
        self, wanted: Headline, unkeyed_only: bool = False
    ) -> Headline | None:
        """First headline with the title, priority, status and level of
        *wanted*. With *unkeyed_only*, headlines carrying an identifier are
        skipped.
        """
        candidates = self._headlines if wanted.level == 1 else self.items()
        for headline in candidates:
            if unkeyed_only and headline.identity is not None:
                continue
            if headline.shape == wanted.shape:
                return headline
        return None

    def find(self, wanted: Headline) -> Headline | None:
        """Identity lookup, falling back to shape for unsynced headlines.

        If *wanted* has no identifier, only headlines without one can match:
        a headline that already has one was synced, possibly earlier in
        the same pass, and is a different entity.
        """
        if wanted.identity is None:
            return self.find_by_shape(wanted, unkeyed_only=True)
        return self.find_by_identity(wanted) or self.find_by_shape(wanted)

    def locate(self, headline: Headline) -> Headline | None:
        """Return the live headline for *headline* in this generation."""
        if self.is_live(headline):
            return headline
        return self.find(headline)

    # ------------------------------------------------------------------
    # Ranges
    # ------------------------------------------------------------------

    def resolve_node(self, headline: Headline) -> SyntaxNode:
        """Return the syntax node behind a live headline.

        Raises:
            StaleNodeError: If the headline predates the last edit.
        """
        ref = headline.node_ref
        if ref is None or ref.generation != self.generation:
            raise StaleNodeError(
                f"Headline {headline.title!r} is stale "
                f"(document generation {self.generation})"
            )
        return ref.node

    def node_range(self, headline: Headline) -> tuple[int, int]:
        node = self.resolve_node(headline)
        return node.start, node.end

    def first_child_range(self, headline: Headline) -> tuple[int, int] | None:
        first = self.resolve_node(headline).child(NodeType.SECTION)
        if first is None:
            return None
        return first.start, first.end

    def own_range(self, headline: Headline) -> tuple[int, int]:
        """Span of the headline's own fields, nested sections excluded."""
        node = self.resolve_node(headline)
        own = [c.end for c in node.children if c.type != NodeType.SECTION]
        return node.start, max(own, default=node.end)

    # ------------------------------------------------------------------
    # Forest construction
    # ------------------------------------------------------------------

    def _build_forest(
        self, tree: SyntaxTree, generation: int
    ) -> tuple[list[Headline], list[Headline]]:
        if tree.root is None:
            raise ParseError("Parser produced no root node")
        source = tree.source
        arena: list[Headline] = []
        headlines: list[Headline] = []
        for h1_section in tree.root.children_of(NodeType.SECTION):
            h1 = self._to_headline(h1_section, source, generation)
            if h1.level != 1:
                continue
            h1.index = len(arena)
            arena.append(h1)
            headlines.append(h1)
            for h2_section in h1_section.children_of(NodeType.SECTION):
                h2 = self._to_headline(h2_section, source, generation)
                if h2.level != 2:
                    continue
                h2.index = len(arena)
                h2.parent_index = h1.index
                arena.append(h2)
                h1.children.append(h2)
        return arena, headlines

    @staticmethod
    def _to_headline(
        section: SyntaxNode, source: str, generation: int
    ) -> Headline:
        headline = Headline(node_ref=NodeRef(generation, section))

        ts_headline = section.child(NodeType.HEADLINE)
        stars = ts_headline.child(NodeType.STARS) if ts_headline else None
        if ts_headline is None or stars is None:
            return headline
        headline.level = stars.end - stars.start

        items = ts_headline.child(NodeType.ITEM)
        if items is not None:
            index = 0
            first = items.named_child(index)
            if first is not None and Status.contains(first.text(source)):
                headline.status = first.text(source)
                index += 1
            cookie = items.named_child(index)
            priority = (
                Priority.from_cookie(cookie.text(source)) if cookie else None
            )
            if priority is not None:
                headline.priority = priority.value
                index += 1
            title_start = items.named_child(index)
            last = items.last_child
            if title_start is not None and last is not None:
                headline.title = strip_statistics(
                    source[title_start.start : last.end]
                )

        tags = ts_headline.child(NodeType.TAG_LIST)
        if tags is not None:
            headline.tags = [tag.text(source) for tag in tags.children]

        plan = section.child(NodeType.PLAN)
        if plan is not None:
            for entry in plan.children:
                key = entry.named_child(0)
                value = entry.named_child(1)
                if key is not None and value is not None:
                    headline.plans[key.text(source)] = value.text(source)

        drawer = section.child(NodeType.PROPERTY_DRAWER)
        if drawer is not None:
            for prop in drawer.children:
                key = prop.named_child(0)
                value = prop.named_child(1)
                if key is not None and value is not None:
                    headline.properties[key.text(source)] = value.text(source)

        body = section.child(NodeType.BODY)
        if body is not None:
            text = body.text(source).strip()
            headline.content = text or None
        return headline
