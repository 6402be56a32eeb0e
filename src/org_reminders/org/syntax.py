"""Concrete syntax tree for Org outlines.

The document model only talks to the parser through ``SyntaxParser``
(``parse`` / ``reparse``) and the ``SyntaxNode`` navigation helpers, so a
different parser (for example a tree-sitter binding) can be dropped in.

``OrgParser`` is a small line-oriented parser that produces the node shapes
the model needs:

::

    document
      section
        headline
          stars
          item  (word word ...)
          tag_list  (tag tag ...)
        plan
          entry (entry_name timestamp)
        property_drawer
          property (expr value)
        body
        section ...

Ranges are character offsets into the parsed source. Grammar problems never
raise: anything that does not fit a plan or drawer ends up in the body.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Iterator, Protocol

from .enums import NodeType

logger = logging.getLogger(__name__)

# Line patterns are applied with ``match(source, start, end)`` so they are
# anchored at the line start and ``$`` sits at the line end.
_HEADLINE_RE = re.compile(r"(\*+)(?:[ \t]+.*)?$")
_TAGS_RE = re.compile(r"[ \t]+(:(?:[^\s:]+:)+)[ \t]*$")
_WORD_RE = re.compile(r"\S+")
_PLAN_ENTRY_RE = re.compile(
    r"(SCHEDULED|CLOSED|DEADLINE):[ \t]*(<[^>\n]*>|\[[^\]\n]*\])"
)
_PLAN_LINE_RE = re.compile(
    r"[ \t]*(?:(?:SCHEDULED|CLOSED|DEADLINE):[ \t]*"
    r"(?:<[^>\n]*>|\[[^\]\n]*\])[ \t]*)+$"
)
_DRAWER_START_RE = re.compile(r"[ \t]*:PROPERTIES:[ \t]*$", re.IGNORECASE)
_DRAWER_END_RE = re.compile(r"[ \t]*:END:[ \t]*$", re.IGNORECASE)
_PROPERTY_RE = re.compile(r"[ \t]*:([^\s:]+):(?:[ \t]+(.*?))?[ \t]*$")


@dataclass(eq=False)
class SyntaxNode:
    """One node of the syntax tree.

    Attributes:
        type: Node type tag.
        start: Start offset (inclusive) in the source.
        end: End offset (exclusive) in the source.
        children: Ordered named children.
    """

    type: NodeType
    start: int
    end: int
    children: list[SyntaxNode] = field(default_factory=list)

    @property
    def named_child_count(self) -> int:
        return len(self.children)

    def named_child(self, index: int) -> SyntaxNode | None:
        if 0 <= index < len(self.children):
            return self.children[index]
        return None

    @property
    def last_child(self) -> SyntaxNode | None:
        return self.children[-1] if self.children else None

    def child(self, node_type: NodeType) -> SyntaxNode | None:
        """Return the first direct child of *node_type*, if any."""
        for child in self.children:
            if child.type == node_type:
                return child
        return None

    def children_of(self, node_type: NodeType) -> list[SyntaxNode]:
        return [c for c in self.children if c.type == node_type]

    def text(self, source: str) -> str:
        return source[self.start : self.end]


@dataclass
class SyntaxTree:
    """A parse result.

    Attributes:
        root: The document node, or ``None`` if nothing could be parsed.
        source: The text this tree was parsed from.
    """

    root: SyntaxNode | None
    source: str

    @property
    def span(self) -> int:
        return len(self.source)


class SyntaxParser(Protocol):
    """Interface the document model needs from a parser."""

    def parse(self, source: str) -> SyntaxTree:
        ...  # pragma: no cover

    def reparse(
        self, previous: SyntaxTree | None, source: str
    ) -> SyntaxTree:
        ...  # pragma: no cover


def _iter_lines(source: str, offset: int = 0) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` of each line, newline excluded."""
    pos = offset
    size = len(source)
    while pos < size:
        newline = source.find("\n", pos)
        end = size if newline == -1 else newline
        yield pos, end
        pos = end + 1


class OrgParser:
    """Line-oriented Org parser with prefix-reusing incremental reparse."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self, source: str) -> SyntaxTree:
        root = SyntaxNode(NodeType.DOCUMENT, 0, len(source))
        root.children = self._parse_from(source, 0)
        return SyntaxTree(root=root, source=source)

    def reparse(
        self, previous: SyntaxTree | None, source: str
    ) -> SyntaxTree:
        """Re-parse *source*, reusing the unchanged top-level sections.

        Falls back to a full parse when there is no usable previous tree or
        when the new text is shorter than the previous one.
        """
        if (
            previous is None
            or previous.root is None
            or len(source) < previous.span
        ):
            return self.parse(source)

        old = previous.source
        diff = len(os.path.commonprefix([old, source]))
        if diff == len(old) == len(source):
            return SyntaxTree(root=previous.root, source=source)

        sections = previous.root.children
        kept: list[SyntaxNode] = []
        for idx, section in enumerate(sections[:-1]):
            following = sections[idx + 1]
            newline = old.find("\n", following.start)
            # The next sibling's headline line must be untouched, otherwise
            # this section could absorb it.
            if newline == -1 or diff <= newline:
                break
            kept.append(section)

        if not kept:
            return self.parse(source)

        resume = sections[len(kept)].start
        logger.debug(
            "Incremental reparse: reusing %d sections, resuming at %d",
            len(kept),
            resume,
        )
        root = SyntaxNode(NodeType.DOCUMENT, 0, len(source))
        root.children = kept + self._parse_from(source, resume)
        return SyntaxTree(root=root, source=source)

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _parse_from(self, source: str, offset: int) -> list[SyntaxNode]:
        lines = list(_iter_lines(source, offset))
        levels = [self._headline_level(source, s, e) for s, e in lines]
        return self._sections(source, lines, levels, 0, len(lines))

    @staticmethod
    def _headline_level(source: str, start: int, end: int) -> int:
        match = _HEADLINE_RE.match(source, start, end)
        return len(match.group(1)) if match else 0

    def _sections(
        self,
        source: str,
        lines: list[tuple[int, int]],
        levels: list[int],
        lo: int,
        hi: int,
    ) -> list[SyntaxNode]:
        sections: list[SyntaxNode] = []
        i = lo
        while i < hi:
            level = levels[i]
            if not level:
                i += 1
                continue
            j = i + 1
            while j < hi and not (levels[j] and levels[j] <= level):
                j += 1
            sections.append(self._section(source, lines, levels, i, j))
            i = j
        return sections

    def _section(
        self,
        source: str,
        lines: list[tuple[int, int]],
        levels: list[int],
        first: int,
        stop: int,
    ) -> SyntaxNode:
        own_stop = next(
            (m for m in range(first + 1, stop) if levels[m]), stop
        )
        line_start, line_end = lines[first]
        node = SyntaxNode(NodeType.SECTION, line_start, line_end)
        node.children.append(self._headline(source, line_start, line_end))

        cursor = first + 1
        plan, cursor = self._plan(source, lines, cursor, own_stop)
        if plan is not None:
            node.children.append(plan)
        drawer, cursor = self._property_drawer(
            source, lines, cursor, own_stop
        )
        if drawer is not None:
            node.children.append(drawer)
        body = self._body(source, lines, cursor, own_stop)
        if body is not None:
            node.children.append(body)

        for m in range(first, own_stop):
            start, end = lines[m]
            if source[start:end].strip():
                node.end = end

        children = self._sections(source, lines, levels, own_stop, stop)
        if children:
            node.children.extend(children)
            node.end = children[-1].end
        return node

    # ------------------------------------------------------------------
    # Section parts
    # ------------------------------------------------------------------

    def _headline(self, source: str, start: int, end: int) -> SyntaxNode:
        node = SyntaxNode(NodeType.HEADLINE, start, end)
        match = _HEADLINE_RE.match(source, start, end)
        stars_end = start + len(match.group(1)) if match else start
        node.children.append(SyntaxNode(NodeType.STARS, start, stars_end))

        text_end = end
        tags = _TAGS_RE.search(source, stars_end, end)
        tag_list = None
        if tags:
            text_end = tags.start()
            tag_list = SyntaxNode(
                NodeType.TAG_LIST, tags.start(1), tags.end(1)
            )
            pos = tags.start(1) + 1
            for name in tags.group(1).strip(":").split(":"):
                tag_list.children.append(
                    SyntaxNode(NodeType.TAG, pos, pos + len(name))
                )
                pos += len(name) + 1

        words = [
            SyntaxNode(NodeType.WORD, w.start(), w.end())
            for w in _WORD_RE.finditer(source, stars_end, text_end)
        ]
        if words:
            node.children.append(
                SyntaxNode(
                    NodeType.ITEM, words[0].start, words[-1].end, words
                )
            )
        if tag_list is not None:
            node.children.append(tag_list)
        return node

    def _plan(
        self,
        source: str,
        lines: list[tuple[int, int]],
        cursor: int,
        stop: int,
    ) -> tuple[SyntaxNode | None, int]:
        entries: list[SyntaxNode] = []
        while cursor < stop:
            start, end = lines[cursor]
            if not _PLAN_LINE_RE.match(source, start, end):
                break
            for match in _PLAN_ENTRY_RE.finditer(source, start, end):
                entries.append(
                    SyntaxNode(
                        NodeType.ENTRY,
                        match.start(),
                        match.end(),
                        [
                            SyntaxNode(
                                NodeType.ENTRY_NAME,
                                match.start(1),
                                match.end(1),
                            ),
                            SyntaxNode(
                                NodeType.TIMESTAMP,
                                match.start(2),
                                match.end(2),
                            ),
                        ],
                    )
                )
            cursor += 1
        if not entries:
            return None, cursor
        plan = SyntaxNode(
            NodeType.PLAN, entries[0].start, entries[-1].end, entries
        )
        return plan, cursor

    def _property_drawer(
        self,
        source: str,
        lines: list[tuple[int, int]],
        cursor: int,
        stop: int,
    ) -> tuple[SyntaxNode | None, int]:
        if cursor >= stop:
            return None, cursor
        start, end = lines[cursor]
        if not _DRAWER_START_RE.match(source, start, end):
            return None, cursor

        close = next(
            (
                m
                for m in range(cursor + 1, stop)
                if _DRAWER_END_RE.match(source, *lines[m])
            ),
            None,
        )
        if close is None:
            # Unterminated drawer: leave it to the body.
            return None, cursor

        drawer_start = start + len(source[start:end]) - len(
            source[start:end].lstrip()
        )
        drawer_end = lines[close][0] + len(
            source[lines[close][0] : lines[close][1]].rstrip()
        )
        drawer = SyntaxNode(NodeType.PROPERTY_DRAWER, drawer_start, drawer_end)
        for m in range(cursor + 1, close):
            line_start, line_end = lines[m]
            match = _PROPERTY_RE.match(source, line_start, line_end)
            if not match:
                continue
            prop = SyntaxNode(
                NodeType.PROPERTY,
                match.start(1) - 1,
                match.end(2) if match.group(2) else match.end(1) + 1,
                [SyntaxNode(NodeType.EXPR, match.start(1), match.end(1))],
            )
            if match.group(2):
                prop.children.append(
                    SyntaxNode(NodeType.VALUE, match.start(2), match.end(2))
                )
            drawer.children.append(prop)
        return drawer, close + 1

    @staticmethod
    def _body(
        source: str,
        lines: list[tuple[int, int]],
        cursor: int,
        stop: int,
    ) -> SyntaxNode | None:
        filled = [
            (start, end)
            for start, end in lines[cursor:stop]
            if source[start:end].strip()
        ]
        if not filled:
            return None
        return SyntaxNode(NodeType.BODY, filled[0][0], filled[-1][1])
