"""Headline: one list (level 1) or reminder (level 2) of the outline.

Headlines are plain data. Parent links are arena indices owned by the
``OrgDocument`` that built them, and the link back to the syntax tree is a
generation-stamped ``NodeRef`` that goes stale on the next edit.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .enums import DELETED_TAG, PlanKey, PropertyKey, Status
from .syntax import SyntaxNode

_STATISTICS_RE = re.compile(r"\s*\[\d+/\d+\]$")


def strip_statistics(title: str) -> str:
    """Remove a trailing ``[done/total]`` cookie from *title*."""
    return _STATISTICS_RE.sub("", title)


@dataclass(frozen=True)
class NodeRef:
    """Handle to the syntax node a headline was built from.

    Only valid while ``generation`` equals the owning document's
    generation.
    """

    generation: int
    node: SyntaxNode


@dataclass(eq=False)
class Headline:
    """A single outline node.

    Attributes:
        level: 1 for a list, 2 for a reminder.
        title: Headline text without status, priority and statistics.
        status: ``"TODO"``, ``"DONE"`` or ``None``.
        priority: ``"A"``, ``"B"``, ``"C"`` or ``None``.
        plans: Plan keyword to raw timestamp text.
        properties: Property drawer contents.
        tags: Headline tags in order.
        content: Trimmed body text, ``None`` when empty.
        children: Level-2 headlines of a level-1 headline.
        index: Position in the owning document's arena.
        parent_index: Arena index of the parent headline.
        node_ref: Syntax node handle (parsed headlines only).
    """

    level: int = 1
    title: str = ""
    status: str | None = None
    priority: str | None = None
    plans: dict[str, str] = field(default_factory=dict)
    properties: dict[str, str] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    content: str | None = None
    children: list[Headline] = field(default_factory=list)
    index: int | None = field(default=None, repr=False)
    parent_index: int | None = field(default=None, repr=False)
    node_ref: NodeRef | None = field(default=None, repr=False)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def identity(self) -> str | None:
        """Reserved identifier property for this level, if present."""
        key = (
            PropertyKey.LIST_ID if self.level == 1 else PropertyKey.EXTERNAL_ID
        )
        return self.properties.get(key.value)

    @property
    def shape(self) -> tuple[str, str | None, str | None, int]:
        return (self.title, self.priority, self.status, self.level)

    @property
    def is_deleted(self) -> bool:
        return DELETED_TAG in self.tags

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def count_statistics(self) -> str:
        """Return the `` [done/total]`` cookie for a level-1 headline."""
        if self.level != 1:
            return ""
        done = sum(1 for c in self.children if c.status == Status.DONE.value)
        todo = sum(1 for c in self.children if c.status == Status.TODO.value)
        return f" [{done}/{todo + done}]"

    def to_org(self, include_children: bool = True) -> str:
        """Serialize to Org text. The result always starts with a newline."""
        parts = ["\n*" if self.level == 1 else "\n**"]
        if self.status:
            parts.append(f" {self.status}")
        if self.priority:
            parts.append(f" [#{self.priority}]")
        parts.append(f" {self.title}")
        parts.append(self.count_statistics())
        if self.tags:
            parts.append(" :" + ":".join(self.tags) + ":")

        closed = self.plans.get(PlanKey.CLOSED.value)
        if closed is not None:
            parts.append(f"\n{PlanKey.CLOSED.value}: {closed}")
        for key, value in self.plans.items():
            if key != PlanKey.CLOSED.value:
                parts.append(f"\n{key}: {value}")

        if self.properties:
            parts.append("\n:PROPERTIES:")
            for key, value in self.properties.items():
                parts.append(f"\n:{key}: {value}")
            parts.append("\n:END:")

        if self.content is not None:
            parts.append(f"\n{self.content}")

        if include_children:
            parts.extend(child.to_org() for child in self.children)
        return "".join(parts)

    def own_text(self) -> str:
        """Serialize the headline's own fields, leaving out children."""
        return self.to_org(include_children=False)
