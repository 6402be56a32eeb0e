"""Fixed vocabularies of the Org outline format."""

from __future__ import annotations

from enum import Enum

DELETED_TAG = "DELETED"


class NodeType(str, Enum):
    """Syntax node type tags produced by the parser."""

    DOCUMENT = "document"
    SECTION = "section"
    HEADLINE = "headline"
    STARS = "stars"
    ITEM = "item"
    WORD = "word"
    TAG_LIST = "tag_list"
    TAG = "tag"
    PLAN = "plan"
    ENTRY = "entry"
    ENTRY_NAME = "entry_name"
    TIMESTAMP = "timestamp"
    PROPERTY_DRAWER = "property_drawer"
    PROPERTY = "property"
    EXPR = "expr"
    VALUE = "value"
    BODY = "body"


class Status(str, Enum):
    TODO = "TODO"
    DONE = "DONE"

    @classmethod
    def contains(cls, text: str) -> bool:
        return text in {member.value for member in cls}


class Priority(str, Enum):
    """Priority letters; the cookie form is ``[#A]``."""

    HIGH = "A"
    MEDIUM = "B"
    LOW = "C"

    @property
    def cookie(self) -> str:
        return f"[#{self.value}]"

    @classmethod
    def from_cookie(cls, text: str) -> Priority | None:
        for member in cls:
            if member.cookie == text:
                return member
        return None


class PlanKey(str, Enum):
    SCHEDULED = "SCHEDULED"
    CLOSED = "CLOSED"


class PropertyKey(str, Enum):
    HASH = "HASH"
    LAST_MODIFIED = "LAST-MODIFIED"
    LIST_ID = "LIST-ID"
    EXTERNAL_ID = "EXTERNAL-ID"


class DateFormat(str, Enum):
    """strftime patterns for each kind of date text.

    Scheduled and closed plans use distinct brackets, as Org does for
    active and inactive timestamps.
    """

    SCHEDULED = "<%Y-%m-%d %a %H:%M>"
    CLOSED = "[%Y-%m-%d %a %H:%M]"
    OTHER = "%Y-%m-%d %H:%M:%S"
