"""Exception hierarchy for org_reminders."""


class OrgRemindersError(Exception):
    """Base class for all errors raised by this package."""


class ParseError(OrgRemindersError):
    """The parser could not produce a root node for the source text."""


class StaleNodeError(OrgRemindersError):
    """A syntax node handle was used after the document was edited."""


class StoreError(OrgRemindersError):
    """A reminders store operation failed."""


class DateFormatError(OrgRemindersError, ValueError):
    """Date text did not match its expected format."""

    def __init__(self, text: str, fmt: str) -> None:
        super().__init__(f"DateFormatUnmatched: {text!r} ({fmt})")
        self.text = text
        self.fmt = fmt
