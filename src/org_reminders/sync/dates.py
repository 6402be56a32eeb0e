"""Date conversion between Org timestamps and ``datetime``.

All values are naive local datetimes. Converting a ``datetime`` to text
and back truncates it to the precision of the format: minutes for Org
timestamps, seconds for ``LAST-MODIFIED``.

Weekday names in Org timestamps are always the English abbreviations,
whatever the process locale is.
"""

from __future__ import annotations

import re
from datetime import datetime

from ..errors import DateFormatError
from ..org.enums import DateFormat

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_WEEKDAY_TOKEN = re.compile(r"\b(%s)\b" % "|".join(WEEKDAYS))


def format_date(value: datetime, fmt: DateFormat) -> str:
    pattern = fmt.value.replace("%a", WEEKDAYS[value.weekday()])
    return value.strftime(pattern)


def parse_date(text: str, fmt: DateFormat) -> datetime:
    """Parse *text* with *fmt*.

    Raises:
        DateFormatError: If *text* does not match the format.
    """
    text = text.strip()
    pattern = fmt.value
    if "%a" in pattern:
        match = _WEEKDAY_TOKEN.search(text)
        if match is None:
            raise DateFormatError(text, pattern)
        pattern = pattern.replace("%a", match.group(1))
    try:
        return datetime.strptime(text, pattern)
    except ValueError as exc:
        raise DateFormatError(text, fmt.value) from exc


def truncate(value: datetime, fmt: DateFormat) -> datetime:
    """Drop the precision *fmt* cannot represent."""
    return parse_date(format_date(value, fmt), fmt)


def now() -> datetime:
    """Current local time in ``LAST-MODIFIED`` precision."""
    return truncate(datetime.now(), DateFormat.OTHER)
