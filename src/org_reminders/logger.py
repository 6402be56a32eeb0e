"""Process logging for the org-reminders CLI and the auto-sync daemon.

Interactive runs log to stderr. ``sync --type auto`` runs unattended, so its
log goes to a file only (``LOG_FILE``, default ``/tmp/org-reminders.log``).
"""

import json
import logging
import os
import sys

DEFAULT_DAEMON_LOG = "/tmp/org-reminders.log"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_CONSOLE_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
_FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, msg (and exc)."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _make_formatter(style: str, fmt: str) -> logging.Formatter:
    if style == "json":
        return JsonFormatter(datefmt=DATE_FORMAT)
    return logging.Formatter(fmt, datefmt=DATE_FORMAT)


def _resolve_level(debug: bool) -> int:
    if debug:
        return logging.DEBUG
    name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, name, logging.INFO)


def setup_logging(
    mode: str = "cli",
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
) -> None:
    """Install the root handlers for *mode*.

    Args:
        mode: ``"cli"`` logs to stderr (and to *log_file* when given);
            ``"daemon"`` logs to a file only.
        debug: Force DEBUG, ignoring ``LOG_LEVEL``.
        log_file: Log file path. In daemon mode it falls back to
            ``LOG_FILE`` and then to ``DEFAULT_DAEMON_LOG``.
        debug_format: ``"text"`` or ``"json"``.
    """
    handlers: list[logging.Handler] = []

    if mode == "daemon":
        path = log_file or os.getenv("LOG_FILE", DEFAULT_DAEMON_LOG)
        daemon_handler = logging.FileHandler(path, mode="a")
        daemon_handler.setFormatter(
            _make_formatter(debug_format, _CONSOLE_FORMAT)
        )
        handlers.append(daemon_handler)
    else:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(_make_formatter(debug_format, _CONSOLE_FORMAT))
        handlers.append(console)
        if log_file:
            extra = logging.FileHandler(log_file, mode="a")
            extra.setFormatter(_make_formatter(debug_format, _FILE_FORMAT))
            handlers.append(extra)

    logging.basicConfig(
        level=_resolve_level(debug), handlers=handlers, force=True
    )
