"""Sync action log and report formatting.

Provides machine-readable and human-readable output for sync operations:

- ``SyncLogger`` -- one log line per action taken, for an editor bridge.
- ``format_sync_report`` -- full post-sync summary.
- ``format_dry_run_preview`` -- dry-run preview grouped by action.
- ``report_to_json`` -- structured dict for ``--json`` output.

An action line looks like::

    [2024-01-02 10:00:00][Org Mode][CanonicalItem][Update][X1][eyJ0aXRs...]

where the last field is the base64-encoded JSON payload of the entity.
"""

from __future__ import annotations

import base64
import json
import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Callable

from ..org.enums import DateFormat
from .dates import now
from .models import SyncLogEntry, SyncTarget, SyncVerb

if TYPE_CHECKING:
    from .models import Entity, SyncReport

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Action log
# ------------------------------------------------------------------


class SyncLogger:
    """Report actions as log lines and to an optional callback.

    Args:
        callback: Called with every ``SyncLogEntry`` after it is logged.
    """

    def __init__(
        self, callback: Callable[[SyncLogEntry], None] | None = None
    ) -> None:
        self.callback = callback
        self.entries: list[SyncLogEntry] = []

    def log(
        self, target: SyncTarget, verb: SyncVerb, entity: Entity
    ) -> SyncLogEntry:
        entry = SyncLogEntry(target=target, verb=verb, entity=entity)
        self.entries.append(entry)
        payload = to_json(entry)
        logger.info("%s", format_line(entry, payload))
        logger.debug("%s", payload)
        if self.callback is not None:
            self.callback(entry)
        return entry

    def signal(self) -> None:
        """Emit the ``sync`` notification after a file-driven update."""
        logger.info(
            "[%s][%s][sync]",
            _timestamp_text(),
            SyncTarget.DOCUMENT.label,
        )


def _timestamp_text(entry: SyncLogEntry | None = None) -> str:
    stamp = entry.timestamp if entry is not None else now()
    return stamp.strftime(DateFormat.OTHER.value)


def to_json(entry: SyncLogEntry) -> str:
    """Pretty, key-sorted JSON of the entry's entity."""
    return json.dumps(entry.payload(), indent=2, sort_keys=True)


def format_line(entry: SyncLogEntry, payload: str | None = None) -> str:
    """Render *entry* as one bracketed action line."""
    if payload is None:
        payload = to_json(entry)
    encoded = base64.b64encode(payload.encode("utf-8")).decode("ascii")
    fields = [
        _timestamp_text(entry),
        entry.target.label,
        type(entry.entity).__name__,
        entry.verb.value.capitalize(),
        entry.key,
        encoded,
    ]
    return "".join(f"[{field}]" for field in fields)


def parse_line(line: str) -> tuple[str, str, str, str, str, dict]:
    """Split an action line back into its fields.

    Returns:
        ``(timestamp, target, type, verb, id, payload)``.

    Raises:
        ValueError: If *line* is not a six-field action line.
    """
    if not (line.startswith("[") and line.endswith("]")):
        raise ValueError(f"Not an action line: {line!r}")
    fields = line[1:-1].split("][")
    if len(fields) != 6:
        raise ValueError(f"Expected 6 fields, got {len(fields)}: {line!r}")
    stamp, target, kind, verb, key, encoded = fields
    payload = json.loads(base64.b64decode(encoded).decode("utf-8"))
    return stamp, target, kind, verb, key, payload


# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    Sections are only included when they contain at least one result.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = f"Sync report ({report.mode})"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"{len(report.results)} actions: "
        f"{len(report.added_document) + len(report.added_store)} added, "
        f"{len(report.updated_document) + len(report.updated_store)} updated, "
        f"{len(report.deleted_document) + len(report.deleted_store)} deleted, "
        f"{len(report.errors)} errors"
    )
    lines.append("")

    sections = [
        ("Added to Org file:", report.added_document),
        ("Updated in Org file:", report.updated_document),
        ("Deleted from Org file:", report.deleted_document),
        ("Added to store:", report.added_store),
        ("Updated in store:", report.updated_store),
        ("Deleted from store:", report.deleted_store),
    ]
    for title, results in sections:
        if not results:
            continue
        lines.append(title)
        for r in results:
            lines.append(f"  {r.kind} {r.title!r} ({r.key or 'new'})")
        lines.append("")

    if report.errors:
        lines.append("Errors:")
        for r in report.errors:
            lines.append(
                f"  {r.target.value} {r.verb.value} {r.kind} "
                f"{r.title!r}: {r.error}"
            )
        lines.append("")

    if report.error:
        lines.append(f"Pass aborted during {report.state.value}: {report.error}")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: SyncReport) -> str:
    """Format a dry-run preview grouped by target and verb.

    Each proposed action is shown as ``kind 'title' (key)``.

    Args:
        report: A dry-run sync report (``dry_run=True``).

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    lines.append("DRY RUN -- No changes will be made")
    lines.append(f"Mode: {report.mode}")
    lines.append("")

    groups: dict[tuple[SyncTarget, SyncVerb], list[str]] = defaultdict(list)
    for r in report.results:
        groups[(r.target, r.verb)].append(
            f"{r.kind} {r.title!r} ({r.key or 'new'})"
        )

    for target in SyncTarget:
        for verb in (SyncVerb.ADD, SyncVerb.UPDATE, SyncVerb.DELETE):
            entries = groups.get((target, verb))
            if not entries:
                continue
            lines.append(f"[{verb.value.upper()} {target.label.upper()}]")
            for text in entries:
                lines.append(f"  {text}")
            lines.append("")

    if not report.results:
        lines.append("No changes needed.")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation.

    Args:
        report: The sync report.

    Returns:
        Dict with pass info, counts, and per-result details.
    """
    results_list = []
    for r in report.results:
        entry: dict = {
            "target": r.target.value,
            "verb": r.verb.value,
            "kind": r.kind,
            "key": r.key,
            "title": r.title,
            "success": r.success,
        }
        if r.error:
            entry["error"] = r.error
        results_list.append(entry)

    return {
        "mode": report.mode,
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "state": report.state.value,
        "error": report.error,
        "counts": {
            "total": len(report.results),
            "added_document": len(report.added_document),
            "updated_document": len(report.updated_document),
            "deleted_document": len(report.deleted_document),
            "added_store": len(report.added_store),
            "updated_store": len(report.updated_store),
            "deleted_store": len(report.deleted_store),
            "errors": len(report.errors),
        },
        "results": results_list,
    }
