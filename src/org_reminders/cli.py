"""Command-line entry point for org-reminders."""

from __future__ import annotations

import argparse
import json
import logging
import sys

import yaml
from dotenv import load_dotenv

from . import __version__
from .config import Config, load_config
from .config_loader import ensure_config, load_hierarchical_config
from .config_schema import build_config
from .errors import OrgRemindersError
from .file_handler import validate_file_path
from .logger import setup_logging
from .org.document import OrgDocument
from .store import create_store
from .sync.engine import SyncEngine
from .sync.models import SyncReport
from .sync.reporter import (
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
)
from .sync.scheduler import SyncScheduler

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="org-reminders",
        description="Two-way sync between an Org file and a reminders store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Reconcile the Org file with the store once
  org-reminders sync ~/org/reminders.org

  # Preview the actions without touching anything
  org-reminders sync ~/org/reminders.org --dry-run

  # Rewrite the Org file from the store
  org-reminders sync ~/org/reminders.org --type all

  # Keep syncing in the background (logs go to /tmp/org-reminders.log)
  org-reminders sync ~/org/reminders.org --type auto

  # Stamp hashes of items edited by hand
  org-reminders update-hash ~/org/reminders.org

  # Create a starter .org_reminders/config.yml
  org-reminders init-config
        """,
    )
    parser.add_argument(
        "--store",
        help="JSON store file (takes precedence over ORG_REMINDERS_STORE "
        "and config files)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging, including action payloads",
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--version",
        action="version",
        version=f"org-reminders version {__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    sync = commands.add_parser("sync", help="Synchronize the Org file")
    sync.add_argument("file", nargs="?", help="Org file to synchronize")
    sync.add_argument(
        "--type",
        dest="mode",
        choices=["once", "all", "auto"],
        help="once: one pass (default); all: rewrite the file from the "
        "store; auto: keep syncing on a timer and on file changes",
    )
    sync.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the actions without applying them",
    )
    sync.add_argument(
        "--json", action="store_true", help="Print the report as JSON"
    )

    update_hash = commands.add_parser(
        "update-hash", help="Stamp HASH and LAST-MODIFIED on edited items"
    )
    update_hash.add_argument("file", nargs="?", help="Org file to update")
    update_hash.add_argument(
        "--json", action="store_true", help="Print the report as JSON"
    )

    commands.add_parser("init-config", help="Create a starter config file")
    return parser


def _print_report(report: SyncReport, as_json: bool) -> None:
    if as_json:
        print(json.dumps(report_to_json(report), indent=2))
    elif report.dry_run:
        print(format_dry_run_preview(report))
    else:
        print(format_sync_report(report))


def _load(args: argparse.Namespace) -> Config:
    unified = build_config(load_hierarchical_config())
    return load_config(
        org_file=args.file,
        store=args.store,
        mode=getattr(args, "mode", None),
        dry_run=getattr(args, "dry_run", False),
        debug=args.debug,
        log_file=args.log_file,
        unified=unified,
    )


def _build_engine(config: Config) -> SyncEngine:
    if config.mode != "all":
        validate_file_path(str(config.org_file))
    store = create_store(config.store_backend, config.store_path)
    document = OrgDocument.from_file(config.org_file)
    return SyncEngine(document, store)


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the command and return the exit code."""
    args = build_parser().parse_args(argv)

    # Load .env early so ${VAR} interpolation in YAML can use it
    load_dotenv()

    if args.command == "init-config":
        print(f"Config file: {ensure_config()}")
        return 0

    try:
        config = _load(args)
    except (ValueError, yaml.YAMLError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    auto = args.command == "sync" and config.mode == "auto"
    setup_logging(
        mode="daemon" if auto else "cli",
        debug=config.debug,
        log_file=config.log_file,
        debug_format=config.log_format,
    )

    try:
        engine = _build_engine(config)
    except (ValueError, OrgRemindersError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.command == "update-hash":
        report = engine.update_hash()
    elif config.mode == "all":
        report = engine.mirror(dry_run=config.dry_run)
    elif auto:
        print(
            f"Auto sync of {config.org_file} every {config.interval:g}s "
            "(Ctrl-C to stop)",
            file=sys.stderr,
        )
        SyncScheduler(
            engine,
            interval=config.interval,
            poll_interval=config.poll_interval,
        ).run_forever()
        return 0
    else:
        report = engine.run(dry_run=config.dry_run)

    _print_report(report, args.json)
    return 0 if report.ok else 1


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
