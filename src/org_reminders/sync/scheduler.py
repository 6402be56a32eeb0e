"""Automatic sync: periodic passes plus file-change driven updates.

The Org file is watched by mtime polling. A change re-stamps hashes,
emits the ``sync`` signal and runs a pass; otherwise a pass runs every
``interval`` seconds.

Passes never overlap. A request that arrives while a pass is in flight is
remembered, and all such requests are served by exactly one extra pass
once the current one finishes.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from .engine import SyncEngine
from .models import SyncReport

logger = logging.getLogger(__name__)

TIMER = "timer"
FILE_CHANGE = "file-change"


class SyncScheduler:
    """Drive a ``SyncEngine`` from a timer and from file changes.

    Usage:
        scheduler = SyncScheduler(engine, interval=60)
        scheduler.start()
        ...
        scheduler.stop()

    Args:
        engine: Engine whose document path is watched.
        interval: Seconds between timer-driven passes.
        poll_interval: Seconds between file checks.
        on_signal: Called after a file change was stamped.
        on_report: Called with the report of every pass.
    """

    def __init__(
        self,
        engine: SyncEngine,
        interval: float = 60.0,
        poll_interval: float = 1.0,
        on_signal: Callable[[], None] | None = None,
        on_report: Callable[[SyncReport], None] | None = None,
    ) -> None:
        self.engine = engine
        self.interval = interval
        self.poll_interval = poll_interval
        self.on_signal = on_signal
        self.on_report = on_report
        self.passes = 0
        self.last_report: SyncReport | None = None

        self._state_lock = threading.Lock()
        self._running = False
        self._pending: set[str] = set()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._known_mtime: float | None = None
        self._last_pass = time.monotonic()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def request(self, reason: str = TIMER) -> bool:
        """Run a pass now, or mark one pending if a pass is running.

        Returns:
            ``True`` if this call ran the pass (and any coalesced
            follow-up), ``False`` if it was folded into a running one.
        """
        with self._state_lock:
            if self._running:
                logger.debug("Sync in progress, coalescing %s request", reason)
                self._pending.add(reason)
                return False
            self._running = True

        reasons = {reason}
        try:
            while reasons:
                self._execute(reasons)
                with self._state_lock:
                    reasons, self._pending = self._pending, set()
                    if not reasons:
                        self._running = False
        except BaseException:
            with self._state_lock:
                self._running = False
                self._pending.clear()
            raise
        return True

    def _execute(self, reasons: set[str]) -> None:
        logger.debug("Running sync for: %s", ", ".join(sorted(reasons)))
        try:
            if FILE_CHANGE in reasons:
                self.engine.update_hash()
                self.engine.reporter.signal()
                if self.on_signal is not None:
                    self.on_signal()
            report = self.engine.run()
            self.passes += 1
            self.last_report = report
            if self.on_report is not None:
                self.on_report(report)
        except Exception:
            logger.exception("Scheduled sync failed")
        finally:
            # Our own writes must not count as an outside change.
            self._known_mtime = self._mtime()
            self._last_pass = time.monotonic()

    # ------------------------------------------------------------------
    # Polling thread
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the polling thread (daemon)."""
        logger.info(
            "Starting auto sync (every %.1fs, polling every %.1fs)",
            self.interval,
            self.poll_interval,
        )
        self._known_mtime = self._mtime()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop, daemon=True, name="org-reminders-sync"
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the poll thread to stop and wait for it."""
        logger.info("Stopping auto sync")
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=self.poll_interval + 2)

    def run_forever(self) -> None:
        """Start polling and block until interrupted."""
        self.request(TIMER)
        self.start()
        try:
            while not self._stop_event.wait(1.0):
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.stop()

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            self._stop_event.wait(self.poll_interval)
            if self._stop_event.is_set():
                break
            try:
                self.tick()
            except Exception:
                logger.exception("Error during poll cycle")

    def tick(self) -> None:
        """One poll cycle: react to a file change or a due timer."""
        mtime = self._mtime()
        if mtime != self._known_mtime:
            logger.debug("Org file changed: %s", self.engine.document.path)
            self._known_mtime = mtime
            self.request(FILE_CHANGE)
        elif time.monotonic() - self._last_pass >= self.interval:
            self.request(TIMER)

    def _mtime(self) -> float | None:
        path = self.engine.document.path
        if path is None:
            return None
        try:
            return path.stat().st_mtime
        except OSError:
            return None
