"""Live monitoring of the scripts directory.

Filesystem events arrive from a watchdog observer thread. Bursts of events are
collapsed by :class:`ReloadDebouncer` into one reload that runs on an
APScheduler worker once the tree has been quiet for the debounce window.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .config import RELOAD_DEBOUNCE_SECONDS, SCRIPT_FILE_EXTENSION

logger = logging.getLogger(__name__)

RELOAD_JOB_ID = "reload-scripts"

_QUALIFYING_EVENTS = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}
)


class ReloadDebouncer:
    """Run ``callback`` once after ``delay`` seconds without new triggers.

    At most one reload job is pending at a time. ``trigger`` removes the
    pending job before scheduling a replacement, so a steady stream of events
    keeps pushing the reload back.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        delay: float = RELOAD_DEBOUNCE_SECONDS,
        scheduler: Optional[BackgroundScheduler] = None,
        job_id: str = RELOAD_JOB_ID,
    ) -> None:
        self.callback = callback
        self.delay = delay
        self.job_id = job_id
        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler if scheduler is not None else BackgroundScheduler(daemon=True)
        self._lock = threading.Lock()
        self._pending = False
        self._running = False
        self._rerun = False
        self._generation = 0
        self._closed = False

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending

    def trigger(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._remove_job()
            self._generation += 1
            self._pending = True
            if self._owns_scheduler and not self.scheduler.running:
                self.scheduler.start()
            self.scheduler.add_job(
                self._fire,
                trigger="date",
                run_date=datetime.now(timezone.utc) + timedelta(seconds=self.delay),
                id=self.job_id,
                args=[self._generation],
                replace_existing=True,
                # A fire that lands while the previous reload is still running must
                # reach _fire so it can queue a rerun instead of being skipped.
                max_instances=2,
            )

    def cancel(self) -> None:
        with self._lock:
            self._remove_job()
            self._pending = False
            self._rerun = False
            self._generation += 1

    def shutdown(self) -> None:
        """Cancel the pending reload and stop the scheduler if we created it."""

        self.cancel()
        with self._lock:
            self._closed = True
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A cancel() or a newer trigger() may have won the race for the lock.
            if not self._pending or generation != self._generation:
                return
            self._pending = False
            if self._running:
                self._rerun = True
                return
            self._running = True

        while True:
            logger.info("Reloading scripts due to directory changes")
            try:
                self.callback()
            except Exception:  # noqa: BLE001 - the scheduler thread must survive
                logger.exception("Script reload failed")
            with self._lock:
                if not self._rerun or self._closed:
                    self._running = False
                    return
                self._rerun = False

    def _remove_job(self) -> None:
        if not self._pending:
            return
        try:
            self.scheduler.remove_job(self.job_id)
        except JobLookupError:
            # Already fired or removed.
            pass


def is_relevant_event(event: FileSystemEvent) -> bool:
    """Return ``True`` when ``event`` may change the catalog."""

    if event.event_type not in _QUALIFYING_EVENTS:
        return False
    if event.event_type == EVENT_TYPE_DELETED:
        return True
    if event.is_directory:
        # Parent directories report a modification for every child change.
        return event.event_type != EVENT_TYPE_MODIFIED

    paths = [event.src_path]
    dest_path = getattr(event, "dest_path", "")
    if dest_path:
        paths.append(dest_path)
    return any(_as_text(path).endswith(SCRIPT_FILE_EXTENSION) for path in paths)


def _as_text(path: object) -> str:
    if isinstance(path, bytes):
        return path.decode("utf-8", errors="replace")
    return str(path)


class _ScriptEventHandler(FileSystemEventHandler):
    def __init__(self, debouncer: ReloadDebouncer) -> None:
        super().__init__()
        self.debouncer = debouncer

    def on_any_event(self, event: FileSystemEvent) -> None:
        if is_relevant_event(event):
            logger.debug("Relevant change: %s %s", event.event_type, event.src_path)
            self.debouncer.trigger()


class ScriptDirectoryMonitor:
    """Watch ``root`` recursively and request debounced reloads."""

    def __init__(
        self,
        root: Path,
        on_change: Callable[[], None],
        *,
        delay: float = RELOAD_DEBOUNCE_SECONDS,
        scheduler: Optional[BackgroundScheduler] = None,
    ) -> None:
        self.root = root
        self.debouncer = ReloadDebouncer(on_change, delay=delay, scheduler=scheduler)
        self._observer: Optional[Observer] = None

    @property
    def active(self) -> bool:
        return self._observer is not None

    def start(self) -> bool:
        """Install the watch. Returns ``False`` when monitoring is unavailable."""

        if self._observer is not None:
            return True
        observer = Observer()
        try:
            observer.schedule(_ScriptEventHandler(self.debouncer), str(self.root), recursive=True)
            observer.start()
        except OSError as exc:
            logger.error("Failed to set up directory monitoring for %s: %s", self.root, exc)
            return False
        self._observer = observer
        logger.debug("Watching %s for script changes", self.root)
        return True

    def update_root(self, root: Path) -> bool:
        """Tear down the current watch and install one on ``root``."""

        self.debouncer.cancel()
        self._stop_observer()
        self.root = root
        return self.start()

    def stop(self) -> None:
        self.debouncer.shutdown()
        self._stop_observer()

    def _stop_observer(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=2)


__all__ = [
    "RELOAD_JOB_ID",
    "ReloadDebouncer",
    "ScriptDirectoryMonitor",
    "is_relevant_event",
]
