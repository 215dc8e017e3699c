"""The in-memory catalog of scripts and its reload lifecycle."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional, Tuple

from apscheduler.schedulers.background import BackgroundScheduler

from .config import NOTIFICATION_TYPES, RELOAD_DEBOUNCE_SECONDS, expand_path
from .models import NotifyMode, ScriptEntry
from .monitor import ScriptDirectoryMonitor
from .notifications import NotificationSink
from .scanner import ensure_script_directory, scan_scripts
from .search import SearchHandler

logger = logging.getLogger(__name__)


class ScriptCatalog:
    """Owns the list of scripts found under ``location``.

    The list is only ever replaced as a whole by :meth:`refresh`; readers keep
    whichever tuple they picked up and never see a partially built list.
    """

    def __init__(
        self,
        location: str,
        default_icon: str,
        default_notify: NotifyMode,
        *,
        notifications: Optional[NotificationSink] = None,
        watch: bool = True,
        debounce_delay: float = RELOAD_DEBOUNCE_SECONDS,
        scheduler: Optional[BackgroundScheduler] = None,
    ) -> None:
        self._location = Path(expand_path(location))
        self.default_icon = default_icon
        self.default_notify: NotifyMode = default_notify
        self.notifications = notifications
        self.search = SearchHandler()
        self._entries: Tuple[ScriptEntry, ...] = ()
        self._refresh_lock = threading.Lock()
        self._destroyed = False

        self.monitor: Optional[ScriptDirectoryMonitor] = None
        ensure_script_directory(self._location)
        if watch:
            self.monitor = ScriptDirectoryMonitor(
                self._location,
                self._on_scripts_changed,
                delay=debounce_delay,
                scheduler=scheduler,
            )
            self.monitor.start()

    @property
    def location(self) -> Path:
        return self._location

    @property
    def entries(self) -> Tuple[ScriptEntry, ...]:
        return self._entries

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def get(self, index: int) -> Optional[ScriptEntry]:
        entries = self._entries
        if 0 <= index < len(entries):
            return entries[index]
        return None

    def script_path(self, entry: ScriptEntry) -> Path:
        return self._location.joinpath(*entry.relative_path.split("/"))

    def refresh(self, notify: bool = False) -> Tuple[ScriptEntry, ...]:
        """Rescan the tree and swap in the new list of scripts."""

        with self._refresh_lock:
            if self._destroyed:
                return self._entries
            try:
                scripts = tuple(
                    scan_scripts(self._location, self.default_icon, self.default_notify)
                )
            except Exception:  # noqa: BLE001 - a failed scan must not reach the caller
                logger.exception("Scanning %s failed", self._location)
                scripts = ()
            self._entries = scripts
            self.search.update_scripts(scripts)

        if notify and self.notifications is not None:
            self.notifications.show_notification(
                "Scripts Refreshed", "All scripts have been reloaded from disk", True
            )
        return scripts

    def _on_scripts_changed(self) -> None:
        self.refresh(False)

    def update_script_location(self, location: str) -> bool:
        """Point the catalog at ``location``. Returns ``True`` if it changed."""

        new_location = Path(expand_path(location))
        if new_location == self._location or self._destroyed:
            return False

        logger.info("Updating script location from %s to %s", self._location, new_location)
        self._location = new_location
        ensure_script_directory(new_location)
        if self.monitor is not None:
            self.monitor.update_root(new_location)
        self.refresh(False)
        return True

    def update_default_icon(self, icon: str) -> None:
        self.default_icon = icon
        self.refresh(False)

    def update_default_notification_style(self, style: str) -> None:
        if style not in NOTIFICATION_TYPES:
            logger.warning(
                "Ignoring invalid default notification style %r, keeping %r",
                style,
                self.default_notify,
            )
            return
        self.default_notify = style  # type: ignore[assignment]
        self.refresh(False)

    def destroy(self) -> None:
        with self._refresh_lock:
            self._destroyed = True
            self._entries = ()
            self.search.update_scripts(())
        if self.monitor is not None:
            self.monitor.stop()
            self.monitor = None


__all__ = ["ScriptCatalog"]
