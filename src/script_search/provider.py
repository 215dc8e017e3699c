"""Search provider session: binds settings to the catalog and runs scripts."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from apscheduler.schedulers.background import BackgroundScheduler

from .catalog import ScriptCatalog
from .config import (
    DEFAULT_ICON_KEY,
    DEFAULT_NOTIFICATION_STYLE,
    DEFAULT_NOTIFICATION_STYLE_KEY,
    NOTIFICATION_TYPES,
    REFRESH_SCRIPTS_TRIGGER_KEY,
    RELOAD_DEBOUNCE_SECONDS,
    SCRIPT_LOCATION_KEY,
)
from .models import NotifyMode, ResultMeta
from .notifications import NotificationManager
from .runner import execute_script
from .search import Cancellable
from .settings import SettingsStore

logger = logging.getLogger(__name__)


class ScriptProvider:
    """Entry point used by a search host.

    The provider creates the catalog from the current settings, keeps it in
    sync with setting changes while enabled, and launches activated results.
    """

    def __init__(
        self,
        settings: SettingsStore,
        *,
        notifications: Optional[NotificationManager] = None,
        on_hide: Optional[Callable[[], None]] = None,
        watch: bool = True,
        background: bool = True,
        debounce_delay: float = RELOAD_DEBOUNCE_SECONDS,
    ) -> None:
        self.settings = settings
        self.notifications = notifications or NotificationManager()
        self.on_hide = on_hide
        self.background = background
        self.scheduler = BackgroundScheduler(daemon=True)
        self.scheduler.start()
        self._settings_handler_ids: List[int] = []

        self.catalog = ScriptCatalog(
            settings.get_string(SCRIPT_LOCATION_KEY),
            settings.get_string(DEFAULT_ICON_KEY),
            self._read_notification_style(),
            notifications=self.notifications,
            watch=watch,
            debounce_delay=debounce_delay,
            scheduler=self.scheduler,
        )
        self.catalog.refresh(False)

    def _read_notification_style(self) -> NotifyMode:
        style = self.settings.get_string(DEFAULT_NOTIFICATION_STYLE_KEY)
        if style not in NOTIFICATION_TYPES:
            logger.warning("Invalid default notification style %r, using %r", style, DEFAULT_NOTIFICATION_STYLE)
            return DEFAULT_NOTIFICATION_STYLE  # type: ignore[return-value]
        return style  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Lifecycle
    def enable(self) -> None:
        """Subscribe to setting changes."""

        if self._settings_handler_ids:
            return
        connect = self.settings.connect
        self._settings_handler_ids = [
            connect(SCRIPT_LOCATION_KEY, lambda _key: self.update_script_location()),
            connect(DEFAULT_ICON_KEY, lambda _key: self.update_default_icon()),
            connect(
                DEFAULT_NOTIFICATION_STYLE_KEY,
                lambda _key: self.update_default_notification_style(),
            ),
            connect(REFRESH_SCRIPTS_TRIGGER_KEY, lambda _key: self.refresh_scripts()),
        ]

    def disable(self) -> None:
        """Unsubscribe, release the catalog and stop background work."""

        for handler_id in self._settings_handler_ids:
            self.settings.disconnect(handler_id)
        self._settings_handler_ids = []
        self.catalog.destroy()
        self.notifications.destroy()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Settings handlers
    def refresh_scripts(self, show_notification: bool = True) -> None:
        logger.info("Manually refreshing scripts")
        self.catalog.refresh(show_notification)

    def update_script_location(self) -> None:
        self.catalog.update_script_location(self.settings.get_string(SCRIPT_LOCATION_KEY))

    def update_default_icon(self) -> None:
        self.catalog.update_default_icon(self.settings.get_string(DEFAULT_ICON_KEY))

    def update_default_notification_style(self) -> None:
        self.catalog.update_default_notification_style(self._read_notification_style())

    # ------------------------------------------------------------------
    # Search host API
    async def get_initial_result_set(
        self, terms: Sequence[str], cancellable: Optional[Cancellable] = None
    ) -> List[str]:
        return await self.catalog.search.get_initial_result_set(terms, cancellable)

    async def get_subsearch_result_set(
        self,
        previous_results: Sequence[str],
        terms: Sequence[str],
        cancellable: Optional[Cancellable] = None,
    ) -> List[str]:
        return await self.catalog.search.get_subsearch_result_set(
            previous_results, terms, cancellable
        )

    def filter_results(self, results: Sequence[str], max_results: int) -> List[str]:
        return self.catalog.search.filter_results(results, max_results)

    async def get_result_metas(
        self, result_ids: Sequence[str], cancellable: Optional[Cancellable] = None
    ) -> List[ResultMeta]:
        return await self.catalog.search.get_result_metas(result_ids, cancellable)

    def activate_result(self, result_id: str, terms: Sequence[str]) -> None:
        """Launch the script behind ``result_id`` and hide the host."""

        try:
            script = self.catalog.get(int(result_id))
        except ValueError:
            script = None
        if script is None:
            logger.error("Cannot activate unknown result %r", result_id)
        else:
            script_path = self.catalog.script_path(script)
            args = [script.name, script_path, script.notify, self.notifications]
            if self.background:
                self.scheduler.add_job(execute_script, args=args)
            else:
                execute_script(*args)

        if self.on_hide is not None:
            self.on_hide()


__all__ = ["ScriptProvider"]
