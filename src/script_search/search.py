"""Query engine over the current catalog snapshot.

Result identifiers are the stringified positions of entries in the snapshot.
They are only meaningful until the next refresh replaces the snapshot.
"""
from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable, Dict, List, Optional, Sequence

from .errors import SearchCancelledError
from .models import ResultMeta, ScriptEntry

logger = logging.getLogger(__name__)


class Cancellable:
    """Thread-safe cancellation token with connectable listeners."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._handlers: Dict[int, Callable[[], None]] = {}
        self._ids = itertools.count(1)

    def is_cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            handlers = list(self._handlers.values())
        for handler in handlers:
            handler()

    def connect(self, callback: Callable[[], None]) -> int:
        """Register ``callback``; it runs at once if already cancelled."""

        with self._lock:
            handler_id = next(self._ids)
            self._handlers[handler_id] = callback
            cancelled = self._cancelled
        if cancelled:
            callback()
        return handler_id

    def disconnect(self, handler_id: int) -> None:
        with self._lock:
            self._handlers.pop(handler_id, None)

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._handlers)


class _CancellationGuard:
    """Register a listener on entry, always deregister on exit."""

    def __init__(self, cancellable: Optional[Cancellable], message: str) -> None:
        self.cancellable = cancellable
        self.message = message
        self.cancelled = False
        self._handler_id: Optional[int] = None

    def _on_cancel(self) -> None:
        self.cancelled = True

    def __enter__(self) -> "_CancellationGuard":
        if self.cancellable is not None:
            self._handler_id = self.cancellable.connect(self._on_cancel)
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self.cancellable is not None and self._handler_id is not None:
            self.cancellable.disconnect(self._handler_id)
            self._handler_id = None

    def check(self) -> None:
        if self.cancelled:
            raise SearchCancelledError(self.message)


class SearchHandler:
    """Filter, truncate and describe catalog entries for a search host."""

    def __init__(self, scripts: Sequence[ScriptEntry] = ()) -> None:
        self._scripts: Sequence[ScriptEntry] = tuple(scripts)

    @property
    def scripts(self) -> Sequence[ScriptEntry]:
        return self._scripts

    def update_scripts(self, scripts: Sequence[ScriptEntry]) -> None:
        self._scripts = tuple(scripts)

    async def get_initial_result_set(
        self, terms: Sequence[str], cancellable: Optional[Cancellable] = None
    ) -> List[str]:
        with _CancellationGuard(cancellable, "Search cancelled") as guard:
            guard.check()
            scripts = self._scripts
            search_term = " ".join(terms).lower()
            logger.debug("Searching %d scripts for %r", len(scripts), search_term)

            results: List[str] = []
            for index, script in enumerate(scripts):
                guard.check()
                if _matches(script, search_term):
                    results.append(str(index))

            guard.check()
        logger.debug("Search results: %d matches found", len(results))
        return results

    async def get_subsearch_result_set(
        self,
        previous_results: Sequence[str],
        terms: Sequence[str],
        cancellable: Optional[Cancellable] = None,
    ) -> List[str]:
        # Refinement is a fresh search; previous_results are not consulted.
        return await self.get_initial_result_set(terms, cancellable)

    def filter_results(self, results: Sequence[str], max_results: int) -> List[str]:
        if len(results) <= max_results:
            return list(results)
        return list(results[:max_results])

    async def get_result_metas(
        self, result_ids: Sequence[str], cancellable: Optional[Cancellable] = None
    ) -> List[ResultMeta]:
        with _CancellationGuard(cancellable, "Operation cancelled") as guard:
            guard.check()
            scripts = self._scripts
            metas: List[ResultMeta] = []
            for result_id in result_ids:
                guard.check()
                script = _lookup(scripts, result_id)
                if script is None:
                    continue
                metas.append(
                    ResultMeta(
                        id=result_id,
                        name=script.name,
                        description=describe(script),
                        icon=script.icon,
                    )
                )
            guard.check()
        return metas


def describe(script: ScriptEntry) -> str:
    """Description with the script's directory appended in brackets."""

    directory = script.directory
    if not directory:
        return script.description
    if script.description:
        return f"{script.description} [{directory}]"
    return f"[{directory}]"


def _matches(script: ScriptEntry, search_term: str) -> bool:
    if search_term in script.name.lower():
        return True
    if search_term in script.description.lower():
        return True
    directory = script.directory
    return bool(directory) and search_term in directory.lower()


def _lookup(scripts: Sequence[ScriptEntry], result_id: str) -> Optional[ScriptEntry]:
    try:
        index = int(result_id)
    except (TypeError, ValueError):
        logger.error("Invalid result id %r", result_id)
        return None
    if index < 0 or index >= len(scripts):
        logger.error("Invalid script index %d, scripts length %d", index, len(scripts))
        return None
    return scripts[index]


__all__ = ["Cancellable", "SearchHandler", "describe"]
