"""JSON-backed settings with change notifications."""
from __future__ import annotations

import itertools
import json
import logging
from pathlib import Path
from typing import Callable, Dict, Tuple

from .config import (
    DEFAULT_NOTIFICATION_STYLE_KEY,
    NOTIFICATION_TYPES,
    SETTINGS_DEFAULTS,
)
from .errors import SettingsError

logger = logging.getLogger(__name__)

SettingsCallback = Callable[[str], None]


class SettingsStore:
    """Stores the four settings keys in a JSON file.

    Callbacks registered with :meth:`connect` run after a key's value has
    actually changed and been written to disk.
    """

    def __init__(self, storage_path: str | Path) -> None:
        self.storage_path = Path(storage_path)
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        self._handlers: Dict[int, Tuple[str, SettingsCallback]] = {}
        self._ids = itertools.count(1)
        self._values = self._load()

    def _load(self) -> Dict[str, object]:
        values = dict(SETTINGS_DEFAULTS)
        if not self.storage_path.exists():
            self._write(values)
            return values
        try:
            data = json.loads(self.storage_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SettingsError(f"Cannot read settings from {self.storage_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SettingsError(f"Settings file {self.storage_path} must contain an object")
        for key, value in data.items():
            if key in values:
                values[key] = value
            else:
                logger.warning("Ignoring unknown setting %r in %s", key, self.storage_path)
        return values

    def reload(self) -> list[str]:
        """Re-read the file and notify subscribers of keys changed on disk."""

        fresh = self._load()
        changed = [key for key in SETTINGS_DEFAULTS if fresh[key] != self._values[key]]
        self._values = fresh
        for key in changed:
            self._emit(key)
        return changed

    def _write(self, values: Dict[str, object]) -> None:
        self.storage_path.write_text(
            json.dumps(values, ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )

    @staticmethod
    def _check_key(key: str) -> None:
        if key not in SETTINGS_DEFAULTS:
            raise SettingsError(f"Unknown setting '{key}'")

    def keys(self) -> list[str]:
        return list(SETTINGS_DEFAULTS)

    def get_value(self, key: str) -> object:
        self._check_key(key)
        return self._values[key]

    def get_string(self, key: str) -> str:
        return str(self.get_value(key))

    def get_int(self, key: str) -> int:
        value = self.get_value(key)
        try:
            return int(value)  # type: ignore[call-overload]
        except (TypeError, ValueError) as exc:
            raise SettingsError(f"Setting '{key}' is not an integer: {value!r}") from exc

    def set_string(self, key: str, value: str) -> None:
        self._check_key(key)
        if isinstance(SETTINGS_DEFAULTS[key], int):
            raise SettingsError(f"Setting '{key}' expects an integer")
        if key == DEFAULT_NOTIFICATION_STYLE_KEY and value not in NOTIFICATION_TYPES:
            raise SettingsError(
                f"Invalid notification style '{value}', expected one of: "
                + ", ".join(NOTIFICATION_TYPES)
            )
        self._set(key, value)

    def set_int(self, key: str, value: int) -> None:
        self._check_key(key)
        if not isinstance(SETTINGS_DEFAULTS[key], int):
            raise SettingsError(f"Setting '{key}' expects a string")
        self._set(key, int(value))

    def reset(self, key: str) -> None:
        self._check_key(key)
        self._set(key, SETTINGS_DEFAULTS[key])

    def _set(self, key: str, value: object) -> None:
        if self._values.get(key) == value:
            return
        self._values[key] = value
        self._write(self._values)
        self._emit(key)

    def _emit(self, key: str) -> None:
        for handler_key, callback in list(self._handlers.values()):
            if handler_key == key:
                callback(key)

    def connect(self, key: str, callback: SettingsCallback) -> int:
        """Call ``callback(key)`` whenever ``key`` changes."""

        self._check_key(key)
        handler_id = next(self._ids)
        self._handlers[handler_id] = (key, callback)
        return handler_id

    def disconnect(self, handler_id: int) -> None:
        self._handlers.pop(handler_id, None)


__all__ = ["SettingsCallback", "SettingsStore"]
