"""Configuration helpers for Script Search."""
from __future__ import annotations

import logging
import os
import platform
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

APP_NAME = "ScriptSearch"

SCRIPT_FILE_EXTENSION = ".sh"

NOTIFICATION_TYPES = ("status", "stdout", "none")

DEFAULT_SCRIPT_LOCATION = "~/.config/script-search/scripts"
DEFAULT_ICON = "system-run-symbolic"
DEFAULT_NOTIFICATION_STYLE = "status"

# Settings keys
SCRIPT_LOCATION_KEY = "script-location"
DEFAULT_ICON_KEY = "default-icon"
DEFAULT_NOTIFICATION_STYLE_KEY = "default-notification-style"
REFRESH_SCRIPTS_TRIGGER_KEY = "refresh-scripts-trigger"

SETTINGS_DEFAULTS: dict[str, object] = {
    SCRIPT_LOCATION_KEY: DEFAULT_SCRIPT_LOCATION,
    DEFAULT_ICON_KEY: DEFAULT_ICON,
    DEFAULT_NOTIFICATION_STYLE_KEY: DEFAULT_NOTIFICATION_STYLE,
    REFRESH_SCRIPTS_TRIGGER_KEY: 0,
}

RELOAD_DEBOUNCE_SECONDS = 0.5


def default_config_dir() -> Path:
    """Return the default directory for storing settings.

    On Windows the directory lives inside ``%APPDATA%``. On other platforms
    ``$XDG_CONFIG_HOME`` is honoured and ``~/.config`` is used otherwise.
    """

    system = platform.system()
    if system == "Windows":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / APP_NAME
        return Path.home() / APP_NAME
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base_dir = Path(xdg) if xdg else Path.home() / ".config"
    return base_dir / "script-search"


def default_settings_path() -> Path:
    return default_config_dir() / "settings.json"


def ensure_dir(path: Path) -> Path:
    """Create the directory (with parents) if it does not exist and return it."""

    path.mkdir(parents=True, exist_ok=True)
    return path


def expand_path(path: str) -> str:
    """Expand a leading ``~`` to the user's home directory."""

    if path.startswith("~"):
        return os.path.expanduser(path)
    return path


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Route log records through rich. Safe to call more than once."""

    level = logging.DEBUG if verbose else logging.WARNING
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.addHandler(
        RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
    )
    root.setLevel(level)


__all__ = [
    "APP_NAME",
    "DEFAULT_ICON",
    "DEFAULT_ICON_KEY",
    "DEFAULT_NOTIFICATION_STYLE",
    "DEFAULT_NOTIFICATION_STYLE_KEY",
    "DEFAULT_SCRIPT_LOCATION",
    "NOTIFICATION_TYPES",
    "REFRESH_SCRIPTS_TRIGGER_KEY",
    "RELOAD_DEBOUNCE_SECONDS",
    "SCRIPT_FILE_EXTENSION",
    "SCRIPT_LOCATION_KEY",
    "SETTINGS_DEFAULTS",
    "configure_logging",
    "default_config_dir",
    "default_settings_path",
    "ensure_dir",
    "expand_path",
]
