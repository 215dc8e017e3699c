"""Exceptions raised by Script Search."""
from __future__ import annotations


class ScriptSearchError(RuntimeError):
    """Base class for errors raised by this package."""


class SearchCancelledError(ScriptSearchError):
    """Raised when a query is cancelled before it produced a result."""


class ScriptExecutionError(ScriptSearchError):
    """Raised when a script fails before it can start."""


class SettingsError(ScriptSearchError):
    """Raised for unknown keys, invalid values or an unreadable settings file."""


__all__ = [
    "ScriptExecutionError",
    "ScriptSearchError",
    "SearchCancelledError",
    "SettingsError",
]
