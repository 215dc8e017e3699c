"""Dataclasses describing discovered scripts and search results."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

NotifyMode = Literal["status", "stdout", "none"]


@dataclass(slots=True)
class ScriptMetadata:
    """Values read from the comment header of a script."""

    notify: NotifyMode
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ScriptEntry:
    """A script discovered under the catalog root."""

    file: str
    relative_path: str
    name: str
    description: str
    icon: str
    notify: NotifyMode

    @property
    def directory(self) -> str:
        """Directory part of ``relative_path``, empty for scripts at the root."""

        if "/" not in self.relative_path:
            return ""
        return self.relative_path.rsplit("/", 1)[0]


@dataclass(frozen=True, slots=True)
class ResultMeta:
    """Display data for a single search result."""

    id: str
    name: str
    description: str
    icon: str


__all__ = ["NotifyMode", "ResultMeta", "ScriptEntry", "ScriptMetadata"]
