"""Recursive discovery of scripts under the catalog root."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from .config import SCRIPT_FILE_EXTENSION
from .metadata import load_script_metadata
from .models import NotifyMode, ScriptEntry

logger = logging.getLogger(__name__)


def ensure_script_directory(root: Path) -> bool:
    """Create ``root`` with its parents if missing. Returns ``False`` on failure."""

    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Failed to create scripts directory %s: %s", root, exc)
        return False
    return True


def scan_scripts(
    root: Path, default_icon: str, default_notify: NotifyMode
) -> List[ScriptEntry]:
    """Return every script below ``root``, depth first.

    Entries of each directory are visited in name order so that the same tree
    always yields the same list. Hidden files and directories are skipped and
    unreadable subtrees contribute nothing.
    """

    ensure_script_directory(root)
    scripts: List[ScriptEntry] = []
    _scan_directory(root, "", default_icon, default_notify, scripts)

    logger.info("Loaded %d scripts from %s", len(scripts), root)
    for script in scripts:
        logger.debug(
            "- %s (file: %s, path: %s, description: %r)",
            script.name,
            script.file,
            script.relative_path,
            script.description,
        )
    return scripts


def _scan_directory(
    root: Path,
    prefix: str,
    default_icon: str,
    default_notify: NotifyMode,
    scripts: List[ScriptEntry],
) -> None:
    directory = root / prefix if prefix else root
    try:
        with os.scandir(directory) as iterator:
            children = sorted(iterator, key=lambda child: child.name)
    except OSError as exc:
        logger.error("Failed to read directory %s: %s", directory, exc)
        return

    for child in children:
        if child.name.startswith("."):
            continue

        relative_path = f"{prefix}/{child.name}" if prefix else child.name
        try:
            is_dir = child.is_dir()
            is_file = child.is_file()
        except OSError as exc:
            logger.error("Failed to stat %s: %s", child.path, exc)
            continue

        if is_dir:
            _scan_directory(root, relative_path, default_icon, default_notify, scripts)
        elif is_file and child.name.endswith(SCRIPT_FILE_EXTENSION):
            metadata = load_script_metadata(Path(child.path), default_notify)
            if metadata is None:
                continue
            scripts.append(
                ScriptEntry(
                    file=child.name,
                    relative_path=relative_path,
                    name=metadata.name or child.name,
                    description=metadata.description or "",
                    icon=metadata.icon or default_icon,
                    notify=metadata.notify or default_notify,
                )
            )


__all__ = ["ensure_script_directory", "scan_scripts"]
