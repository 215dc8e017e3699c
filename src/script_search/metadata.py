"""Parsing of the ``# Key: value`` header block at the top of a script.

The header is the run of lines starting with ``#`` at the beginning of the
file, optionally preceded by a ``#!`` shebang::

    #!/bin/bash
    # Name: Backup Home
    # Description: Copy ~/ to the NAS
    # Icon: drive-harddisk-symbolic
    # Notify: stdout

The first line that does not start with ``#`` ends the header.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Union

from .config import NOTIFICATION_TYPES
from .models import NotifyMode, ScriptMetadata

logger = logging.getLogger(__name__)

_METADATA_LINE = re.compile(r"#\s*(\w+):\s*(.*)")


def parse_metadata(
    content: Union[str, bytes],
    default_notify: NotifyMode,
    *,
    source: str = "<script>",
) -> Optional[ScriptMetadata]:
    """Return the metadata found in ``content``.

    ``None`` is returned only when ``content`` is bytes that are not valid
    UTF-8. A missing ``Name`` is logged but is not a failure.
    """

    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            logger.error("Failed to parse script metadata for %s: %s", source, exc)
            return None

    metadata = ScriptMetadata(notify=default_notify)
    notify_seen = False

    for line in content.split("\n"):
        line = line.strip()
        if line.startswith("#!"):
            continue
        if not line.startswith("#"):
            break

        match = _METADATA_LINE.match(line)
        if not match:
            continue

        key = match.group(1).lower()
        value = match.group(2).strip()
        if key == "name":
            metadata.name = value
        elif key == "description":
            metadata.description = value
        elif key == "icon":
            metadata.icon = value
        elif key == "notify":
            notify_seen = True
            if value in NOTIFICATION_TYPES:
                metadata.notify = value  # type: ignore[assignment]
            else:
                logger.warning(
                    "Invalid notify value %r in %s, using default %r",
                    value,
                    source,
                    default_notify,
                )
                metadata.notify = default_notify

    if not notify_seen:
        logger.debug("No notify value in %s, using default %r", source, default_notify)
    if not metadata.name:
        logger.warning("Script %s is missing the 'Name' metadata", source)

    return metadata


def load_script_metadata(
    path: Path, default_notify: NotifyMode
) -> Optional[ScriptMetadata]:
    """Read ``path`` and parse its header, ``None`` when it cannot be read."""

    try:
        raw = path.read_bytes()
    except OSError as exc:
        logger.error("Failed to read script %s: %s", path, exc)
        return None
    return parse_metadata(raw, default_notify, source=str(path))


__all__ = ["load_script_metadata", "parse_metadata"]
