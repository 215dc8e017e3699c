"""Script execution utilities."""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ScriptExecutionError
from .models import NotifyMode
from .notifications import NotificationManager

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ScriptResult:
    """Outcome of a finished script."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def run_script(script_path: Path, notify: NotifyMode) -> ScriptResult:
    """Execute ``script_path`` inside its own directory and wait for it.

    Standard output is captured only for the ``stdout`` notification mode;
    standard error is always captured for error reporting.
    """

    stdout = subprocess.PIPE if notify == "stdout" else subprocess.DEVNULL
    try:
        process = subprocess.run(
            [str(script_path)],
            cwd=str(script_path.parent),
            stdin=subprocess.DEVNULL,
            stdout=stdout,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError as exc:
        raise ScriptExecutionError(f"Failed to launch {script_path}: {exc}") from exc

    return ScriptResult(
        exit_code=process.returncode,
        stdout=process.stdout or "",
        stderr=process.stderr or "",
    )


def report_result(
    script_name: str,
    notify: NotifyMode,
    result: ScriptResult,
    notifications: NotificationManager,
) -> None:
    """Turn a finished run into the notification its mode asks for."""

    if notify == "none":
        if not result.success:
            logger.error("Script %s failed with exit code %d", script_name, result.exit_code)
        return

    if notify == "stdout":
        # Output is shown as the script printed it; blank output counts as none.
        output = result.stdout
        if not output.strip() and not result.success:
            output = result.stderr
        if output.strip():
            notifications.show_notification(script_name, output, result.success)
        else:
            notifications.show_exit_status(script_name, result.exit_code)
        return

    notifications.show_exit_status(script_name, result.exit_code)


def execute_script(
    script_name: str,
    script_path: Path,
    notify: NotifyMode,
    notifications: NotificationManager,
) -> Optional[ScriptResult]:
    """Run a script and report the outcome. Never raises."""

    logger.info("Running %s (%s)", script_name, script_path)
    try:
        result = run_script(script_path, notify)
    except ScriptExecutionError as exc:
        logger.error("%s", exc)
        if notify != "none":
            notifications.show_error(script_name, exc)
        return None

    report_result(script_name, notify, result, notifications)
    return result


__all__ = ["ScriptResult", "execute_script", "report_result", "run_script"]
