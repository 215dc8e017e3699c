"""Console notifications for script runs and catalog refreshes."""
from __future__ import annotations

from typing import Optional, Protocol, Union

from rich.console import Console
from rich.panel import Panel


class NotificationSink(Protocol):
    def show_notification(self, title: str, body: str, success: bool) -> None: ...


class NotificationManager:
    """Render notifications as rich panels."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def show_notification(self, title: str, body: str, success: bool) -> None:
        style = "green" if success else "red"
        marker = "✔" if success else "⚠"
        self.console.print(
            Panel(body, title=f"{marker} {title}", border_style=style, expand=False)
        )

    def show_success(self, script_name: str, message: Optional[str] = None) -> None:
        self.show_notification(script_name, message or "Script executed successfully", True)

    def show_error(self, script_name: str, error: Union[str, BaseException]) -> None:
        self.show_notification(script_name, str(error), False)

    def show_exit_status(self, script_name: str, exit_code: int) -> None:
        if exit_code == 0:
            self.show_success(script_name)
        else:
            self.show_notification(script_name, f"Failed with exit code {exit_code}", False)

    def destroy(self) -> None:
        """Nothing to release for console output."""


__all__ = ["NotificationManager", "NotificationSink"]
