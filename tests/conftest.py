from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Tuple

import pytest
from apscheduler.jobstores.base import JobLookupError


def write_script(path: Path, content: str, executable: bool = True) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if executable:
        path.chmod(0o755)
    return path


class RecordingNotifications:
    def __init__(self) -> None:
        self.events: List[Tuple[str, str, bool]] = []

    def show_notification(self, title: str, body: str, success: bool) -> None:
        self.events.append((title, body, success))

    def show_success(self, script_name: str, message=None) -> None:
        self.show_notification(script_name, message or "Script executed successfully", True)

    def show_error(self, script_name: str, error) -> None:
        self.show_notification(script_name, str(error), False)

    def show_exit_status(self, script_name: str, exit_code: int) -> None:
        if exit_code == 0:
            self.show_success(script_name)
        else:
            self.show_notification(script_name, f"Failed with exit code {exit_code}", False)

    def destroy(self) -> None:
        pass


class FakeScheduler:
    """Stands in for BackgroundScheduler; jobs run only when fired by the test."""

    running = True

    def __init__(self) -> None:
        self.jobs: dict[str, Tuple[Callable, list]] = {}
        self.added = 0
        self.removed = 0

    def add_job(self, func, trigger=None, args=None, id=None, replace_existing=False, **kwargs):
        self.added += 1
        self.jobs[id] = (func, list(args or []))

    def remove_job(self, job_id):
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        self.removed += 1
        del self.jobs[job_id]

    def fire(self, job_id: str) -> None:
        func, args = self.jobs.pop(job_id)
        func(*args)


@pytest.fixture
def notifications() -> RecordingNotifications:
    return RecordingNotifications()


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()
