from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest
from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from conftest import FakeScheduler
from script_search.monitor import (
    RELOAD_JOB_ID,
    ReloadDebouncer,
    ScriptDirectoryMonitor,
    is_relevant_event,
)


def test_rapid_triggers_produce_one_reload(fake_scheduler: FakeScheduler) -> None:
    calls = []
    debouncer = ReloadDebouncer(lambda: calls.append(1), scheduler=fake_scheduler)

    for _ in range(5):
        debouncer.trigger()

    assert debouncer.pending
    assert list(fake_scheduler.jobs) == [RELOAD_JOB_ID]
    assert fake_scheduler.removed == 4

    fake_scheduler.fire(RELOAD_JOB_ID)

    assert calls == [1]
    assert not debouncer.pending


def test_spaced_triggers_produce_one_reload_each(fake_scheduler: FakeScheduler) -> None:
    calls = []
    debouncer = ReloadDebouncer(lambda: calls.append(1), scheduler=fake_scheduler)

    for _ in range(3):
        debouncer.trigger()
        fake_scheduler.fire(RELOAD_JOB_ID)

    assert calls == [1, 1, 1]


def test_cancel_discards_pending_reload(fake_scheduler: FakeScheduler) -> None:
    calls = []
    debouncer = ReloadDebouncer(lambda: calls.append(1), scheduler=fake_scheduler)

    debouncer.trigger()
    func, args = fake_scheduler.jobs[RELOAD_JOB_ID]
    debouncer.cancel()

    assert not debouncer.pending
    assert fake_scheduler.jobs == {}
    # A fire that already left the scheduler is ignored.
    func(*args)
    assert calls == []


def test_shutdown_stops_further_triggers(fake_scheduler: FakeScheduler) -> None:
    debouncer = ReloadDebouncer(lambda: None, scheduler=fake_scheduler)
    debouncer.shutdown()
    debouncer.trigger()
    assert fake_scheduler.jobs == {}


def test_callback_errors_are_contained(fake_scheduler: FakeScheduler) -> None:
    def boom() -> None:
        raise RuntimeError("scan exploded")

    debouncer = ReloadDebouncer(boom, scheduler=fake_scheduler)
    debouncer.trigger()
    fake_scheduler.fire(RELOAD_JOB_ID)
    assert not debouncer.pending


def test_trigger_during_reload_runs_again(fake_scheduler: FakeScheduler) -> None:
    calls = []

    def reload() -> None:
        calls.append(1)
        if len(calls) == 1:
            # A change lands and its job fires while this reload is still running.
            debouncer.trigger()
            fake_scheduler.fire(RELOAD_JOB_ID)

    debouncer = ReloadDebouncer(reload, scheduler=fake_scheduler)
    debouncer.trigger()
    fake_scheduler.fire(RELOAD_JOB_ID)

    assert calls == [1, 1]
    assert not debouncer.pending


def test_cancel_drops_queued_rerun(fake_scheduler: FakeScheduler) -> None:
    calls = []

    def reload() -> None:
        calls.append(1)
        if len(calls) == 1:
            debouncer.trigger()
            fake_scheduler.fire(RELOAD_JOB_ID)
            debouncer.cancel()

    debouncer = ReloadDebouncer(reload, scheduler=fake_scheduler)
    debouncer.trigger()
    fake_scheduler.fire(RELOAD_JOB_ID)

    assert calls == [1]


def test_real_scheduler_reloads_after_slow_callback() -> None:
    started = threading.Event()
    done = threading.Event()
    calls = []

    def reload() -> None:
        calls.append(1)
        if len(calls) == 1:
            started.set()
            time.sleep(1)
        else:
            done.set()

    debouncer = ReloadDebouncer(reload, delay=0.2)
    try:
        debouncer.trigger()
        assert started.wait(5)
        debouncer.trigger()
        assert done.wait(5)
        assert calls == [1, 1]
        assert not debouncer.pending
    finally:
        debouncer.shutdown()


def test_real_scheduler_debounces() -> None:
    fired = threading.Event()
    calls = []

    def reload() -> None:
        calls.append(1)
        fired.set()

    debouncer = ReloadDebouncer(reload, delay=0.1)
    try:
        for _ in range(10):
            debouncer.trigger()
        assert fired.wait(5)
        # Give a stray second job time to show up if debouncing were broken.
        fired.clear()
        assert not fired.wait(0.5)
        assert calls == [1]
    finally:
        debouncer.shutdown()


def test_relevant_events() -> None:
    assert is_relevant_event(FileCreatedEvent("/scripts/new.sh"))
    assert is_relevant_event(FileModifiedEvent("/scripts/new.sh"))
    assert is_relevant_event(DirCreatedEvent("/scripts/tools"))
    assert is_relevant_event(FileMovedEvent("/scripts/draft.txt", "/scripts/final.sh"))
    assert is_relevant_event(FileDeletedEvent("/scripts/whatever.txt"))


def test_irrelevant_events() -> None:
    assert not is_relevant_event(FileCreatedEvent("/scripts/notes.txt"))
    assert not is_relevant_event(FileModifiedEvent("/scripts/notes.txt"))
    assert not is_relevant_event(FileClosedEvent("/scripts/new.sh"))
    # Every child change also modifies its parent directory.
    assert not is_relevant_event(DirModifiedEvent("/scripts"))


def test_directory_structure_events_are_relevant() -> None:
    assert is_relevant_event(DirDeletedEvent("/scripts/tools"))
    assert is_relevant_event(DirMovedEvent("/scripts/tools", "/scripts/utils"))


def test_update_root_cancels_pending_reload(tmp_path: Path, fake_scheduler: FakeScheduler) -> None:
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    monitor = ScriptDirectoryMonitor(first, lambda: None, scheduler=fake_scheduler)
    try:
        monitor.start()
        monitor.debouncer.trigger()
        monitor.update_root(second)
        assert monitor.root == second
        assert not monitor.debouncer.pending
    finally:
        monitor.stop()
    assert not monitor.active


def test_start_on_missing_directory_degrades(tmp_path: Path, fake_scheduler: FakeScheduler) -> None:
    monitor = ScriptDirectoryMonitor(tmp_path / "missing", lambda: None, scheduler=fake_scheduler)
    assert monitor.start() is False
    assert not monitor.active
    monitor.stop()


def _live_monitor(root: Path, on_change) -> ScriptDirectoryMonitor:
    monitor = ScriptDirectoryMonitor(root, on_change, delay=0.1)
    if not monitor.start():
        monitor.stop()
        pytest.skip("directory monitoring unavailable")
    return monitor


def test_live_script_write_reloads(tmp_path: Path) -> None:
    reloaded = threading.Event()
    monitor = _live_monitor(tmp_path, reloaded.set)
    try:
        (tmp_path / "new.sh").write_text("#!/bin/sh\n# Name: New\n")
        assert reloaded.wait(5)
    finally:
        monitor.stop()


def test_live_other_file_write_is_ignored(tmp_path: Path) -> None:
    reloaded = threading.Event()
    monitor = _live_monitor(tmp_path, reloaded.set)
    try:
        (tmp_path / "notes.txt").write_text("remember the milk\n")
        assert not reloaded.wait(0.75)
    finally:
        monitor.stop()
