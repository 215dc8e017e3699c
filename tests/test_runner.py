from __future__ import annotations

from pathlib import Path

import pytest

from conftest import RecordingNotifications, write_script
from script_search.errors import ScriptExecutionError
from script_search.runner import ScriptResult, execute_script, report_result, run_script


def test_runs_in_script_directory(tmp_path: Path) -> None:
    script = write_script(tmp_path / "tools" / "where.sh", "#!/bin/sh\npwd\n")

    result = run_script(script, "stdout")

    assert result.success
    assert Path(result.stdout.strip()).resolve() == script.parent.resolve()


def test_stdout_not_captured_for_status_mode(tmp_path: Path) -> None:
    script = write_script(tmp_path / "talk.sh", "#!/bin/sh\necho hello\n")
    assert run_script(script, "status").stdout == ""


def test_non_zero_exit_and_stderr(tmp_path: Path) -> None:
    script = write_script(tmp_path / "fail.sh", "#!/bin/sh\necho broken >&2\nexit 3\n")

    result = run_script(script, "status")

    assert result.exit_code == 3
    assert not result.success
    assert result.stderr.strip() == "broken"


def test_launch_failure_raises(tmp_path: Path) -> None:
    script = write_script(tmp_path / "noexec.sh", "#!/bin/sh\necho hi\n", executable=False)
    with pytest.raises(ScriptExecutionError):
        run_script(script, "status")


def test_status_mode_reports_exit_code(notifications: RecordingNotifications) -> None:
    report_result("Job", "status", ScriptResult(0, "", ""), notifications)
    report_result("Job", "status", ScriptResult(2, "", "oops"), notifications)
    assert notifications.events == [
        ("Job", "Script executed successfully", True),
        ("Job", "Failed with exit code 2", False),
    ]


def test_stdout_mode_prefers_output(notifications: RecordingNotifications) -> None:
    report_result("Job", "stdout", ScriptResult(0, "all good\n", ""), notifications)
    report_result("Job", "stdout", ScriptResult(1, "", "disk full\n"), notifications)
    report_result("Job", "stdout", ScriptResult(0, "", "warning only"), notifications)
    report_result("Job", "stdout", ScriptResult(4, "", ""), notifications)
    assert notifications.events == [
        ("Job", "all good\n", True),
        ("Job", "disk full\n", False),
        ("Job", "Script executed successfully", True),
        ("Job", "Failed with exit code 4", False),
    ]


def test_stdout_mode_keeps_raw_text(notifications: RecordingNotifications) -> None:
    report_result("Job", "stdout", ScriptResult(0, "  line one\nline two\n", ""), notifications)
    report_result("Job", "stdout", ScriptResult(0, " \n\t\n", ""), notifications)
    report_result("Job", "stdout", ScriptResult(5, "\n", "  bad input\n"), notifications)
    assert notifications.events == [
        ("Job", "  line one\nline two\n", True),
        ("Job", "Script executed successfully", True),
        ("Job", "  bad input\n", False),
    ]


def test_none_mode_is_silent(notifications: RecordingNotifications) -> None:
    report_result("Job", "none", ScriptResult(1, "", "bad"), notifications)
    assert notifications.events == []


def test_execute_reports_launch_failure(tmp_path: Path, notifications: RecordingNotifications) -> None:
    script = tmp_path / "missing.sh"

    assert execute_script("Missing", script, "status", notifications) is None
    assert execute_script("Missing", script, "none", notifications) is None

    assert len(notifications.events) == 1
    title, _body, success = notifications.events[0]
    assert title == "Missing"
    assert success is False


def test_execute_returns_result(tmp_path: Path, notifications: RecordingNotifications) -> None:
    script = write_script(tmp_path / "ok.sh", "#!/bin/sh\necho done\n")

    result = execute_script("Ok", script, "stdout", notifications)

    assert result is not None and result.success
    assert notifications.events == [("Ok", "done\n", True)]
