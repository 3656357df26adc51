"""Tests for the task log and executor."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from miriam.config import MiriamConfig, TasksConfig
from miriam.errors import NotFoundError, ValidationError
from miriam.tools.tasks import (
    CommandResult,
    Task,
    TaskLog,
    execute_due,
    run_command,
    task_executor,
    tasks_path,
)


@pytest.fixture
def log(workspace: Path) -> TaskLog:
    return TaskLog(workspace)


def _write_log(path: Path, records: list[dict]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(json.dumps(r) + "\n" for r in records), encoding="utf-8")


def test_add_appends_pending_task(log: TaskLog) -> None:
    task = log.add("Renew passport", priority="high", due_date="2026-03-01")

    assert task.status == "pending"
    assert task.priority == "high"
    record = json.loads(log.path.read_text(encoding="utf-8"))
    assert record["id"] == task.id
    assert record["dueDate"] == "2026-03-01"
    assert "completedAt" not in record


def test_add_defaults_and_validation(log: TaskLog) -> None:
    assert log.add("x").priority == "medium"
    with pytest.raises(ValidationError, match="Content cannot be empty"):
        log.add("   ")
    with pytest.raises(ValidationError, match="Invalid priority"):
        log.add("x", priority="urgent")


def test_status_filter_uses_latest_version(workspace: Path, log: TaskLog) -> None:
    _write_log(
        tasks_path(workspace),
        [
            {"id": "t1", "task": "a", "status": "pending"},
            {"id": "t1", "task": "a", "status": "completed"},
        ],
    )

    assert log.list("pending") == []
    completed = log.list("completed")
    assert [t.id for t in completed] == ["t1"]
    assert len(log.list("all")) == 1


def test_list_rejects_unknown_filter(log: TaskLog) -> None:
    with pytest.raises(ValidationError, match="Invalid filter"):
        log.list("done")


def test_set_status_appends_new_version(log: TaskLog) -> None:
    task = log.add("Call plumber")
    updated = log.set_status(task.id, "completed")

    assert updated.completed_at
    assert log.store.count() == 2
    assert log.get(task.id).status == "completed"


def test_set_status_errors_do_not_write(log: TaskLog) -> None:
    task = log.add("x")
    with pytest.raises(NotFoundError):
        log.set_status("missing", "completed")
    with pytest.raises(ValidationError, match="Invalid status"):
        log.set_status(task.id, "done")
    assert log.store.count() == 1


def test_unknown_keys_round_trip() -> None:
    data = {"id": "t1", "created": "c", "task": "x", "status": "pending", "priority": "low", "source": "email"}
    assert Task.from_dict(data).to_dict() == data


def test_due_pending(workspace: Path, log: TaskLog) -> None:
    _write_log(
        tasks_path(workspace),
        [
            {"id": "a", "task": "no date", "status": "pending"},
            {"id": "b", "task": "past", "status": "pending", "dueDate": "2026-02-01"},
            {"id": "c", "task": "future", "status": "pending", "dueDate": "2026-02-10"},
            {"id": "d", "task": "done", "status": "completed"},
        ],
    )
    assert [t.id for t in log.due_pending("2026-02-04")] == ["a", "b"]


def test_non_string_due_date_is_not_due(workspace: Path, log: TaskLog) -> None:
    _write_log(
        tasks_path(workspace),
        [
            {"id": "a", "task": "hand edited", "status": "pending", "dueDate": 20260201},
            {"id": "b", "task": "past", "status": "pending", "dueDate": "2026-02-01"},
        ],
    )

    assert [t.id for t in log.due_pending("2026-02-04")] == ["b"]
    report = execute_due(log, runner=lambda command: CommandResult(success=True), today="2026-02-04")
    assert report.executed == 1
    assert log.get("a").status == "pending"


def test_execute_due_marks_successes_and_leaves_failures(log: TaskLog) -> None:
    ok = log.add("ok", command="echo ok")
    bad = log.add("bad", command="false")
    plain = log.add("no command")
    seen: list[str] = []

    def runner(command: str) -> CommandResult:
        seen.append(command)
        if command == "false":
            return CommandResult(success=False, error="exit 1")
        return CommandResult(success=True, output="ok")

    report = execute_due(log, runner=runner)

    assert seen == ["echo ok", "false"]
    assert report.executed == 2
    assert report.failed == {bad.id: "exit 1"}
    assert log.get(ok.id).status == "completed"
    assert log.get(plain.id).status == "completed"
    assert log.get(bad.id).status == "pending"


def test_run_command_success_and_failure() -> None:
    ok = run_command(f'"{sys.executable}" -c "print(42)"')
    assert ok.success
    assert ok.output.strip() == "42"

    failed = run_command(f'"{sys.executable}" -c "import sys; sys.exit(3)"')
    assert not failed.success
    assert "exit status 3" in failed.error


def test_run_command_timeout_and_output_cap() -> None:
    slow = run_command(f'"{sys.executable}" -c "import time; time.sleep(5)"', timeout=0.5)
    assert not slow.success
    assert "timed out" in slow.error

    noisy = run_command(f'"{sys.executable}" -c "print(\'x\' * 5000)"', max_output=100)
    assert not noisy.success
    assert "exceeded" in noisy.error


def test_run_command_without_command() -> None:
    result = run_command(None)
    assert result.success
    assert result.output == "Task has no command to execute"


def test_task_executor_actions(workspace: Path) -> None:
    log = TaskLog(workspace)
    task = log.add("Run backup", command="true")

    listed = task_executor("list", filter="pending", workspace_root=workspace)
    assert listed["success"] is True
    assert [t["id"] for t in listed["tasks"]] == [task.id]

    executed = task_executor(
        "execute",
        workspace_root=workspace,
        runner=lambda command: CommandResult(success=True),
    )
    assert executed == {"success": True, "executed": 1}

    status = task_executor("status", task_id=task.id, new_status="cancelled", workspace_root=workspace)
    assert status == {"success": True}
    assert log.get(task.id).status == "cancelled"


def test_task_executor_lists_around_undecodable_line(workspace: Path) -> None:
    log = TaskLog(workspace)
    first = log.add("Water plants")
    with log.path.open("ab") as f:
        f.write(b"\xff\xfe garbage\n")
    second = log.add("Feed cat")

    listed = task_executor("list", workspace_root=workspace)

    assert listed["success"] is True
    assert [t["id"] for t in listed["tasks"]] == [first.id, second.id]


def test_task_executor_errors(workspace: Path) -> None:
    assert task_executor("explode", workspace_root=workspace) == {
        "success": False,
        "error": "Unknown action: explode",
    }
    assert task_executor("status", task_id="t1", workspace_root=workspace) == {
        "success": False,
        "error": "taskId and newStatus required for status action",
    }

    missing = task_executor("status", task_id="nope", new_status="completed", workspace_root=workspace)
    assert missing["success"] is False
    assert missing["error"].startswith("Task executor failed: ")


def test_task_executor_uses_config_timeouts(workspace: Path) -> None:
    config = MiriamConfig(root=workspace, tasks=TasksConfig(timeout_seconds=0.5))
    TaskLog(workspace).add("slow", command=f'"{sys.executable}" -c "import time; time.sleep(5)"')

    result = task_executor("execute", config=config)

    assert result == {"success": True, "executed": 0}
