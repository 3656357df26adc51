"""
Task log and executor.

Tasks live in memory/tasks.jsonl. A status change appends a full new copy
of the task; the latest line per id is the task's current state, earlier
lines are its history.

The executor picks every pending task that is due (no due date, or a due
date today or earlier), runs its shell command, and appends a ``completed``
version on success. Failed commands leave the task pending for the next run.
"""

from __future__ import annotations

import subprocess
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import structlog

from ..config import MiriamConfig, TasksConfig, default_workspace
from ..dates import iso_now, parse_when, today_str
from ..errors import NotFoundError, ValidationError
from ..logstore import AppendLogStore
from ..outcome import capture

logger = structlog.get_logger(__name__)

TASK_STATUSES = ("pending", "in-progress", "completed", "cancelled")
PRIORITIES = ("low", "medium", "high")
LIST_FILTERS = ("pending", "in-progress", "completed", "cancelled", "all")
ACTIONS = ("execute", "list", "status")

_KNOWN_KEYS = {
    "id", "created", "task", "status", "priority",
    "context", "command", "dueDate", "completedAt",
}


@dataclass
class Task:
    id: str
    created: str
    task: str
    status: str = "pending"
    priority: str = "medium"
    context: str | dict[str, Any] | None = None
    command: str | None = None
    due_date: str | None = None  # YYYY-MM-DD
    completed_at: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)  # unknown keys, round-tripped

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "created": self.created,
            "task": self.task,
            "status": self.status,
            "priority": self.priority,
        }
        if self.context is not None:
            data["context"] = self.context
        if self.command is not None:
            data["command"] = self.command
        if self.due_date is not None:
            data["dueDate"] = self.due_date
        if self.completed_at is not None:
            data["completedAt"] = self.completed_at
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        return cls(
            id=str(data["id"]),
            created=str(data.get("created", "")),
            task=str(data.get("task", "")),
            status=str(data.get("status", "pending")),
            priority=str(data.get("priority", "medium")),
            context=data.get("context"),
            command=data.get("command"),
            due_date=data.get("dueDate"),
            completed_at=data.get("completedAt"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def is_due(self, today: str | None = None) -> bool:
        """No due date means the task can run any time."""
        if not self.due_date:
            return True
        if not isinstance(self.due_date, str):
            logger.warning(
                "ignoring task with malformed due date",
                task_id=self.id,
                due_date=repr(self.due_date),
            )
            return False
        return self.due_date <= (today or today_str())


def tasks_path(workspace_root: Path) -> Path:
    return workspace_root / "memory" / "tasks.jsonl"


class TaskLog:
    """Typed view over the task JSONL log."""

    def __init__(self, workspace_root: Path):
        self.workspace_root = workspace_root
        self.path = tasks_path(workspace_root)
        self.store = AppendLogStore(self.path, required=("id", "task"))

    def add(
        self,
        content: str,
        *,
        priority: str | None = None,
        context: str | dict[str, Any] | None = None,
        command: str | None = None,
        due_date: str | None = None,
    ) -> Task:
        """Create a new pending task."""
        if not content or not content.strip():
            raise ValidationError("Content cannot be empty")
        priority = priority or "medium"
        if priority not in PRIORITIES:
            raise ValidationError(
                f"Invalid priority: {priority}. Must be one of: {', '.join(PRIORITIES)}"
            )

        task = Task(
            id=str(uuid.uuid4()),
            created=iso_now(),
            task=content.strip(),
            priority=priority,
            context=context or None,
            command=command or None,
            due_date=parse_when(due_date),
        )
        self.store.append(task.to_dict())
        return task

    def all_tasks(self) -> list[Task]:
        """Current version of every task."""
        return [Task.from_dict(r) for r in self.store.current()]

    def list(self, status_filter: str | None = None) -> list[Task]:
        if status_filter and status_filter not in LIST_FILTERS:
            raise ValidationError(
                f"Invalid filter: {status_filter}. Must be one of: {', '.join(LIST_FILTERS)}"
            )
        tasks = self.all_tasks()
        if not status_filter or status_filter == "all":
            return tasks
        return [t for t in tasks if t.status == status_filter]

    def get(self, task_id: str) -> Task | None:
        record = self.store.get(task_id)
        return Task.from_dict(record) if record else None

    def set_status(self, task_id: str, status: str) -> Task:
        """Append a new version of ``task_id`` carrying ``status``."""
        if status not in TASK_STATUSES:
            raise ValidationError(
                f"Invalid status: {status}. Must be one of: {', '.join(TASK_STATUSES)}"
            )
        task = self.get(task_id)
        if task is None:
            raise NotFoundError(f"Task not found: {task_id}")

        task.status = status
        if status == "completed":
            task.completed_at = iso_now()
        self.store.append(task.to_dict())
        return task

    def due_pending(self, today: str | None = None) -> list[Task]:
        today = today or today_str()
        return [t for t in self.list("pending") if t.is_due(today)]


@dataclass
class CommandResult:
    success: bool
    output: str = ""
    error: str | None = None


CommandRunner = Callable[[str], CommandResult]


def run_command(
    command: str | None,
    *,
    timeout: float = 60.0,
    max_output: int = 1024 * 1024,
) -> CommandResult:
    """
    Run a shell command with a timeout and an output cap.

    A timeout, a non-zero exit status, or combined output larger than
    ``max_output`` bytes counts as a failure.
    """
    if not command:
        return CommandResult(success=True, output="Task has no command to execute")

    try:
        proc = subprocess.run(
            command,
            shell=True,
            capture_output=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(success=False, error=f"Command timed out after {timeout:g}s: {command}")
    except OSError as e:
        return CommandResult(success=False, error=f"Command could not start: {e}")

    if len(proc.stdout) + len(proc.stderr) > max_output:
        return CommandResult(success=False, error=f"Command output exceeded {max_output} bytes: {command}")

    stdout = proc.stdout.decode("utf-8", errors="replace")
    stderr = proc.stderr.decode("utf-8", errors="replace")

    if proc.returncode != 0:
        detail = stderr.strip() or stdout.strip()
        msg = f"Command failed with exit status {proc.returncode}: {command}"
        if detail:
            msg = f"{msg}\n{detail}"
        return CommandResult(success=False, error=msg)

    return CommandResult(success=True, output=stdout or stderr)


@dataclass
class ExecutionReport:
    executed: int = 0
    failed: dict[str, str] = field(default_factory=dict)  # task id -> error


def execute_due(
    log: TaskLog,
    *,
    runner: CommandRunner | None = None,
    settings: TasksConfig | None = None,
    today: str | None = None,
) -> ExecutionReport:
    """Run every due pending task and mark the successful ones completed."""
    settings = settings or TasksConfig()
    if runner is None:
        def runner(command: str) -> CommandResult:
            return run_command(
                command,
                timeout=settings.timeout_seconds,
                max_output=settings.max_output_bytes,
            )

    report = ExecutionReport()
    for task in log.due_pending(today):
        result = runner(task.command) if task.command else run_command(None)
        if result.success:
            log.set_status(task.id, "completed")
            report.executed += 1
            logger.info("task completed", task_id=task.id)
        else:
            report.failed[task.id] = result.error or "unknown error"
            logger.error("task execution failed", task_id=task.id, error=result.error)
    return report


def task_executor(
    action: str,
    *,
    task_id: str | None = None,
    new_status: str | None = None,
    filter: str | None = None,
    workspace_root: Path | None = None,
    config: MiriamConfig | None = None,
    runner: CommandRunner | None = None,
) -> dict[str, Any]:
    """
    Agent-facing entry point. Never raises; returns
    ``{"success": bool, ...}`` with ``tasks``, ``executed`` or ``error``.
    """
    if action not in ACTIONS:
        return {"success": False, "error": f"Unknown action: {action}"}
    if action == "status" and (not task_id or not new_status):
        return {"success": False, "error": "taskId and newStatus required for status action"}

    root = workspace_root or (config.root if config else default_workspace())
    settings = config.tasks if config else None

    def _run() -> dict[str, Any]:
        log = TaskLog(root)
        log.path.parent.mkdir(parents=True, exist_ok=True)
        if action == "list":
            return {"tasks": [t.to_dict() for t in log.list(filter)]}
        if action == "status":
            log.set_status(task_id, new_status)  # type: ignore[arg-type]
            return {}
        report = execute_due(log, runner=runner, settings=settings)
        return {"executed": report.executed}

    return capture(_run).to_result(lambda fields: fields, prefix="Task executor failed: ")
