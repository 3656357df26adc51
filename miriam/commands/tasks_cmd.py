"""Task log and quick capture commands."""

from __future__ import annotations

import json

from rich.console import Console
from rich.table import Table

from ..config import MiriamConfig
from ..errors import MiriamError
from ..tools.capture import quick_capture
from ..tools.tasks import CommandRunner, TaskLog, execute_due


def run_tasks_list(
    config: MiriamConfig,
    *,
    status_filter: str | None = None,
    output_json: bool = False,
) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        tasks = TaskLog(config.root).list(status_filter)
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1

    if output_json:
        print(json.dumps([t.to_dict() for t in tasks], indent=2))
        return 0

    table = Table(title="Tasks")
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("status")
    table.add_column("priority")
    table.add_column("due", style="dim")
    table.add_column("task")

    for t in tasks:
        table.add_row(t.id[:8], t.status, t.priority, str(t.due_date or ""), t.task)

    console.print(table)
    console.print(f"\nTasks: {len(tasks)} total")
    return 0


def run_tasks_add(
    config: MiriamConfig,
    content: str,
    *,
    priority: str | None = None,
    command: str | None = None,
    due_date: str | None = None,
) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        task = TaskLog(config.root).add(content, priority=priority, command=command, due_date=due_date)
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1
    console.print(f"Added task {task.id}", style="green")
    return 0


def run_tasks_status(config: MiriamConfig, task_id: str, status: str) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        task = TaskLog(config.root).set_status(task_id, status)
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1
    console.print(f"{task.id}: {task.status}")
    return 0


def run_tasks_execute(config: MiriamConfig, *, runner: CommandRunner | None = None) -> int:
    """Run due pending tasks. Exit code 1 when any command failed."""
    console = Console()
    err = Console(stderr=True)

    report = execute_due(TaskLog(config.root), runner=runner, settings=config.tasks)
    console.print(f"Executed: {report.executed}", style="green" if report.executed else None)
    for task_id, error in report.failed.items():
        err.print(f"Failed: {task_id}", style="bold red")
        err.print(f"  {error}", style="dim")
    return 1 if report.failed else 0


def run_capture(
    config: MiriamConfig,
    content: str,
    capture_type: str,
    *,
    priority: str | None = None,
    context: str | None = None,
    command: str | None = None,
    due_date: str | None = None,
) -> int:
    console = Console()
    err = Console(stderr=True)
    result = quick_capture(
        content,
        capture_type,
        priority=priority,
        context=context,
        command=command,
        due_date=due_date,
        workspace_root=config.root,
    )
    if not result["success"]:
        err.print(result["error"], style="bold red")
        return 1

    console.print(f"Captured {capture_type}", style="green")
    for key in ("taskId", "threadId", "filePath"):
        if key in result:
            console.print(f"  {key}: {result[key]}", style="dim")
    return 0
