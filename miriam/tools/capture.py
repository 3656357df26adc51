"""
Quick capture - record a task, uncertainty, note or thread without breaking flow.

Routing:
    task         -> memory/tasks.jsonl (new pending task)
    uncertainty  -> today's private daily note, "## Uncertain/Exploring"
    note         -> today's private daily note, "## Notes"
    thread       -> memory/threads.jsonl via the thread marker
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from ..config import default_workspace
from ..dates import today_str
from ..errors import ValidationError
from ..fs import atomic_write, safe_read_text
from ..outcome import capture
from .tasks import PRIORITIES, TaskLog
from .threads import add_thread, threads_path

CAPTURE_TYPES = ("task", "uncertainty", "thread", "note")

_SECTIONS = {
    "uncertainty": "## Uncertain/Exploring",
    "note": "## Notes",
}


def daily_note_path(workspace_root: Path, day: str | None = None) -> Path:
    day = day or today_str()
    return workspace_root / "memory" / "private" / f"{day}-daily.md"


def append_to_daily_section(path: Path, heading: str, line: str, *, day: str | None = None) -> None:
    """Add ``line`` as a bullet, creating the file and the heading when missing."""
    content = safe_read_text(path)
    if content is None:
        content = f"# {day or today_str()} - Daily Log\n\n"
    if heading not in content:
        content += f"\n{heading}\n\n"
    content += f"- {line}\n"
    atomic_write(path, content)


def _validate(content: str, capture_type: str, priority: str | None) -> None:
    if not content or not content.strip():
        raise ValidationError("Content cannot be empty")
    if capture_type not in CAPTURE_TYPES:
        raise ValidationError(
            f"Invalid type: {capture_type}. Must be one of: {', '.join(CAPTURE_TYPES)}"
        )
    if priority and priority not in PRIORITIES:
        raise ValidationError(
            f"Invalid priority: {priority}. Must be one of: {', '.join(PRIORITIES)}"
        )


def quick_capture(
    content: str,
    capture_type: str,
    *,
    priority: str | None = None,
    context: str | dict[str, Any] | None = None,
    command: str | None = None,
    due_date: str | None = None,
    workspace_root: Path | None = None,
) -> dict[str, Any]:
    """Agent-facing entry point; never raises."""
    try:
        _validate(content, capture_type, priority)
    except ValidationError as e:
        return {"success": False, "error": str(e)}

    root = workspace_root or default_workspace()

    if capture_type == "task":
        log = TaskLog(root)
        outcome = capture(
            log.add,
            content,
            priority=priority,
            context=context,
            command=command,
            due_date=due_date,
        )
        return outcome.to_result(
            lambda task: {"taskId": task.id, "filePath": str(log.path)},
            prefix="Failed to write task: ",
        )

    if capture_type == "thread":
        question = context if isinstance(context, str) and context.strip() else content
        outcome = capture(add_thread, content, question, when=due_date, workspace_root=root)
        return outcome.to_result(
            lambda thread: {"threadId": thread["id"], "filePath": str(threads_path(root))},
            prefix="Failed to write thread: ",
        )

    path = daily_note_path(root)
    outcome = capture(append_to_daily_section, path, _SECTIONS[capture_type], content.strip())
    return outcome.to_result(
        lambda _: {"filePath": str(path)},
        prefix=f"Failed to write {capture_type}: ",
    )
