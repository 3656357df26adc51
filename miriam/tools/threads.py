"""
Thread marker - remember conversations or topics to revisit later.

Threads are records in memory/threads.jsonl. Resolving a thread appends a
new version with ``status = "resolved"``; the open version stays in the log.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any

from ..config import default_workspace
from ..dates import iso_now, parse_when
from ..errors import NotFoundError, ValidationError
from ..logstore import AppendLogStore, filter_by_field, filter_due
from ..outcome import capture

IMPORTANCE_LEVELS = ("low", "medium", "high")
THREAD_STATUSES = ("open", "resolved")


def threads_path(workspace_root: Path) -> Path:
    return workspace_root / "memory" / "threads.jsonl"


def _store(workspace_root: Path | None) -> AppendLogStore:
    root = workspace_root or default_workspace()
    return AppendLogStore(threads_path(root), required=("id", "topic", "question"))


def _validate(topic: str, question: str, importance: str | None) -> None:
    if not topic or not topic.strip():
        raise ValidationError("Topic cannot be empty")
    if not question or not question.strip():
        raise ValidationError("Question cannot be empty")
    if importance and importance not in IMPORTANCE_LEVELS:
        raise ValidationError(
            f"Invalid importance: {importance}. Must be one of: {', '.join(IMPORTANCE_LEVELS)}"
        )


def add_thread(
    topic: str,
    question: str,
    *,
    when: str | None = None,
    importance: str | None = None,
    workspace_root: Path | None = None,
) -> dict[str, Any]:
    """Append a new open thread and return it. Raises on invalid input."""
    _validate(topic, question, importance)

    thread: dict[str, Any] = {
        "id": str(uuid.uuid4()),
        "timestamp": iso_now(),
        "topic": topic.strip(),
        "question": question.strip(),
        "importance": importance or "medium",
        "status": "open",
    }
    revisit = parse_when(when)
    if revisit:
        thread["revisit"] = revisit

    return _store(workspace_root).append(thread)


def mark_thread(
    topic: str,
    question: str,
    *,
    when: str | None = None,
    importance: str | None = None,
    workspace_root: Path | None = None,
) -> dict[str, Any]:
    """Agent-facing entry point: ``{"success", "threadId"}`` or ``{"success": False, "error"}``."""
    try:
        _validate(topic, question, importance)
    except ValidationError as e:
        return {"success": False, "error": str(e)}

    outcome = capture(
        add_thread,
        topic,
        question,
        when=when,
        importance=importance,
        workspace_root=workspace_root,
    )
    return outcome.to_result(lambda t: {"threadId": t["id"]}, prefix="Failed to mark thread: ")


def resolve_thread(thread_id: str, *, workspace_root: Path | None = None) -> dict[str, Any]:
    store = _store(workspace_root)
    current = store.get(thread_id)
    if current is None:
        raise NotFoundError(f"Thread not found: {thread_id}")
    resolved = {**current, "status": "resolved", "resolvedAt": iso_now()}
    return store.append(resolved)


def list_threads(
    *,
    status: str | None = None,
    due_by: str | None = None,
    workspace_root: Path | None = None,
) -> list[dict[str, Any]]:
    """
    Current threads, optionally filtered by status and by revisit date.

    With ``due_by``, threads without a revisit date are included.
    """
    if status and status not in THREAD_STATUSES and status != "all":
        raise ValidationError(
            f"Invalid status: {status}. Must be one of: {', '.join(THREAD_STATUSES)}"
        )
    threads = filter_by_field(_store(workspace_root).current(), "status", status)
    if due_by:
        threads = filter_due(threads, "revisit", due_by)
    return threads
