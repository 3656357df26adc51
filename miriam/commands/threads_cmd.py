"""Thread marker commands."""

from __future__ import annotations

import json

from rich.console import Console
from rich.table import Table

from ..config import MiriamConfig
from ..errors import MiriamError
from ..tools.threads import list_threads, mark_thread, resolve_thread


def run_threads_mark(
    config: MiriamConfig,
    topic: str,
    question: str,
    *,
    when: str | None = None,
    importance: str | None = None,
) -> int:
    console = Console()
    err = Console(stderr=True)
    result = mark_thread(topic, question, when=when, importance=importance, workspace_root=config.root)
    if not result["success"]:
        err.print(result["error"], style="bold red")
        return 1
    console.print(f"Marked thread {result['threadId']}", style="green")
    return 0


def run_threads_list(
    config: MiriamConfig,
    *,
    status: str | None = "open",
    due_by: str | None = None,
    output_json: bool = False,
) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        threads = list_threads(status=status, due_by=due_by, workspace_root=config.root)
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1

    if output_json:
        print(json.dumps(threads, indent=2, ensure_ascii=False))
        return 0

    table = Table(title="Threads")
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("status")
    table.add_column("importance")
    table.add_column("revisit", style="dim")
    table.add_column("topic")
    table.add_column("question")

    for t in threads:
        table.add_row(
            str(t["id"])[:8],
            str(t.get("status", "")),
            str(t.get("importance", "")),
            str(t.get("revisit", "")),
            str(t.get("topic", "")),
            str(t.get("question", "")),
        )

    console.print(table)
    return 0


def run_threads_resolve(config: MiriamConfig, thread_id: str) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        resolve_thread(thread_id, workspace_root=config.root)
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1
    console.print(f"Resolved: {thread_id}", style="green")
    return 0
