"""Memory file update and search commands."""

from __future__ import annotations

import json

from rich.console import Console

from ..config import MiriamConfig
from ..errors import MiriamError
from ..tools.memory_search import SearchRunner, memory_search
from ..tools.memory_update import update_memory_file


def run_memory_update(config: MiriamConfig, rel_path: str, operation: str, content: str) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        target = update_memory_file(config.root, rel_path, operation, content)
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1
    console.print(f"{operation}: {target}", style="green")
    return 0


def run_memory_search(
    config: MiriamConfig,
    query: str,
    *,
    person: str | None = None,
    after: str | None = None,
    before: str | None = None,
    access_level: str | None = None,
    max_results: int = 5,
    output_json: bool = False,
    runner: SearchRunner | None = None,
) -> int:
    console = Console()
    err = Console(stderr=True)
    result = memory_search(
        query,
        person=person,
        after=after,
        before=before,
        access_level=access_level,
        max_results=max_results,
        config=config,
        runner=runner,
    )

    if output_json:
        print(json.dumps(result, indent=2, ensure_ascii=False))
        return 0 if result["success"] else 1

    if not result["success"]:
        err.print(result["error"], style="bold red")
        return 1

    for i, r in enumerate(result["results"], start=1):
        console.print(f"[bold]{i}.[/bold] [cyan]{r['source']}[/cyan] [dim]({r['relevance']:.2f})[/dim]")
        if r["snippet"]:
            console.print(f"   {r['snippet']}", markup=False)
    console.print(result["message"], style="dim")
    return 0
