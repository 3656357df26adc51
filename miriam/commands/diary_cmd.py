"""Diary commands."""

from __future__ import annotations

import json
from typing import Sequence

from rich.console import Console
from rich.table import Table

from ..config import MiriamConfig
from ..errors import MiriamError
from ..tools.diary import diary_read, diary_stats, diary_write


def run_diary_write(
    config: MiriamConfig,
    reflections: str,
    *,
    mood: str | None = None,
    energy: str | None = None,
    gratitude: Sequence[str] = (),
    learnings: Sequence[str] = (),
    tags: Sequence[str] = (),
) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        entry = diary_write(
            reflections,
            mood=mood,
            energy=energy,
            gratitude=list(gratitude) or None,
            learnings=list(learnings) or None,
            tags=list(tags) or None,
            workspace_root=config.root,
        )
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1
    console.print(f"Diary entry saved ({entry.date})", style="green")
    return 0


def run_diary_read(
    config: MiriamConfig,
    *,
    limit: int | None = None,
    after: str | None = None,
    before: str | None = None,
    mood: str | None = None,
    tag: str | None = None,
    output_json: bool = False,
) -> int:
    console = Console()
    entries, total = diary_read(
        limit=limit,
        after=after,
        before=before,
        mood=mood,
        tag=tag,
        workspace_root=config.root,
    )

    if output_json:
        print(json.dumps({"entries": [e.to_dict() for e in entries], "total": total}, indent=2, ensure_ascii=False))
        return 0

    if not entries:
        console.print("No diary entries found.", style="dim")
        return 0

    for e in entries:
        header = f"[bold]{e.date}[/bold]"
        if e.mood:
            header += f"  mood: {e.mood}"
        if e.energy:
            header += f"  energy: {e.energy}"
        console.print(header)
        console.print(e.reflections, markup=False)
        if e.tags:
            console.print(f"tags: {', '.join(e.tags)}", style="dim", markup=False)
        console.print()

    console.print(f"Showing {len(entries)} of {total} entries", style="dim")
    return 0


def run_diary_stats(config: MiriamConfig, *, days: int = 30, output_json: bool = False) -> int:
    console = Console()
    stats = diary_stats(days, workspace_root=config.root)

    if output_json:
        print(json.dumps(stats.to_dict(), indent=2))
        return 0

    console.print(f"[bold]Diary, last {days} days[/bold]")
    console.print(f"Entries: {stats.total_entries}")
    console.print(f"Range: {stats.date_range['start']} .. {stats.date_range['end']}")
    if stats.total_entries:
        console.print(f"Average length: {stats.average_length} characters")

    if stats.mood_distribution:
        table = Table(title="Moods")
        table.add_column("mood", style="magenta")
        table.add_column("count", justify="right")
        for mood, count in sorted(stats.mood_distribution.items(), key=lambda kv: -kv[1]):
            table.add_row(mood, str(count))
        console.print(table)

    if stats.most_common_tags:
        console.print("Tags: " + ", ".join(f"{t['tag']} ({t['count']})" for t in stats.most_common_tags))
    return 0
