"""Dashboard note and emotional state commands."""

from __future__ import annotations

import json

from rich.console import Console

from ..config import MiriamConfig
from ..errors import MiriamError
from ..tools.dashboard import read_current_note, update_dashboard_note
from ..tools.emotional_state import init_emotional_state, update_emotional_state


def run_dashboard_set(config: MiriamConfig, message: str, emoji: str = "") -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        note = update_dashboard_note(config.dashboard_note_path, message, emoji)
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1
    console.print(f"Dashboard note updated at {note.timestamp}", style="green")
    return 0


def run_dashboard_show(config: MiriamConfig, *, output_json: bool = False) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        note = read_current_note(config.dashboard_note_path)
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1

    if output_json:
        print(json.dumps(note, indent=2, ensure_ascii=False))
        return 0
    if note is None:
        console.print("No dashboard note set.", style="dim")
        return 0

    line = f"{note.get('emoji', '')} {note.get('message', '')}".strip()
    console.print(line, markup=False)
    console.print(str(note.get("timestamp", "")), style="dim")
    return 0


def run_emotion_show(config: MiriamConfig, *, output_json: bool = False) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        state = init_emotional_state(config.emotional_state_path)
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1

    if output_json:
        print(json.dumps(state, indent=2, ensure_ascii=False))
        return 0

    current = state.get("current_state", {})
    for key in ("primary", "secondary", "background"):
        console.print(f"{key}: {current.get(key, '')}")

    wakes = state.get("recent_wakes", [])
    if wakes:
        console.print(f"\n[bold]Recent wakes ({len(wakes)})[/bold]")
        for wake in wakes:
            console.print(str(wake.get("timestamp", "")), style="dim")
            if wake.get("threads"):
                console.print(f"  threads: {wake['threads']}", markup=False)
            if wake.get("question_for_future_me"):
                console.print(f"  question: {wake['question_for_future_me']}", markup=False)
    return 0


def run_emotion_update(
    config: MiriamConfig,
    *,
    primary: str | None = None,
    secondary: str | None = None,
    background: str | None = None,
    threads: str | None = None,
    question: str | None = None,
) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        update_emotional_state(
            config.emotional_state_path,
            primary=primary,
            secondary=secondary,
            background=background,
            threads=threads,
            question=question,
        )
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1
    console.print("Emotional state updated", style="green")
    return 0
