"""
Emotional state carried across wakes (memory/emotional-state.json).

- recent_wakes is newest first and capped at 10 entries
- a wake entry is only added when threads or a question are given
- the file is always rewritten atomically
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

from ..dates import iso_now
from ..fs import read_json, write_json

MAX_RECENT_WAKES = 10

DEFAULT_STATE: dict[str, Any] = {
    "current_state": {
        "primary": "curious engagement",
        "secondary": "steady focus",
        "background": "neutral baseline",
    },
    "recent_wakes": [],
    "decay_hours": 24,
    "notes": (
        "Lightweight emotional context across wakes. "
        "Non-prescriptive - I choose whether to pick up these threads."
    ),
}


def default_state() -> dict[str, Any]:
    return copy.deepcopy(DEFAULT_STATE)


def init_emotional_state(state_file: Path) -> dict[str, Any]:
    """Return the existing state, or write and return the defaults."""
    existing = read_json(state_file)
    if existing is not None:
        return existing
    state = default_state()
    write_json(state_file, state)
    return state


def read_emotional_state(state_file: Path) -> dict[str, Any] | None:
    """None when the file is missing; ParseError when it is malformed."""
    return read_json(state_file)


def update_emotional_state(
    state_file: Path,
    *,
    primary: str | None = None,
    secondary: str | None = None,
    background: str | None = None,
    threads: str | None = None,
    question: str | None = None,
) -> dict[str, Any]:
    state = read_json(state_file)
    if state is None:
        state = default_state()

    current = state.setdefault("current_state", {})
    if primary is not None:
        current["primary"] = primary
    if secondary is not None:
        current["secondary"] = secondary
    if background is not None:
        current["background"] = background

    if threads or question:
        wake: dict[str, Any] = {"timestamp": iso_now()}
        if threads:
            wake["threads"] = threads
        if question:
            wake["question_for_future_me"] = question
        state["recent_wakes"] = [wake, *state.get("recent_wakes", [])][:MAX_RECENT_WAKES]

    write_json(state_file, state)
    return state
