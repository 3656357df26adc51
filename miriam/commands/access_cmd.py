"""Access level and bootstrap inspection commands."""

from __future__ import annotations

import json
from typing import Sequence

from rich.console import Console
from rich.table import Table

from ..access import resolve_access_level
from ..bootstrap import BootstrapFile, bootstrap_files_for_session, file_path, required_level
from ..config import MiriamConfig


def run_access_resolve(config: MiriamConfig, session_key: str) -> int:
    console = Console()
    level = resolve_access_level(session_key, config.access)
    console.print(level.value)
    return 0


def run_bootstrap_filter(
    config: MiriamConfig,
    session_key: str,
    files: Sequence[str],
    *,
    output_json: bool = False,
) -> int:
    """Show which bootstrap files a session would load."""
    console = Console()
    level = resolve_access_level(session_key, config.access)
    filtered = bootstrap_files_for_session(list(files), session_key, config.access)

    if output_json:
        data = [f.to_dict() if isinstance(f, BootstrapFile) else f for f in filtered]
        print(json.dumps(data, indent=2))
        return 0

    kept = {file_path(f) for f in filtered}
    table = Table(title=f"Bootstrap files ({level.value})")
    table.add_column("path", style="cyan")
    table.add_column("requires")
    table.add_column("result")

    for path in files:
        needed = required_level(path)
        table.add_row(path, needed.value if needed else "", "kept" if path in kept else "excluded")
    for f in filtered:
        if isinstance(f, BootstrapFile):
            table.add_row(f.path, level.value, "added")

    console.print(table)
    return 0
