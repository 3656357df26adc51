"""
Bootstrap file filtering by access level.

The host runtime hands over the list of files it is about to load into a
new session. Files under an access-scoped memory directory are dropped when
the session's level is too low, and the level's own daily notes for today
and yesterday are added.

Required levels are inferred from the path:

    memory/private/...   -> private
    .../MEMORY.md        -> private
    memory/family/...    -> family
    anything else        -> no requirement
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Sequence, Union

import structlog

from .access import AccessConfig, AccessLevel, can_access, resolve_access_level
from .outcome import Outcome, capture

logger = structlog.get_logger(__name__)

DAILY_ROLE = "memory"


@dataclass(frozen=True)
class BootstrapFile:
    path: str
    role: str = DAILY_ROLE

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "role": self.role}


BootstrapItem = Union[str, BootstrapFile, dict[str, Any]]


def file_path(item: BootstrapItem) -> str:
    """Path of a bootstrap entry, whatever shape the host used."""
    if isinstance(item, str):
        return item
    if isinstance(item, BootstrapFile):
        return item.path
    return str(item.get("path", ""))


def required_level(path: str) -> AccessLevel | None:
    p = path.replace("\\", "/")
    if p.endswith("MEMORY.md") or "memory/private/" in p:
        return AccessLevel.PRIVATE
    if "memory/family/" in p:
        return AccessLevel.FAMILY
    return None


def daily_note_path(level: AccessLevel, day: date) -> str:
    return f"memory/{level.value}/{day.isoformat()}-daily.md"


def filter_files(
    files: Sequence[BootstrapItem],
    level: AccessLevel,
    *,
    workspace_dir: Path | str | None = None,
    today: date | None = None,
) -> list[BootstrapItem]:
    """
    Drop entries ``level`` cannot see, then add today's and yesterday's
    daily notes for ``level`` unless an entry already points at them.
    """
    kept: list[BootstrapItem] = []
    for item in files:
        path = file_path(item)
        needed = required_level(path)
        if needed is not None and not can_access(level, needed):
            logger.debug("excluding bootstrap file", path=path, required=needed.value, level=level.value)
            continue
        kept.append(item)

    today = today or datetime.now(timezone.utc).date()
    existing = [file_path(item) for item in kept]

    for day in (today, today - timedelta(days=1)):
        rel = daily_note_path(level, day)
        if any(rel in p for p in existing):
            continue
        full = str(Path(workspace_dir) / rel) if workspace_dir else rel
        kept.append(BootstrapFile(path=full))

    return kept


def apply_bootstrap(
    files: Sequence[BootstrapItem],
    session_key: str | None,
    config: AccessConfig | None = None,
    *,
    workspace_dir: Path | str | None = None,
    today: date | None = None,
) -> Outcome[list[BootstrapItem]]:
    """Resolve the session's level and filter ``files`` for it."""

    def _run() -> list[BootstrapItem]:
        level = resolve_access_level(session_key, config)
        logger.info("resolved access level", session_key=session_key, level=level.value)
        return filter_files(files, level, workspace_dir=workspace_dir, today=today)

    return capture(_run)


def bootstrap_files_for_session(
    files: Sequence[BootstrapItem],
    session_key: str | None,
    config: AccessConfig | None = None,
    *,
    workspace_dir: Path | str | None = None,
    today: date | None = None,
) -> list[BootstrapItem]:
    """Fail-open wrapper: on any internal error the original list is returned."""
    outcome = apply_bootstrap(files, session_key, config, workspace_dir=workspace_dir, today=today)
    return outcome.unwrap_or_default(list(files), context="access-level-bootstrap")
