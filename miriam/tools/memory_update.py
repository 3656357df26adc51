"""
Memory file updates with validation, backup and atomic writes.

All edits to MEMORY.md and the memory/ tree go through memory_update():
- existing files are backed up before they are modified
- replace/create write atomically
- create refuses to overwrite
- blank content is rejected before anything is touched
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

from ..errors import ValidationError
from ..fs import append_text, atomic_write, backup_file


class MemoryOperation(str, Enum):
    APPEND = "append"
    REPLACE = "replace"
    CREATE = "create"


# Workspace-relative paths the tool may write
ALLOWED_PATTERNS = (
    re.compile(r"^MEMORY\.md$"),
    re.compile(r"^memory/.*\.(md|json)$"),
)


def validate_memory_path(rel_path: str) -> bool:
    """Reject traversal, absolute paths, and anything outside the memory files."""
    if ".." in rel_path:
        return False
    if rel_path.startswith("/") or rel_path.startswith("\\"):
        return False
    return any(p.match(rel_path) for p in ALLOWED_PATTERNS)


def memory_update(file_path: Path, operation: MemoryOperation | str, content: str) -> None:
    """
    Apply ``operation`` to ``file_path``.

    Raises:
        ValidationError: blank content, unknown operation, or create on an existing file
    """
    if not content or not content.strip():
        raise ValidationError("Content cannot be empty")
    try:
        op = MemoryOperation(operation)
    except ValueError:
        raise ValidationError(f"Unknown operation: {operation}") from None

    if op is MemoryOperation.CREATE and file_path.exists():
        raise ValidationError(f"File already exists: {file_path}")

    file_path.parent.mkdir(parents=True, exist_ok=True)

    if op is MemoryOperation.APPEND:
        backup_file(file_path)
        append_text(file_path, content)
    elif op is MemoryOperation.REPLACE:
        atomic_write(file_path, content, backup=True)
    else:
        atomic_write(file_path, content)


def update_memory_file(
    workspace_root: Path,
    rel_path: str,
    operation: MemoryOperation | str,
    content: str,
) -> Path:
    """Validate a workspace-relative path, then apply memory_update() to it."""
    if not validate_memory_path(rel_path):
        raise ValidationError(f"Not an allowed memory path: {rel_path}")
    target = workspace_root / rel_path
    memory_update(target, operation, content)
    return target
