"""
File system helpers with backup and atomic write support.

All single-record files (JSON state, dashboard note, research results,
memory files) are written through atomic_write: the content goes to a
sibling ``.tmp`` file which is then renamed over the target, so readers see
either the old file or the new one, never a prefix.

Append-only logs use append_text instead; a rename swap would rewrite
history that must stay untouched.
"""

from __future__ import annotations

import json
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .errors import ParseError

BACKUP_DIR_NAME = ".backups"
TMP_SUFFIX = ".tmp"


def _tmp_path(path: Path) -> Path:
    return path.with_name(path.name + TMP_SUFFIX)


def _backup_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")


def file_exists(path: Path) -> bool:
    return path.exists()


def safe_read_text(path: Path) -> str | None:
    """Read a text file, returning None if it doesn't exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def read_json(path: Path) -> Any | None:
    """
    Read and parse a JSON file.

    Returns None if the file is missing. A file that exists but does not
    parse (including an empty file) raises ParseError.
    """
    content = safe_read_text(path)
    if content is None:
        return None
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(path, e.msg) from e


def backup_file(path: Path) -> Path | None:
    """
    Copy ``path`` into ``<dir>/.backups/<name>.<timestamp>``.

    Returns the backup path, or None if the original doesn't exist.
    """
    if not path.exists():
        return None

    backup_dir = path.parent / BACKUP_DIR_NAME
    backup_dir.mkdir(parents=True, exist_ok=True)

    stamp = _backup_stamp()
    backup_path = backup_dir / f"{path.name}.{stamp}"
    counter = 1
    while backup_path.exists():
        backup_path = backup_dir / f"{path.name}.{stamp}-{counter}"
        counter += 1

    shutil.copy2(path, backup_path)
    return backup_path


def atomic_write(
    path: Path,
    content: str | bytes,
    *,
    backup: bool = False,
    create_dirs: bool = True,
) -> None:
    """
    Write ``content`` to ``path`` via temp file + rename.

    Args:
        path: Destination file
        content: Full new file content (text is written as UTF-8)
        backup: Copy the existing file into .backups/ first
        create_dirs: Create missing parent directories
    """
    if create_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)

    if backup:
        backup_file(path)

    tmp = _tmp_path(path)
    try:
        if isinstance(content, bytes):
            tmp.write_bytes(content)
        else:
            tmp.write_text(content, encoding="utf-8")
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def write_json(path: Path, data: Any, *, backup: bool = False) -> None:
    """Write pretty-printed JSON (2-space indent, trailing newline) atomically."""
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    atomic_write(path, content, backup=backup)


def append_text(path: Path, content: str, *, create_dirs: bool = True) -> None:
    """Append ``content`` to ``path``, creating the file if needed."""
    if create_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(content)
