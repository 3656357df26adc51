"""
Dashboard note - a single message + emoji shown on the household dashboard.

The note file is replaced wholesale on every update (no merging).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from ..dates import iso_now
from ..errors import ValidationError
from ..fs import read_json, write_json

MAX_MESSAGE_LENGTH = 500


@dataclass
class DashboardNote:
    message: str
    emoji: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ValidationResult:
    valid: bool
    error: str | None = None


def validate_note_content(message: str, emoji: str = "") -> ValidationResult:
    trimmed = (message or "").strip()
    if not trimmed:
        return ValidationResult(False, "Message cannot be empty")
    if len(trimmed) > MAX_MESSAGE_LENGTH:
        return ValidationResult(False, f"Message too long (max {MAX_MESSAGE_LENGTH} characters)")
    return ValidationResult(True)


def update_dashboard_note(note_file: Path, message: str, emoji: str = "") -> DashboardNote:
    validation = validate_note_content(message, emoji)
    if not validation.valid:
        raise ValidationError(validation.error or "Invalid note")

    note = DashboardNote(message=message.strip(), emoji=emoji or "", timestamp=iso_now())
    write_json(note_file, note.to_dict())
    return note


def read_current_note(note_file: Path) -> dict[str, Any] | None:
    return read_json(note_file)
