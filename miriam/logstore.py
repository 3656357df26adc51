"""
Append-only JSONL record store.

Each line of a log file is one immutable JSON record carrying a stable
identifier. A record is "updated" by appending a new version with the same
identifier; the current state of a record is the version at the latest
append position (not the latest timestamp, which may repeat).

Storage format: JSON Lines - one compact JSON object per line, UTF-8.

Key properties:
- append() is the only routine write; prior lines are never touched
- replay is parse-or-skip: a malformed line is counted and logged, never fatal
- compact() is the single, explicit exception that rewrites the file
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Sequence

import structlog

from .dates import today_str
from .errors import ValidationError
from .fs import append_text, atomic_write

logger = structlog.get_logger(__name__)

Record = dict[str, Any]


@dataclass
class ReadResult:
    """Outcome of replaying a log: the parsed records plus how many lines were dropped."""

    records: list[Record] = field(default_factory=list)
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.records)


def encode_record(record: Record) -> str:
    return json.dumps(record, ensure_ascii=False, separators=(",", ":"))


def parse_lines(lines: Iterable[str | bytes], *, source: str = "") -> ReadResult:
    """
    Parse JSONL lines, skipping anything that is not a JSON object.

    Lines may be raw bytes; a line that is not valid UTF-8 is skipped like
    any other malformed line. Blank lines are ignored and not counted.
    """
    result = ReadResult()
    for line_no, raw in enumerate(lines, start=1):
        if isinstance(raw, bytes):
            try:
                line = raw.decode("utf-8").strip()
                decoded = True
            except UnicodeDecodeError:
                line = raw.decode("utf-8", errors="replace").strip()
                decoded = False
        else:
            line = raw.strip()
            decoded = True
        if not line:
            continue
        data = None
        if decoded:
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                data = None
        if not isinstance(data, dict):
            result.skipped += 1
            logger.warning(
                "skipping malformed log line",
                source=source,
                line_no=line_no,
                preview=line[:50],
            )
            continue
        result.records.append(data)
    return result


def latest_by_id(records: Iterable[Record], id_field: str = "id") -> dict[str, Record]:
    """
    Fold records into id -> current record.

    Records are visited in log order and later versions overwrite earlier
    ones. Records without an identifier are ignored.
    """
    current: dict[str, Record] = {}
    for record in records:
        record_id = record.get(id_field)
        if record_id is None or record_id == "":
            continue
        current[str(record_id)] = record
    return current


def filter_by_field(records: Iterable[Record], field_name: str, value: Any) -> list[Record]:
    """Equality filter. ``None`` or ``"all"`` keeps everything."""
    if value is None or value == "all":
        return list(records)
    return [r for r in records if r.get(field_name) == value]


def filter_due(
    records: Iterable[Record],
    field_name: str = "dueDate",
    today: str | None = None,
) -> list[Record]:
    """Keep records with no date in ``field_name`` or a date on/before ``today``."""
    today = today or today_str()
    due = []
    for r in records:
        date = r.get(field_name)
        if not date or str(date) <= today:
            due.append(r)
    return due


class AppendLogStore:
    """
    JSONL-backed store where current state is the replay of all appends.

    INVARIANT: append()/append_many() never modify existing lines.
    """

    def __init__(
        self,
        path: Path,
        *,
        id_field: str = "id",
        required: Sequence[str] = ("id",),
    ):
        """
        Args:
            path: Log file location (created on first append)
            id_field: Name of the stable identifier field
            required: Fields that must be present and non-blank on append
        """
        self.path = path
        self.id_field = id_field
        self.required = tuple(required)

    def _validate(self, record: Record) -> None:
        if not isinstance(record, dict):
            raise ValidationError("Record must be a JSON object")
        for name in self.required:
            value = record.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"{name} cannot be empty")

    def append(self, record: Record) -> Record:
        """Append one record. This is the only routine write."""
        self._validate(record)
        append_text(self.path, encode_record(record) + "\n")
        return record

    def append_many(self, records: Sequence[Record]) -> None:
        """Validate every record, then write them in a single file operation."""
        if not records:
            return
        for record in records:
            self._validate(record)
        append_text(self.path, "".join(encode_record(r) + "\n" for r in records))

    def _iter_raw_lines(self) -> Iterator[bytes]:
        # Bytes, so a line with invalid UTF-8 is skipped rather than fatal
        if not self.path.exists():
            return
        with self.path.open("rb") as f:
            yield from f

    def read_all(self) -> ReadResult:
        """Replay the whole log in append order."""
        return parse_lines(self._iter_raw_lines(), source=str(self.path))

    def latest_by_id(self) -> dict[str, Record]:
        return latest_by_id(self.read_all().records, self.id_field)

    def current(self) -> list[Record]:
        """Current version of every record, in first-seen order."""
        return list(self.latest_by_id().values())

    def get(self, record_id: str) -> Record | None:
        return self.latest_by_id().get(record_id)

    def count(self) -> int:
        """Count physical (non-blank) lines, including superseded versions."""
        return sum(1 for line in self._iter_raw_lines() if line.strip())

    def compact(self, keep: Callable[[Record], bool]) -> int:
        """
        Rewrite the log keeping only records for which ``keep`` is true.

        Malformed lines are kept verbatim. The rewrite is atomic.
        Returns the number of records removed.
        """
        if not self.path.exists():
            return 0

        kept: list[bytes] = []
        removed = 0
        for line in self._iter_raw_lines():
            stripped = line.strip()
            if not stripped:
                continue
            try:
                data = json.loads(stripped.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                data = None
            if isinstance(data, dict) and not keep(data):
                removed += 1
                continue
            kept.append(stripped)

        content = b"".join(line + b"\n" for line in kept)
        atomic_write(self.path, content)
        logger.info("compacted log", path=str(self.path), removed=removed, kept=len(kept))
        return removed
