"""
Diary - personal reflection entries kept in memory/diary.jsonl.

JSONL keeps the full history and makes filtering by date, mood or tag a
simple replay over the log.
"""

from __future__ import annotations

import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Any

from ..config import default_workspace
from ..dates import today_str, utc_now
from ..errors import ValidationError
from ..logstore import AppendLogStore

MIN_REFLECTION_LENGTH = 50

_LIST_FIELDS = ("gratitude", "challenges", "learnings", "connections", "tags")


@dataclass
class DiaryEntry:
    id: str
    timestamp: str
    date: str  # YYYY-MM-DD, for grouping
    reflections: str
    mood: str | None = None
    energy: str | None = None
    gratitude: list[str] | None = None
    challenges: list[str] | None = None
    learnings: list[str] | None = None
    connections: list[str] | None = None
    tags: list[str] | None = None
    private: bool = True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "date": self.date,
            "reflections": self.reflections,
        }
        if self.mood is not None:
            data["mood"] = self.mood
        if self.energy is not None:
            data["energy"] = self.energy
        for name in _LIST_FIELDS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        data["private"] = self.private
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiaryEntry":
        return cls(
            id=str(data["id"]),
            timestamp=str(data.get("timestamp", "")),
            date=str(data.get("date", "")),
            reflections=str(data.get("reflections", "")),
            mood=data.get("mood"),
            energy=data.get("energy"),
            gratitude=data.get("gratitude"),
            challenges=data.get("challenges"),
            learnings=data.get("learnings"),
            connections=data.get("connections"),
            tags=data.get("tags"),
            private=bool(data.get("private", True)),
        )


@dataclass
class DiaryStats:
    total_entries: int
    date_range: dict[str, str]  # {"start": ..., "end": ...}
    mood_distribution: dict[str, int] = field(default_factory=dict)
    average_length: int = 0
    most_common_tags: list[dict[str, Any]] = field(default_factory=list)  # [{tag, count}]

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalEntries": self.total_entries,
            "dateRange": self.date_range,
            "moodDistribution": self.mood_distribution,
            "averageLength": self.average_length,
            "mostCommonTags": self.most_common_tags,
        }


def diary_path(workspace_root: Path) -> Path:
    return workspace_root / "memory" / "diary.jsonl"


def _store(workspace_root: Path | None) -> AppendLogStore:
    root = workspace_root or default_workspace()
    return AppendLogStore(diary_path(root), required=("id", "reflections"))


def diary_write(
    reflections: str,
    *,
    mood: str | None = None,
    energy: str | None = None,
    gratitude: list[str] | None = None,
    challenges: list[str] | None = None,
    learnings: list[str] | None = None,
    connections: list[str] | None = None,
    tags: list[str] | None = None,
    workspace_root: Path | None = None,
) -> DiaryEntry:
    """Append a diary entry. Reflections must be at least 50 characters."""
    if not reflections or not reflections.strip():
        raise ValidationError("Reflections cannot be empty")
    text = reflections.strip()
    if len(text) < MIN_REFLECTION_LENGTH:
        raise ValidationError(
            f"Reflections should be at least {MIN_REFLECTION_LENGTH} characters "
            "(be genuine, take your time)"
        )

    now = utc_now()
    entry = DiaryEntry(
        id=str(uuid.uuid4()),
        timestamp=now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        date=today_str(now),
        reflections=text,
        mood=mood,
        energy=energy,
        gratitude=gratitude,
        challenges=challenges,
        learnings=learnings,
        connections=connections,
        tags=tags,
    )
    _store(workspace_root).append(entry.to_dict())
    return entry


def diary_read(
    *,
    limit: int | None = None,
    after: str | None = None,
    before: str | None = None,
    mood: str | None = None,
    tag: str | None = None,
    workspace_root: Path | None = None,
) -> tuple[list[DiaryEntry], int]:
    """
    Read entries, newest first.

    Returns (entries, total) where ``total`` counts matches before ``limit``.
    """
    records = _store(workspace_root).current()
    entries = [DiaryEntry.from_dict(r) for r in records]

    if after:
        entries = [e for e in entries if e.date >= after]
    if before:
        entries = [e for e in entries if e.date <= before]
    if mood:
        entries = [e for e in entries if e.mood == mood]
    if tag:
        entries = [e for e in entries if e.tags and tag in e.tags]

    # Newest first; on equal timestamps the later append wins
    ordered = sorted(enumerate(entries), key=lambda pair: (pair[1].timestamp, pair[0]), reverse=True)
    entries = [e for _, e in ordered]

    total = len(entries)
    if limit:
        entries = entries[:limit]
    return entries, total


def diary_today(*, workspace_root: Path | None = None) -> DiaryEntry | None:
    """Most recent entry written today, if any."""
    entries, _ = diary_read(after=today_str(), limit=1, workspace_root=workspace_root)
    return entries[0] if entries else None


def diary_stats(
    days: int = 30,
    *,
    today: date | None = None,
    workspace_root: Path | None = None,
) -> DiaryStats:
    today = today or utc_now().date()
    since = (today - timedelta(days=days)).isoformat()

    entries, _ = diary_read(after=since, workspace_root=workspace_root)
    if not entries:
        return DiaryStats(
            total_entries=0,
            date_range={"start": since, "end": today.isoformat()},
        )

    moods = Counter(e.mood for e in entries if e.mood)
    tags = Counter(t for e in entries for t in (e.tags or []))
    total_length = sum(len(e.reflections) for e in entries)

    return DiaryStats(
        total_entries=len(entries),
        date_range={"start": entries[-1].date, "end": entries[0].date},
        mood_distribution=dict(moods),
        average_length=round(total_length / len(entries)),
        most_common_tags=[{"tag": t, "count": c} for t, c in tags.most_common(10)],
    )
