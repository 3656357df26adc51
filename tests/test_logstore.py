"""Tests for the append-only JSONL store."""

from __future__ import annotations

from pathlib import Path

import pytest

from miriam.errors import ValidationError
from miriam.logstore import (
    AppendLogStore,
    filter_by_field,
    filter_due,
    latest_by_id,
    parse_lines,
)


@pytest.fixture
def store(tmp_path: Path) -> AppendLogStore:
    return AppendLogStore(tmp_path / "memory" / "tasks.jsonl", required=("id", "task"))


def test_append_creates_file_with_one_compact_line(store: AppendLogStore) -> None:
    store.append({"id": "t1", "task": "water plants"})

    lines = store.path.read_text(encoding="utf-8").splitlines()
    assert lines == ['{"id":"t1","task":"water plants"}']


def test_later_append_wins_and_history_is_kept(store: AppendLogStore) -> None:
    store.append({"id": "t1", "task": "a", "status": "pending"})
    store.append({"id": "t1", "task": "a", "status": "completed"})

    assert store.get("t1")["status"] == "completed"
    assert store.count() == 2
    assert len(store.read_all()) == 2


def test_latest_by_id_uses_position_not_timestamp() -> None:
    records = [
        {"id": "x", "timestamp": "2026-02-04T10:00:00.000Z", "v": 1},
        {"id": "x", "timestamp": "2026-02-04T10:00:00.000Z", "v": 2},
        {"id": "", "v": 3},
        {"v": 4},
    ]
    current = latest_by_id(records)
    assert list(current) == ["x"]
    assert current["x"]["v"] == 2


def test_current_keeps_first_seen_order(store: AppendLogStore) -> None:
    store.append({"id": "a", "task": "first"})
    store.append({"id": "b", "task": "second"})
    store.append({"id": "a", "task": "first, edited"})

    assert [r["task"] for r in store.current()] == ["first, edited", "second"]


def test_malformed_lines_are_skipped_and_counted(store: AppendLogStore) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text(
        '{"id":"t1","task":"ok"}\n'
        "not json at all\n"
        "\n"
        "[1, 2, 3]\n"
        '{"id":"t2","task":"also ok"}\n',
        encoding="utf-8",
    )

    result = store.read_all()
    assert [r["id"] for r in result.records] == ["t1", "t2"]
    assert result.skipped == 2


def test_invalid_utf8_line_is_skipped_not_fatal(store: AppendLogStore) -> None:
    store.append({"id": "t1", "task": "before"})
    with store.path.open("ab") as f:
        f.write(b"\xff\xfe garbage\n")
    store.append({"id": "t2", "task": "after"})

    result = store.read_all()
    assert [r["id"] for r in result.records] == ["t1", "t2"]
    assert result.skipped == 1
    assert store.count() == 3


def test_parse_lines_accepts_raw_bytes() -> None:
    result = parse_lines([b'{"id": "a", "note": "caf\xc3\xa9"}\n', b"\xff\n", b"\n"])
    assert result.records == [{"id": "a", "note": "caf\u00e9"}]
    assert result.skipped == 1


def test_missing_file_reads_empty(store: AppendLogStore) -> None:
    result = store.read_all()
    assert result.records == []
    assert result.skipped == 0
    assert store.count() == 0
    assert store.get("t1") is None


@pytest.mark.parametrize("record", [{"id": "t1"}, {"id": "t1", "task": "   "}, {"id": "", "task": "x"}])
def test_append_rejects_missing_required_fields(store: AppendLogStore, record: dict) -> None:
    with pytest.raises(ValidationError):
        store.append(record)
    assert not store.path.exists()


def test_append_many_validates_everything_first(store: AppendLogStore) -> None:
    with pytest.raises(ValidationError):
        store.append_many([{"id": "a", "task": "ok"}, {"id": "b"}])
    assert not store.path.exists()

    store.append_many([{"id": "a", "task": "ok"}, {"id": "b", "task": "ok"}])
    assert store.count() == 2


def test_compact_drops_records_and_keeps_malformed_lines(store: AppendLogStore) -> None:
    store.append({"id": "a", "task": "keep"})
    store.append({"id": "b", "task": "drop"})
    with store.path.open("a", encoding="utf-8") as f:
        f.write("garbage\n")

    removed = store.compact(lambda r: r["id"] != "b")

    assert removed == 1
    assert store.path.read_text(encoding="utf-8") == '{"id":"a","task":"keep"}\ngarbage\n'


def test_parse_lines_ignores_blank_lines() -> None:
    result = parse_lines(["", "   ", '{"id": "a"}'])
    assert len(result) == 1
    assert result.skipped == 0


def test_filter_by_field_pending_vs_completed() -> None:
    records = [{"id": "t1", "status": "pending"}, {"id": "t1", "status": "completed"}]
    current = list(latest_by_id(records).values())

    assert filter_by_field(current, "status", "pending") == []
    assert filter_by_field(current, "status", "completed") == [{"id": "t1", "status": "completed"}]
    assert filter_by_field(current, "status", "all") == current
    assert filter_by_field(current, "status", None) == current


def test_filter_due() -> None:
    records = [
        {"id": "a"},
        {"id": "b", "dueDate": "2026-02-03"},
        {"id": "c", "dueDate": "2026-02-04"},
        {"id": "d", "dueDate": "2026-02-05"},
    ]
    assert [r["id"] for r in filter_due(records, today="2026-02-04")] == ["a", "b", "c"]


def test_compact_keeps_undecodable_lines_byte_for_byte(store: AppendLogStore) -> None:
    store.append({"id": "a", "task": "keep"})
    with store.path.open("ab") as f:
        f.write(b"\xff\n")
    store.append({"id": "b", "task": "drop"})

    assert store.compact(lambda r: r["id"] != "b") == 1
    assert store.path.read_bytes() == b'{"id":"a","task":"keep"}\n\xff\n'
