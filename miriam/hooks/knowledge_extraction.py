"""Knowledge extraction hook: note what a session covered before it resets.

Runs on ``command:new`` events, i.e. before the host clears the session, so
the transcript is still on disk. The tail of the transcript is scanned with
cheap keyword heuristics and any topics found are appended to today's
private daily note:

    ### 21:04 - Session End (Auto-extracted)

    - Decisions/commitments made in this session
    - Research conducted

    python -m miriam.hooks.knowledge_extraction < event.json
"""

from __future__ import annotations

import json
import sys
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Sequence
from zoneinfo import ZoneInfo

import structlog

from ..dates import today_str, utc_now
from ..fs import append_text
from ..log import configure_logging
from ..logstore import Record, parse_lines
from ..outcome import capture

logger = structlog.get_logger(__name__)

TAIL_LINES = 100
MAX_MESSAGES = 50
MIN_MESSAGES = 5
ENTRY_TIMEZONE = ZoneInfo("America/Toronto")

_TOPIC_RULES: Sequence[tuple[str, Callable[[str], bool]]] = (
    (
        "- Decisions/commitments made in this session",
        lambda t: any(k in t for k in ("decided to", "will do", "committed to")),
    ),
    (
        "- Technical work with test results",
        lambda t: "test" in t and ("passing" in t or "failed" in t),
    ),
    ("- File modifications made", lambda t: any(k in t for k in ("Created", "Updated", "Wrote"))),
    ("- Research conducted", lambda t: any(k in t for k in ("research", "Deep Research", "Perplexity"))),
    ("- Meaningful exchange", lambda t: any(k in t for k in ("thank", "appreciate", "buenas noches"))),
)


def read_tail(path: Path, n: int = TAIL_LINES) -> list[bytes]:
    with path.open("rb") as f:
        return list(deque(f, maxlen=n))


def conversation_messages(lines: Sequence[str | bytes]) -> list[Record]:
    """User/assistant messages from transcript lines, most recent last."""
    records = parse_lines(lines, source="transcript").records
    messages = [r for r in records if r.get("role") in ("user", "assistant")]
    return messages[-MAX_MESSAGES:]


def _message_text(message: Record) -> str:
    content = message.get("content")
    if isinstance(content, str):
        return content
    # Structured content: a list of {"type": "text", "text": ...} blocks
    if isinstance(content, list):
        return " ".join(
            str(block.get("text", "")) for block in content if isinstance(block, dict)
        )
    return ""


def extract_topics(messages: Sequence[Record]) -> list[str]:
    text = " ".join(_message_text(m) for m in messages)
    return [label for label, matches in _TOPIC_RULES if matches(text)]


def format_entry(topics: Sequence[str], now: datetime | None = None) -> str:
    now = now or utc_now()
    stamp = now.astimezone(ENTRY_TIMEZONE).strftime("%H:%M")
    return f"\n### {stamp} - Session End (Auto-extracted)\n\n" + "\n".join(topics) + "\n"


def extract_session(
    session_file: Path,
    workspace_dir: Path,
    *,
    now: datetime | None = None,
) -> Path | None:
    """Append the session's topics to today's daily note. Returns the note path, or None if skipped."""
    if not session_file.exists():
        logger.info("session file missing, skipping", session_file=str(session_file))
        return None

    messages = conversation_messages(read_tail(session_file))
    if len(messages) < MIN_MESSAGES:
        logger.info("not enough messages, skipping", count=len(messages))
        return None

    topics = extract_topics(messages)
    if not topics:
        logger.info("no significant topics found")
        return None

    now = now or utc_now()
    daily = workspace_dir / "memory" / "private" / f"{today_str(now)}-daily.md"
    append_text(daily, format_entry(topics, now))
    logger.info("extracted topics", count=len(topics), path=str(daily))
    return daily


def handle_event(event: dict[str, Any]) -> Path | None:
    """Never raises; errors are logged and the host carries on."""
    if event.get("type") != "command" or event.get("action") != "new":
        return None

    context = event.get("context")
    if not isinstance(context, dict):
        return None
    workspace_dir = context.get("workspaceDir")
    session_file = context.get("sessionFile")
    if not workspace_dir or not session_file:
        logger.info("no workspace or session file, skipping")
        return None

    outcome = capture(extract_session, Path(session_file), Path(workspace_dir))
    return outcome.unwrap_or_default(None, context="knowledge-extraction")


def main() -> None:
    try:
        event = json.load(sys.stdin)
    except json.JSONDecodeError:
        sys.exit(0)
    if not isinstance(event, dict):
        sys.exit(0)

    configure_logging()
    handle_event(event)


if __name__ == "__main__":
    main()
