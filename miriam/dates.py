"""Calendar helpers. All dates are UTC calendar days rendered as YYYY-MM-DD."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone

from .errors import ValidationError

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_RELATIVE_DAYS = {
    "today": 0,
    "tomorrow": 1,
    "next week": 7,
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_now() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today_str(now: datetime | None = None) -> str:
    now = now or utc_now()
    return now.date().isoformat()


def parse_when(text: str | None, today: date | None = None) -> str | None:
    """
    Turn "today", "tomorrow" or "next week" into YYYY-MM-DD.

    Anything else is assumed to already be a date and is returned as given.
    """
    if not text:
        return None
    offset = _RELATIVE_DAYS.get(text.strip().lower())
    if offset is None:
        return text
    today = today or utc_now().date()
    return (today + timedelta(days=offset)).isoformat()


def validate_date(text: str | None) -> str | None:
    """Check a YYYY-MM-DD string is a real calendar date; None passes through."""
    if not text:
        return None
    if not _DATE_RE.match(text):
        raise ValidationError(f"Invalid date format: {text}. Expected YYYY-MM-DD")
    try:
        date.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid date: {text}") from None
    return text
