"""
Access levels and session-key resolution.

Levels are totally ordered; a session at a given level can see everything
visible at any lower level:

    public < household < trusted < family < private

Resolution is fail-closed: any key that is not positively recognized maps to
PUBLIC, never to a more privileged level.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .errors import ValidationError

DEFAULT_MAIN_SESSION = "agent:main:main"


class AccessLevel(str, Enum):
    PUBLIC = "public"
    HOUSEHOLD = "household"
    TRUSTED = "trusted"
    FAMILY = "family"
    PRIVATE = "private"

    @property
    def rank(self) -> int:
        return _ORDER.index(self)


_ORDER = (
    AccessLevel.PUBLIC,
    AccessLevel.HOUSEHOLD,
    AccessLevel.TRUSTED,
    AccessLevel.FAMILY,
    AccessLevel.PRIVATE,
)

ACCESS_LEVELS = tuple(level.value for level in _ORDER)


def parse_access_level(text: str) -> AccessLevel:
    """Case-insensitive level name -> AccessLevel."""
    normalized = (text or "").strip().lower()
    try:
        return AccessLevel(normalized)
    except ValueError:
        raise ValidationError(
            f"Invalid access level: {text}. Must be one of: {', '.join(ACCESS_LEVELS)}"
        ) from None


@dataclass(frozen=True)
class AccessConfig:
    """Known sessions and users. Loaded from [access] in miriam.toml."""

    main_session: str = DEFAULT_MAIN_SESSION
    users: dict[str, AccessLevel] = field(default_factory=dict)  # dm sender id -> level


def resolve_access_level(session_key: str | None, config: AccessConfig | None = None) -> AccessLevel:
    """
    Derive the access level for a session key.

    Format: agent:<agent>:<channel>:<type>:<id>[:extra]
    """
    config = config or AccessConfig()
    key = session_key or ""

    if key == config.main_session:
        return AccessLevel.PRIVATE

    parts = key.split(":")
    if len(parts) < 4:
        return AccessLevel.PUBLIC

    chat_type = parts[3]
    sender_id = parts[4] if len(parts) > 4 else ""

    if chat_type == "dm" and sender_id and sender_id in config.users:
        return config.users[sender_id]

    if chat_type == "group":
        return AccessLevel.TRUSTED

    return AccessLevel.PUBLIC


def can_access(level: AccessLevel, required: AccessLevel) -> bool:
    """True iff ``level`` ranks at or above ``required``."""
    return level.rank >= required.rank
