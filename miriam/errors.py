"""
Error taxonomy shared by the stores, tools and hooks.

Filesystem failures are not wrapped: they propagate as the built-in OSError.
"""

from __future__ import annotations

from pathlib import Path


class MiriamError(Exception):
    """Base class for all miriam errors."""


class ValidationError(MiriamError, ValueError):
    """Empty or invalid input. Raised before anything is written."""


class NotFoundError(MiriamError, LookupError):
    """A referenced record identifier does not exist."""


class ParseError(MiriamError, ValueError):
    """Malformed JSON in a single-record file."""

    def __init__(self, path: Path, reason: str = ""):
        self.path = path
        self.reason = reason
        msg = f"Invalid JSON in {path}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
