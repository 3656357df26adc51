"""
Explicit success/failure values for the two error policies.

Hooks sit on the host's startup path and must never block it: they unwrap a
Failed outcome with unwrap_or_default() (log, then carry on with the default).

Tools are invoked explicitly by the agent and report failures back to it:
they unwrap with to_result(), which turns a Failed outcome into
``{"success": False, "error": ...}`` instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def map(self, fn: Callable[[T], U]) -> "Outcome[U]":
        return capture(fn, self.value)

    def unwrap_or_default(self, default: T, *, context: str = "") -> T:
        return self.value

    def to_result(
        self,
        render: Callable[[T], dict[str, Any]] | None = None,
        *,
        prefix: str = "",
    ) -> dict[str, Any]:
        fields = render(self.value) if render else {}
        return {"success": True, **fields}


@dataclass(frozen=True)
class Failed:
    error: Exception

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__

    def map(self, fn: Callable[[Any], Any]) -> "Failed":
        return self

    def unwrap_or_default(self, default: Any, *, context: str = "") -> Any:
        """Fail-open: log the error and hand back ``default``."""
        logger.error(
            "falling back to default",
            context=context,
            error=self.message,
            error_type=type(self.error).__name__,
        )
        return default

    def to_result(
        self,
        render: Callable[[Any], dict[str, Any]] | None = None,
        *,
        prefix: str = "",
    ) -> dict[str, Any]:
        """Fail-closed: surface the error verbatim (optionally prefixed)."""
        return {"success": False, "error": f"{prefix}{self.message}"}


Outcome = Union[Ok[T], Failed]


def capture(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome[T]:
    """Run ``fn`` and wrap its return value or exception."""
    try:
        return Ok(fn(*args, **kwargs))
    except Exception as e:
        return Failed(e)
