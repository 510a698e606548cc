"""Error taxonomy for debug view generation."""

from __future__ import annotations

__all__ = [
    "DebugViewsDatabaseError",
    "DebugViewsError",
    "InvalidIdentifierError",
    "UnsupportedDialectError",
]


class DebugViewsError(RuntimeError):
    """Base class for all eavdebug failures."""


class DebugViewsDatabaseError(DebugViewsError):
    """A driver-level failure raised while talking to the database."""

    def __init__(self, message: str, *, statement: str | None = None) -> None:
        super().__init__(message)
        self.statement = statement


class InvalidIdentifierError(DebugViewsError, ValueError):
    """Physical table or view name is not a plain SQL identifier."""


class UnsupportedDialectError(DebugViewsError, ValueError):
    """Requested SQL dialect is not known."""
