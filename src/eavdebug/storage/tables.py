"""Logical table key -> physical identifier resolution."""

from __future__ import annotations

import re
from dataclasses import dataclass

from eavdebug.storage.dialects import SqlDialect
from eavdebug.storage.errors import InvalidIdentifierError

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
PREFIX_RE = re.compile(r"^[A-Za-z0-9_]*$")


def validate_prefix(prefix: str) -> str:
    """
    Check that a table prefix can be prepended to identifiers safely.

    Returns
    -------
    str
        The unchanged prefix.

    Raises
    ------
    InvalidIdentifierError
        If the prefix contains characters other than letters, digits and ``_``.
    """
    if not PREFIX_RE.match(prefix):
        message = f"Invalid table prefix {prefix!r}"
        raise InvalidIdentifierError(message)
    return prefix


@dataclass(frozen=True)
class TableResolver:
    """Apply the environment table prefix and quote names for a dialect."""

    dialect: SqlDialect
    prefix: str = ""

    def __post_init__(self) -> None:
        validate_prefix(self.prefix)

    def get_table(self, key: str) -> str:
        """
        Resolve a logical table key to its physical name.

        Raises
        ------
        InvalidIdentifierError
            If the prefixed name is not a plain identifier.
        """
        name = f"{self.prefix}{key}"
        if not IDENTIFIER_RE.match(name):
            message = f"Invalid table identifier {name!r} for key {key!r}"
            raise InvalidIdentifierError(message)
        return name

    def quoted(self, key: str) -> str:
        """Resolve ``key`` and quote it for interpolation into DDL."""
        return self.dialect.quote(self.get_table(key))


__all__ = ["IDENTIFIER_RE", "TableResolver", "validate_prefix"]
