"""Schema setup handle passed to the install and uninstall hooks."""

from __future__ import annotations

import logging
from typing import Protocol

from eavdebug.storage.connection import SetupConnection
from eavdebug.storage.tables import TableResolver

log = logging.getLogger(__name__)


class SchemaSetup(Protocol):
    """Host-side setup context bracketing schema changes."""

    @property
    def tables(self) -> TableResolver:
        """Resolver for physical table names."""
        ...

    def start_setup(self) -> None:
        """Enter a setup section."""
        ...

    def end_setup(self) -> None:
        """Leave a setup section."""
        ...

    def get_connection(self) -> SetupConnection:
        """Return the connection schema changes run against."""
        ...

    def get_table(self, key: str) -> str:
        """Resolve a logical table key to its physical name."""
        ...


class ConnectionSchemaSetup:
    """SchemaSetup over a single setup connection and table prefix."""

    def __init__(self, connection: SetupConnection, *, table_prefix: str = "") -> None:
        self._connection = connection
        self._tables = TableResolver(connection.dialect, table_prefix)
        self._depth = 0

    @property
    def tables(self) -> TableResolver:
        return self._tables

    @property
    def in_setup(self) -> bool:
        """Whether a start_setup() call is awaiting its end_setup()."""
        return self._depth > 0

    def start_setup(self) -> None:
        self._depth += 1
        log.debug("Schema setup started (depth=%d)", self._depth)

    def end_setup(self) -> None:
        if self._depth == 0:
            log.warning("end_setup() called without a matching start_setup()")
            return
        self._depth -= 1
        log.debug("Schema setup finished (depth=%d)", self._depth)

    def get_connection(self) -> SetupConnection:
        return self._connection

    def get_table(self, key: str) -> str:
        return self._tables.get_table(key)


__all__ = ["ConnectionSchemaSetup", "SchemaSetup"]
