"""Pytest configuration for the eavdebug test suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from eavdebug.storage.connection import DuckDBSetupConnection
from eavdebug.storage.tables import TableResolver
from tests._helpers.eav import create_eav_schema


@pytest.fixture
def duck() -> Iterator[DuckDBSetupConnection]:
    """Provide an in-memory DuckDB setup connection with no tables.

    Yields
    ------
    DuckDBSetupConnection
        Fresh adapter; closed after the test.
    """
    connection = DuckDBSetupConnection.open(":memory:")
    try:
        yield connection
    finally:
        connection.close()


@pytest.fixture
def eav_duck(duck: DuckDBSetupConnection) -> DuckDBSetupConnection:
    """DuckDB connection seeded with the full (empty) EAV schema."""
    create_eav_schema(duck.con)
    return duck


@pytest.fixture
def duck_tables(duck: DuckDBSetupConnection) -> TableResolver:
    """Unprefixed table resolver for the DuckDB dialect."""
    return TableResolver(duck.dialect)

