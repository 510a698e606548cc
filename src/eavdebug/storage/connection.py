"""Connection adapters used by view setup and teardown."""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import duckdb
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from eavdebug.storage.dialects import DUCKDB, MYSQL, SqlDialect
from eavdebug.storage.errors import DebugViewsDatabaseError

if TYPE_CHECKING:
    from eavdebug.config.models import DebugViewsConfig

log = logging.getLogger(__name__)

# Statements are sent without bind parameters so driver paramstyles never rewrite them.
_RAW_SQL = {"no_parameters": True}


@runtime_checkable
class SetupConnection(Protocol):
    """Minimal database surface needed to manage the debug views."""

    dialect: SqlDialect

    def fetch_one(self, sql: str) -> object | None:
        """Return the first column of the first row, or None."""
        ...

    def query(self, sql: str) -> None:
        """Execute a statement that returns no rows."""
        ...

    def table_exists(self, name: str) -> bool:
        """Report whether a table or view with the physical name exists."""
        ...

    def close(self) -> None:
        """Release the underlying connection."""
        ...


def _first_line(sql: str) -> str:
    for line in sql.splitlines():
        if line.strip():
            return line.strip()
    return ""


class DuckDBSetupConnection:
    """Setup connection backed by a DuckDB connection."""

    dialect: SqlDialect = DUCKDB

    def __init__(self, con: duckdb.DuckDBPyConnection) -> None:
        self.con = con

    @classmethod
    def open(cls, db_path: Path | str = ":memory:") -> DuckDBSetupConnection:
        """
        Open a DuckDB database file (or an in-memory database).

        Returns
        -------
        DuckDBSetupConnection
            Adapter owning the new connection.
        """
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
        log.info("Connecting to DuckDB at %s", db_path)
        return cls(duckdb.connect(str(db_path)))

    def fetch_one(self, sql: str) -> object | None:
        try:
            row = self.con.execute(sql).fetchone()
        except duckdb.Error as exc:
            message = f"DuckDB query failed: {exc}"
            raise DebugViewsDatabaseError(message, statement=sql) from exc
        return None if row is None else row[0]

    def query(self, sql: str) -> None:
        log.debug("Executing: %s", _first_line(sql))
        try:
            self.con.execute(sql)
        except duckdb.Error as exc:
            message = f"DuckDB statement failed: {exc}"
            raise DebugViewsDatabaseError(message, statement=sql) from exc

    def table_exists(self, name: str) -> bool:
        try:
            row = self.con.execute(
                """
                SELECT COUNT(*)
                FROM information_schema.tables
                WHERE table_schema = current_schema()
                  AND table_name = ?
                """,
                [name],
            ).fetchone()
        except duckdb.Error as exc:
            message = f"DuckDB table lookup failed for {name}: {exc}"
            raise DebugViewsDatabaseError(message) from exc
        return bool(row and row[0])

    def close(self) -> None:
        self.con.close()

    def __enter__(self) -> DuckDBSetupConnection:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class SqlAlchemySetupConnection:
    """Setup connection backed by a SQLAlchemy engine (MySQL/MariaDB by default)."""

    def __init__(self, engine: Engine, *, dialect: SqlDialect = MYSQL) -> None:
        self.engine = engine
        self.dialect = dialect

    @classmethod
    def from_url(cls, url: str, *, dialect: SqlDialect = MYSQL) -> SqlAlchemySetupConnection:
        """
        Create an engine for ``url`` and wrap it.

        Returns
        -------
        SqlAlchemySetupConnection
            Adapter owning the new engine.
        """
        engine = create_engine(url, pool_pre_ping=True, echo=False)
        log.info("Connecting to %s via SQLAlchemy", engine.url.render_as_string(hide_password=True))
        return cls(engine, dialect=dialect)

    def fetch_one(self, sql: str) -> object | None:
        try:
            with self.engine.connect() as conn:
                return conn.exec_driver_sql(sql, execution_options=_RAW_SQL).scalar()
        except SQLAlchemyError as exc:
            message = f"Query failed: {exc}"
            raise DebugViewsDatabaseError(message, statement=sql) from exc

    def query(self, sql: str) -> None:
        log.debug("Executing: %s", _first_line(sql))
        try:
            with self.engine.begin() as conn:
                conn.exec_driver_sql(sql, execution_options=_RAW_SQL)
        except SQLAlchemyError as exc:
            message = f"Statement failed: {exc}"
            raise DebugViewsDatabaseError(message, statement=sql) from exc

    def table_exists(self, name: str) -> bool:
        try:
            with self.engine.connect() as conn:
                return inspect(conn).has_table(name)
        except SQLAlchemyError as exc:
            message = f"Table lookup failed for {name}: {exc}"
            raise DebugViewsDatabaseError(message) from exc

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> SqlAlchemySetupConnection:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def open_connection(config: DebugViewsConfig) -> SetupConnection:
    """
    Open the setup connection described by a configuration.

    Parameters
    ----------
    config:
        Validated configuration; backend defaults are already applied.

    Returns
    -------
    SetupConnection
        DuckDB or SQLAlchemy-backed adapter.
    """
    if config.backend == "mysql":
        if config.database_url is None:
            message = "database_url is required for the mysql backend"
            raise ValueError(message)
        return SqlAlchemySetupConnection.from_url(config.database_url)
    db_path = config.db_path if config.db_path is not None else ":memory:"
    return DuckDBSetupConnection.open(db_path)


__all__ = [
    "DuckDBSetupConnection",
    "SetupConnection",
    "SqlAlchemySetupConnection",
    "open_connection",
]
