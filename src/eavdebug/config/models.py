"""Connection and naming settings for installing the debug views."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from eavdebug.storage.tables import PREFIX_RE

Backend = Literal["duckdb", "mysql"]

DEFAULT_DB_PATH = Path("build") / "db" / "eav.duckdb"


class DebugViewsConfig(BaseModel):
    """
    Settings shared by the CLI and programmatic installs.

    Values can be supplied directly or loaded with :meth:`from_env`.
    """

    backend: Backend = Field(
        default="duckdb",
        description="Database engine: 'duckdb' for local files, 'mysql' for MySQL/MariaDB.",
    )
    db_path: Path | None = Field(
        default=None,
        description="DuckDB database file (duckdb backend only).",
    )
    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy URL, e.g. 'mysql+pymysql://user:pw@host/db' (mysql backend).",
    )
    table_prefix: str = Field(
        default="",
        description="Environment table prefix prepended to every table and view name.",
    )

    @staticmethod
    def env_values() -> dict[str, object]:
        """
        Read raw ``EAVDEBUG_*`` settings without validating them.

        Returns
        -------
        dict[str, object]
            Field name -> value for every variable that is set.
        """
        values: dict[str, object] = {}
        backend = os.environ.get("EAVDEBUG_BACKEND")
        if backend:
            values["backend"] = backend.lower()
        db_path = os.environ.get("EAVDEBUG_DB_PATH")
        if db_path:
            values["db_path"] = Path(db_path).expanduser()
        database_url = os.environ.get("EAVDEBUG_DATABASE_URL")
        if database_url:
            values["database_url"] = database_url
        table_prefix = os.environ.get("EAVDEBUG_TABLE_PREFIX")
        if table_prefix is not None:
            values["table_prefix"] = table_prefix
        return values

    @classmethod
    def from_env(cls) -> DebugViewsConfig:
        """
        Construct a configuration from ``EAVDEBUG_*`` environment variables.

        Returns
        -------
        DebugViewsConfig
            Validated configuration populated from environment values.
        """
        return cls(**cls.env_values())

    @field_validator("table_prefix")
    @classmethod
    def _validate_prefix(cls, value: str) -> str:
        if not PREFIX_RE.match(value):
            message = "table_prefix may only contain letters, digits and underscores"
            raise ValueError(message)
        return value

    @model_validator(mode="after")
    def _apply_backend_defaults(self) -> DebugViewsConfig:
        """
        Fill backend defaults and reject incomplete settings.

        Raises
        ------
        ValueError
            When the mysql backend has no database URL.
        """
        if self.backend == "duckdb":
            if self.db_path is None:
                self.db_path = DEFAULT_DB_PATH
        elif not self.database_url:
            message = "database_url is required when backend='mysql'"
            raise ValueError(message)
        return self

