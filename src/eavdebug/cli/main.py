"""CLI entrypoint for installing and inspecting the EAV debug views."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Iterable
from pathlib import Path

from pydantic import ValidationError

from eavdebug.config import DebugViewsConfig
from eavdebug.setup import ConnectionSchemaSetup, CreateEavDebugViews, Uninstall
from eavdebug.storage.connection import open_connection
from eavdebug.storage.dialects import format_version, get_dialect, probe_json_support
from eavdebug.storage.errors import DebugViewsError
from eavdebug.storage.tables import TableResolver
from eavdebug.storage.views import render_all_views

LOG = logging.getLogger("eavdebug.cli")

CommandHandler = Callable[[argparse.Namespace], int]


# ---------------------------------------------------------------------------
# Argument parsing / logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure logging based on -v/--verbose count.

    0 -> WARNING, 1 -> INFO, 2+ -> DEBUG.
    """
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _add_connection_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--backend",
        choices=["duckdb", "mysql"],
        default=None,
        help="Database engine (default: $EAVDEBUG_BACKEND or duckdb)",
    )
    p.add_argument(
        "--db-path",
        type=Path,
        default=None,
        help="DuckDB database file (default: $EAVDEBUG_DB_PATH or build/db/eav.duckdb)",
    )
    p.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL for the mysql backend, e.g. mysql+pymysql://user:pw@host/db",
    )
    p.add_argument(
        "--table-prefix",
        default=None,
        help="Table name prefix of the target installation (default: $EAVDEBUG_TABLE_PREFIX)",
    )


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eavdebug",
        description="Create or drop development views flattening EAV tables into JSON",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be repeated)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_install = subparsers.add_parser("install", help="Create or replace all debug views")
    _add_connection_args(p_install)
    p_install.set_defaults(func=_cmd_install)

    p_uninstall = subparsers.add_parser("uninstall", help="Drop all debug views (best effort)")
    _add_connection_args(p_uninstall)
    p_uninstall.set_defaults(func=_cmd_uninstall)

    p_check = subparsers.add_parser(
        "check",
        help="Report whether the server supports the JSON aggregation the views need",
    )
    _add_connection_args(p_check)
    p_check.set_defaults(func=_cmd_check)

    p_sql = subparsers.add_parser("sql", help="Print the view DDL without connecting")
    _add_connection_args(p_sql)
    p_sql.set_defaults(func=_cmd_sql)

    return parser


def make_parser() -> argparse.ArgumentParser:
    """
    Public helper to construct the CLI parser (for tests/tools).

    Returns
    -------
    argparse.ArgumentParser
        Configured parser with all subcommands registered.
    """
    return _make_parser()


def _config_from_args(args: argparse.Namespace) -> DebugViewsConfig:
    """Overlay explicit CLI options on top of the environment configuration."""
    data = DebugViewsConfig.env_values()
    overrides = {
        "backend": args.backend,
        "db_path": args.db_path,
        "database_url": args.database_url,
        "table_prefix": args.table_prefix,
    }
    data.update({key: value for key, value in overrides.items() if value is not None})
    return DebugViewsConfig(**data)


# ---------------------------------------------------------------------------
# Command implementations
# ---------------------------------------------------------------------------


def _cmd_install(args: argparse.Namespace) -> int:
    cfg = _config_from_args(args)
    connection = open_connection(cfg)
    try:
        setup = ConnectionSchemaSetup(connection, table_prefix=cfg.table_prefix)
        created = CreateEavDebugViews(setup).apply()
    finally:
        connection.close()
    if created:
        print("Created views: " + ", ".join(created))
    else:
        print("No views created (see warnings)")
    return 0


def _cmd_uninstall(args: argparse.Namespace) -> int:
    cfg = _config_from_args(args)
    connection = open_connection(cfg)
    try:
        setup = ConnectionSchemaSetup(connection, table_prefix=cfg.table_prefix)
        dropped = Uninstall().uninstall(setup)
    finally:
        connection.close()
    print("Dropped views: " + (", ".join(dropped) if dropped else "none"))
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    cfg = _config_from_args(args)
    connection = open_connection(cfg)
    try:
        support = probe_json_support(connection)
    finally:
        connection.close()
    detected = format_version(support.version) if support.version else "unparsable"
    verdict = "supported" if support.supported else "not supported"
    print(
        f"{support.version_string or '<empty>'} ({support.engine} {detected}): "
        f"JSON aggregation {verdict} (requires >= {format_version(support.minimum)})"
    )
    return 0 if support.supported else 1


def _cmd_sql(args: argparse.Namespace) -> int:
    env = DebugViewsConfig.env_values()
    backend = args.backend or str(env.get("backend", "duckdb"))
    prefix = args.table_prefix if args.table_prefix is not None else str(env.get("table_prefix", ""))
    tables = TableResolver(get_dialect(backend), prefix)
    for view, statement in render_all_views(tables).items():
        print(f"-- {view}")
        print(statement.rstrip() + ";")
        print()
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    """
    CLI entrypoint for the eavdebug commands.

    Parameters
    ----------
    argv:
        Optional argument list (defaults to sys.argv).

    Returns
    -------
    int
        Exit code (0 on success).
    """
    parser = _make_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    _setup_logging(args.verbose)

    func: CommandHandler = args.func
    try:
        return int(func(args))
    except ValidationError as exc:
        LOG.error("Invalid configuration: %s", exc)
        return 2
    except DebugViewsError as exc:
        LOG.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
