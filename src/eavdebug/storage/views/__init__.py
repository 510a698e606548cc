"""Debug view registry, creation and teardown."""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import partial

from eavdebug.storage.connection import SetupConnection
from eavdebug.storage.dialects import format_version, probe_json_support
from eavdebug.storage.errors import DebugViewsDatabaseError
from eavdebug.storage.tables import TableResolver
from eavdebug.storage.views.attribute_views import (
    ATTRIBUTE_VIEW_NAMES,
    PRODUCT_ATTRIBUTE_VIEW,
    create_product_attribute_view,
    render_product_attribute_view_sql,
)
from eavdebug.storage.views.entity_views import (
    ENTITY_VIEW_NAMES,
    ENTITY_VIEWS,
    create_entity_view,
    render_entity_view_sql,
)

log = logging.getLogger(__name__)

DEBUG_VIEW_NAMES: tuple[str, ...] = (*ENTITY_VIEW_NAMES, *ATTRIBUTE_VIEW_NAMES)

ViewCreator = Callable[[SetupConnection, TableResolver], bool]

_VIEW_CREATORS: tuple[tuple[str, ViewCreator], ...] = (
    *((spec.view, partial(create_entity_view, spec=spec)) for spec in ENTITY_VIEWS),
    (PRODUCT_ATTRIBUTE_VIEW, create_product_attribute_view),
)


def apply_debug_views(connection: SetupConnection, tables: TableResolver) -> tuple[str, ...]:
    """
    Create or replace every debug view the schema supports.

    Parameters
    ----------
    connection:
        Live setup connection.
    tables:
        Resolver for physical table and view names.

    Returns
    -------
    tuple[str, ...]
        Logical names of the views created; empty when the server lacks JSON
        aggregation.

    Raises
    ------
    DebugViewsDatabaseError
        When the version query or a view's DDL fails. The failure is logged
        before it propagates; views created before it remain.
    """
    try:
        support = probe_json_support(connection)
    except DebugViewsDatabaseError:
        log.exception("Failed to query the server version")
        raise
    if not support.supported:
        log.warning(
            "Server version %r does not support JSON aggregation (%s %s+ required); "
            "debug views not created",
            support.version_string,
            support.engine,
            format_version(support.minimum),
        )
        return ()

    created: list[str] = []
    for view, create in _VIEW_CREATORS:
        try:
            if create(connection, tables):
                created.append(view)
        except DebugViewsDatabaseError:
            log.exception("Failed to create view %s", view)
            raise

    log.info("All EAV debug views created successfully (%d created)", len(created))
    return tuple(created)


def drop_debug_views(connection: SetupConnection, tables: TableResolver) -> tuple[str, ...]:
    """
    Drop every debug view, continuing past individual failures.

    Any exception raised by a drop is logged as a warning, including driver
    errors a host connection did not wrap.

    Returns
    -------
    tuple[str, ...]
        Logical names whose ``DROP VIEW IF EXISTS`` succeeded.
    """
    dropped: list[str] = []
    for view in DEBUG_VIEW_NAMES:
        try:
            connection.query(f"DROP VIEW IF EXISTS {tables.quoted(view)}")
        except Exception as exc:  # noqa: BLE001
            log.warning("Could not drop view %s: %s", view, exc)
            continue
        dropped.append(view)
    return tuple(dropped)


def render_all_views(tables: TableResolver) -> dict[str, str]:
    """
    Render every view's DDL assuming all base tables are present.

    Returns
    -------
    dict[str, str]
        View name -> ``CREATE OR REPLACE VIEW`` statement, in creation order.
    """
    statements = {spec.view: render_entity_view_sql(spec, tables) for spec in ENTITY_VIEWS}
    statements[PRODUCT_ATTRIBUTE_VIEW] = render_product_attribute_view_sql(tables)
    return statements


__all__ = [
    "DEBUG_VIEW_NAMES",
    "apply_debug_views",
    "drop_debug_views",
    "render_all_views",
]
