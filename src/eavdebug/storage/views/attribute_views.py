"""Product attribute metadata view."""

from __future__ import annotations

import logging

from eavdebug.storage.connection import SetupConnection
from eavdebug.storage.tables import TableResolver

log = logging.getLogger(__name__)

PRODUCT_ATTRIBUTE_VIEW = "dev_product_attribute"
ATTRIBUTE_VIEW_NAMES: tuple[str, ...] = (PRODUCT_ATTRIBUTE_VIEW,)

_ASSIGNMENT_FIELDS: tuple[tuple[str, str], ...] = (
    ("attribute_set_id", "aea.attribute_set_id"),
    ("attribute_set_name", "eas.attribute_set_name"),
    ("attribute_group_id", "aea.attribute_group_id"),
    ("attribute_group_name", "eag.attribute_group_name"),
    ("sort_order", "aea.sort_order"),
)


def render_product_attribute_view_sql(tables: TableResolver) -> str:
    """
    Render the DDL for ``dev_product_attribute``.

    Each row carries the ``eav_attribute`` and ``catalog_eav_attribute``
    columns (``attribute_id`` once) plus ``attribute_sets``, a JSON array with
    one object per set/group assignment.

    Attributes without assignments get an empty array. A plain ``LEFT JOIN``
    under the array aggregate would instead yield a one-element array holding
    an object whose fields are all null. Assignments are aggregated in their
    own CTE and ``COALESCE``d to the empty array.
    """
    dialect = tables.dialect
    pairs = ",\n                ".join(f"'{key}', {expr}" for key, expr in _ASSIGNMENT_FIELDS)
    return f"""CREATE OR REPLACE VIEW {tables.quoted(PRODUCT_ATTRIBUTE_VIEW)} AS
WITH
    attribute_assignments AS (
        SELECT
            aea.attribute_id,
            {dialect.array_agg}(
                {dialect.object_fn}(
                {pairs}
                )
            ) AS attribute_sets
        FROM {tables.quoted("eav_entity_attribute")} aea
        LEFT JOIN {tables.quoted("eav_attribute_set")} eas
          ON aea.attribute_set_id = eas.attribute_set_id
        LEFT JOIN {tables.quoted("eav_attribute_group")} eag
          ON aea.attribute_group_id = eag.attribute_group_id
        GROUP BY aea.attribute_id
    ),
    attribute_set_lists AS (
        SELECT
            ea.attribute_id,
            COALESCE(aa.attribute_sets, {dialect.empty_array}) AS attribute_sets
        FROM {tables.quoted("eav_attribute")} ea
        LEFT JOIN attribute_assignments aa ON ea.attribute_id = aa.attribute_id
    )
SELECT *
FROM {tables.quoted("eav_attribute")} eav
INNER JOIN {tables.quoted("catalog_eav_attribute")} cav USING (attribute_id)
INNER JOIN attribute_set_lists USING (attribute_id)
ORDER BY eav.attribute_code
"""


def create_product_attribute_view(connection: SetupConnection, tables: TableResolver) -> bool:
    """Create or replace the product attribute metadata view."""
    connection.query(render_product_attribute_view_sql(tables))
    log.info("View %s created", tables.get_table(PRODUCT_ATTRIBUTE_VIEW))
    return True


__all__ = [
    "ATTRIBUTE_VIEW_NAMES",
    "PRODUCT_ATTRIBUTE_VIEW",
    "create_product_attribute_view",
    "render_product_attribute_view_sql",
]
