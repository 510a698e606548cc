"""Entity debug views: main table columns plus merged EAV values as JSON."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from eavdebug.storage.connection import SetupConnection
from eavdebug.storage.tables import TableResolver

log = logging.getLogger(__name__)

ATTRIBUTE_DATATYPES: tuple[str, ...] = ("decimal", "datetime", "int", "text", "varchar")
ATTRIBUTE_TABLE = "eav_attribute"


@dataclass(frozen=True)
class EntityViewSpec:
    """
    Table layout behind one entity debug view.

    Attributes
    ----------
    view:
        Logical name of the generated view.
    entity_table:
        Logical name of the main entity table.
    store_scoped:
        Whether attribute tables carry ``store_id`` overrides.
    """

    view: str
    entity_table: str
    store_scoped: bool

    def value_table(self, datatype: str) -> str:
        """Logical name of the attribute table holding ``datatype`` values."""
        return f"{self.entity_table}_{datatype}"


ADDRESS_VIEW = EntityViewSpec("dev_address", "customer_address_entity", store_scoped=False)
CATEGORY_VIEW = EntityViewSpec("dev_category", "catalog_category_entity", store_scoped=True)
CUSTOMER_VIEW = EntityViewSpec("dev_customer", "customer_entity", store_scoped=False)
PRODUCT_VIEW = EntityViewSpec("dev_product", "catalog_product_entity", store_scoped=True)

ENTITY_VIEWS: tuple[EntityViewSpec, ...] = (
    ADDRESS_VIEW,
    CATEGORY_VIEW,
    CUSTOMER_VIEW,
    PRODUCT_VIEW,
)

ENTITY_VIEW_NAMES: tuple[str, ...] = tuple(spec.view for spec in ENTITY_VIEWS)


def _attribute_key(spec: EntityViewSpec) -> str:
    if not spec.store_scoped:
        return "ea.attribute_code"
    return (
        "CASE WHEN v.store_id > 0 "
        "THEN CONCAT(ea.attribute_code, ':', v.store_id) "
        "ELSE ea.attribute_code END"
    )


def _aggregate_cte(spec: EntityViewSpec, tables: TableResolver, datatype: str) -> str:
    dialect = tables.dialect
    return f"""
    eav_{datatype} AS (
        SELECT
            v.entity_id,
            {dialect.object_agg}(
                {_attribute_key(spec)},
                v.value
            ) AS attributes
        FROM {tables.quoted(spec.value_table(datatype))} v
        INNER JOIN {tables.quoted(ATTRIBUTE_TABLE)} ea ON v.attribute_id = ea.attribute_id
        GROUP BY v.entity_id
    )"""


def _value_rows(spec: EntityViewSpec, tables: TableResolver, datatype: str, value_json_fn: str) -> str:
    return f"""
        SELECT
            v.entity_id,
            {_attribute_key(spec)} AS attribute_key,
            {value_json_fn}(v.value) AS value
        FROM {tables.quoted(spec.value_table(datatype))} v
        INNER JOIN {tables.quoted(ATTRIBUTE_TABLE)} ea ON v.attribute_id = ea.attribute_id"""


def _merged_select(spec: EntityViewSpec, tables: TableResolver, datatypes: Sequence[str]) -> str:
    dialect = tables.dialect
    merged = dialect.merge_objects(
        [f"COALESCE(eav_{datatype}.attributes, {dialect.empty_object})" for datatype in datatypes]
    )
    joins = "".join(
        f"\nLEFT JOIN eav_{datatype} ON e.entity_id = eav_{datatype}.entity_id"
        for datatype in datatypes
    )
    ctes = ",".join(_aggregate_cte(spec, tables, datatype) for datatype in datatypes)
    return (
        f"WITH{ctes}\n"
        "SELECT\n"
        "    e.*,\n"
        f"    {merged} AS eav_attributes\n"
        f"FROM {tables.quoted(spec.entity_table)} e"
        f"{joins}\n"
    )


def _union_select(
    spec: EntityViewSpec,
    tables: TableResolver,
    datatypes: Sequence[str],
    value_json_fn: str,
) -> str:
    dialect = tables.dialect
    rows = "\n        UNION ALL".join(
        _value_rows(spec, tables, datatype, value_json_fn) for datatype in datatypes
    )
    return (
        "WITH\n"
        f"    eav_values AS ({rows}\n"
        "    ),\n"
        "    eav_merged AS (\n"
        "        SELECT\n"
        "            entity_id,\n"
        f"            {dialect.object_agg}(attribute_key, value) AS attributes\n"
        "        FROM eav_values\n"
        "        GROUP BY entity_id\n"
        "    )\n"
        "SELECT\n"
        "    e.*,\n"
        f"    COALESCE(eav_merged.attributes, {dialect.empty_object}) AS eav_attributes\n"
        f"FROM {tables.quoted(spec.entity_table)} e\n"
        "LEFT JOIN eav_merged ON e.entity_id = eav_merged.entity_id\n"
    )


def render_entity_view_sql(
    spec: EntityViewSpec,
    tables: TableResolver,
    *,
    datatypes: Sequence[str] = ATTRIBUTE_DATATYPES,
) -> str:
    """
    Render the ``CREATE OR REPLACE VIEW`` statement for an entity view.

    Dialects with a null-preserving merge function aggregate each datatype
    table into its own object and merge the objects. Dialects with
    ``value_json_fn`` convert every value to JSON and aggregate all datatype
    tables in one pass, so keys holding null values are kept either way.

    Parameters
    ----------
    spec:
        Entity table layout.
    tables:
        Resolver providing physical names and the target dialect.
    datatypes:
        Attribute datatypes whose value tables take part in the view.

    Returns
    -------
    str
        DDL statement; no database access is performed.
    """
    dialect = tables.dialect
    header = f"CREATE OR REPLACE VIEW {tables.quoted(spec.view)} AS\n"
    if not datatypes:
        return (
            f"{header}"
            "SELECT\n"
            "    e.*,\n"
            f"    {dialect.empty_object} AS eav_attributes\n"
            f"FROM {tables.quoted(spec.entity_table)} e\n"
        )
    if dialect.value_json_fn is not None:
        return header + _union_select(spec, tables, datatypes, dialect.value_json_fn)
    return header + _merged_select(spec, tables, datatypes)


def create_entity_view(
    connection: SetupConnection,
    tables: TableResolver,
    spec: EntityViewSpec,
) -> bool:
    """
    Create or replace one entity view.

    The view is skipped when its main entity table is absent. Value tables
    that do not exist are left out of the merge.

    Returns
    -------
    bool
        True when the view was (re)created, False when it was skipped.
    """
    entity_table = tables.get_table(spec.entity_table)
    if not connection.table_exists(entity_table):
        log.info("Skipping view %s: table %s does not exist", spec.view, entity_table)
        return False

    datatypes: list[str] = []
    for datatype in ATTRIBUTE_DATATYPES:
        value_table = tables.get_table(spec.value_table(datatype))
        if connection.table_exists(value_table):
            datatypes.append(datatype)
        else:
            log.debug("View %s: value table %s not found, leaving it out", spec.view, value_table)

    connection.query(render_entity_view_sql(spec, tables, datatypes=datatypes))
    log.info("View %s created", tables.get_table(spec.view))
    return True


__all__ = [
    "ATTRIBUTE_DATATYPES",
    "ENTITY_VIEWS",
    "ENTITY_VIEW_NAMES",
    "EntityViewSpec",
    "create_entity_view",
    "render_entity_view_sql",
]
