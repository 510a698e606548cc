"""Product attribute metadata view."""

from __future__ import annotations

import json

from eavdebug.storage.connection import DuckDBSetupConnection
from eavdebug.storage.dialects import MYSQL
from eavdebug.storage.tables import TableResolver
from eavdebug.storage.views.attribute_views import (
    create_product_attribute_view,
    render_product_attribute_view_sql,
)
from tests._helpers.eav import add_attribute, create_metadata_tables, insert_row
from tests._helpers.expect import expect_equal, expect_in, expect_true


def _seed_sets(con: DuckDBSetupConnection) -> None:
    create_metadata_tables(con.con)
    add_attribute(con.con, 10, "status")
    add_attribute(con.con, 11, "name", backend_type="varchar")
    add_attribute(con.con, 12, "color")
    add_attribute(con.con, 99, "gender", catalog=False)
    insert_row(con.con, "eav_attribute_set", {"attribute_set_id": 4, "attribute_set_name": "Default"})
    insert_row(con.con, "eav_attribute_set", {"attribute_set_id": 9, "attribute_set_name": "Shoes"})
    insert_row(
        con.con,
        "eav_attribute_group",
        {"attribute_group_id": 7, "attribute_set_id": 4, "attribute_group_name": "General"},
    )
    insert_row(
        con.con,
        "eav_attribute_group",
        {"attribute_group_id": 8, "attribute_set_id": 9, "attribute_group_name": "Details"},
    )
    assignments = (
        (1, 4, 7, 10, 1),
        (2, 9, 8, 10, 5),
        (3, 4, 7, 11, 2),
    )
    for entity_attribute_id, set_id, group_id, attribute_id, sort_order in assignments:
        insert_row(
            con.con,
            "eav_entity_attribute",
            {
                "entity_attribute_id": entity_attribute_id,
                "attribute_set_id": set_id,
                "attribute_group_id": group_id,
                "attribute_id": attribute_id,
                "sort_order": sort_order,
            },
        )


def _rows(con: DuckDBSetupConnection) -> list[dict[str, object]]:
    cursor = con.con.execute("SELECT * FROM dev_product_attribute")
    columns = [column[0] for column in cursor.description]
    return [dict(zip(columns, row, strict=True)) for row in cursor.fetchall()]


def test_attribute_view_aggregates_set_assignments(
    duck: DuckDBSetupConnection, duck_tables: TableResolver
) -> None:
    """Each catalog attribute lists its set/group assignments as a JSON array."""
    _seed_sets(duck)
    expect_true(create_product_attribute_view(duck, duck_tables), message="view not created")

    rows = {row["attribute_code"]: row for row in _rows(duck)}
    status_sets = sorted(
        json.loads(str(rows["status"]["attribute_sets"])),
        key=lambda item: item["attribute_set_id"],
    )
    expect_equal(
        status_sets,
        [
            {
                "attribute_set_id": 4,
                "attribute_set_name": "Default",
                "attribute_group_id": 7,
                "attribute_group_name": "General",
                "sort_order": 1,
            },
            {
                "attribute_set_id": 9,
                "attribute_set_name": "Shoes",
                "attribute_group_id": 8,
                "attribute_group_name": "Details",
                "sort_order": 5,
            },
        ],
        label="status sets",
    )
    expect_equal(len(json.loads(str(rows["name"]["attribute_sets"]))), 1, label="name sets")


def test_attribute_without_assignments_gets_empty_array(
    duck: DuckDBSetupConnection, duck_tables: TableResolver
) -> None:
    """Attributes not assigned to any set report []."""
    _seed_sets(duck)
    create_product_attribute_view(duck, duck_tables)
    rows = {row["attribute_code"]: row for row in _rows(duck)}
    expect_equal(json.loads(str(rows["color"]["attribute_sets"])), [], label="color sets")


def test_attribute_view_shape_and_order(duck: DuckDBSetupConnection, duck_tables: TableResolver) -> None:
    """Only catalog attributes appear, ordered by code, with attribute_id once."""
    _seed_sets(duck)
    create_product_attribute_view(duck, duck_tables)
    cursor = duck.con.execute("SELECT * FROM dev_product_attribute")
    columns = [column[0] for column in cursor.description]
    codes = [row[columns.index("attribute_code")] for row in cursor.fetchall()]

    expect_equal(codes, ["color", "name", "status"], label="ordering")
    expect_equal(columns.count("attribute_id"), 1, label="attribute_id columns")
    for column in ("attribute_code", "backend_type", "is_global", "is_visible", "attribute_sets"):
        expect_in(column, columns, label="columns")


def test_attribute_view_is_replaceable(duck: DuckDBSetupConnection, duck_tables: TableResolver) -> None:
    """Creating the view twice replaces it without error."""
    _seed_sets(duck)
    create_product_attribute_view(duck, duck_tables)
    create_product_attribute_view(duck, duck_tables)
    expect_equal(duck.fetch_one("SELECT COUNT(*) FROM dev_product_attribute"), 3)


def test_render_uses_resolved_names() -> None:
    """Every referenced table goes through the resolver."""
    sql = render_product_attribute_view_sql(TableResolver(MYSQL, "m2_"))
    for table in (
        "m2_dev_product_attribute",
        "m2_eav_attribute",
        "m2_catalog_eav_attribute",
        "m2_eav_entity_attribute",
        "m2_eav_attribute_set",
        "m2_eav_attribute_group",
    ):
        expect_in(f"`{table}`", sql, label=table)
    expect_in("JSON_ARRAYAGG(", sql, label="aggregate")
    expect_in("JSON_ARRAY()", sql, label="empty array")
