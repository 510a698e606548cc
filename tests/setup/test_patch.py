"""Install patch and uninstall hook bracketing."""

from __future__ import annotations

import logging

import pytest

from eavdebug.setup import ConnectionSchemaSetup, CreateEavDebugViews, Uninstall
from eavdebug.storage.connection import DuckDBSetupConnection
from eavdebug.storage.errors import DebugViewsDatabaseError
from eavdebug.storage.views import DEBUG_VIEW_NAMES
from tests._helpers.eav import add_attribute, eav_attributes, insert_row
from tests._helpers.expect import expect_equal, expect_length, expect_true
from tests._helpers.fakes import RecordingConnection


class TrackingSetup(ConnectionSchemaSetup):
    """ConnectionSchemaSetup that records the bracketing calls."""

    def __init__(self, connection, **kwargs) -> None:
        super().__init__(connection, **kwargs)
        self.events: list[str] = []

    def start_setup(self) -> None:
        self.events.append("start")
        super().start_setup()

    def end_setup(self) -> None:
        self.events.append("end")
        super().end_setup()


def test_patch_declares_no_dependencies_or_aliases() -> None:
    patch = CreateEavDebugViews(TrackingSetup(RecordingConnection()))
    expect_equal(CreateEavDebugViews.get_dependencies(), [], label="dependencies")
    expect_equal(patch.get_aliases(), [], label="aliases")


def test_apply_brackets_view_creation(eav_duck: DuckDBSetupConnection) -> None:
    """Views are created between start_setup and end_setup."""
    setup = TrackingSetup(eav_duck)
    created = CreateEavDebugViews(setup).apply()
    expect_equal(created, DEBUG_VIEW_NAMES, label="created")
    expect_equal(setup.events, ["start", "end"], label="bracketing")
    expect_true(not setup.in_setup, message="setup section left open")


def test_apply_closes_setup_on_failure() -> None:
    """end_setup still runs when a view fails and the error reaches the caller."""
    connection = RecordingConnection(tables=("customer_address_entity",), fail_on=("`dev_address`",))
    setup = TrackingSetup(connection)
    with pytest.raises(DebugViewsDatabaseError):
        CreateEavDebugViews(setup).apply()
    expect_equal(setup.events, ["start", "end"], label="bracketing")
    expect_true(not setup.in_setup, message="setup section left open")


def test_apply_on_old_server_is_noop() -> None:
    connection = RecordingConnection(version="5.6.40")
    setup = TrackingSetup(connection)
    expect_equal(CreateEavDebugViews(setup).apply(), (), label="created")
    expect_equal(connection.statements, [], label="statements")
    expect_equal(setup.events, ["start", "end"], label="bracketing")


def test_apply_honours_table_prefix(duck: DuckDBSetupConnection) -> None:
    from tests._helpers.eav import create_eav_schema

    create_eav_schema(duck.con, prefix="dev1_")
    add_attribute(duck.con, 7, "status", prefix="dev1_")
    insert_row(duck.con, "dev1_catalog_product_entity", {"entity_id": 1, "sku": "S"})
    insert_row(
        duck.con,
        "dev1_catalog_product_entity_int",
        {"entity_id": 1, "attribute_id": 7, "store_id": 3, "value": 0},
    )
    setup = ConnectionSchemaSetup(duck, table_prefix="dev1_")
    CreateEavDebugViews(setup).apply()
    expect_equal(eav_attributes(duck.con, "dev1_dev_product", 1), {"status:3": 0})
    expect_equal(setup.get_table("eav_attribute"), "dev1_eav_attribute", label="get_table")


def test_uninstall_drops_views_and_logs(
    eav_duck: DuckDBSetupConnection, caplog: pytest.LogCaptureFixture
) -> None:
    setup = TrackingSetup(eav_duck)
    CreateEavDebugViews(setup).apply()
    caplog.set_level(logging.INFO, logger="eavdebug")

    dropped = Uninstall().uninstall(setup)
    expect_equal(dropped, DEBUG_VIEW_NAMES, label="dropped")
    for view in DEBUG_VIEW_NAMES:
        expect_true(not eav_duck.table_exists(view), message=f"{view} still present")
    expect_true(
        any("uninstall complete" in record.getMessage() for record in caplog.records),
        message="completion should be logged",
    )
    expect_equal(setup.events, ["start", "end", "start", "end"], label="bracketing")


def test_uninstall_is_best_effort() -> None:
    """A failing drop is skipped and the hook still completes."""
    connection = RecordingConnection(fail_on=("`dev_address`",))
    setup = TrackingSetup(connection)
    dropped = Uninstall().uninstall(setup)
    expect_length(connection.statements, len(DEBUG_VIEW_NAMES), label="drop attempts")
    expect_equal(dropped, DEBUG_VIEW_NAMES[1:], label="dropped")
    expect_true(not setup.in_setup, message="setup section left open")


def test_end_setup_without_start_warns(caplog: pytest.LogCaptureFixture) -> None:
    setup = ConnectionSchemaSetup(RecordingConnection())
    caplog.set_level(logging.WARNING, logger="eavdebug")
    setup.end_setup()
    expect_true(not setup.in_setup, message="depth must not go negative")
    expect_length(caplog.records, 1, label="warnings")
