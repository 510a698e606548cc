"""Physical name resolution and identifier validation."""

from __future__ import annotations

import pytest

from eavdebug.storage.dialects import DUCKDB, MYSQL
from eavdebug.storage.errors import InvalidIdentifierError
from eavdebug.storage.tables import TableResolver
from tests._helpers.expect import expect_equal


def test_prefix_applied_to_tables_and_views() -> None:
    """Both base tables and output views carry the environment prefix."""
    tables = TableResolver(MYSQL, "m2_")
    expect_equal(tables.get_table("catalog_product_entity"), "m2_catalog_product_entity")
    expect_equal(tables.get_table("dev_product"), "m2_dev_product")


def test_quoting_follows_dialect() -> None:
    """MySQL uses backticks and DuckDB double quotes."""
    expect_equal(TableResolver(MYSQL).quoted("eav_attribute"), "`eav_attribute`")
    expect_equal(TableResolver(DUCKDB, "x_").quoted("eav_attribute"), '"x_eav_attribute"')


@pytest.mark.parametrize("prefix", ["m2-", "a b", "x`", 'q"', "db.schema_"])
def test_invalid_prefix_rejected(prefix: str) -> None:
    """Prefixes with non-identifier characters never reach the DDL."""
    with pytest.raises(InvalidIdentifierError):
        TableResolver(MYSQL, prefix)


@pytest.mark.parametrize("key", ["eav_attribute; DROP TABLE x", "1table", "", "a`b"])
def test_invalid_key_rejected(key: str) -> None:
    """Keys that do not form a plain identifier raise."""
    with pytest.raises(InvalidIdentifierError):
        TableResolver(DUCKDB).get_table(key)


def test_digit_leading_prefix_rejected_on_resolution() -> None:
    """Digit-leading prefixes pass prefix validation but fail on resolution."""
    with pytest.raises(InvalidIdentifierError):
        TableResolver(MYSQL, "2024_").get_table("eav_attribute")
    expect_equal(TableResolver(MYSQL, "_2024_").get_table("eav_attribute"), "_2024_eav_attribute")
