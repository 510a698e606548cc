"""SQL dialect definitions and the JSON-aggregation version gate."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from eavdebug.storage.errors import UnsupportedDialectError

if TYPE_CHECKING:
    from eavdebug.storage.connection import SetupConnection

log = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^v?(\d+(?:\.\d+)*)$", re.IGNORECASE)

VersionTuple = tuple[int, ...]


def parse_server_version(version_string: str | None) -> VersionTuple | None:
    """
    Extract the numeric version from a server version string.

    Only the text before the first hyphen is considered, so
    ``"10.6.12-MariaDB-1:10.6.12+maria"`` parses as ``(10, 6, 12)`` and
    DuckDB's ``"v1.1.3"`` as ``(1, 1, 3)``.

    Parameters
    ----------
    version_string:
        Raw value returned by the server's version function.

    Returns
    -------
    tuple[int, ...] | None
        Parsed components, or None when the string is empty or not a dotted
        numeric version.
    """
    if not version_string:
        return None
    head = str(version_string).strip().split("-", maxsplit=1)[0]
    match = _VERSION_RE.match(head)
    if match is None:
        return None
    return tuple(int(part) for part in match.group(1).split("."))


def version_at_least(actual: VersionTuple, minimum: VersionTuple) -> bool:
    """Compare two versions, treating missing trailing components as zero."""
    width = max(len(actual), len(minimum))
    padded_actual = actual + (0,) * (width - len(actual))
    padded_minimum = minimum + (0,) * (width - len(minimum))
    return padded_actual >= padded_minimum


@dataclass(frozen=True)
class SqlDialect:
    """
    Engine-specific pieces of the generated view DDL.

    Attributes
    ----------
    name:
        Dialect identifier used in configuration.
    version_query:
        Statement returning the server version string as a single scalar.
    min_version:
        Minimum version providing the JSON aggregate functions.
    fork_min_versions:
        Lower-cased fork marker -> minimum version for that fork.
    quote_char:
        Identifier quote character.
    object_agg, array_agg, object_fn:
        Function names for key/value aggregation, array aggregation and
        object construction.
    empty_object, empty_array:
        Literal expressions for an empty JSON object and array.
    merge_fn:
        Variadic function merging per-datatype JSON objects, keeping keys
        whose value is null. None when the dialect has no such function.
    value_json_fn:
        Scalar-to-JSON conversion. When set, entity views aggregate every
        datatype table in one pass over a ``UNION ALL`` instead of merging
        per-datatype objects.
    """

    name: str
    version_query: str
    min_version: VersionTuple
    quote_char: str
    object_agg: str
    array_agg: str
    object_fn: str
    empty_object: str
    empty_array: str
    merge_fn: str | None
    value_json_fn: str | None
    fork_min_versions: Mapping[str, VersionTuple] = field(default_factory=dict)

    def quote(self, identifier: str) -> str:
        """Quote an already validated identifier."""
        return f"{self.quote_char}{identifier}{self.quote_char}"

    def required_version(self, version_string: str) -> tuple[str | None, VersionTuple]:
        """
        Pick the minimum version that applies to a server version string.

        Returns
        -------
        tuple[str | None, tuple[int, ...]]
            Matched fork marker (None for the main engine) and its threshold.
        """
        lowered = version_string.lower()
        for marker, minimum in self.fork_min_versions.items():
            if marker in lowered:
                return marker, minimum
        return None, self.min_version

    def merge_objects(self, expressions: Sequence[str]) -> str:
        """Render an expression merging JSON objects left to right."""
        if not expressions:
            return self.empty_object
        if len(expressions) == 1:
            return expressions[0]
        if self.merge_fn is None:
            message = f"Dialect {self.name!r} cannot merge JSON objects"
            raise UnsupportedDialectError(message)
        joined = ",\n        ".join(expressions)
        return f"{self.merge_fn}(\n        {joined}\n    )"


MYSQL = SqlDialect(
    name="mysql",
    version_query="SELECT VERSION()",
    min_version=(5, 7, 0),
    fork_min_versions={"mariadb": (10, 2, 3)},
    quote_char="`",
    object_agg="JSON_OBJECTAGG",
    array_agg="JSON_ARRAYAGG",
    object_fn="JSON_OBJECT",
    empty_object="JSON_OBJECT()",
    empty_array="JSON_ARRAY()",
    merge_fn="JSON_MERGE_PRESERVE",
    value_json_fn=None,
)

DUCKDB = SqlDialect(
    name="duckdb",
    version_query="SELECT version()",
    min_version=(0, 10, 0),
    quote_char='"',
    object_agg="json_group_object",
    array_agg="json_group_array",
    object_fn="json_object",
    empty_object="'{}'::JSON",
    empty_array="'[]'::JSON",
    merge_fn=None,
    value_json_fn="to_json",
)

DIALECTS: dict[str, SqlDialect] = {dialect.name: dialect for dialect in (MYSQL, DUCKDB)}


def get_dialect(name: str) -> SqlDialect:
    """
    Resolve a dialect by name.

    Raises
    ------
    UnsupportedDialectError
        If no dialect is registered under ``name``.
    """
    try:
        return DIALECTS[name.lower()]
    except KeyError:
        message = f"Unsupported SQL dialect {name!r}; expected one of {sorted(DIALECTS)}"
        raise UnsupportedDialectError(message) from None


def format_version(version: VersionTuple) -> str:
    """Render a version tuple as dotted text."""
    return ".".join(str(part) for part in version)


@dataclass(frozen=True)
class JsonSupport:
    """Outcome of probing a server for JSON aggregation support."""

    version_string: str
    version: VersionTuple | None
    engine: str
    minimum: VersionTuple
    supported: bool


def probe_json_support(connection: SetupConnection) -> JsonSupport:
    """
    Query the server version and evaluate it against the dialect thresholds.

    A fork marker found anywhere in the version string (case-insensitive)
    selects that fork's minimum; otherwise the dialect default applies.

    Parameters
    ----------
    connection:
        Live setup connection; only its version query is executed.

    Returns
    -------
    JsonSupport
        Parsed version, applicable minimum and the verdict.
    """
    dialect = connection.dialect
    raw = connection.fetch_one(dialect.version_query)
    version_string = "" if raw is None else str(raw)
    marker, minimum = dialect.required_version(version_string)
    parsed = parse_server_version(version_string)
    supported = parsed is not None and version_at_least(parsed, minimum)
    log.debug(
        "Server version %r (%s) requires >= %s: supported=%s",
        version_string,
        marker or dialect.name,
        format_version(minimum),
        supported,
    )
    return JsonSupport(
        version_string=version_string,
        version=parsed,
        engine=marker or dialect.name,
        minimum=minimum,
        supported=supported,
    )


def supports_json_aggregation(connection: SetupConnection) -> bool:
    """Return True when the server meets the JSON aggregation minimum; unparsable fails closed."""
    return probe_json_support(connection).supported


__all__ = [
    "DIALECTS",
    "DUCKDB",
    "JsonSupport",
    "MYSQL",
    "SqlDialect",
    "format_version",
    "get_dialect",
    "parse_server_version",
    "probe_json_support",
    "supports_json_aggregation",
    "version_at_least",
]
