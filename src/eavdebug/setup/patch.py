"""Install (schema patch) and uninstall hooks for the debug views."""

from __future__ import annotations

import logging

from eavdebug.setup.schema_setup import SchemaSetup
from eavdebug.storage.views import apply_debug_views, drop_debug_views

log = logging.getLogger(__name__)


class CreateEavDebugViews:
    """
    Schema patch creating the EAV debug views.

    Re-running the patch replaces the views in place. It declares no
    dependencies on, and no aliases of, other patches.
    """

    def __init__(self, schema_setup: SchemaSetup) -> None:
        self.schema_setup = schema_setup

    def apply(self) -> tuple[str, ...]:
        """
        Create or replace the views inside a setup section.

        Returns
        -------
        tuple[str, ...]
            Names of the views created (empty when the server is too old).

        Raises
        ------
        DebugViewsDatabaseError
            When a view cannot be created; earlier views are kept.
        """
        self.schema_setup.start_setup()
        try:
            return apply_debug_views(
                self.schema_setup.get_connection(),
                self.schema_setup.tables,
            )
        finally:
            self.schema_setup.end_setup()

    @staticmethod
    def get_dependencies() -> list[type]:
        """Patches that must run before this one."""
        return []

    def get_aliases(self) -> list[str]:
        """Former names of this patch."""
        return []


class Uninstall:
    """Uninstall hook dropping every debug view on a best-effort basis."""

    def uninstall(self, schema_setup: SchemaSetup) -> tuple[str, ...]:
        """
        Drop the views; individual failures are logged and skipped.

        Returns
        -------
        tuple[str, ...]
            Names of the views whose drop statement succeeded.
        """
        schema_setup.start_setup()
        try:
            dropped = drop_debug_views(schema_setup.get_connection(), schema_setup.tables)
            log.info("EAV debug views uninstall complete (%d dropped)", len(dropped))
            return dropped
        finally:
            schema_setup.end_setup()


__all__ = ["CreateEavDebugViews", "Uninstall"]
