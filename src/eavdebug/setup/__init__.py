"""Schema lifecycle hooks that install and remove the debug views."""

from __future__ import annotations

from eavdebug.setup.patch import CreateEavDebugViews, Uninstall
from eavdebug.setup.schema_setup import ConnectionSchemaSetup, SchemaSetup

__all__ = ["ConnectionSchemaSetup", "CreateEavDebugViews", "SchemaSetup", "Uninstall"]
