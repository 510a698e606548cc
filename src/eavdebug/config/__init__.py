"""Configuration models for eavdebug."""

from __future__ import annotations

from eavdebug.config.models import Backend, DebugViewsConfig

__all__ = ["Backend", "DebugViewsConfig"]
