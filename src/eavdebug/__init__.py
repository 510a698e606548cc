"""Development-only database views that flatten EAV storage into JSON documents."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
