"""Command-line interface for eavdebug."""
