"""Connections, dialects and DDL generation for the EAV debug views."""
