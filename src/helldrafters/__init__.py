"""Helldrafters: draft orchestration and host-authoritative sync for co-op runs."""

__version__ = "0.3.0"
