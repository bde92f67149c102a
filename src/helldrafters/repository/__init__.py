"""Persistence adapters for Helldrafters sessions."""

from helldrafters.repository.json_store import JsonStateRepository

__all__ = ["JsonStateRepository"]
