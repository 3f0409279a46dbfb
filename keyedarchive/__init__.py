"""Typed binary archives, memory and socket streams, entities and persistent settings."""

__version__ = "0.1.0"

__all__ = [
    "archive",
    "asset",
    "dictionary",
    "entity",
    "entity_manager",
    "memory_stream",
    "settings",
    "settings_store",
    "socket_stream",
    "values",
]