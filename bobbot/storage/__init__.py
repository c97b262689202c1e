"""
Storage Layer.

JSON file persistence for operator-mutable runtime settings. Each update
produces a new immutable RuntimeSettings snapshot that replaces the old one
wholesale.
"""

from bobbot.storage.json_store import JsonStorage, RuntimeSettings

__all__ = ["JsonStorage", "RuntimeSettings"]
