"""
Store module.
Contains the store interface and its Redis and in-memory implementations.
"""

from delayer.config import Settings, get_settings
from delayer.store.base import Store
from delayer.store.memory import MemoryStore
from delayer.store.redis import RedisStore


def create_store(settings: Settings | None = None) -> Store:
    """
    Create the store selected by configuration.

    Args:
        settings: Optional settings. Uses cached settings if not provided.

    Returns:
        Store: A RedisStore or MemoryStore. No connection is opened yet.
    """
    settings = settings or get_settings()
    if settings.store_backend == "memory":
        return MemoryStore()
    return RedisStore.from_settings(settings)


__all__ = ["Store", "MemoryStore", "RedisStore", "create_store"]
