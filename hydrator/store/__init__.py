"""Storage providers for persisted hydration envelopes."""

from hydrator.store.base import BaseStorage, StorageProvider
from hydrator.store.factory import create_storage, get_default_storage
from hydrator.store.local import LocalStorage
from hydrator.store.memory import MemoryStorage

__all__ = [
    "BaseStorage",
    "LocalStorage",
    "MemoryStorage",
    "StorageProvider",
    "create_storage",
    "get_default_storage",
]
