"""Versioned state hydration: persist, restore and migrate application state."""

from hydrator.engine import Hydrator
from hydrator.errors import (
    DecodeError,
    HydrationError,
    InitializationError,
    MigrationError,
    SchemaValidationError,
    SerializationError,
    StorageError,
)
from hydrator.migrations import MigrationStep
from hydrator.models import Envelope, HydrationEvent
from hydrator.store import BaseStorage, LocalStorage, MemoryStorage, StorageProvider

__all__ = [
    "BaseStorage",
    "DecodeError",
    "Envelope",
    "HydrationError",
    "HydrationEvent",
    "Hydrator",
    "InitializationError",
    "LocalStorage",
    "MemoryStorage",
    "MigrationError",
    "MigrationStep",
    "SchemaValidationError",
    "SerializationError",
    "StorageError",
    "StorageProvider",
]
