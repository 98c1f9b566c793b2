"""
Storage abstractions.

- MetadataStorage → relational tables (PostgreSQL in production)
- CacheStorage → session backend (Redis in production)
"""

from libris.storage.base import (
    CacheStorage,
    Collections,
    MetadataStorage,
    StorageError,
    StorageProvider,
)
from libris.storage.local import create_local_storage

__all__ = [
    "MetadataStorage",
    "CacheStorage",
    "StorageProvider",
    "StorageError",
    "Collections",
    "create_local_storage",
]
