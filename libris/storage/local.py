"""
Local storage implementations for development and tests.

These are in-memory implementations that work without any external services.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from libris.storage.base import (
    CacheStorage,
    MetadataStorage,
    StorageProvider,
)


# =============================================================================
# In-Memory Metadata Storage
# =============================================================================


class InMemoryMetadataStorage(MetadataStorage):
    """In-memory record storage for development."""
    
    def __init__(self):
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
    
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        self._data.setdefault(collection, {})[id] = {
            **data,
            "id": id,
            "_updated_at": datetime.now(timezone.utc).isoformat(),
        }
    
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        record = self._data.get(collection, {}).get(id)
        return dict(record) if record is not None else None
    
    async def delete(self, collection: str, id: str) -> bool:
        if collection in self._data and id in self._data[collection]:
            del self._data[collection][id]
            return True
        return False
    
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        if collection not in self._data:
            return []
        
        results = list(self._data[collection].values())
        
        if filters:
            results = [
                doc for doc in results
                if all(doc.get(key) == value for key, value in filters.items())
            ]
        
        return [dict(doc) for doc in results[offset:offset + limit]]
    
    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        if collection in self._data and id in self._data[collection]:
            self._data[collection][id].update(updates)
            self._data[collection][id]["_updated_at"] = datetime.now(timezone.utc).isoformat()
            return True
        return False


# =============================================================================
# In-Memory Cache Storage
# =============================================================================


class InMemoryCacheStorage(CacheStorage):
    """In-memory cache for development."""
    
    def __init__(self):
        self._cache: dict[str, tuple[Any, float | None]] = {}
    
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        expires_at = None
        if ttl:
            expires_at = datetime.now(timezone.utc).timestamp() + ttl
        self._cache[key] = (value, expires_at)
    
    async def get(self, key: str) -> Any | None:
        if key not in self._cache:
            return None
        
        value, expires_at = self._cache[key]
        if expires_at and datetime.now(timezone.utc).timestamp() > expires_at:
            del self._cache[key]
            return None
        
        return value
    
    async def delete(self, key: str) -> bool:
        if key in self._cache:
            del self._cache[key]
            return True
        return False


# =============================================================================
# Factory
# =============================================================================


def create_local_storage() -> StorageProvider:
    """Create a StorageProvider with in-memory implementations."""
    return StorageProvider(
        metadata=InMemoryMetadataStorage(),
        cache=InMemoryCacheStorage(),
    )
