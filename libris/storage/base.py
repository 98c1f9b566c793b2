"""
Storage abstraction layer.

All persistence goes through these interfaces. This allows swapping
implementations (in-memory → PostgreSQL, in-memory cache → Redis)
without changing the auth layer or the route handlers.

- MetadataStorage → relational tables (libraries, users, students, branches)
- CacheStorage → session store backend (Redis in production)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


class StorageError(Exception):
    """
    A storage backend failed.

    Raised by the repositories around any backend exception. The message is
    safe to log but is never sent to clients.
    """


# =============================================================================
# Storage Interfaces
# =============================================================================


class MetadataStorage(ABC):
    """
    Storage for structured records.
    
    Tenant-owned collections carry a `library_id` column. Callers querying
    them on behalf of a request must always pass it in `filters`.
    """
    
    @abstractmethod
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        """Save a record to a collection."""
        pass
    
    @abstractmethod
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        """Get a record by ID."""
        pass
    
    @abstractmethod
    async def delete(self, collection: str, id: str) -> bool:
        """Delete a record."""
        pass
    
    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Query records by equality filters."""
        pass
    
    @abstractmethod
    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        """Partial update of a record."""
        pass


class CacheStorage(ABC):
    """
    Fast key-value store with TTL. Backs the session store.
    """
    
    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Set a value with optional TTL in seconds."""
        pass
    
    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get a value."""
        pass
    
    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key."""
        pass


# =============================================================================
# Storage Provider (dependency injection container)
# =============================================================================


class StorageProvider(BaseModel):
    """
    Container for all storage backends.
    
    Initialize once at app startup with appropriate implementations.
    """
    
    model_config = {"arbitrary_types_allowed": True}
    
    metadata: MetadataStorage
    cache: CacheStorage


# =============================================================================
# Collection Names (for MetadataStorage)
# =============================================================================


class Collections:
    """Standard collection/table names."""
    
    LIBRARIES = "libraries"
    USERS = "users"
    STUDENTS = "students"
    BRANCHES = "branches"
