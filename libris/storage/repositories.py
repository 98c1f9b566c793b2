"""
Repositories over MetadataStorage.

Every method on a tenant-owned collection takes the tenant id as a required
argument and filters on it, so a row of another library is indistinguishable
from a missing row. Backend failures surface as StorageError.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from functools import wraps
from typing import Any, Callable

from pydantic import BaseModel, Field, field_validator

from libris.auth.tenancy import tenant_filter
from libris.core.utils import generate_id, utc_now
from libris.storage.base import Collections, MetadataStorage, StorageError

logger = logging.getLogger(__name__)

TRIAL_DAYS = 7


def storage_errors(func: Callable) -> Callable:
    """Re-raise any backend exception as StorageError."""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except StorageError:
            raise
        except Exception as exc:
            logger.exception("storage.failed op=%s", func.__qualname__)
            raise StorageError(f"{func.__qualname__} failed") from exc

    return wrapper


# =============================================================================
# Records
# =============================================================================


class LibraryRecord(BaseModel):
    """A library (tenant) and its owner's credentials."""
    id: str
    library_code: str
    library_name: str
    owner_name: str
    owner_email: str
    owner_phone: str
    password_hash: str
    status: str = "active"
    subscription_plan: str = "free_trial"
    subscription_start_date: datetime | None = None
    subscription_end_date: datetime | None = None
    is_trial: bool = True
    created_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class UserRecord(BaseModel):
    """Staff-side user of a library."""
    id: str
    library_id: str | None = None
    username: str
    password_hash: str
    role: str = "staff"
    permissions: list[str] = Field(default_factory=list)

    @field_validator("permissions", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return value if value is not None else []


class StudentRecord(BaseModel):
    id: str
    library_id: str
    name: str
    phone: str
    password_hash: str


class BranchRecord(BaseModel):
    id: str
    library_id: str
    name: str
    code: str | None = None


def _load(model: type[BaseModel], row: dict[str, Any] | None):
    return model.model_validate(row) if row else None


# =============================================================================
# Libraries
# =============================================================================


class LibraryRepository:
    def __init__(self, metadata: MetadataStorage):
        self.metadata = metadata

    @storage_errors
    async def get(self, library_id: str) -> LibraryRecord | None:
        return _load(LibraryRecord, await self.metadata.get(Collections.LIBRARIES, library_id))

    @storage_errors
    async def find_by_phone(self, phone: str) -> LibraryRecord | None:
        rows = await self.metadata.query(Collections.LIBRARIES, {"owner_phone": phone}, limit=1)
        return _load(LibraryRecord, rows[0] if rows else None)

    @storage_errors
    async def find_by_code(self, library_code: str) -> LibraryRecord | None:
        rows = await self.metadata.query(
            Collections.LIBRARIES, {"library_code": library_code.upper()}, limit=1
        )
        return _load(LibraryRecord, rows[0] if rows else None)

    async def code_available(self, library_code: str) -> bool:
        return await self.find_by_code(library_code) is None

    @storage_errors
    async def create(
        self,
        *,
        library_code: str,
        library_name: str,
        owner_name: str,
        owner_email: str,
        owner_phone: str,
        password_hash: str,
    ) -> LibraryRecord:
        now = utc_now()
        record = LibraryRecord(
            id=generate_id("lib"),
            library_code=library_code.upper(),
            library_name=library_name,
            owner_name=owner_name,
            owner_email=owner_email,
            owner_phone=owner_phone,
            password_hash=password_hash,
            subscription_start_date=now,
            subscription_end_date=now + timedelta(days=TRIAL_DAYS),
            created_at=now,
        )
        await self.metadata.save(Collections.LIBRARIES, record.id, record.model_dump())
        return record


# =============================================================================
# Users
# =============================================================================


class UserRepository:
    def __init__(self, metadata: MetadataStorage):
        self.metadata = metadata

    @storage_errors
    async def get(self, user_id: str) -> UserRecord | None:
        return _load(UserRecord, await self.metadata.get(Collections.USERS, user_id))

    @storage_errors
    async def find_by_username(self, username: str) -> UserRecord | None:
        rows = await self.metadata.query(Collections.USERS, {"username": username}, limit=1)
        return _load(UserRecord, rows[0] if rows else None)

    @storage_errors
    async def create(
        self,
        tenant_id: str,
        *,
        username: str,
        password_hash: str,
        role: str = "staff",
        permissions: list[str] | None = None,
    ) -> UserRecord:
        record = UserRecord(
            id=generate_id("user"),
            library_id=tenant_id,
            username=username,
            password_hash=password_hash,
            role=role,
            permissions=permissions or [],
        )
        await self.metadata.save(Collections.USERS, record.id, record.model_dump())
        return record

    @storage_errors
    async def set_permissions(self, tenant_id: str, user_id: str, role: str, permissions: list[str]) -> bool:
        rows = await self.metadata.query(Collections.USERS, tenant_filter(tenant_id, id=user_id), limit=1)
        if not rows:
            return False
        return await self.metadata.update(
            Collections.USERS, user_id, {"role": role, "permissions": list(permissions)}
        )


# =============================================================================
# Students
# =============================================================================


class StudentRepository:
    def __init__(self, metadata: MetadataStorage):
        self.metadata = metadata

    @storage_errors
    async def get(self, tenant_id: str, student_id: str) -> StudentRecord | None:
        rows = await self.metadata.query(
            Collections.STUDENTS, tenant_filter(tenant_id, id=student_id), limit=1
        )
        return _load(StudentRecord, rows[0] if rows else None)

    @storage_errors
    async def find_by_phone(self, tenant_id: str, phone: str) -> StudentRecord | None:
        rows = await self.metadata.query(
            Collections.STUDENTS, tenant_filter(tenant_id, phone=phone), limit=1
        )
        return _load(StudentRecord, rows[0] if rows else None)

    @storage_errors
    async def create(self, tenant_id: str, *, name: str, phone: str, password_hash: str) -> StudentRecord:
        record = StudentRecord(
            id=generate_id("stu"),
            library_id=tenant_id,
            name=name,
            phone=phone,
            password_hash=password_hash,
        )
        await self.metadata.save(Collections.STUDENTS, record.id, record.model_dump())
        return record


# =============================================================================
# Branches
# =============================================================================


class BranchRepository:
    def __init__(self, metadata: MetadataStorage):
        self.metadata = metadata

    @storage_errors
    async def list(self, tenant_id: str) -> list[BranchRecord]:
        rows = await self.metadata.query(Collections.BRANCHES, tenant_filter(tenant_id), limit=1000)
        return sorted((BranchRecord.model_validate(r) for r in rows), key=lambda b: b.name)

    @storage_errors
    async def get(self, tenant_id: str, branch_id: str) -> BranchRecord | None:
        rows = await self.metadata.query(
            Collections.BRANCHES, tenant_filter(tenant_id, id=branch_id), limit=1
        )
        return _load(BranchRecord, rows[0] if rows else None)

    @storage_errors
    async def create(self, tenant_id: str, *, name: str, code: str | None = None) -> BranchRecord:
        record = BranchRecord(id=generate_id("branch"), library_id=tenant_id, name=name, code=code or None)
        await self.metadata.save(Collections.BRANCHES, record.id, record.model_dump())
        return record

    @storage_errors
    async def update(
        self, tenant_id: str, branch_id: str, *, name: str, code: str | None = None
    ) -> BranchRecord | None:
        if await self.get(tenant_id, branch_id) is None:
            return None
        await self.metadata.update(Collections.BRANCHES, branch_id, {"name": name, "code": code or None})
        return await self.get(tenant_id, branch_id)

    @storage_errors
    async def delete(self, tenant_id: str, branch_id: str) -> bool:
        if await self.get(tenant_id, branch_id) is None:
            return False
        return await self.metadata.delete(Collections.BRANCHES, branch_id)
