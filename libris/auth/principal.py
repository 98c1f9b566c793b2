"""
Principal model - who is acting in a request.

Exactly one variant is active per session. The `kind` field is the
discriminator, so a stored session round-trips to the same variant.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_serializer, field_validator

from libris.auth.capabilities import UserRole


class Owner(BaseModel):
    """Library owner. An owner *is* a tenant key: its id is the library id."""
    
    model_config = ConfigDict(frozen=True)
    
    kind: Literal["owner"] = "owner"
    id: str
    library_code: str
    library_name: str
    owner_name: str
    owner_email: str
    
    @property
    def tenant_id(self) -> str:
        return self.id


class User(BaseModel):
    """Staff-side user (admin, staff or other) with granular permissions."""
    
    model_config = ConfigDict(frozen=True)
    
    kind: Literal["user"] = "user"
    id: str
    username: str
    role: UserRole = UserRole.OTHER
    permissions: frozenset[str] = Field(default_factory=frozenset)
    
    @field_validator("role", mode="before")
    @classmethod
    def _coerce_role(cls, value: Any) -> UserRole:
        try:
            return UserRole(value)
        except ValueError:
            return UserRole.OTHER
    
    @field_validator("permissions", mode="before")
    @classmethod
    def _coerce_permissions(cls, value: Any) -> Any:
        return value if value is not None else frozenset()
    
    @field_serializer("permissions")
    def _serialize_permissions(self, permissions: frozenset[str]) -> list[str]:
        return sorted(permissions)
    
    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class Student(BaseModel):
    """Student of a library. Holds no administrative capability."""
    
    model_config = ConfigDict(frozen=True)
    
    kind: Literal["student"] = "student"
    id: str
    tenant_id: str
    name: str | None = None


Principal = Annotated[Union[Owner, User, Student], Field(discriminator="kind")]

principal_adapter: TypeAdapter[Owner | User | Student] = TypeAdapter(Principal)


def load_principal(data: dict[str, Any]) -> Owner | User | Student:
    """Rebuild the right variant from its stored form."""
    return principal_adapter.validate_python(data)


def dump_principal(principal: Owner | User | Student) -> dict[str, Any]:
    """Stored/client-facing form of a principal (never holds a secret)."""
    return principal.model_dump(mode="json")
