"""
Request context - the "who can do what, where" for each request.

This is the lightweight object gates hand to route handlers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from libris.auth.capabilities import Permission, normalize_capabilities
from libris.auth.principal import Owner, Student, User

if TYPE_CHECKING:
    from libris.auth.session import Session


@dataclass
class RequestContext:
    """
    Authorization context for a request.
    
    Usage in routes:
        async def list_branches(
            ctx: RequestContext = Depends(require_permissions("manage_branches")),
        ):
            rows = await repo.list(ctx.tenant_id)
    """
    
    principal: Owner | User | Student
    session: Session
    
    # Set by the tenant binder; always set before a tenant-scoped handler runs
    tenant_id: str | None = None
    
    @property
    def is_owner(self) -> bool:
        return isinstance(self.principal, Owner)
    
    @property
    def is_user(self) -> bool:
        return isinstance(self.principal, User)
    
    @property
    def is_student(self) -> bool:
        return isinstance(self.principal, Student)
    
    def can(self, capability: Permission | str) -> bool:
        """
        Check if the principal holds a capability.
        
        Owners and admin users hold everything; students hold nothing.
        """
        if isinstance(self.principal, Owner):
            return True
        if isinstance(self.principal, User):
            if self.principal.is_admin:
                return True
            (name,) = normalize_capabilities([capability])
            return name in self.principal.permissions
        return False
    
    def can_any(self, *capabilities: Permission | str) -> bool:
        return any(self.can(c) for c in capabilities)
    
    def can_all(self, *capabilities: Permission | str) -> bool:
        return all(self.can(c) for c in capabilities)
