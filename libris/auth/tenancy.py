"""
Tenant isolation binder.

Runs after a gate and pins the request to one library. The binder only
guarantees `ctx.tenant_id` is set before any handler runs; every data-access
call site is still responsible for filtering on it (see `tenant_filter`).
"""

from __future__ import annotations

import logging
from typing import Any

from libris.auth.context import RequestContext
from libris.auth.errors import Unauthenticated
from libris.auth.principal import Owner, Student, User

logger = logging.getLogger(__name__)

TENANT_COLUMN = "library_id"


def resolve_tenant(
    principal: Owner | User | Student | None,
    tenant_hint: str | None = None,
) -> str | None:
    """
    Effective library id for a principal.
    
    Owners are their own tenant. Students carry their library. Users rely on
    the membership hint stored in the session at login/refresh.
    """
    if isinstance(principal, Owner):
        return principal.id or None
    if isinstance(principal, Student):
        return principal.tenant_id or tenant_hint or None
    if isinstance(principal, User):
        return tenant_hint or None
    return None


def bind_tenant(ctx: RequestContext) -> str:
    """Set `ctx.tenant_id` or reject the request as unauthenticated."""
    tenant_id = resolve_tenant(ctx.principal, ctx.session.tenant_hint)
    if not tenant_id:
        logger.warning(
            "tenant.unresolved kind=%s principal_id=%s",
            ctx.principal.kind,
            ctx.principal.id,
        )
        raise Unauthenticated("Unauthorized. Tenant context is missing.")
    ctx.tenant_id = tenant_id
    return tenant_id


def tenant_filter(tenant_id: str | None, **filters: Any) -> dict[str, Any]:
    """
    Equality filters for a tenant-owned collection.
    
    Refuses to build an unscoped filter.
    """
    if not tenant_id:
        raise ValueError("tenant_id is required for tenant-scoped queries")
    return {**filters, TENANT_COLUMN: tenant_id}
