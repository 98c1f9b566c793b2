"""
Authentication gates.

Each gate decides, from the session alone, whether a request may proceed.
They do not look at permissions (see policies.py for that). Every gate reads
the session principal exactly once.

Route usage:
    @router.get("/dashboard")
    async def dashboard(ctx: RequestContext = Depends(require_owner())):
        ...  # ctx.tenant_id == owner id
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import HTTPException, Request

from libris.auth.capabilities import UserRole
from libris.auth.context import RequestContext
from libris.auth.errors import Forbidden, Unauthenticated
from libris.auth.principal import Owner, Student, User
from libris.auth.session import Session, get_session
from libris.auth.tenancy import bind_tenant

logger = logging.getLogger(__name__)


# =============================================================================
# Gates (pure functions over a session)
# =============================================================================


def authenticate_owner(session: Session) -> Owner:
    principal = session.get()
    if isinstance(principal, Owner) and principal.id:
        return principal
    raise Unauthenticated("Unauthorized: Owner access required.")


def authenticate_student(session: Session) -> Student:
    principal = session.get()
    if isinstance(principal, Student) and principal.id:
        return principal
    raise Unauthenticated("Unauthorized: Student access required.")


def authenticate_user(session: Session) -> User:
    principal = session.get()
    if isinstance(principal, User) and principal.id:
        return principal
    raise Unauthenticated("Unauthorized - Please log in")


def authenticate_any(session: Session) -> Owner | User | Student:
    principal = session.get()
    if isinstance(principal, (Owner, User, Student)) and principal.id:
        return principal
    raise Unauthenticated("Unauthorized: Please log in.")


def check_admin(session: Session) -> Owner | User:
    """Owners and admin users."""
    principal = session.get()
    if isinstance(principal, Owner) and principal.id:
        return principal
    if not isinstance(principal, User) or not principal.id:
        raise Unauthenticated()
    if principal.role != UserRole.ADMIN:
        raise Forbidden("Forbidden: Admin access required")
    return principal


def check_admin_or_staff(session: Session) -> Owner | User:
    """
    Owners, admin users and staff users.
    
    This is a role gate for the staff area as a whole. It grants no
    capabilities: staff still go through the authorization gate for any
    permission-guarded route.
    """
    principal = session.get()
    if isinstance(principal, Owner) and principal.id:
        return principal
    if not isinstance(principal, User) or not principal.id:
        raise Unauthenticated()
    if principal.role not in (UserRole.ADMIN, UserRole.STAFF):
        raise Forbidden("Forbidden: Admin or Staff access required")
    return principal


# =============================================================================
# FastAPI dependencies
# =============================================================================


Gate = Callable[[Session], Owner | User | Student]


def gate_dependency(gate: Gate, *, tenant_scoped: bool) -> Callable:
    """Wrap a gate (and optionally the tenant binder) as a FastAPI dependency."""
    
    async def dependency(request: Request) -> RequestContext:
        session = get_session(request)
        try:
            principal = gate(session)
            ctx = RequestContext(principal=principal, session=session)
            if tenant_scoped:
                bind_tenant(ctx)
        except HTTPException as exc:
            logger.warning(
                "auth.gate_rejected gate=%s status=%s path=%s",
                gate.__name__,
                exc.status_code,
                request.url.path,
            )
            raise
        request.state.auth = ctx
        return ctx
    
    return dependency


def require_owner() -> Callable:
    """Owner session; binds tenant = owner id."""
    return gate_dependency(authenticate_owner, tenant_scoped=True)


def require_student(tenant_scoped: bool = True) -> Callable:
    return gate_dependency(authenticate_student, tenant_scoped=tenant_scoped)


def require_user(tenant_scoped: bool = False) -> Callable:
    return gate_dependency(authenticate_user, tenant_scoped=tenant_scoped)


def require_any(tenant_scoped: bool = False) -> Callable:
    """Any principal kind: Owner, then User, then Student."""
    return gate_dependency(authenticate_any, tenant_scoped=tenant_scoped)


def require_admin(tenant_scoped: bool = True) -> Callable:
    return gate_dependency(check_admin, tenant_scoped=tenant_scoped)


def require_admin_or_staff(tenant_scoped: bool = True) -> Callable:
    return gate_dependency(check_admin_or_staff, tenant_scoped=tenant_scoped)
