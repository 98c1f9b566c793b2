"""
Policies - the authorization gate.

Route usage:
    @router.get("/branches")
    async def list_branches(
        ctx: RequestContext = Depends(
            require_permissions("manage_branches", "manage_library_students")
        ),
    ):
        ...

Evaluation order, first match wins:
1. Owner → admit (owners hold every capability in their library)
2. No user → unauthenticated
3. Admin user → admit
4. Permission check with ALL or ANY
5. Otherwise → forbidden

An empty requirement admits any authenticated user under both combinators.
Staff users get no bypass here; their capabilities are their permissions.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable

from fastapi import HTTPException, Request

from libris.auth.capabilities import Combinator, Permission, normalize_capabilities
from libris.auth.context import RequestContext
from libris.auth.errors import Forbidden, Unauthenticated
from libris.auth.principal import Owner, Student, User
from libris.auth.session import Session, get_session
from libris.auth.tenancy import bind_tenant

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    ADMIT = "admit"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


class Policy:
    """
    A required capability set plus the rule combining it.

        Policy(["manage_branches"])                                  # single
        Policy(["manage_branches", "manage_library_students"])       # any of
        Policy(["manage_branches", "view_reports"], Combinator.ALL)  # all of
    """

    def __init__(
        self,
        capabilities: Iterable[Permission | str] = (),
        combinator: Combinator | str = Combinator.ANY,
    ):
        self.capabilities = normalize_capabilities(capabilities)
        self.combinator = Combinator(combinator)

    def __repr__(self) -> str:
        return f"Policy({sorted(self.capabilities)}, {self.combinator.value})"

    def evaluate(self, principal: Owner | User | Student | None) -> Decision:
        """Decide for an already-loaded principal. Pure."""
        if isinstance(principal, Owner):
            return Decision.ADMIT

        if not isinstance(principal, User) or not principal.id:
            return Decision.UNAUTHENTICATED

        if principal.is_admin:
            return Decision.ADMIT

        held = principal.permissions
        if not self.capabilities:
            return Decision.ADMIT

        if self.combinator == Combinator.ALL:
            allowed = self.capabilities <= held
        else:
            allowed = not self.capabilities.isdisjoint(held)

        return Decision.ADMIT if allowed else Decision.FORBIDDEN

    def enforce(self, session: Session) -> Owner | User:
        """Admit the session principal or raise."""
        principal = session.get()
        decision = self.evaluate(principal)
        if decision == Decision.UNAUTHENTICATED:
            raise Unauthenticated()
        if decision == Decision.FORBIDDEN:
            raise Forbidden()
        return principal


def authorize(
    session: Session,
    capabilities: Iterable[Permission | str] = (),
    combinator: Combinator | str = Combinator.ANY,
) -> Owner | User:
    """One-off authorization check against a session."""
    return Policy(capabilities, combinator).enforce(session)


# =============================================================================
# Main Interface - FastAPI dependencies
# =============================================================================


def require_permissions(
    *capabilities: Permission | str,
    combinator: Combinator | str = Combinator.ANY,
    tenant_scoped: bool = True,
) -> Callable:
    """
    Require capabilities to access a route (ANY of them by default).

    Returns:
        FastAPI Depends that resolves to a RequestContext with the tenant bound
    """
    return _create_dependency(Policy(capabilities, combinator), tenant_scoped=tenant_scoped)


def require_all_permissions(*capabilities: Permission | str, tenant_scoped: bool = True) -> Callable:
    """Require ALL of the listed capabilities."""
    return require_permissions(*capabilities, combinator=Combinator.ALL, tenant_scoped=tenant_scoped)


def require_any_permission(*capabilities: Permission | str, tenant_scoped: bool = True) -> Callable:
    """Require ANY of the listed capabilities (same as require_permissions)."""
    return require_permissions(*capabilities, combinator=Combinator.ANY, tenant_scoped=tenant_scoped)


# =============================================================================
# Internal: Create the FastAPI Dependency
# =============================================================================


def _create_dependency(policy: Policy, tenant_scoped: bool) -> Callable:
    """Authorization gate, then tenant binder."""

    async def dependency(request: Request) -> RequestContext:
        session = get_session(request)
        try:
            principal = policy.enforce(session)
            ctx = RequestContext(principal=principal, session=session)
            if tenant_scoped:
                bind_tenant(ctx)
        except HTTPException as exc:
            logger.warning(
                "auth.policy_rejected policy=%r status=%s path=%s",
                policy,
                exc.status_code,
                request.url.path,
            )
            raise
        request.state.auth = ctx
        return ctx

    return dependency
