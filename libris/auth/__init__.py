"""
Authorization and tenant isolation.

Design principles:
1. One principal per session, as a closed tagged union
2. Authentication gates decide who is acting
3. The authorization gate decides what they may do (owners and admins bypass)
4. The tenant binder decides which library's data the request may touch

Routers live in `libris.auth.routes`; the login/refresh flows in
`libris.auth.service`.
"""

from libris.auth.capabilities import Combinator, Permission, UserRole
from libris.auth.context import RequestContext
from libris.auth.errors import (
    BadRequest,
    Forbidden,
    Internal,
    InvalidCredentials,
    NotFound,
    SessionError,
    Unauthenticated,
)
from libris.auth.gates import (
    authenticate_any,
    authenticate_owner,
    authenticate_student,
    authenticate_user,
    check_admin,
    check_admin_or_staff,
    require_admin,
    require_admin_or_staff,
    require_any,
    require_owner,
    require_student,
    require_user,
)
from libris.auth.passwords import hash_password, verify_password
from libris.auth.policies import (
    Decision,
    Policy,
    authorize,
    require_all_permissions,
    require_any_permission,
    require_permissions,
)
from libris.auth.principal import Owner, Principal, Student, User
from libris.auth.session import Session, SessionStore, get_session
from libris.auth.tenancy import bind_tenant, resolve_tenant, tenant_filter

__all__ = [
    # Principals
    "Owner",
    "User",
    "Student",
    "Principal",
    "UserRole",
    "Permission",
    "Combinator",
    # Sessions
    "Session",
    "SessionStore",
    "get_session",
    # Gates
    "authenticate_owner",
    "authenticate_student",
    "authenticate_user",
    "authenticate_any",
    "check_admin",
    "check_admin_or_staff",
    "require_owner",
    "require_student",
    "require_user",
    "require_any",
    "require_admin",
    "require_admin_or_staff",
    # Authorization
    "Policy",
    "Decision",
    "authorize",
    "require_permissions",
    "require_all_permissions",
    "require_any_permission",
    # Tenancy
    "RequestContext",
    "bind_tenant",
    "resolve_tenant",
    "tenant_filter",
    # Credentials
    "hash_password",
    "verify_password",
    # Errors
    "Unauthenticated",
    "Forbidden",
    "InvalidCredentials",
    "NotFound",
    "BadRequest",
    "Internal",
    "SessionError",
]
