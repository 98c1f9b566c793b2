"""
Capabilities, roles, and combinators.

This defines WHAT principals can do, not HOW we check it.
The actual checking happens in policies.py.
"""

from enum import Enum


class UserRole(str, Enum):
    """Role of a staff-side user within its library."""
    
    ADMIN = "admin"      # Holds every capability
    STAFF = "staff"      # Capabilities are exactly its permissions
    OTHER = "other"      # Anything else the data layer stores


class Permission(str, Enum):
    """
    Named, grantable permissions known to the route handlers.
    
    Users store permissions as plain strings, so grants outside this
    catalog are still honoured by the authorization gate.
    """
    
    MANAGE_BRANCHES = "manage_branches"
    MANAGE_LIBRARY_STUDENTS = "manage_library_students"


class Combinator(str, Enum):
    """How a set of required capabilities is combined."""
    
    ALL = "all"
    ANY = "any"


def normalize_capabilities(capabilities) -> frozenset[str]:
    """
    Turn a mix of Permission members and strings into a set of names.
    
    A single name is treated as a one-element requirement.
    """
    if isinstance(capabilities, str):
        capabilities = (capabilities,)
    return frozenset(
        c.value if isinstance(c, Permission) else str(c)
        for c in capabilities
    )
