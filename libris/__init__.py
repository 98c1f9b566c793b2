"""
Libris - multi-tenant library management API.

Each library is a tenant. Owners administer a library, staff users act
inside it with granular permissions, and students use self-service pages.
"""

__version__ = "0.1.0"
