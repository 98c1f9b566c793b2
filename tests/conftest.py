"""
Shared fixtures: principals, sessions and in-memory storage.
"""

import pytest

from libris.auth.capabilities import UserRole
from libris.auth.principal import Owner, Student, User
from libris.auth.session import Session, SessionStore
from libris.storage.local import InMemoryCacheStorage, create_local_storage


# =============================================================================
# Principals
# =============================================================================


@pytest.fixture
def owner():
    return Owner(
        id="lib_a",
        library_code="ALPHA1",
        library_name="Alpha Library",
        owner_name="Asha Rao",
        owner_email="asha@example.com",
    )


@pytest.fixture
def admin_user():
    return User(id="user_admin", username="admin", role=UserRole.ADMIN)


@pytest.fixture
def staff_user():
    return User(
        id="user_staff",
        username="desk",
        role=UserRole.STAFF,
        permissions={"manage_library_students"},
    )


@pytest.fixture
def student():
    return Student(id="stu_1", tenant_id="lib_a", name="Ravi")


# =============================================================================
# Sessions and storage
# =============================================================================


@pytest.fixture
def session_store():
    return SessionStore(InMemoryCacheStorage(), ttl_seconds=60)


@pytest.fixture
def make_session(session_store):
    """Build a session holding the given principal (or none)."""
    def _make(principal=None, tenant_id=None):
        session = session_store.new_session()
        if principal is not None:
            session.set(principal, tenant_id=tenant_id)
        return session
    return _make


@pytest.fixture
def storage():
    return create_local_storage()
