"""
Tests for the tenant isolation binder.
"""

import pytest

from libris.auth.context import RequestContext
from libris.auth.errors import Unauthenticated
from libris.auth.principal import Owner
from libris.auth.tenancy import bind_tenant, resolve_tenant, tenant_filter


class TestResolveTenant:
    def test_owner_is_tenant(self, owner):
        assert resolve_tenant(owner, tenant_hint="lib_other") == "lib_a"

    def test_student_carries_tenant(self, student):
        assert resolve_tenant(student) == "lib_a"

    def test_user_uses_session_hint(self, staff_user):
        assert resolve_tenant(staff_user, tenant_hint="lib_b") == "lib_b"
        assert resolve_tenant(staff_user) is None

    def test_anonymous(self):
        assert resolve_tenant(None, tenant_hint="lib_a") is None


class TestBindTenant:
    def test_binds_owner(self, make_session, owner):
        session = make_session(owner, tenant_id=owner.id)
        ctx = RequestContext(principal=owner, session=session)
        assert bind_tenant(ctx) == "lib_a"
        assert ctx.tenant_id == "lib_a"

    def test_binds_user_from_membership(self, make_session, staff_user):
        session = make_session(staff_user, tenant_id="lib_b")
        ctx = RequestContext(principal=staff_user, session=session)
        bind_tenant(ctx)
        assert ctx.tenant_id == "lib_b"

    def test_owner_without_id_rejected(self, make_session, owner):
        blank = Owner(**{**owner.model_dump(), "id": ""})
        ctx = RequestContext(principal=blank, session=make_session(blank))
        with pytest.raises(Unauthenticated):
            bind_tenant(ctx)
        assert ctx.tenant_id is None

    def test_user_without_membership_rejected(self, make_session, staff_user):
        ctx = RequestContext(principal=staff_user, session=make_session(staff_user))
        with pytest.raises(Unauthenticated):
            bind_tenant(ctx)


class TestTenantFilter:
    def test_adds_tenant_column(self):
        assert tenant_filter("lib_a", id="b1") == {"id": "b1", "library_id": "lib_a"}

    def test_tenant_cannot_be_overridden(self):
        assert tenant_filter("lib_a", library_id="lib_b")["library_id"] == "lib_a"

    @pytest.mark.parametrize("tenant_id", [None, ""])
    def test_refuses_unscoped_filter(self, tenant_id):
        with pytest.raises(ValueError):
            tenant_filter(tenant_id)


class TestRequestContext:
    def test_capabilities(self, make_session, owner, staff_user, student):
        assert RequestContext(owner, make_session(owner)).can("manage_branches")

        staff_ctx = RequestContext(staff_user, make_session(staff_user))
        assert staff_ctx.can("manage_library_students")
        assert not staff_ctx.can("manage_branches")
        assert staff_ctx.can_any("manage_branches", "manage_library_students")
        assert not staff_ctx.can_all("manage_branches", "manage_library_students")

        assert not RequestContext(student, make_session(student)).can("manage_library_students")
