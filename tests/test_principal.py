"""
Tests for the principal model.
"""

import pytest
from pydantic import ValidationError

from libris.auth.capabilities import UserRole
from libris.auth.principal import Owner, Student, User, dump_principal, load_principal


class TestUser:
    def test_permissions_default_to_empty_set(self):
        user = User(id="u1", username="desk")
        assert user.permissions == frozenset()

    def test_null_permissions_become_empty(self):
        user = User(id="u1", username="desk", permissions=None)
        assert user.permissions == frozenset()

    def test_permissions_deduplicated(self):
        user = User(id="u1", username="desk", permissions=["a", "b", "a"])
        assert user.permissions == {"a", "b"}

    def test_unknown_role_is_other(self):
        user = User(id="u1", username="desk", role="librarian")
        assert user.role == UserRole.OTHER
        assert not user.is_admin

    def test_admin_flag(self, admin_user):
        assert admin_user.is_admin

    def test_principals_are_immutable(self, staff_user):
        with pytest.raises(ValidationError):
            staff_user.role = UserRole.ADMIN


class TestOwner:
    def test_owner_is_its_own_tenant(self, owner):
        assert owner.tenant_id == owner.id


class TestSerialization:
    def test_round_trip_keeps_variant(self, owner, staff_user, student):
        for principal in (owner, staff_user, student):
            restored = load_principal(dump_principal(principal))
            assert type(restored) is type(principal)
            assert restored == principal

    def test_dump_has_discriminator_and_sorted_permissions(self):
        user = User(id="u1", username="desk", permissions={"b", "a"})
        data = dump_principal(user)
        assert data["kind"] == "user"
        assert data["permissions"] == ["a", "b"]

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            load_principal({"kind": "guest", "id": "x"})

    def test_student_requires_tenant(self):
        with pytest.raises(ValidationError):
            Student(id="s1")
