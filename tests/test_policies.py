"""
Tests for the authorization gate.
"""

import pytest

from libris.auth.capabilities import Combinator, Permission
from libris.auth.errors import Forbidden, Unauthenticated
from libris.auth.policies import Decision, Policy, authorize, require_all_permissions
from libris.auth.principal import User

REQUIREMENTS = [
    set(),
    {"manage_branches"},
    {"manage_branches", "manage_library_students"},
    {"something_nobody_has"},
]


# =============================================================================
# Bypasses
# =============================================================================


class TestBypass:
    @pytest.mark.parametrize("required", REQUIREMENTS)
    @pytest.mark.parametrize("combinator", [Combinator.ALL, Combinator.ANY])
    def test_owner_always_admitted(self, owner, required, combinator):
        assert Policy(required, combinator).evaluate(owner) == Decision.ADMIT

    @pytest.mark.parametrize("required", REQUIREMENTS)
    @pytest.mark.parametrize("combinator", [Combinator.ALL, Combinator.ANY])
    def test_admin_always_admitted(self, admin_user, required, combinator):
        assert Policy(required, combinator).evaluate(admin_user) == Decision.ADMIT

    def test_staff_role_does_not_bypass(self):
        staff = User(id="u1", username="desk", role="staff")
        assert Policy(["manage_branches"]).evaluate(staff) == Decision.FORBIDDEN


# =============================================================================
# Permission sets
# =============================================================================


class TestCombinators:
    HELD = {"manage_library_students", "view_reports"}

    @pytest.fixture
    def user(self):
        return User(id="u1", username="desk", role="staff", permissions=self.HELD)

    @pytest.mark.parametrize(
        "required,admitted",
        [
            ({"manage_library_students"}, True),
            ({"manage_library_students", "view_reports"}, True),
            ({"manage_library_students", "manage_branches"}, False),
            ({"manage_branches"}, False),
        ],
    )
    def test_all_requires_subset(self, user, required, admitted):
        decision = Policy(required, Combinator.ALL).evaluate(user)
        assert decision == (Decision.ADMIT if admitted else Decision.FORBIDDEN)

    @pytest.mark.parametrize(
        "required,admitted",
        [
            ({"manage_library_students"}, True),
            ({"manage_library_students", "manage_branches"}, True),
            ({"manage_branches"}, False),
            ({"manage_branches", "delete_everything"}, False),
        ],
    )
    def test_any_requires_intersection(self, user, required, admitted):
        decision = Policy(required, Combinator.ANY).evaluate(user)
        assert decision == (Decision.ADMIT if admitted else Decision.FORBIDDEN)

    def test_any_is_default(self, user):
        assert Policy(["manage_branches", "view_reports"]).combinator == Combinator.ANY
        assert Policy(["manage_branches", "view_reports"]).evaluate(user) == Decision.ADMIT

    @pytest.mark.parametrize("combinator", [Combinator.ALL, Combinator.ANY])
    def test_empty_requirement_admits_any_user(self, combinator):
        nobody = User(id="u2", username="intern", permissions=None)
        assert Policy([], combinator).evaluate(nobody) == Decision.ADMIT

    def test_permission_enum_and_strings_mix(self, user):
        policy = Policy([Permission.MANAGE_BRANCHES, "view_reports"], "all")
        assert policy.capabilities == {"manage_branches", "view_reports"}
        assert policy.evaluate(user) == Decision.FORBIDDEN

    @pytest.mark.parametrize("single", ["view_reports", Permission.MANAGE_BRANCHES])
    def test_single_name_is_one_capability(self, single):
        policy = Policy(single)
        assert len(policy.capabilities) == 1

    def test_single_name_admits_holder(self, user):
        assert Policy("view_reports").evaluate(user) == Decision.ADMIT
        assert Policy("manage_branches").evaluate(user) == Decision.FORBIDDEN

    def test_require_all_permissions_has_fixed_combinator(self):
        with pytest.raises(TypeError):
            require_all_permissions("manage_branches", combinator=Combinator.ANY)
        assert callable(require_all_permissions("manage_branches", tenant_scoped=False))


# =============================================================================
# Unauthenticated principals
# =============================================================================


class TestUnauthenticated:
    @pytest.mark.parametrize("required", REQUIREMENTS)
    def test_anonymous_is_unauthenticated_never_forbidden(self, required):
        assert Policy(required).evaluate(None) == Decision.UNAUTHENTICATED

    def test_student_is_not_a_user(self, student):
        assert Policy([]).evaluate(student) == Decision.UNAUTHENTICATED

    def test_user_without_id(self):
        assert Policy([]).evaluate(User(id="", username="ghost")) == Decision.UNAUTHENTICATED


# =============================================================================
# Enforcement against sessions
# =============================================================================


class TestAuthorize:
    def test_anonymous_session_raises_401(self, make_session):
        with pytest.raises(Unauthenticated) as exc:
            authorize(make_session(), ["manage_branches"])
        assert exc.value.status_code == 401

    def test_branch_read_admitted_with_either_permission(self, make_session, staff_user):
        session = make_session(staff_user, tenant_id="lib_a")
        principal = authorize(
            session, ["manage_branches", "manage_library_students"], Combinator.ANY
        )
        assert principal == staff_user

    def test_branch_write_forbidden_without_manage_branches(self, make_session, staff_user):
        session = make_session(staff_user, tenant_id="lib_a")
        with pytest.raises(Forbidden) as exc:
            authorize(session, ["manage_branches"])
        assert exc.value.status_code == 403

    def test_owner_session_admitted(self, make_session, owner):
        assert authorize(make_session(owner), ["anything"], Combinator.ALL) == owner
