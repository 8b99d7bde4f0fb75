"""Role gate predicates"""
from types import SimpleNamespace

import pytest
from werkzeug.exceptions import Forbidden, Unauthorized

from models.user import Role
from utils.access import (
    AccessContext,
    authorize,
    canonical_id,
    has_role,
    is_admin_or_owner,
)

ADMIN = SimpleNamespace(id="admin-id", role=Role.ADMIN)
USER = SimpleNamespace(id="user-id", role=Role.USER)


@pytest.mark.parametrize(
    "identity, owner_id, allowed",
    [
        (ADMIN, "admin-id", True),   # admin, own
        (ADMIN, "user-id", True),    # admin, other
        (USER, "user-id", True),     # user, own
        (USER, "admin-id", False),   # user, other
    ],
)
def test_admin_or_owner_matrix(identity, owner_id, allowed):
    ctx = AccessContext(identity, owner_id)
    assert is_admin_or_owner(ctx) is allowed
    if allowed:
        authorize(ctx, is_admin_or_owner, "nope")
    else:
        with pytest.raises(Forbidden):
            authorize(ctx, is_admin_or_owner, "nope")


def test_missing_owner_falls_back_to_caller():
    assert is_admin_or_owner(AccessContext(USER))


def test_no_identity_is_unauthenticated_not_forbidden():
    ctx = AccessContext(None, "user-id")
    assert not is_admin_or_owner(ctx)
    with pytest.raises(Unauthorized):
        authorize(ctx, is_admin_or_owner, "nope")


def test_has_role_is_exact():
    assert has_role(AccessContext(ADMIN), "admin")
    assert not has_role(AccessContext(USER), "admin")
    assert has_role(AccessContext(USER), Role.USER)
    assert not has_role(AccessContext(None), "user")


def test_forbidden_carries_message():
    with pytest.raises(Forbidden) as exc:
        authorize(AccessContext(USER), lambda ctx: has_role(ctx, "admin"), "Access denied. Insufficient permissions.")
    assert exc.value.description == "Access denied. Insufficient permissions."


def test_owner_id_is_compared_in_canonical_form():
    owner = SimpleNamespace(id="8c1f1c9e-4b1a-4c8e-9a57-0d0f5b0f6a11", role=Role.USER)
    assert is_admin_or_owner(AccessContext(owner, owner.id.upper()))
    assert canonical_id("8C1F1C9E4B1A4C8E9A570D0F5B0F6A11") == owner.id
    assert canonical_id("not-a-uuid") == "not-a-uuid"
