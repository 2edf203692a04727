"""
Tests for permission resolution.
"""
import pytest

from uam.core.errors import Forbidden, Unauthenticated
from uam.features.groups.crud import update_group
from uam.features.groups.schemas import GroupUpdate
from uam.features.permissions.dependencies import (
    authorize,
    effective_permissions,
    ensure_authorized,
    is_admin,
)
from uam.features.policies.models import Permission
from uam.features.users.crud import update_user
from uam.features.users.schemas import UserUpdate

from conftest import group_named, make_group, make_policy, make_user


def perm(resource, action):
    return Permission(resource=resource, action=action)


def test_admin_is_allowed_everything_without_groups(store, admin):
    update_user(store, admin.id, UserUpdate(groups=[]))

    assert authorize(store, admin.id, perm("policies", "delete"))
    assert authorize(store, admin.id, perm("anything", "at-all"))


def test_member_of_users_group_cannot_delete_policies(store, member):
    assert not authorize(store, member.id, perm("policies", "delete"))
    assert authorize(store, member.id, perm("groups", "read"))
    assert authorize(store, member.id, perm("access-requests", "create"))


def test_user_without_groups_is_denied(store):
    alice = make_user(store, "alice")

    assert not authorize(store, alice.id, perm("users", "read"))


def test_group_without_policies_denies(store):
    empty = make_group(store, "Empty")
    alice = make_user(store, "alice", groups=[empty.id])

    assert not authorize(store, alice.id, perm("users", "read"))


def test_maintainer_role_gets_no_override(store):
    alice = make_user(store, "alice", role="maintainer")

    assert not is_admin(alice)
    assert not authorize(store, alice.id, perm("users", "read"))


def test_matching_is_exact(store):
    policy = make_policy(store, "Reports", [("reports", "read")])
    group = make_group(store, "Analysts", [policy.id])
    alice = make_user(store, "alice", groups=[group.id])

    assert authorize(store, alice.id, perm("reports", "read"))
    assert not authorize(store, alice.id, perm("Reports", "read"))
    assert not authorize(store, alice.id, perm("reports", "READ"))
    assert not authorize(store, alice.id, perm("report", "read"))


def test_permission_follows_policy_changes(store):
    policy = make_policy(store, "Reports", [("reports", "read")])
    group = make_group(store, "Analysts")
    alice = make_user(store, "alice", groups=[group.id])

    assert not authorize(store, alice.id, perm("reports", "read"))
    update_group(store, group.id, GroupUpdate(policies=[policy.id]))
    assert authorize(store, alice.id, perm("reports", "read"))


def test_unknown_user_is_unauthenticated_not_forbidden(store, member):
    assert not authorize(store, "missing", perm("users", "read"))

    with pytest.raises(Unauthenticated):
        ensure_authorized(store, "missing", perm("users", "read"))
    with pytest.raises(Forbidden):
        ensure_authorized(store, member.id, perm("users", "delete"))
    assert ensure_authorized(store, member.id, perm("users", "read")).id == member.id


def test_authorize_does_not_mutate_store(store, member):
    snapshot = (dict(store.users), dict(store.groups), dict(store.policies))

    for _ in range(3):
        authorize(store, member.id, perm("users", "read"))

    assert (store.users, store.groups, store.policies) == snapshot


def test_effective_permissions_are_deduplicated(store):
    first = make_policy(store, "Reports", [("reports", "read"), ("reports", "read")])
    second = make_policy(store, "More Reports", [("reports", "read"), ("reports", "export")])
    group = make_group(store, "Analysts", [first.id, second.id])
    other = make_group(store, "Analysts Two", [first.id])
    alice = make_user(store, "alice", groups=[group.id, other.id])

    permissions = effective_permissions(store, alice)

    assert sorted(str(p) for p in permissions) == ["reports:export", "reports:read"]


def test_users_group_permissions(store, member):
    users_policy_names = {str(p) for p in effective_permissions(store, member)}

    assert users_policy_names == {
        "users:read", "groups:read", "access-requests:create", "access-requests:read",
    }
    assert group_named(store, "Users").id in member.groups
